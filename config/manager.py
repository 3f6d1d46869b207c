"""Konfigurationsmanager: Laden, Speichern und Validieren der App-Konfiguration.

Nutzt ruamel.yaml für YAML-Serialisierung mit Kommentaren.
"""

import json
import logging
import os
from datetime import date
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from rich.console import Console
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap

from config.schema import AppConfig

logger = logging.getLogger(__name__)

console = Console()
yaml = YAML()
yaml.default_flow_style = False
yaml.width = 120

# Umgebungsvariable überschreibt die Remote-URL aus der Datei
ENV_REMOTE_URL = "KLASSENPLAN_REMOTE_URL"


# ─── YAML-KOMMENTAR-AUFBAU ───

_YAML_HEADER = f"""\
# ============================================
# Klassenplan — App-Konfiguration
# Version: 1.0
# Erstellt: {date.today().isoformat()}
# ============================================
"""

_SECTION_COMMENTS = {
    "storage": (
        "Lokaler Speicher",
        "Ein JSON-Dokument pro Schlüssel. Der lokale Speicher ist maßgeblich.",
    ),
    "remote": (
        "Remote-Spiegel",
        "Optional. Fehler werden nur protokolliert, nie an den Nutzer gemeldet.",
    ),
    "reminders": (
        "Erinnerungen",
        None,
    ),
    "notifications": (
        "Benachrichtigungen",
        None,
    ),
    "logging": (
        "Protokollierung",
        None,
    ),
}


class ConfigManager:
    CONFIG_DIR = Path("config")
    DEFAULT_CONFIG = CONFIG_DIR / "app_config.yaml"

    def first_run_check(self) -> bool:
        """True, solange noch keine Konfigurationsdatei angelegt wurde."""
        return not self.DEFAULT_CONFIG.exists()

    # ─── Laden ───

    def load(self, path: Optional[Path] = None) -> AppConfig:
        """Liest die YAML-Datei, prüft sie mit pydantic und wendet die Umgebung an.

        Raises:
            FileNotFoundError: Datei fehlt.
            ValueError: Inhalt passt nicht zum Schema.
        """
        target = Path(path) if path else self.DEFAULT_CONFIG
        if not target.is_file():
            raise FileNotFoundError(
                f"Keine Konfiguration unter {target}.\n"
                f"Führen Sie 'python main.py setup' aus, um das Profil einzurichten."
            )
        raw = yaml.load(target.read_text(encoding="utf-8"))
        try:
            config = AppConfig.model_validate(dict(raw or {}))
        except ValidationError as e:
            raise ValueError(f"Konfiguration ungültig: {target}\n{e}") from e
        return self.apply_environment(config)

    def load_or_default(self, path: Optional[Path] = None) -> AppConfig:
        """Wie load(), fällt aber ohne Datei auf die Default-Config zurück."""
        target = path or self.DEFAULT_CONFIG
        if not target.exists():
            from config.defaults import default_app_config
            logger.info(f"Keine Konfiguration unter {target} – nutze Defaults")
            return self.apply_environment(default_app_config())
        return self.load(target)

    @staticmethod
    def apply_environment(config: AppConfig) -> AppConfig:
        """Überschreibt die Remote-URL aus der Umgebung (aktiviert den Spiegel)."""
        url = os.environ.get(ENV_REMOTE_URL)
        if not url:
            return config
        remote = config.remote.model_copy(
            update={"enabled": True, "base_url": url.rstrip("/")}
        )
        return config.model_copy(update={"remote": remote})

    # ─── Speichern ───

    def save(self, config: AppConfig, path: Optional[Path] = None) -> None:
        """Schreibt die Konfiguration mit Abschnittskommentaren."""
        target = Path(path) if path else self.DEFAULT_CONFIG
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            f.write(_YAML_HEADER + "\n")
            yaml.dump(self._commented(config), f)
        logger.info(f"Konfiguration gespeichert: {target}")
        console.print(f"[green]✓[/green] Gespeichert: {target}")

    def _commented(self, config: AppConfig) -> CommentedMap:
        cm = CommentedMap(json.loads(config.model_dump_json()))
        for section, (label, comment) in _SECTION_COMMENTS.items():
            cm.yaml_set_comment_before_after_key(
                section,
                before=f"\n─── {label} ───" + (f"\n{comment}" if comment else ""),
            )

        # Inline-Kommentar für das Remote-Zeitlimit
        if "remote" in cm:
            remote_map = CommentedMap(cm["remote"])
            remote_map.yaml_add_eol_comment("Sekunden pro Aufruf", "timeout_seconds")
            cm["remote"] = remote_map

        return cm
