"""Lokaler Key-Value-Speicher: ein JSON-Dokument pro logischem Schlüssel.

Entspricht dem localStorage der Web-App: synchron, überlebt Neustarts,
auf ein Profil-Verzeichnis beschränkt. Es gibt keine Transaktionen über
mehrere Schlüssel und keine Sperren – nur ein Prozess pro Profil.
"""

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Optional

from models.errors import StorageError

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]+$")


class LocalStore:
    """Synchroner JSON-Speicher unter ``data_dir``."""

    def __init__(self, data_dir: Path, indent: int = 2):
        self.data_dir = Path(data_dir)
        self.indent = indent or None

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key) or key.startswith("."):
            raise StorageError(f"Ungültiger Speicher-Schlüssel: {key!r}")
        return self.data_dir / f"{key}.json"

    # ─── Lesen ───

    def get(self, key: str, default: Any = None) -> Any:
        """Liest den Wert eines Schlüssels oder ``default``, falls nicht vorhanden."""
        path = self._path(key)
        if not path.exists():
            return default
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Lokaler Speicher nicht lesbar ({key}): {e}") from e

    def get_list(self, key: str) -> list:
        """Wie get(), liefert aber immer eine Liste (leer wenn nicht vorhanden)."""
        value = self.get(key, [])
        if not isinstance(value, list):
            raise StorageError(f"Schlüssel {key} enthält keine Liste")
        return value

    def exists(self, key: str) -> bool:
        return self._path(key).exists()

    def keys(self, prefix: str = "") -> list[str]:
        """Alle gespeicherten Schlüssel (optional mit Präfix), sortiert."""
        if not self.data_dir.exists():
            return []
        return sorted(
            p.stem for p in self.data_dir.glob("*.json")
            if p.stem.startswith(prefix)
        )

    # ─── Schreiben ───

    def set(self, key: str, value: Any) -> None:
        """Schreibt den Wert vollständig neu (über Temp-Datei + Umbenennen)."""
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(value, f, indent=self.indent, ensure_ascii=False)
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Lokaler Speicher nicht schreibbar ({key}): {e}") from e
        logger.debug(f"LocalStore: {key} geschrieben")

    def remove(self, key: str) -> bool:
        """Löscht einen Schlüssel. Gibt True zurück, wenn er existierte."""
        path = self._path(key)
        if not path.exists():
            return False
        try:
            path.unlink()
        except OSError as e:
            raise StorageError(f"Lokaler Speicher: {key} nicht löschbar: {e}") from e
        return True

    def get_text(self, key: str) -> Optional[str]:
        """Liest einen String-Wert (z.B. Geräte-ID)."""
        value = self.get(key)
        return value if isinstance(value, str) else None
