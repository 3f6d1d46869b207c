"""Sicherung und Wiederherstellung des Stundenplan-Dokuments.

Format (JSON):
    {"subjects": [...], "timeSlots": [...], "assignments": [...],
     "backupDate": "<ISO-8601>", "version": "2.0"}

Eine Wiederherstellung ersetzt das Dokument vollständig. Fehlt eines der
drei Arrays, wird sie abgelehnt und das gespeicherte Dokument bleibt
unverändert.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from config.defaults import BACKUP_VERSION
from models.errors import BackupError
from models.schedule_document import ScheduleDocument
from storage.sync import SaveResult, SyncCoordinator

logger = logging.getLogger(__name__)

REQUIRED_ARRAYS = ("subjects", "timeSlots", "assignments")


def create_backup(doc: Optional[ScheduleDocument],
                  now: Optional[datetime] = None) -> dict:
    """Erzeugt das Sicherungs-Dict aus dem gespeicherten Dokument."""
    if doc is None:
        raise BackupError("No data to backup")
    now = now or datetime.now(timezone.utc)
    backup = doc.to_json_dict()
    backup["backupDate"] = now.isoformat()
    backup["version"] = BACKUP_VERSION
    return backup


def backup_filename(now: Optional[datetime] = None) -> str:
    """Dateiname wie "class-schedule-backup-2024-09-02.json"."""
    now = now or datetime.now()
    return f"class-schedule-backup-{now.date().isoformat()}.json"


def write_backup(doc: Optional[ScheduleDocument], path: Path,
                 now: Optional[datetime] = None) -> Path:
    backup = create_backup(doc, now)
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(backup, f, indent=2, ensure_ascii=False)
    except OSError as e:
        raise BackupError(f"Sicherung konnte nicht geschrieben werden: {e}") from e
    logger.info(f"Sicherung geschrieben: {path}")
    return path


def parse_backup(raw) -> ScheduleDocument:
    """Prüft eine Sicherung und baut daraus ein neues Dokument.

    Raises:
        BackupError: Format ungültig oder Pflicht-Arrays fehlen.
    """
    if not isinstance(raw, dict):
        raise BackupError("Invalid backup file format")
    missing = [k for k in REQUIRED_ARRAYS if not isinstance(raw.get(k), list)]
    if missing:
        raise BackupError(
            f"Invalid backup file format (fehlend: {', '.join(missing)})"
        )
    version = raw.get("version")
    if version is not None and version != BACKUP_VERSION:
        logger.warning(f"Sicherung hat Version {version}, erwartet {BACKUP_VERSION}")
    try:
        return ScheduleDocument.model_validate(
            {k: raw[k] for k in REQUIRED_ARRAYS}
        )
    except ValidationError as e:
        raise BackupError(f"Sicherung enthält ungültige Einträge: {e}") from e


def read_backup(path: Path) -> ScheduleDocument:
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except OSError as e:
        raise BackupError(f"Sicherung nicht lesbar: {e}") from e
    except json.JSONDecodeError as e:
        raise BackupError(f"Sicherung ist kein gültiges JSON: {e}") from e
    return parse_backup(raw)


async def restore_from_backup(coordinator: SyncCoordinator,
                              raw) -> tuple[ScheduleDocument, SaveResult]:
    """Ersetzt das gespeicherte Dokument durch den Inhalt der Sicherung.

    Die Prüfung erfolgt vollständig vor dem Speichern – bei einem Fehler
    wird nichts geschrieben.
    """
    doc = parse_backup(raw)
    result = await coordinator.save(doc)
    logger.info(
        f"Sicherung wiederhergestellt: {len(doc.subjects)} Fächer, "
        f"{len(doc.time_slots)} Slots, {len(doc.assignments)} Aufgaben"
    )
    return doc, result
