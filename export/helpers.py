"""Gemeinsame Hilfsfunktionen für Text-, Kalender-, Excel- und PDF-Export."""

from datetime import date
from typing import Optional

from config.defaults import SCHOOL_DAYS, WEEKDAYS
from models.schedule_document import ScheduleDocument
from models.subject import Subject
from models.timeslot import TimeSlot

# ─── Farbpalette (RRGGBB, ohne #) ─────────────────────────────────────────────

COLORS: dict[str, str] = {
    "header":  "4472C4",
    "free":    "F5F5F5",
    "done":    "D9EAD3",
    "overdue": "F4CCCC",
    "present": "B3FFB3",
    "late":    "FFF2B3",
    "absent":  "FF9999",
    "unknown": "E0E0E0",
}


def hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    """Wandelt RRGGBB-String (optional mit #) in (r, g, b)-Tupel um."""
    h = hex_color.lstrip("#")
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def lighten(hex_color: str, factor: float = 0.6) -> str:
    """Hellt eine Fachfarbe für Zellhintergründe auf (0 = unverändert, 1 = weiß)."""
    r, g, b = hex_to_rgb(hex_color)
    mix = lambda c: round(c + (255 - c) * factor)   # noqa: E731
    return f"{mix(r):02X}{mix(g):02X}{mix(b):02X}"


def today_str() -> str:
    """Gibt das heutige Datum als DD.MM.YYYY zurück."""
    return date.today().strftime("%d.%m.%Y")


# ─── Raster ───────────────────────────────────────────────────────────────────

def grid_days(doc: ScheduleDocument) -> list[str]:
    """Montag–Samstag, Sonntag nur wenn dort Unterricht liegt."""
    if any(ts.day == WEEKDAYS[6] for ts in doc.time_slots):
        return list(WEEKDAYS)
    return list(SCHOOL_DAYS)


def time_rows(doc: ScheduleDocument) -> list[tuple[str, str]]:
    """Alle vorkommenden (Beginn, Ende)-Paare, nach Beginn sortiert."""
    return sorted({(ts.start_time, ts.end_time) for ts in doc.time_slots})


def sorted_slots(doc: ScheduleDocument) -> list[tuple[TimeSlot, Optional[Subject]]]:
    """Alle Slots nach Wochentag und Beginn, jeweils mit Fach (oder None)."""
    slots = sorted(doc.time_slots, key=lambda ts: (ts.weekday_index, ts.start_time))
    return [(ts, doc.get_subject(ts.subject_id)) for ts in slots]


def format_slot_cell(subject: Optional[Subject]) -> str:
    """Zelleninhalt "Fach\\nRaum\\nLehrkraft" (leere Teile entfallen)."""
    if subject is None:
        return "Unknown Subject"
    parts = [subject.name, subject.room, subject.instructor]
    return "\n".join(p for p in parts if p)
