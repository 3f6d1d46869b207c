"""Berechnung des nächsten Vorkommens eines wöchentlichen Zeitslots."""

from datetime import datetime, timedelta
from typing import Optional

from config.defaults import WEEKDAYS
from models.timeslot import TimeSlot, parse_hhmm


def next_occurrence(slot: TimeSlot, now: datetime) -> Optional[datetime]:
    """Nächster Beginn des Slots, strikt nach ``now``.

    Liegt der Slot heute und hat bereits begonnen (Beginn <= now), ist das
    nächste Vorkommen in genau einer Woche. Unbekannter Wochentag → None.
    """
    if slot.day not in WEEKDAYS:
        return None
    start = parse_hhmm(slot.start_time)
    days_until = (WEEKDAYS.index(slot.day) - now.weekday()) % 7
    candidate = datetime.combine(now.date() + timedelta(days=days_until), start,
                                 tzinfo=now.tzinfo)
    if days_until == 0 and candidate <= now:
        candidate += timedelta(days=7)
    return candidate


def next_midnight(now: datetime) -> datetime:
    """Nächste lokale Mitternacht nach ``now``."""
    return datetime.combine(now.date() + timedelta(days=1), datetime.min.time(),
                            tzinfo=now.tzinfo)
