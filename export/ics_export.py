"""iCalendar-Export (RFC 5545) für das Wochenraster.

Jeder Slot wird ein wöchentlich wiederkehrendes Ereignis, beginnend mit
seinem nächsten Vorkommen. Zeiten sind "floating" (lokale Wanduhrzeit
ohne Zeitzone), Zeilenenden CRLF.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from models.schedule_document import ScheduleDocument
from reminders.occurrence import next_occurrence

logger = logging.getLogger(__name__)

PRODID = "-//Class Schedule App//EN"
UID_DOMAIN = "classschedule.app"


def _escape(text: str) -> str:
    """Maskiert Sonderzeichen in TEXT-Werten."""
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def _fmt(dt: datetime) -> str:
    return dt.strftime("%Y%m%dT%H%M%S")


def build_ics(doc: ScheduleDocument, now: Optional[datetime] = None) -> str:
    """Erzeugt den Kalendertext. Slots ohne Fach werden übersprungen."""
    now = now or datetime.now()
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODID}",
        "CALSCALE:GREGORIAN",
    ]
    skipped = 0
    for slot in doc.time_slots:
        subject = doc.get_subject(slot.subject_id)
        start = next_occurrence(slot, now)
        if subject is None or start is None:
            skipped += 1
            continue
        end = datetime.combine(start.date(), slot.end, tzinfo=start.tzinfo)
        lines += [
            "BEGIN:VEVENT",
            f"UID:{slot.id}@{UID_DOMAIN}",
            f"DTSTAMP:{_fmt(now)}",
            f"DTSTART:{_fmt(start)}",
            f"DTEND:{_fmt(end)}",
            f"SUMMARY:{_escape(subject.name)}",
            f"DESCRIPTION:{_escape(f'Instructor: {subject.instructor}')}\\n"
            f"{_escape(f'Room: {subject.room}')}",
            f"LOCATION:{_escape(subject.room)}",
            "RRULE:FREQ=WEEKLY",
            "END:VEVENT",
        ]
    lines.append("END:VCALENDAR")
    if skipped:
        logger.debug(f"ICS: {skipped} Slots ohne Fach übersprungen")
    return "\r\n".join(lines) + "\r\n"


def export_ics(doc: ScheduleDocument, output_path: Path,
               now: Optional[datetime] = None) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8", newline="") as f:
        f.write(build_ics(doc, now))
    logger.info(f"Kalender exportiert: {output_path}")
    return output_path
