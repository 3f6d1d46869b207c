"""Stundenplan als Klartext und als kompakter Teilen-Token."""

import base64
import binascii
import json

from pydantic import ValidationError

from config.defaults import SCHOOL_DAYS
from models.base import new_id
from models.errors import InvalidEntityError
from models.schedule_document import ScheduleDocument
from models.subject import Subject
from models.timeslot import TimeSlot

TEXT_HEADER = "📅 My Class Schedule"


def schedule_text(doc: ScheduleDocument) -> str:
    """Wochenübersicht Montag–Samstag zum Kopieren oder Mailen.

    Tage ohne Unterricht entfallen, Slots ohne Fach ebenso.
    """
    out = [TEXT_HEADER, ""]
    for day in SCHOOL_DAYS:
        slots = doc.slots_for_day(day)
        if not slots:
            continue
        out.append(f"{day}:")
        for slot in slots:
            subject = doc.get_subject(slot.subject_id)
            if subject is not None:
                out.append(f"  • {slot.start_time} - {slot.end_time}: "
                           f"{subject.name} ({subject.room})")
        out.append("")
    return "\n".join(out) + "\n"


# ─── Teilen-Token ─────────────────────────────────────────────────────────────

def encode_share_token(doc: ScheduleDocument) -> str:
    """Fächer und Slots ohne IDs als URL-sicheres base64-JSON.

    Slots verweisen über den Fachnamen auf ihr Fach.
    """
    payload = {
        "subjects": [
            {"name": s.name, "color": s.color, "instructor": s.instructor, "room": s.room}
            for s in doc.subjects
        ],
        "timeSlots": [
            {"subjectName": doc.subject_name(ts.subject_id), "day": ts.day,
             "startTime": ts.start_time, "endTime": ts.end_time}
            for ts in doc.time_slots
        ],
    }
    raw = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def decode_share_token(token: str) -> tuple[list[Subject], list[TimeSlot]]:
    """Gegenstück zu encode_share_token; liefert Fächer und Slots mit Hilfs-IDs.

    Raises:
        InvalidEntityError: Token beschädigt oder unvollständig.
    """
    try:
        payload = json.loads(base64.urlsafe_b64decode(token.encode("ascii")))
        by_name: dict[str, Subject] = {}
        for raw in payload["subjects"]:
            subject = Subject(id=new_id("shared"), **raw)
            by_name.setdefault(subject.name, subject)
        slots = [
            TimeSlot(id=new_id("shared"), subject_id=by_name[raw["subjectName"]].id,
                     day=raw["day"], start_time=raw["startTime"], end_time=raw["endTime"])
            for raw in payload["timeSlots"]
            if raw.get("subjectName") in by_name
        ]
    except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError,
            ValidationError) as e:
        raise InvalidEntityError(f"Teilen-Token ungültig: {e}") from e
    return list(by_name.values()), slots
