"""Öffentlich geteilter Stundenplan (Pydantic v2)."""

from datetime import datetime

from models.base import StoredModel
from models.subject import Subject
from models.timeslot import TimeSlot


class SharedSchedule(StoredModel):
    """Momentaufnahme von Fächern und Slots mit Ablaufdatum und Aufrufzähler."""

    id: str = ""
    title: str
    subjects: list[Subject]
    time_slots: list[TimeSlot]
    created_at: datetime
    expires_at: datetime
    views: int = 0

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now
