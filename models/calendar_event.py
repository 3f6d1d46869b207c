"""Datenmodell für Termine im Schuljahreskalender (Pydantic v2)."""

from datetime import date
from enum import Enum

from models.base import StoredModel


class CalendarEventType(str, Enum):
    HOLIDAY = "holiday"
    EXAM = "exam"
    EVENT = "event"
    DEADLINE = "deadline"
    BREAK = "break"


class CalendarEvent(StoredModel):
    """Ein Kalendertermin; Feiertage (is_national) werden nie gespeichert."""

    id: str
    title: str
    description: str = ""
    date: date
    type: CalendarEventType = CalendarEventType.EVENT
    is_national: bool = False
