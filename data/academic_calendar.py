"""Schuljahreskalender: eingebaute Feiertage plus eigene Termine."""

import logging
from datetime import date
from typing import Optional

from config.defaults import KEY_ACADEMIC_EVENTS, NATIONAL_HOLIDAYS
from models.base import new_id
from models.calendar_event import CalendarEvent, CalendarEventType
from models.errors import EntityNotFoundError, InvalidEntityError, PermissionDeniedError
from storage.local_store import LocalStore

logger = logging.getLogger(__name__)


def national_holidays() -> list[CalendarEvent]:
    """Feiertage als Termine; sie werden nie gespeichert."""
    return [
        CalendarEvent(id=h["id"], title=h["title"], description="National Holiday",
                      date=date.fromisoformat(h["date"]),
                      type=CalendarEventType.HOLIDAY, is_national=True)
        for h in NATIONAL_HOLIDAYS
    ]


class AcademicCalendar:
    """Eigene Termine unter "academic-events", kombiniert mit Feiertagen."""

    def __init__(self, store: LocalStore):
        self.store = store

    def custom_events(self) -> list[CalendarEvent]:
        return [CalendarEvent.model_validate(e)
                for e in self.store.get_list(KEY_ACADEMIC_EVENTS)]

    def _save(self, events: list[CalendarEvent]) -> None:
        self.store.set(KEY_ACADEMIC_EVENTS,
                       [e.to_json_dict() for e in events if not e.is_national])

    def all_events(self) -> list[CalendarEvent]:
        return sorted(national_holidays() + self.custom_events(), key=lambda e: e.date)

    def add(self, title: str, on: date,
            type: CalendarEventType = CalendarEventType.EVENT,
            description: str = "") -> CalendarEvent:
        if not title.strip():
            raise InvalidEntityError("Please fill in all required fields")
        event = CalendarEvent(id=new_id("event"), title=title.strip(),
                              description=description, date=on, type=type)
        self._save(self.custom_events() + [event])
        logger.info(f"Termin angelegt: {event.title} am {on}")
        return event

    def update(self, event_id: str, **changes) -> CalendarEvent:
        if event_id in {h["id"] for h in NATIONAL_HOLIDAYS}:
            raise PermissionDeniedError("National holidays cannot be changed")
        events = self.custom_events()
        for i, event in enumerate(events):
            if event.id == event_id:
                changes.pop("id", None)
                changes.pop("is_national", None)
                events[i] = CalendarEvent.model_validate({**event.model_dump(), **changes})
                if not events[i].title.strip():
                    raise InvalidEntityError("Please fill in all required fields")
                self._save(events)
                return events[i]
        raise EntityNotFoundError(f"Termin nicht gefunden: {event_id}")

    def delete(self, event_id: str) -> None:
        if event_id in {h["id"] for h in NATIONAL_HOLIDAYS}:
            raise PermissionDeniedError("National holidays cannot be deleted")
        events = self.custom_events()
        remaining = [e for e in events if e.id != event_id]
        if len(remaining) == len(events):
            raise EntityNotFoundError(f"Termin nicht gefunden: {event_id}")
        self._save(remaining)

    # ─── Abfragen ───

    def events_on(self, day: date) -> list[CalendarEvent]:
        return [e for e in self.all_events() if e.date == day]

    def events_in_month(self, year: int, month: int) -> list[CalendarEvent]:
        return [e for e in self.all_events()
                if e.date.year == year and e.date.month == month]

    def upcoming(self, today: date, limit: int = 10,
                 type: Optional[CalendarEventType] = None) -> list[CalendarEvent]:
        events = [e for e in self.all_events() if e.date >= today]
        if type is not None:
            events = [e for e in events if e.type == type]
        return events[:limit]
