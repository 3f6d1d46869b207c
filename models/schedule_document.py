"""ScheduleDocument: Stundenplan-Dokument eines Profils (Pydantic v2).

Das Dokument wird bei jeder Änderung als Ganzes gespeichert. Das Löschen
eines Fachs entfernt sofort alle Zeitslots und Aufgaben, die darauf
verweisen – verwaiste Referenzen entstehen dadurch nicht.
"""

import logging
from datetime import date
from typing import Optional

from pydantic import Field

from config.defaults import UNKNOWN_SUBJECT, WEEKDAYS
from models.assignment import Assignment, AssignmentType
from models.base import StoredModel, new_id
from models.errors import EntityNotFoundError
from models.subject import Subject
from models.timeslot import TimeSlot

logger = logging.getLogger(__name__)


class ScheduleDocument(StoredModel):
    """Fächer, Zeitslots und Aufgaben eines Profils."""

    subjects: list[Subject] = Field(default_factory=list)
    time_slots: list[TimeSlot] = Field(default_factory=list)
    assignments: list[Assignment] = Field(default_factory=list)

    # ─── Abfragen ───

    @property
    def is_empty(self) -> bool:
        return not (self.subjects or self.time_slots or self.assignments)

    def get_subject(self, subject_id: str) -> Optional[Subject]:
        for s in self.subjects:
            if s.id == subject_id:
                return s
        return None

    def subject_name(self, subject_id: str) -> str:
        """Fachname oder Platzhalter, falls die Referenz ins Leere zeigt."""
        subject = self.get_subject(subject_id)
        return subject.name if subject else UNKNOWN_SUBJECT

    def slots_for_day(self, day: str) -> list[TimeSlot]:
        """Zeitslots eines Wochentags, nach Beginn sortiert."""
        return sorted(
            (ts for ts in self.time_slots if ts.day == day),
            key=lambda ts: ts.start_time,
        )

    def today_schedule(self, today: date) -> list[TimeSlot]:
        """Unterricht am Wochentag des gegebenen Datums."""
        return self.slots_for_day(WEEKDAYS[today.weekday()])

    def upcoming_assignments(self, today: date, limit: int = 5) -> list[Assignment]:
        """Offene Aufgaben ab heute, nach Fälligkeit sortiert."""
        pending = [
            a for a in self.assignments
            if not a.completed and a.due_date >= today
        ]
        pending.sort(key=lambda a: a.due_date)
        return pending[:limit]

    def sorted_assignments(self) -> list[Assignment]:
        return sorted(self.assignments, key=lambda a: a.due_date)

    # ─── Fächer ───

    def add_subject(self, name: str, color: str = "#3B82F6",
                    instructor: str = "", room: str = "") -> Subject:
        subject = Subject(id=new_id("subject"), name=name, color=color,
                          instructor=instructor, room=room)
        self.subjects.append(subject)
        return subject

    def update_subject(self, subject_id: str, **changes) -> Subject:
        """Ersetzt Felder eines Fachs; die ID bleibt erhalten."""
        for i, s in enumerate(self.subjects):
            if s.id == subject_id:
                changes.pop("id", None)
                updated = s.model_copy(update=changes)
                self.subjects[i] = Subject.model_validate(updated.model_dump())
                return self.subjects[i]
        raise EntityNotFoundError(f"Fach nicht gefunden: {subject_id}")

    def delete_subject(self, subject_id: str) -> Subject:
        """Löscht ein Fach samt aller Zeitslots und Aufgaben (Kaskade)."""
        subject = self.get_subject(subject_id)
        if subject is None:
            raise EntityNotFoundError(f"Fach nicht gefunden: {subject_id}")
        self.subjects = [s for s in self.subjects if s.id != subject_id]
        slots_before = len(self.time_slots)
        assignments_before = len(self.assignments)
        self.time_slots = [ts for ts in self.time_slots if ts.subject_id != subject_id]
        self.assignments = [a for a in self.assignments if a.subject_id != subject_id]
        logger.info(
            f"Fach '{subject.name}' gelöscht "
            f"(mitgelöscht: {slots_before - len(self.time_slots)} Slots, "
            f"{assignments_before - len(self.assignments)} Aufgaben)"
        )
        return subject

    # ─── Zeitslots ───

    def add_time_slot(self, subject_id: str, day: str,
                      start_time: str, end_time: str) -> TimeSlot:
        """Legt einen Zeitslot an. Das Fach muss existieren."""
        if self.get_subject(subject_id) is None:
            raise EntityNotFoundError(f"Fach nicht gefunden: {subject_id}")
        slot = TimeSlot(id=new_id("slot"), subject_id=subject_id, day=day,
                        start_time=start_time, end_time=end_time)
        self.time_slots.append(slot)
        return slot

    def delete_time_slot(self, slot_id: str) -> TimeSlot:
        for ts in self.time_slots:
            if ts.id == slot_id:
                self.time_slots = [s for s in self.time_slots if s.id != slot_id]
                return ts
        raise EntityNotFoundError(f"Zeitslot nicht gefunden: {slot_id}")

    # ─── Aufgaben ───

    def add_assignment(self, subject_id: str, title: str, due_date: date,
                       type: AssignmentType = AssignmentType.ASSIGNMENT,
                       description: str = "") -> Assignment:
        if self.get_subject(subject_id) is None:
            raise EntityNotFoundError(f"Fach nicht gefunden: {subject_id}")
        assignment = Assignment(id=new_id("assignment"), subject_id=subject_id,
                                title=title, description=description,
                                due_date=due_date, type=type)
        self.assignments.append(assignment)
        return assignment

    def update_assignment(self, assignment_id: str, **changes) -> Assignment:
        """Teil-Update einer Aufgabe (z.B. completed=True)."""
        for i, a in enumerate(self.assignments):
            if a.id == assignment_id:
                changes.pop("id", None)
                merged = {**a.model_dump(), **changes}
                self.assignments[i] = Assignment.model_validate(merged)
                return self.assignments[i]
        raise EntityNotFoundError(f"Aufgabe nicht gefunden: {assignment_id}")

    def set_completed(self, assignment_id: str, completed: bool = True) -> Assignment:
        return self.update_assignment(assignment_id, completed=completed)

    def delete_assignment(self, assignment_id: str) -> Assignment:
        for a in self.assignments:
            if a.id == assignment_id:
                self.assignments = [x for x in self.assignments if x.id != assignment_id]
                return a
        raise EntityNotFoundError(f"Aufgabe nicht gefunden: {assignment_id}")

    # ─── Import geteilter Pläne ───

    def import_shared(self, subjects: list[Subject],
                      time_slots: list[TimeSlot]) -> tuple[int, int]:
        """Übernimmt Fächer und Slots mit neuen IDs.

        Subject-Referenzen der Slots werden auf die neuen IDs umgeschrieben;
        Slots ohne auflösbares Fach werden übersprungen.
        Gibt (Anzahl Fächer, Anzahl Slots) zurück.
        """
        id_map: dict[str, str] = {}
        for s in subjects:
            new_subject = s.model_copy(update={"id": new_id("imported")})
            id_map[s.id] = new_subject.id
            self.subjects.append(new_subject)
        imported_slots = 0
        for ts in time_slots:
            subject_id = id_map.get(ts.subject_id, ts.subject_id)
            if self.get_subject(subject_id) is None:
                logger.warning(f"Import: Slot {ts} ohne Fach übersprungen")
                continue
            self.time_slots.append(ts.model_copy(update={
                "id": new_id("imported"),
                "subject_id": subject_id,
            }))
            imported_slots += 1
        return len(id_map), imported_slots
