"""Anwesenheit: Fach-Einträge der Lehrkraft und Klassen-Anwesenheit pro Slot.

Beide Listen werden als Ganzes unter eigenen Schlüsseln gespeichert.
Ein zweiter Eintrag für dieselbe Kombination überschreibt den Status
des vorhandenen Eintrags, statt einen neuen anzulegen.
"""

import logging
from datetime import date
from typing import Optional

from config.defaults import KEY_ATTENDANCE, KEY_CLASS_ATTENDANCE
from models.attendance import AttendanceRecord, AttendanceStats, AttendanceStatus, ClassAttendance
from models.base import new_id
from models.errors import InvalidEntityError, PermissionDeniedError
from models.schedule_document import ScheduleDocument
from models.session import Session
from storage.local_store import LocalStore

logger = logging.getLogger(__name__)


class AttendanceBook:
    """Anwesenheits-Einträge eines Profils."""

    def __init__(self, store: LocalStore, session: Session):
        self.store = store
        self.session = session

    # ─── Laden / Speichern ───

    def records(self) -> list[AttendanceRecord]:
        return [AttendanceRecord.model_validate(r)
                for r in self.store.get_list(KEY_ATTENDANCE)]

    def class_records(self) -> list[ClassAttendance]:
        return [ClassAttendance.model_validate(r)
                for r in self.store.get_list(KEY_CLASS_ATTENDANCE)]

    def _save_records(self, records: list[AttendanceRecord]) -> None:
        self.store.set(KEY_ATTENDANCE, [r.to_json_dict() for r in records])

    def _save_class_records(self, records: list[ClassAttendance]) -> None:
        self.store.set(KEY_CLASS_ATTENDANCE, [r.to_json_dict() for r in records])

    # ─── Erfassen ───

    def mark(self, subject_id: str, status: AttendanceStatus,
             on: date, notes: Optional[str] = None) -> AttendanceRecord:
        """Erfasst den Status eines Fachs an einem Tag (nur Lehrkräfte)."""
        if not self.session.is_teacher:
            raise PermissionDeniedError("Only teachers can mark attendance")
        records = self.records()
        for record in records:
            if record.subject_id == subject_id and record.date == on:
                record.status = status
                if notes is not None:
                    record.notes = notes
                self._save_records(records)
                logger.info(f"Anwesenheit aktualisiert: {subject_id} {on} → {status.value}")
                return record
        record = AttendanceRecord(id=new_id("attendance"), subject_id=subject_id,
                                  date=on, status=status, notes=notes)
        records.append(record)
        self._save_records(records)
        logger.info(f"Anwesenheit erfasst: {subject_id} {on} → {status.value}")
        return record

    def mark_class(self, time_slot_id: str, student_id: str,
                   status: AttendanceStatus, on: date) -> ClassAttendance:
        """Erfasst einen Schüler in einem Slot. Gleiche Kombination → Update."""
        if status == AttendanceStatus.LATE:
            raise InvalidEntityError("Class attendance is either present or absent")
        records = self.class_records()
        for record in records:
            if (record.time_slot_id == time_slot_id
                    and record.student_id == student_id
                    and record.date == on):
                record.status = status
                self._save_class_records(records)
                return record
        record = ClassAttendance(id=new_id("attendance"), time_slot_id=time_slot_id,
                                 student_id=student_id, date=on, status=status)
        records.append(record)
        self._save_class_records(records)
        return record

    def status_on(self, subject_id: str, on: date) -> Optional[AttendanceStatus]:
        for record in self.records():
            if record.subject_id == subject_id and record.date == on:
                return record.status
        return None

    # ─── Auswertung ───

    def _student_records(self) -> list[ClassAttendance]:
        user_id = self.session.user.id if self.session.user else None
        return [r for r in self.class_records() if r.student_id == user_id]

    def stats(self, subject_id: str,
              doc: Optional[ScheduleDocument] = None) -> AttendanceStats:
        """Statistik eines Fachs.

        Schüler sehen ihre eigene Klassen-Anwesenheit (über die Slots des
        Fachs), Lehrkräfte die Fach-Einträge.
        """
        if self.session.is_student and self.session.user is not None:
            slot_ids = {ts.id for ts in doc.time_slots if ts.subject_id == subject_id} if doc else set()
            statuses = [r.status for r in self._student_records()
                        if r.time_slot_id in slot_ids]
        else:
            statuses = [r.status for r in self.records() if r.subject_id == subject_id]
        return AttendanceStats.from_statuses(statuses)

    def overall(self) -> AttendanceStats:
        if self.session.is_student and self.session.user is not None:
            statuses = [r.status for r in self._student_records()]
        else:
            statuses = [r.status for r in self.records()]
        return AttendanceStats.from_statuses(statuses)

    def recent(self, limit: int = 10) -> list:
        """Neueste Einträge nach Datum (Schüler: eigene Klassen-Anwesenheit)."""
        if self.session.is_student and self.session.user is not None:
            records: list = self._student_records()
        else:
            records = self.records()
        return sorted(records, key=lambda r: r.date, reverse=True)[:limit]
