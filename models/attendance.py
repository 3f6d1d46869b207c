"""Datenmodelle für Anwesenheit (Pydantic v2).

Zwei Sichten wie in der Web-App:
- AttendanceRecord: Lehrkraft erfasst pro Fach und Datum den Status.
- ClassAttendance: pro Zeitslot, Schüler und Datum (present/absent).
"""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from models.base import StoredModel, round_half_up


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


class AttendanceRecord(StoredModel):
    id: str
    subject_id: str
    date: date
    status: AttendanceStatus
    notes: Optional[str] = None


class ClassAttendance(StoredModel):
    id: str
    time_slot_id: str
    student_id: str
    date: date
    status: AttendanceStatus  # nur present/absent


class AttendanceStats(BaseModel):
    """Auswertung einer Menge von Einträgen (verspätet zählt halb)."""

    total: int
    present: int
    late: int
    absent: int

    @property
    def percentage(self) -> int:
        """Gerundete Quote in Prozent, 0 ohne Einträge."""
        if self.total == 0:
            return 0
        return round_half_up((self.present + self.late * 0.5) / self.total * 100)

    @classmethod
    def from_statuses(cls, statuses: list[AttendanceStatus]) -> "AttendanceStats":
        return cls(
            total=len(statuses),
            present=sum(1 for s in statuses if s == AttendanceStatus.PRESENT),
            late=sum(1 for s in statuses if s == AttendanceStatus.LATE),
            absent=sum(1 for s in statuses if s == AttendanceStatus.ABSENT),
        )
