"""Liste angemeldeter Schüler (für die Klassen-Anwesenheit der Lehrkraft)."""

import logging
from datetime import datetime
from typing import Callable, Optional

from config.defaults import KEY_LOGGED_STUDENTS
from models.session import UserProfile
from models.student import LoggedStudent
from storage.local_store import LocalStore

logger = logging.getLogger(__name__)


class StudentRoster:
    """Schüler unter "logged-students" mit Online-Status."""

    def __init__(self, store: LocalStore, clock: Callable[[], datetime] = datetime.now):
        self.store = store
        self._now = clock

    def students(self) -> list[LoggedStudent]:
        return [LoggedStudent.model_validate(s)
                for s in self.store.get_list(KEY_LOGGED_STUDENTS)]

    def _save(self, students: list[LoggedStudent]) -> None:
        self.store.set(KEY_LOGGED_STUDENTS, [s.to_json_dict() for s in students])

    def login(self, user: UserProfile) -> LoggedStudent:
        """Neuer Schüler wird angelegt, ein bekannter wieder online gesetzt."""
        students = self.students()
        for s in students:
            if s.id == user.id:
                s.is_online = True
                s.login_time = self._now()
                self._save(students)
                return s
        student = LoggedStudent(id=user.id, name=user.name, email=user.email,
                                login_time=self._now(), is_online=True)
        students.append(student)
        self._save(students)
        logger.info(f"Schüler angemeldet: {student.name}")
        return student

    def logout(self, student_id: str) -> Optional[LoggedStudent]:
        students = self.students()
        for s in students:
            if s.id == student_id:
                s.is_online = False
                self._save(students)
                return s
        return None

    def online(self) -> list[LoggedStudent]:
        return [s for s in self.students() if s.is_online]

    def online_count(self) -> int:
        return len(self.online())

    def search(self, term: str) -> list[LoggedStudent]:
        needle = term.lower()
        return [s for s in self.students()
                if needle in s.name.lower() or needle in (s.email or "").lower()]
