"""Sitzungskontext: Geräte-ID, Rolle, Nutzer und Benachrichtigungs-Erlaubnis.

Ersetzt modulweite Globals. Jede Komponente, die Identität oder Rechte
braucht, bekommt die Session explizit übergeben.
"""

from typing import Optional

from pydantic import BaseModel

from config.schema import UserRole
from models.base import StoredModel


class UserProfile(StoredModel):
    id: str
    name: str
    email: Optional[str] = None


class Session(BaseModel):
    device_id: str
    role: Optional[UserRole] = None
    user: Optional[UserProfile] = None
    notifications_granted: bool = False

    @property
    def is_teacher(self) -> bool:
        return self.role == UserRole.TEACHER

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT

    @property
    def display_name(self) -> str:
        if self.user is None:
            return "Gast"
        return self.user.name
