"""Aufbau und Abbau der Sitzung (Geräte-ID, Rolle, Nutzer)."""

import logging
from typing import Optional

from pydantic import ValidationError

from config.defaults import KEY_CURRENT_USER, KEY_DEVICE_ID, KEY_USER_ROLE
from config.schema import UserRole
from data.students import StudentRoster
from models.base import new_id
from models.session import Session, UserProfile
from storage.local_store import LocalStore

logger = logging.getLogger(__name__)


class SessionManager:
    """Liest und schreibt die Sitzungs-Schlüssel eines Profils."""

    def __init__(self, store: LocalStore, roster: Optional[StudentRoster] = None):
        self.store = store
        self.roster = roster or StudentRoster(store)

    def device_id(self) -> str:
        """Geräte-ID; wird beim ersten Aufruf erzeugt und gespeichert."""
        device_id = self.store.get_text(KEY_DEVICE_ID)
        if not device_id:
            device_id = new_id("device")
            self.store.set(KEY_DEVICE_ID, device_id)
            logger.info(f"Neue Geräte-ID: {device_id}")
        return device_id

    def open(self, notifications_granted: bool = False) -> Session:
        """Stellt die Sitzung aus dem Speicher wieder her."""
        session = Session(device_id=self.device_id(),
                          notifications_granted=notifications_granted)
        role = self.store.get_text(KEY_USER_ROLE)
        raw_user = self.store.get(KEY_CURRENT_USER)
        if role and raw_user:
            try:
                session.role = UserRole(role)
                session.user = UserProfile.model_validate(raw_user)
            except (ValueError, ValidationError) as e:
                logger.warning(f"Gespeicherte Rolle ungültig, starte ohne Rolle: {e}")
                session.role = None
                session.user = None
        return session

    def select_role(self, session: Session, role: UserRole, name: str,
                    email: Optional[str] = None) -> Session:
        """Setzt Rolle und Nutzer; Schüler erscheinen in der Schülerliste."""
        user = UserProfile(id=new_id(role.value), name=name, email=email)
        if role == UserRole.STUDENT:
            # bekannter Schüler behält seine ID
            for s in self.roster.students():
                if s.name == name and s.email == email:
                    user = UserProfile(id=s.id, name=s.name, email=s.email)
                    break
        self.store.set(KEY_USER_ROLE, role.value)
        self.store.set(KEY_CURRENT_USER, user.to_json_dict())
        if role == UserRole.STUDENT:
            self.roster.login(user)
        session.role = role
        session.user = user
        logger.info(f"Rolle gewählt: {role.value} ({name})")
        return session

    def switch_role(self, session: Session) -> Session:
        """Baut die Sitzung ab: Schüler offline, Rolle und Nutzer gelöscht."""
        if session.is_student and session.user is not None:
            self.roster.logout(session.user.id)
        self.store.remove(KEY_USER_ROLE)
        self.store.remove(KEY_CURRENT_USER)
        session.role = None
        session.user = None
        return session
