"""Datenmodell für angemeldete Schüler (Pydantic v2)."""

from datetime import datetime
from typing import Optional

from models.base import StoredModel


class LoggedStudent(StoredModel):
    id: str
    name: str
    email: Optional[str] = None
    login_time: datetime
    is_online: bool = True
