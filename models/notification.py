"""Datenmodelle für Benachrichtigungen (Pydantic v2)."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field

from models.base import StoredModel


class NotificationType(str, Enum):
    CLASS_REMINDER = "class_reminder"
    ASSIGNMENT_DUE = "assignment_due"
    GENERAL = "general"


class ScheduledNotification(StoredModel):
    """Geplanter Hinweis – existiert nur, solange sein Timer läuft.

    Wird nie gespeichert: nach einem Neustart muss der Scheduler erneut
    planen.
    """

    id: str
    title: str
    message: str
    scheduled_time: datetime
    type: NotificationType = NotificationType.GENERAL
    payload: dict[str, Any] = Field(default_factory=dict, alias="data")


class InAppNotification(StoredModel):
    """Eintrag der In-App-Liste (Ersatz, wenn Plattform-Hinweise fehlen)."""

    id: str
    title: str
    message: str
    timestamp: datetime
    type: NotificationType = NotificationType.GENERAL
    read: bool = False
    payload: dict[str, Any] = Field(default_factory=dict, alias="data")


class NotificationSettings(StoredModel):
    """Persistierte Einstellungen der Benachrichtigungszentrale."""

    notifications_enabled: bool = True
    class_reminders_enabled: bool = True
    reminder_minutes: int = Field(10, ge=0, le=24 * 60)
