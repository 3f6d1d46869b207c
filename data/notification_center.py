"""In-App-Benachrichtigungen und Benachrichtigungs-Einstellungen.

Die Liste ist neueste-zuerst sortiert und auf ``limit`` Einträge begrenzt
(ältere fallen heraus). Sie dient als Ersatz, wenn Plattform-Hinweise
nicht erlaubt sind oder scheitern.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Optional

from pydantic import ValidationError

from config.defaults import KEY_IN_APP_NOTIFICATIONS, KEY_NOTIFICATION_SETTINGS
from models.base import new_id
from models.errors import EntityNotFoundError
from models.notification import InAppNotification, NotificationSettings, NotificationType
from storage.local_store import LocalStore

logger = logging.getLogger(__name__)


def badge_label(count: int) -> str:
    """Text für das Zähler-Badge: leer bei 0, "99+" ab 100."""
    if count <= 0:
        return ""
    return "99+" if count > 99 else str(count)


class NotificationCenter:
    """Persistierte In-App-Liste unter "in-app-notifications"."""

    def __init__(self, store: LocalStore, limit: int = 50,
                 clock: Callable[[], datetime] = datetime.now):
        self.store = store
        self.limit = limit
        self._now = clock

    # ─── Liste ───

    def list(self) -> list[InAppNotification]:
        return [InAppNotification.model_validate(n)
                for n in self.store.get_list(KEY_IN_APP_NOTIFICATIONS)]

    def _write(self, items: list[InAppNotification]) -> None:
        self.store.set(KEY_IN_APP_NOTIFICATIONS,
                       [n.to_json_dict() for n in items[: self.limit]])

    def add(self, title: str, message: str,
            type: NotificationType = NotificationType.GENERAL,
            payload: Optional[dict[str, Any]] = None) -> InAppNotification:
        entry = InAppNotification(
            id=new_id("inapp"),
            title=title,
            message=message,
            timestamp=self._now(),
            type=type,
            payload=payload or {},
        )
        self._write([entry] + self.list())
        logger.debug(f"In-App-Hinweis: {title}")
        return entry

    def mark_read(self, notification_id: str) -> InAppNotification:
        items = self.list()
        for n in items:
            if n.id == notification_id:
                n.read = True
                self._write(items)
                return n
        raise EntityNotFoundError(f"Hinweis nicht gefunden: {notification_id}")

    def mark_all_read(self) -> int:
        items = self.list()
        changed = sum(1 for n in items if not n.read)
        for n in items:
            n.read = True
        self._write(items)
        return changed

    def delete(self, notification_id: str) -> None:
        items = self.list()
        remaining = [n for n in items if n.id != notification_id]
        if len(remaining) == len(items):
            raise EntityNotFoundError(f"Hinweis nicht gefunden: {notification_id}")
        self._write(remaining)

    def clear(self) -> None:
        self._write([])

    def unread_count(self) -> int:
        return sum(1 for n in self.list() if not n.read)

    # ─── Einstellungen ───

    def settings(self) -> NotificationSettings:
        raw = self.store.get(KEY_NOTIFICATION_SETTINGS)
        if raw is None:
            return NotificationSettings()
        try:
            return NotificationSettings.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Benachrichtigungs-Einstellungen ungültig, nutze Standard: {e}")
            return NotificationSettings()

    def save_settings(self, settings: NotificationSettings) -> None:
        self.store.set(KEY_NOTIFICATION_SETTINGS, settings.to_json_dict())
