"""Benachrichtigungs-Gateway: Plattform-Hinweise mit In-App-Ersatz.

Die "Plattform" ist der Kanal, über den Hinweise sichtbar werden (in der
CLI: ein rich-Panel auf der Konsole). Ihre Erlaubnis wird einmal pro
Gateway erfragt und danach zwischengespeichert; ein neues Gateway liest
den aktuellen Zustand der Plattform erneut.

Ohne Erlaubnis oder bei Plattform-Fehlern landet der Hinweis in der
In-App-Liste (NotificationCenter).
"""

import itertools
import logging
from abc import ABC, abstractmethod
from datetime import timedelta
from enum import Enum
from typing import Any, Callable, Optional, Union

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm

from config.defaults import KEY_PLATFORM_PERMISSION
from data.notification_center import NotificationCenter
from models.errors import NotificationPlatformError, StorageError
from models.notification import NotificationType, ScheduledNotification
from reminders.clock import Scheduler, TimerHandle
from storage.local_store import LocalStore

logger = logging.getLogger(__name__)


class PermissionState(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"
    DEFAULT = "default"


# ─── Plattform ────────────────────────────────────────────────────────────────

class NotificationPlatform(ABC):
    """Kanal für sichtbare Hinweise außerhalb der App-Liste."""

    @abstractmethod
    def permission_state(self) -> PermissionState:
        """Aktueller (live) Erlaubnis-Zustand."""

    @abstractmethod
    def request_permission(self) -> bool:
        """Fragt den Nutzer (einmalig) nach der Erlaubnis."""

    @abstractmethod
    def show(self, title: str, message: str) -> Any:
        """Zeigt einen Hinweis an und gibt ein Token für dismiss() zurück.

        Raises:
            NotificationPlatformError: Anzeige nicht möglich.
        """

    def dismiss(self, token: Any) -> None:
        """Schließt einen angezeigten Hinweis (Standard: nichts zu tun)."""


class ConsolePlatform(NotificationPlatform):
    """Hinweise als rich-Panel; Erlaubnis wird im Profil gespeichert.

    ``prompt`` ersetzt die interaktive Rückfrage (z.B. für --yes oder Tests).
    """

    def __init__(self, store: LocalStore, console: Optional[Console] = None,
                 prompt: Optional[Callable[[], bool]] = None):
        self.store = store
        self.console = console or Console()
        self._prompt = prompt
        self._tokens = itertools.count(1)

    def permission_state(self) -> PermissionState:
        try:
            value = self.store.get_text(KEY_PLATFORM_PERMISSION)
        except StorageError as e:
            logger.warning(f"Erlaubnis nicht lesbar: {e}")
            return PermissionState.DEFAULT
        try:
            return PermissionState(value) if value else PermissionState.DEFAULT
        except ValueError:
            return PermissionState.DEFAULT

    def set_permission(self, state: PermissionState) -> None:
        if state == PermissionState.DEFAULT:
            self.store.remove(KEY_PLATFORM_PERMISSION)
        else:
            self.store.set(KEY_PLATFORM_PERMISSION, state.value)

    def request_permission(self) -> bool:
        state = self.permission_state()
        if state != PermissionState.DEFAULT:
            return state == PermissionState.GRANTED
        if self._prompt is not None:
            granted = self._prompt()
        else:
            granted = Confirm.ask("Hinweise auf der Konsole anzeigen?", default=True)
        self.set_permission(PermissionState.GRANTED if granted else PermissionState.DENIED)
        return granted

    def show(self, title: str, message: str) -> int:
        token = next(self._tokens)
        try:
            self.console.print(Panel(message, title=f"[bold]🔔 {title}[/bold]",
                                     border_style="yellow", expand=False))
        except OSError as e:
            raise NotificationPlatformError(f"Konsole nicht beschreibbar: {e}") from e
        return token

    def dismiss(self, token: Any) -> None:
        logger.debug(f"Hinweis {token} geschlossen")


# ─── Gateway ──────────────────────────────────────────────────────────────────

class NotificationGateway:
    """Sofortige und geplante Hinweise über Plattform oder In-App-Liste."""

    def __init__(self, platform: NotificationPlatform, scheduler: Scheduler,
                 inbox: NotificationCenter, auto_dismiss_seconds: int = 10):
        self.platform = platform
        self.scheduler = scheduler
        self.inbox = inbox
        self.auto_dismiss_seconds = auto_dismiss_seconds
        self._granted = platform.permission_state() == PermissionState.GRANTED
        self._asked = False
        self._pending: dict[str, tuple[ScheduledNotification, TimerHandle]] = {}

    @property
    def granted(self) -> bool:
        return self._granted

    def request_permission(self) -> bool:
        """Einmalige Rückfrage; das Ergebnis gilt für die Lebensdauer des Gateways."""
        if self._granted or self._asked:
            return self._granted
        self._asked = True
        try:
            self._granted = self.platform.request_permission()
        except NotificationPlatformError as e:
            logger.error(f"Erlaubnis konnte nicht erfragt werden: {e}")
            self._granted = False
        return self._granted

    # ─── Sofort ───

    def fire_now(self, title: str, message: str,
                 type: NotificationType = NotificationType.GENERAL,
                 payload: Optional[dict[str, Any]] = None) -> bool:
        """Zeigt einen Hinweis. True = Plattform, False = In-App-Liste."""
        if self._granted:
            try:
                token = self.platform.show(title, message)
            except NotificationPlatformError as e:
                logger.warning(f"Plattform-Hinweis gescheitert, nutze In-App-Liste: {e}")
            else:
                self.scheduler.arm(
                    self.scheduler.now() + timedelta(seconds=self.auto_dismiss_seconds),
                    lambda: self.platform.dismiss(token),
                )
                return True
        self.inbox.add(title, message, type=type, payload=payload)
        return False

    # ─── Geplant ───

    def schedule_at(self, notification: ScheduledNotification) -> Optional[TimerHandle]:
        """Stellt einen einmaligen Timer auf ``notification.scheduled_time``.

        Liegt der Zeitpunkt nicht in der Zukunft, passiert nichts (None).
        """
        if notification.scheduled_time <= self.scheduler.now():
            return None
        handle = self.scheduler.arm(
            notification.scheduled_time,
            lambda: self._fire_scheduled(notification.id),
        )
        self._pending[notification.id] = (notification, handle)
        return handle

    def _fire_scheduled(self, notification_id: str) -> None:
        entry = self._pending.pop(notification_id, None)
        if entry is None:
            return
        notification, _ = entry
        self.fire_now(notification.title, notification.message,
                      type=notification.type, payload=notification.payload)

    def cancel(self, target: Union[str, TimerHandle]) -> bool:
        """Hebt einen geplanten Hinweis auf (per ID oder Timer-Handle)."""
        if isinstance(target, TimerHandle):
            target = next((nid for nid, (_, h) in self._pending.items() if h is target), "")
        entry = self._pending.pop(target, None)
        if entry is None:
            return False
        self.scheduler.cancel(entry[1])
        return True

    def clear_all(self) -> int:
        count = len(self._pending)
        for _, handle in self._pending.values():
            self.scheduler.cancel(handle)
        self._pending.clear()
        return count

    def pending(self) -> list[ScheduledNotification]:
        """Alle noch nicht ausgelösten Hinweise, nach Zeitpunkt sortiert."""
        return sorted((n for n, _ in self._pending.values()),
                      key=lambda n: n.scheduled_time)
