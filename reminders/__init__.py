"""Erinnerungen: Uhr-Abstraktion, Vorkommens-Berechnung, Gateway, Planung."""

from reminders.clock import AsyncioScheduler, Scheduler, TimerHandle, VirtualScheduler
from reminders.occurrence import next_midnight, next_occurrence
from reminders.notifications import (
    ConsolePlatform,
    NotificationGateway,
    NotificationPlatform,
    PermissionState,
)
from reminders.scheduler import ReminderScheduler

__all__ = [
    "AsyncioScheduler",
    "Scheduler",
    "TimerHandle",
    "VirtualScheduler",
    "next_midnight",
    "next_occurrence",
    "ConsolePlatform",
    "NotificationGateway",
    "NotificationPlatform",
    "PermissionState",
    "ReminderScheduler",
]
