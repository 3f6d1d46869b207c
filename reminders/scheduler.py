"""Erinnerungen vor Unterrichtsbeginn.

Für jeden Zeitslot wird das nächste Vorkommen berechnet und ein
einmaliger Timer auf (Vorkommen − Vorlaufzeit) gestellt. Ein Timer stellt
sich nach dem Auslösen nicht selbst neu – dafür plant ein täglicher
Durchlauf um Mitternacht alle Erinnerungen mit dem aktuellen Dokument neu.
Änderungen aus anderen Prozessen erkennt watch_document() über einen
regelmäßig geprüften Fingerabdruck des gespeicherten Dokuments.

Offene Aufgaben erhalten zusätzlich Erinnerungen 24 h und 1 h vor Fälligkeit.

Geplante Erinnerungen leben nur im Speicher; nach einem Neustart muss
neu geplant werden.
"""

import logging
from datetime import datetime, time, timedelta
from typing import Any, Callable, Optional

from models.assignment import Assignment
from models.base import new_id
from models.notification import NotificationSettings, NotificationType, ScheduledNotification
from models.schedule_document import ScheduleDocument
from models.subject import Subject
from models.timeslot import TimeSlot
from reminders.clock import Scheduler, TimerHandle
from reminders.notifications import NotificationGateway
from reminders.occurrence import next_midnight, next_occurrence

logger = logging.getLogger(__name__)


def build_reminder(subject: Subject, slot: TimeSlot, class_time,
                   lead_minutes: int) -> ScheduledNotification:
    """Erinnerung "Class Reminder: <Fach>" für ein konkretes Vorkommen."""
    return ScheduledNotification(
        id=new_id("notification"),
        title=f"Class Reminder: {subject.name}",
        message=f"Your {subject.name} class starts in {lead_minutes} minutes at {subject.room}",
        scheduled_time=class_time - timedelta(minutes=lead_minutes),
        type=NotificationType.CLASS_REMINDER,
        payload={
            "subjectId": subject.id,
            "timeSlotId": slot.id,
            "classTime": class_time.isoformat(),
        },
    )


# Vorläufe für Aufgaben-Erinnerungen: (Abstand zur Fälligkeit, Titel, Nachrichtenende)
ASSIGNMENT_REMINDERS = (
    (timedelta(hours=24), "Assignment Due Tomorrow", "is due tomorrow"),
    (timedelta(hours=1), "Assignment Due Soon", "is due in 1 hour!"),
)


def build_assignment_reminders(assignment: Assignment, subject_name: str,
                               now: datetime) -> list[ScheduledNotification]:
    """Erinnerungen 24 h und 1 h vor Fälligkeit (Fälligkeit = 00:00 am Fälligkeitstag).

    Nur Zeitpunkte strikt nach ``now`` werden erzeugt.
    """
    due = datetime.combine(assignment.due_date, time.min, tzinfo=now.tzinfo)
    reminders = []
    for before, title, tail in ASSIGNMENT_REMINDERS:
        at = due - before
        if at <= now:
            continue
        reminders.append(ScheduledNotification(
            id=new_id("notification"),
            title=f"{title}: {assignment.title}",
            message=f"Your {assignment.type.value} for {subject_name} {tail}",
            scheduled_time=at,
            type=NotificationType.ASSIGNMENT_DUE,
            payload={
                "assignmentId": assignment.id,
                "subjectId": assignment.subject_id,
                "dueDate": assignment.due_date.isoformat(),
            },
        ))
    return reminders


class ReminderScheduler:
    """Plant Unterrichts- und Aufgaben-Erinnerungen über das NotificationGateway.

    Args:
        gateway: Zustellung und Timer-Verwaltung.
        scheduler: Uhr für den täglichen Durchlauf und die Dokument-Überwachung.
        document_provider: liefert das jeweils aktuelle Dokument.
        settings_provider: liefert die gespeicherten Benachrichtigungs-Einstellungen.
        default_lead_minutes: Vorlaufzeit ohne gespeicherte Einstellung.
    """

    def __init__(self, gateway: NotificationGateway, scheduler: Scheduler,
                 document_provider: Callable[[], Optional[ScheduleDocument]],
                 settings_provider: Optional[Callable[[], NotificationSettings]] = None,
                 default_lead_minutes: int = 10):
        self.gateway = gateway
        self.scheduler = scheduler
        self.document_provider = document_provider
        self.settings_provider = settings_provider
        self.default_lead_minutes = default_lead_minutes
        self._daily: Optional[TimerHandle] = None
        self._watch: Optional[TimerHandle] = None
        self._watch_interval = timedelta(seconds=30)
        self._fingerprint: Optional[Callable[[], Any]] = None
        self._last_seen: Any = None

    def _settings(self) -> Optional[NotificationSettings]:
        if self.settings_provider is None:
            return None
        return self.settings_provider()

    # ─── Planung ───

    def schedule_all(self, slots: list[TimeSlot], subjects: list[Subject],
                     lead_minutes: Optional[int] = None,
                     assignments: Optional[list[Assignment]] = None,
                     ) -> list[ScheduledNotification]:
        """Verwirft alle geplanten Erinnerungen und plant neu.

        Ohne Erlaubnis passiert nichts. Die Einstellungen werden vor dem
        Verwerfen gelesen; scheitert das Lesen, bleibt der alte Plan stehen.
        Slots ohne Fach werden übersprungen, ebenso Erinnerungen, deren
        Zeitpunkt nicht in der Zukunft liegt. Erledigte Aufgaben erhalten
        keine Erinnerung.
        """
        if not self.gateway.granted:
            logger.info("Keine Erlaubnis für Hinweise, Erinnerungen nicht geplant")
            return []

        settings = self._settings()
        self.gateway.clear_all()
        if settings is not None and not settings.notifications_enabled:
            logger.info("Benachrichtigungen sind ausgeschaltet")
            return []

        if lead_minutes is not None:
            lead = lead_minutes
        elif settings is not None:
            lead = settings.reminder_minutes
        else:
            lead = self.default_lead_minutes
        now = self.scheduler.now()
        subjects_by_id = {s.id: s for s in subjects}
        armed: list[ScheduledNotification] = []

        if settings is None or settings.class_reminders_enabled:
            for slot in slots:
                subject = subjects_by_id.get(slot.subject_id)
                if subject is None:
                    logger.debug(f"Slot {slot} ohne Fach übersprungen")
                    continue
                class_time = next_occurrence(slot, now)
                if class_time is None:
                    continue
                reminder = build_reminder(subject, slot, class_time, lead)
                if self.gateway.schedule_at(reminder) is not None:
                    armed.append(reminder)
        else:
            logger.info("Unterrichts-Erinnerungen sind deaktiviert")

        for assignment in assignments or []:
            if assignment.completed:
                continue
            subject = subjects_by_id.get(assignment.subject_id)
            name = subject.name if subject else "Unknown Subject"
            for reminder in build_assignment_reminders(assignment, name, now):
                if self.gateway.schedule_at(reminder) is not None:
                    armed.append(reminder)

        logger.info(f"{len(armed)} Erinnerungen geplant (Vorlauf {lead} min)")
        return armed

    def replan(self) -> list[ScheduledNotification]:
        """Plant mit dem aktuellen Dokument neu."""
        doc = self.document_provider()
        if doc is None:
            self.gateway.clear_all()
            return []
        return self.schedule_all(doc.time_slots, doc.subjects,
                                 assignments=doc.assignments)

    def pending(self) -> list[ScheduledNotification]:
        return self.gateway.pending()

    # ─── Täglicher Durchlauf ───

    def start_daily_replan(self) -> TimerHandle:
        """Stellt den Durchlauf auf die nächste lokale Mitternacht."""
        if self._daily is not None:
            self.scheduler.cancel(self._daily)
        at = next_midnight(self.scheduler.now())
        self._daily = self.scheduler.arm(at, self._on_midnight)
        logger.debug(f"Täglicher Durchlauf geplant für {at}")
        return self._daily

    def _on_midnight(self) -> None:
        # Erst neu stellen: ein scheiterndes replan() darf die Kette nicht beenden
        self._daily = None
        self.start_daily_replan()
        self.replan()

    # ─── Dokument-Überwachung ───

    def watch_document(self, fingerprint: Callable[[], Any],
                       interval: timedelta = timedelta(seconds=30)) -> TimerHandle:
        """Prüft in festen Abständen, ob sich das gespeicherte Dokument geändert hat.

        ``fingerprint`` liefert einen vergleichbaren Stand (z.B. den
        Dateiinhalt). Weicht er vom zuletzt gesehenen ab, wird neu geplant.
        """
        self._fingerprint = fingerprint
        self._last_seen = fingerprint()
        self._watch_interval = interval
        return self._arm_watch()

    def _arm_watch(self) -> TimerHandle:
        if self._watch is not None:
            self.scheduler.cancel(self._watch)
        self._watch = self.scheduler.arm(self.scheduler.now() + self._watch_interval,
                                         self._on_watch)
        return self._watch

    def _on_watch(self) -> None:
        self._watch = None
        self._arm_watch()
        current = self._fingerprint()
        if current == self._last_seen:
            return
        self._last_seen = current
        logger.info("Stundenplan geändert, Erinnerungen werden neu geplant")
        self.replan()

    def stop(self) -> None:
        """Hebt alle Erinnerungen, den täglichen Durchlauf und die Überwachung auf."""
        for handle in (self._daily, self._watch):
            if handle is not None:
                self.scheduler.cancel(handle)
        self._daily = None
        self._watch = None
        self.gateway.clear_all()
