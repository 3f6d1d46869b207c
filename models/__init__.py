from models.subject import Subject
from models.timeslot import TimeSlot
from models.assignment import Assignment, AssignmentType
from models.schedule_document import ScheduleDocument
from models.notification import (
    InAppNotification,
    NotificationSettings,
    NotificationType,
    ScheduledNotification,
)
from models.session import Session, UserProfile

__all__ = [
    "Subject",
    "TimeSlot",
    "Assignment",
    "AssignmentType",
    "ScheduleDocument",
    "InAppNotification",
    "NotificationSettings",
    "NotificationType",
    "ScheduledNotification",
    "Session",
    "UserProfile",
]
