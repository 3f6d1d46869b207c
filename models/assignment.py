"""Datenmodell für Aufgaben, Hausaufgaben und Prüfungen (Pydantic v2)."""

from datetime import date
from enum import Enum

from models.base import StoredModel


class AssignmentType(str, Enum):
    ASSIGNMENT = "assignment"
    HOMEWORK = "homework"
    EXAM = "exam"


class Assignment(StoredModel):
    """Eine Aufgabe mit Fälligkeitsdatum zu einem Fach."""

    id: str
    subject_id: str
    title: str
    description: str = ""
    due_date: date
    type: AssignmentType = AssignmentType.ASSIGNMENT
    completed: bool = False

    def days_until_due(self, today: date) -> int:
        """Tage bis zur Fälligkeit (negativ = überfällig)."""
        return (self.due_date - today).days

    def due_label(self, today: date) -> str:
        """Kurzlabel wie in der Aufgabenliste: Due today / Overdue / N days left."""
        days = self.days_until_due(today)
        if days == 0:
            return "Due today"
        if days < 0:
            return "Overdue"
        return f"{days} days left"
