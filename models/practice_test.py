"""Datenmodelle für Übungstests (Pydantic v2)."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from models.base import StoredModel, round_half_up


class Question(StoredModel):
    """Multiple-Choice-Frage; correct_answer ist der Index in options."""

    id: str
    question: str
    options: list[str]
    correct_answer: int
    explanation: Optional[str] = None


class PracticeTest(StoredModel):
    id: str
    title: str
    description: str = ""
    subject_id: str
    questions: list[Question]
    time_limit: int = Field(30, ge=1)   # Minuten
    created_by: str = "Teacher"
    created_at: datetime


class TestResult(StoredModel):
    id: str
    test_id: str
    student_id: str
    student_name: str
    score: int
    total_questions: int
    time_spent: int          # Sekunden
    completed_at: datetime
    answers: list[int]       # -1 = unbeantwortet

    @property
    def percentage(self) -> int:
        if self.total_questions == 0:
            return 0
        return round_half_up(self.score / self.total_questions * 100)
