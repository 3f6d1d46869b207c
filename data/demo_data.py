"""Demo-Daten für einen schnellen Start und für Tests.

Erzeugt ein plausibles Schüler-Profil: Fächer mit Lehrkraft und Raum,
ein überschneidungsfreies Wochenraster (Mo–Fr) und einige Aufgaben.
Mit festem Seed ist das Ergebnis reproduzierbar.
"""

import random
from datetime import date, timedelta
from typing import Optional

from config.defaults import SUBJECT_COLORS, WEEKDAYS
from models.assignment import AssignmentType
from models.schedule_document import ScheduleDocument

# ─── Fach-Katalog ─────────────────────────────────────────────────────────────

# (Name, Raum-Präfix)
_SUBJECT_CATALOG = [
    ("Mathematics", "M"),
    ("English", "E"),
    ("Physics", "P"),
    ("Chemistry", "C"),
    ("Biology", "B"),
    ("History", "H"),
    ("Computer Science", "CS"),
    ("Art", "A"),
]

_LAST_NAMES = [
    "Miller", "Smith", "Johnson", "Brown", "Davis", "Garcia", "Wilson",
    "Anderson", "Taylor", "Moore", "Martin", "Lee",
]

# Unterrichtsblöcke (Beginn, Ende)
_PERIODS = [
    ("08:00", "08:45"),
    ("08:50", "09:35"),
    ("09:55", "10:40"),
    ("10:45", "11:30"),
    ("11:50", "12:35"),
    ("12:40", "13:25"),
]

_ASSIGNMENT_TITLES = {
    AssignmentType.HOMEWORK: ["Worksheet", "Reading", "Exercises"],
    AssignmentType.ASSIGNMENT: ["Project", "Essay", "Lab report"],
    AssignmentType.EXAM: ["Midterm", "Quiz", "Final exam"],
}


class DemoDataGenerator:
    """Erzeugt ein ScheduleDocument mit Demo-Inhalten."""

    def __init__(self, seed: Optional[int] = None,
                 num_subjects: int = 6, periods_per_day: int = 4):
        self.rng = random.Random(seed)
        self.num_subjects = min(num_subjects, len(_SUBJECT_CATALOG))
        self.periods_per_day = min(periods_per_day, len(_PERIODS))

    def _add_subjects(self, doc: ScheduleDocument) -> None:
        picked = self.rng.sample(_SUBJECT_CATALOG, self.num_subjects)
        for i, (name, prefix) in enumerate(picked):
            doc.add_subject(
                name=name,
                color=SUBJECT_COLORS[i % len(SUBJECT_COLORS)],
                instructor=f"Ms. {self.rng.choice(_LAST_NAMES)}",
                room=f"{prefix}{self.rng.randint(101, 312)}",
            )

    def _add_slots(self, doc: ScheduleDocument) -> None:
        subject_ids = [s.id for s in doc.subjects]
        for day in WEEKDAYS[:5]:
            for start, end in _PERIODS[: self.periods_per_day]:
                doc.add_time_slot(self.rng.choice(subject_ids), day, start, end)

    def _add_assignments(self, doc: ScheduleDocument, today: date) -> None:
        for subject in doc.subjects:
            kind = self.rng.choice(list(AssignmentType))
            title = self.rng.choice(_ASSIGNMENT_TITLES[kind])
            doc.add_assignment(
                subject_id=subject.id,
                title=f"{subject.name} {title}",
                due_date=today + timedelta(days=self.rng.randint(-2, 21)),
                type=kind,
            )

    def generate(self, today: Optional[date] = None) -> ScheduleDocument:
        doc = ScheduleDocument()
        self._add_subjects(doc)
        self._add_slots(doc)
        self._add_assignments(doc, today or date.today())
        return doc
