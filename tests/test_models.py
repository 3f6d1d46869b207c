"""Tests für die Datenmodelle und das Stundenplan-Dokument."""

from datetime import date

import pytest
from pydantic import ValidationError

from models.assignment import AssignmentType
from models.base import new_id
from models.errors import EntityNotFoundError
from models.schedule_document import ScheduleDocument
from models.subject import Subject
from models.timeslot import TimeSlot, parse_hhmm


@pytest.fixture
def doc() -> ScheduleDocument:
    d = ScheduleDocument()
    math = d.add_subject("Mathematics", color="#3B82F6", instructor="Ms. Lee", room="M101")
    art = d.add_subject("Art", color="#EF4444", instructor="Mr. Moore", room="A12")
    d.add_time_slot(math.id, "Monday", "09:00", "09:45")
    d.add_time_slot(math.id, "Wednesday", "10:00", "10:45")
    d.add_time_slot(art.id, "Monday", "08:00", "08:45")
    d.add_assignment(math.id, "Worksheet", date(2024, 9, 10), AssignmentType.HOMEWORK)
    d.add_assignment(art.id, "Portfolio", date(2024, 9, 5))
    return d


# ─── IDs und Serialisierung ───────────────────────────────────────────────────

class TestStoredModel:
    def test_new_id_format(self):
        """IDs haben die Form prefix_<ms>_<9 Zeichen>."""
        prefix, ms, suffix = new_id("subject").split("_")
        assert prefix == "subject"
        assert ms.isdigit()
        assert len(suffix) == 9

    def test_camel_case_storage_format(self, doc: ScheduleDocument):
        raw = doc.to_json_dict()
        assert set(raw) == {"subjects", "timeSlots", "assignments"}
        assert "subjectId" in raw["timeSlots"][0]
        assert "dueDate" in raw["assignments"][0]
        assert raw["assignments"][0]["dueDate"] == "2024-09-10"

    def test_reads_both_spellings(self):
        a = TimeSlot.model_validate({"id": "s1", "subjectId": "x", "day": "Monday",
                                     "startTime": "08:00", "endTime": "08:45"})
        b = TimeSlot(id="s1", subject_id="x", day="Monday",
                     start_time="08:00", end_time="08:45")
        assert a == b


# ─── TimeSlot ─────────────────────────────────────────────────────────────────

class TestTimeSlot:
    def test_day_normalized(self):
        ts = TimeSlot(id="s", subject_id="x", day=" monday ", start_time="8:05", end_time="9:00")
        assert ts.day == "Monday"
        assert ts.start_time == "08:05"

    def test_unknown_day_rejected(self):
        with pytest.raises(ValidationError):
            TimeSlot(id="s", subject_id="x", day="Montag", start_time="08:00", end_time="09:00")

    def test_start_must_precede_end(self):
        with pytest.raises(ValidationError):
            TimeSlot(id="s", subject_id="x", day="Monday", start_time="10:00", end_time="09:00")

    def test_bad_time_format(self):
        with pytest.raises(ValueError):
            parse_hhmm("9 Uhr")

    def test_str(self):
        ts = TimeSlot(id="s", subject_id="x", day="Friday", start_time="08:00", end_time="08:45")
        assert str(ts) == "Friday 08:00-08:45"
        assert ts.weekday_index == 4


# ─── Aufgaben ─────────────────────────────────────────────────────────────────

class TestAssignment:
    def test_due_labels(self, doc: ScheduleDocument):
        a = doc.assignments[0]   # fällig 2024-09-10
        assert a.due_label(date(2024, 9, 10)) == "Due today"
        assert a.due_label(date(2024, 9, 11)) == "Overdue"
        assert a.due_label(date(2024, 9, 7)) == "3 days left"

    def test_upcoming_skips_completed_and_past(self, doc: ScheduleDocument):
        doc.set_completed(doc.assignments[1].id)
        upcoming = doc.upcoming_assignments(date(2024, 9, 1))
        assert [a.title for a in upcoming] == ["Worksheet"]
        assert doc.upcoming_assignments(date(2024, 9, 11)) == []

    def test_sorted_by_due_date(self, doc: ScheduleDocument):
        assert [a.title for a in doc.sorted_assignments()] == ["Portfolio", "Worksheet"]

    def test_assignment_needs_existing_subject(self, doc: ScheduleDocument):
        with pytest.raises(EntityNotFoundError):
            doc.add_assignment("gibt-es-nicht", "X", date(2024, 9, 1))


# ─── Dokument ─────────────────────────────────────────────────────────────────

class TestScheduleDocument:
    def test_delete_subject_cascades(self, doc: ScheduleDocument):
        """Nach dem Löschen verweist kein Slot und keine Aufgabe mehr auf das Fach."""
        math_id = doc.subjects[0].id
        doc.delete_subject(math_id)
        assert doc.get_subject(math_id) is None
        assert all(ts.subject_id != math_id for ts in doc.time_slots)
        assert all(a.subject_id != math_id for a in doc.assignments)
        assert len(doc.time_slots) == 1
        assert len(doc.assignments) == 1

    def test_delete_unknown_subject(self, doc: ScheduleDocument):
        with pytest.raises(EntityNotFoundError):
            doc.delete_subject("nope")

    def test_slot_needs_existing_subject(self, doc: ScheduleDocument):
        with pytest.raises(EntityNotFoundError):
            doc.add_time_slot("nope", "Monday", "08:00", "09:00")

    def test_slots_for_day_sorted(self, doc: ScheduleDocument):
        monday = doc.slots_for_day("Monday")
        assert [ts.start_time for ts in monday] == ["08:00", "09:00"]

    def test_today_schedule(self, doc: ScheduleDocument):
        # 2024-09-04 ist ein Mittwoch
        today = doc.today_schedule(date(2024, 9, 4))
        assert len(today) == 1
        assert today[0].start_time == "10:00"

    def test_unknown_subject_name(self, doc: ScheduleDocument):
        assert doc.subject_name("nope") == "Unknown Subject"

    def test_update_subject_keeps_id(self, doc: ScheduleDocument):
        sid = doc.subjects[0].id
        updated = doc.update_subject(sid, id="neu", room="M202")
        assert updated.id == sid
        assert updated.room == "M202"

    def test_is_empty(self):
        assert ScheduleDocument().is_empty

    def test_import_shared_remaps_ids(self, doc: ScheduleDocument):
        """Importierte Slots verweisen auf die neu angelegten Fächer."""
        shared_subject = Subject(id="shared_1", name="Music", room="MU1")
        shared_slots = [
            TimeSlot(id="t1", subject_id="shared_1", day="Friday",
                     start_time="12:00", end_time="12:45"),
            TimeSlot(id="t2", subject_id="verwaist", day="Friday",
                     start_time="13:00", end_time="13:45"),
        ]
        n_subjects, n_slots = doc.import_shared([shared_subject], shared_slots)

        assert (n_subjects, n_slots) == (1, 1)
        music = next(s for s in doc.subjects if s.name == "Music")
        assert music.id != "shared_1"
        friday = doc.slots_for_day("Friday")
        assert len(friday) == 1
        assert friday[0].subject_id == music.id
