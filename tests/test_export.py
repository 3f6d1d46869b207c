"""Tests für Text-, Kalender-, Excel- und PDF-Export."""

from datetime import date, datetime
from pathlib import Path

import pytest

from export.excel_export import ExcelExporter
from export.helpers import (
    format_slot_cell,
    grid_days,
    hex_to_rgb,
    lighten,
    sorted_slots,
    time_rows,
)
from export.ics_export import build_ics, export_ics
from export.pdf_export import PdfExporter
from export.text_export import decode_share_token, encode_share_token, schedule_text
from models.attendance import AttendanceRecord, AttendanceStatus
from models.errors import InvalidEntityError
from models.schedule_document import ScheduleDocument
from models.timeslot import TimeSlot

# Montag, 2. September 2024
MONDAY_8 = datetime(2024, 9, 2, 8, 0)


@pytest.fixture
def doc() -> ScheduleDocument:
    d = ScheduleDocument()
    math = d.add_subject("Mathematics", color="#3B82F6", instructor="Ms. Lee", room="M101")
    art = d.add_subject("Kunst; Gestalten", color="#EF4444", instructor="Hr. Müller", room="A1")
    d.add_time_slot(math.id, "Monday", "09:00", "09:45")
    d.add_time_slot(art.id, "Monday", "08:00", "08:45")
    d.add_time_slot(math.id, "Wednesday", "09:00", "09:45")
    d.add_assignment(math.id, "Worksheet", date(2024, 9, 1))
    d.add_assignment(art.id, "Portfolio", date(2024, 9, 20))
    return d


# ─── Hilfsfunktionen ──────────────────────────────────────────────────────────

class TestHelpers:
    def test_hex_to_rgb(self):
        assert hex_to_rgb("#FF8000") == (255, 128, 0)

    def test_lighten(self):
        assert lighten("#000000", 0) == "000000"
        assert lighten("#000000", 1) == "FFFFFF"

    def test_grid_days_without_sunday(self, doc):
        assert grid_days(doc)[-1] == "Saturday"

    def test_grid_days_with_sunday(self, doc):
        doc.add_time_slot(doc.subjects[0].id, "Sunday", "10:00", "10:45")
        assert grid_days(doc)[-1] == "Sunday"

    def test_time_rows_unique_sorted(self, doc):
        assert time_rows(doc) == [("08:00", "08:45"), ("09:00", "09:45")]

    def test_sorted_slots(self, doc):
        order = [(ts.day, ts.start_time) for ts, _ in sorted_slots(doc)]
        assert order == [("Monday", "08:00"), ("Monday", "09:00"), ("Wednesday", "09:00")]

    def test_format_slot_cell(self, doc):
        assert format_slot_cell(doc.subjects[0]) == "Mathematics\nM101\nMs. Lee"
        assert format_slot_cell(None) == "Unknown Subject"


# ─── Text ─────────────────────────────────────────────────────────────────────

class TestScheduleText:
    def test_layout(self, doc):
        assert schedule_text(doc) == (
            "📅 My Class Schedule\n"
            "\n"
            "Monday:\n"
            "  • 08:00 - 08:45: Kunst; Gestalten (A1)\n"
            "  • 09:00 - 09:45: Mathematics (M101)\n"
            "\n"
            "Wednesday:\n"
            "  • 09:00 - 09:45: Mathematics (M101)\n"
            "\n"
        )

    def test_empty_document(self):
        assert schedule_text(ScheduleDocument()) == "📅 My Class Schedule\n\n"

    def test_share_token(self, doc):
        subjects, slots = decode_share_token(encode_share_token(doc))
        assert [s.name for s in subjects] == ["Mathematics", "Kunst; Gestalten"]
        assert len(slots) == 3
        by_id = {s.id: s.name for s in subjects}
        assert sorted((by_id[ts.subject_id], ts.day, ts.start_time) for ts in slots) == [
            ("Kunst; Gestalten", "Monday", "08:00"),
            ("Mathematics", "Monday", "09:00"),
            ("Mathematics", "Wednesday", "09:00"),
        ]

    def test_broken_token(self):
        with pytest.raises(InvalidEntityError):
            decode_share_token("kein-token")


# ─── iCalendar ────────────────────────────────────────────────────────────────

class TestIcs:
    def test_structure(self, doc):
        ics = build_ics(doc, MONDAY_8)
        lines = ics.split("\r\n")
        assert lines[0] == "BEGIN:VCALENDAR"
        assert "PRODID:-//Class Schedule App//EN" in lines
        assert lines[-2] == "END:VCALENDAR"
        assert ics.endswith("\r\n")
        assert ics.count("BEGIN:VEVENT") == 3
        assert ics.count("RRULE:FREQ=WEEKLY") == 3

    def test_event_fields(self, doc):
        slot = doc.time_slots[0]   # Mathematics, Montag 09:00
        ics = build_ics(doc, MONDAY_8)
        assert f"UID:{slot.id}@classschedule.app" in ics
        assert "DTSTART:20240902T090000" in ics
        assert "DTEND:20240902T094500" in ics
        assert "SUMMARY:Mathematics" in ics
        assert "DESCRIPTION:Instructor: Ms. Lee\\nRoom: M101" in ics
        assert "LOCATION:M101" in ics

    def test_started_slot_starts_next_week(self, doc):
        ics = build_ics(doc, datetime(2024, 9, 2, 8, 30))
        # Kunst (Montag 08:00) hat bereits begonnen
        assert "DTSTART:20240909T080000" in ics

    def test_text_escaped(self, doc):
        assert "SUMMARY:Kunst\\; Gestalten" in build_ics(doc, MONDAY_8)

    def test_slot_without_subject_skipped(self, doc):
        doc.time_slots.append(TimeSlot(id="verwaist", subject_id="weg", day="Friday",
                                       start_time="10:00", end_time="10:45"))
        assert build_ics(doc, MONDAY_8).count("BEGIN:VEVENT") == 3

    def test_export_writes_crlf(self, doc, tmp_path: Path):
        path = export_ics(doc, tmp_path / "out" / "schedule.ics", MONDAY_8)
        raw = path.read_bytes()
        assert raw.startswith(b"BEGIN:VCALENDAR\r\n")
        assert b"\r\r\n" not in raw


# ─── Excel ────────────────────────────────────────────────────────────────────

class TestExcelExport:
    def test_sheets_and_grid(self, doc, tmp_path: Path):
        from openpyxl import load_workbook

        path = ExcelExporter(doc, "Klasse 7b", today=date(2024, 9, 2)).export(
            tmp_path / "plan.xlsx")
        wb = load_workbook(path)
        assert wb.sheetnames == ["Stundenplan", "Aufgaben"]

        ws = wb["Stundenplan"]
        assert ws.cell(row=1, column=1).value == "Zeit"
        assert ws.cell(row=1, column=2).value == "Monday"
        assert ws.cell(row=2, column=1).value == "08:00–08:45"
        assert ws.cell(row=2, column=2).value.startswith("Kunst; Gestalten")
        assert ws.cell(row=3, column=4).value.startswith("Mathematics")   # Mittwoch
        assert not ws.cell(row=2, column=3).value                         # Dienstag frei

    def test_assignment_status(self, doc, tmp_path: Path):
        from openpyxl import load_workbook

        doc.set_completed(doc.assignments[1].id)
        path = ExcelExporter(doc, today=date(2024, 9, 2)).export(tmp_path / "plan.xlsx")
        ws = load_workbook(path)["Aufgaben"]
        rows = [[c.value for c in row] for row in ws.iter_rows(min_row=2)]
        assert rows[0][:2] == ["Mathematics", "Worksheet"]
        assert rows[0][4] == "Overdue"
        assert rows[1][4] == "Erledigt"

    def test_attendance_sheet(self, doc, tmp_path: Path):
        from openpyxl import load_workbook

        records = [
            AttendanceRecord(id="a1", subject_id=doc.subjects[0].id,
                             date=date(2024, 9, 2), status=AttendanceStatus.LATE),
            AttendanceRecord(id="a2", subject_id="weg",
                             date=date(2024, 9, 3), status=AttendanceStatus.PRESENT),
        ]
        path = ExcelExporter(doc, attendance=records).export(tmp_path / "plan.xlsx")
        ws = load_workbook(path)["Anwesenheit"]
        assert ws.cell(row=2, column=2).value == "Unknown Subject"
        assert ws.cell(row=3, column=3).value == "late"


# ─── PDF ──────────────────────────────────────────────────────────────────────

class TestPdfExport:
    def test_creates_pdf(self, doc, tmp_path: Path):
        path = PdfExporter(doc, "Klasse 7b").export(tmp_path / "out" / "plan.pdf")
        assert path.exists()
        assert path.read_bytes().startswith(b"%PDF")

    def test_many_slots_span_pages(self, tmp_path: Path):
        d = ScheduleDocument()
        s = d.add_subject("Sport — Halle 2", room="H2")
        for day in ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday"):
            for hour in range(7, 19):
                d.add_time_slot(s.id, day, f"{hour:02d}:00", f"{hour:02d}:45")
        path = PdfExporter(d).export(tmp_path / "lang.pdf")
        assert path.read_bytes().startswith(b"%PDF")
        assert path.read_bytes().count(b"/Type /Page") >= 3

    def test_empty_document(self, tmp_path: Path):
        path = PdfExporter(ScheduleDocument()).export(tmp_path / "leer.pdf")
        assert path.exists()
