"""Excel-Export für Stundenplan, Aufgaben und Anwesenheit (openpyxl)."""

from datetime import date
from pathlib import Path
from typing import Optional

from models.attendance import AttendanceRecord
from models.schedule_document import ScheduleDocument

from export.helpers import (
    COLORS, format_slot_cell, grid_days, lighten, time_rows, today_str,
)


class ExcelExporter:
    """Exportiert ein ScheduleDocument in eine Excel-Datei mit bis zu 3 Blättern."""

    # Spaltenbreiten (Excel-Einheiten)
    COL_ZEIT_W = 15
    COL_DAY_W  = 22

    # Zeilenhöhen (Punkte)
    ROW_HEADER_H  = 22
    ROW_LESSON_H  = 48

    def __init__(self, doc: ScheduleDocument, profile_name: str = "Stundenplan",
                 attendance: Optional[list[AttendanceRecord]] = None,
                 today: Optional[date] = None):
        self.doc          = doc
        self.profile_name = profile_name
        self.attendance   = attendance
        self.today        = today or date.today()
        self.days         = grid_days(doc)

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def export(self, output_path: Path) -> Path:
        """Erstellt die Excel-Datei.

        Das Anwesenheitsblatt entsteht nur, wenn Einträge übergeben wurden.
        """
        from openpyxl import Workbook
        wb = Workbook()
        wb.remove(wb.active)   # Leeres Standard-Sheet entfernen

        self._sheet_timetable(wb)
        self._sheet_assignments(wb)
        if self.attendance is not None:
            self._sheet_attendance(wb)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(output_path)
        return output_path

    # ─── Style-Helpers ────────────────────────────────────────────────────────

    def _fill(self, hex_color: str):
        from openpyxl.styles import PatternFill
        return PatternFill(start_color=hex_color, end_color=hex_color, fill_type="solid")

    def _center_align(self, wrap: bool = True):
        from openpyxl.styles import Alignment
        return Alignment(wrap_text=wrap, horizontal="center", vertical="center")

    def _thin_border(self):
        from openpyxl.styles import Border, Side
        s = Side(border_style="thin", color="BBBBBB")
        return Border(left=s, right=s, top=s, bottom=s)

    def _write_header_row(self, ws, headers: list[str], row: int = 1) -> None:
        from openpyxl.styles import Font
        fill = self._fill(COLORS["header"])
        border = self._thin_border()
        for col, text in enumerate(headers, 1):
            cell = ws.cell(row=row, column=col, value=text)
            cell.fill = fill
            cell.font = Font(bold=True, color="FFFFFF", size=10)
            cell.alignment = self._center_align(wrap=False)
            cell.border = border
        ws.row_dimensions[row].height = self.ROW_HEADER_H

    def _set_widths(self, ws, widths: list[int]) -> None:
        from openpyxl.utils import get_column_letter
        for col, width in enumerate(widths, 1):
            ws.column_dimensions[get_column_letter(col)].width = width

    # ─── Stundenplan ──────────────────────────────────────────────────────────

    def _sheet_timetable(self, wb) -> None:
        from openpyxl.styles import Font

        ws = wb.create_sheet(title="Stundenplan")
        self._set_widths(ws, [self.COL_ZEIT_W] + [self.COL_DAY_W] * len(self.days))
        self._write_header_row(ws, ["Zeit"] + self.days)
        border = self._thin_border()

        excel_row = 2
        for start, end in time_rows(self.doc):
            c = ws.cell(row=excel_row, column=1, value=f"{start}–{end}")
            c.alignment = self._center_align(wrap=False)
            c.border = border
            c.font = Font(bold=True, size=9)

            for i, day in enumerate(self.days):
                here = [ts for ts in self.doc.slots_for_day(day)
                        if ts.start_time == start and ts.end_time == end]
                if here:
                    subjects = [self.doc.get_subject(ts.subject_id) for ts in here]
                    content = "\n──\n".join(format_slot_cell(s) for s in subjects)
                    color = lighten(subjects[0].color) if subjects[0] else COLORS["unknown"]
                else:
                    content, color = "", COLORS["free"]
                c = ws.cell(row=excel_row, column=i + 2, value=content)
                c.fill = self._fill(color)
                c.alignment = self._center_align()
                c.border = border
                c.font = Font(size=8)
            ws.row_dimensions[excel_row].height = self.ROW_LESSON_H
            excel_row += 1

        c = ws.cell(row=excel_row + 1, column=1,
                    value=f"{self.profile_name} – erstellt am {today_str()}")
        c.font = Font(italic=True, size=8, color="888888")
        ws.freeze_panes = "B2"

    # ─── Aufgaben ─────────────────────────────────────────────────────────────

    def _sheet_assignments(self, wb) -> None:
        from openpyxl.styles import Font

        ws = wb.create_sheet(title="Aufgaben")
        self._set_widths(ws, [20, 34, 12, 12, 14])
        self._write_header_row(ws, ["Fach", "Titel", "Typ", "Fällig", "Status"])
        border = self._thin_border()

        for row, a in enumerate(self.doc.sorted_assignments(), 2):
            if a.completed:
                status, color = "Erledigt", COLORS["done"]
            else:
                status = a.due_label(self.today)
                color = COLORS["overdue"] if a.days_until_due(self.today) < 0 else None
            values = [self.doc.subject_name(a.subject_id), a.title, a.type.value,
                      a.due_date.strftime("%d.%m.%Y"), status]
            for col, value in enumerate(values, 1):
                c = ws.cell(row=row, column=col, value=value)
                c.border = border
                c.font = Font(size=9)
                if color:
                    c.fill = self._fill(color)
        ws.freeze_panes = "A2"

    # ─── Anwesenheit ──────────────────────────────────────────────────────────

    def _sheet_attendance(self, wb) -> None:
        from openpyxl.styles import Font

        ws = wb.create_sheet(title="Anwesenheit")
        self._set_widths(ws, [12, 22, 12, 30])
        self._write_header_row(ws, ["Datum", "Fach", "Status", "Notiz"])
        border = self._thin_border()

        records = sorted(self.attendance or [], key=lambda r: r.date, reverse=True)
        for row, r in enumerate(records, 2):
            values = [r.date.strftime("%d.%m.%Y"), self.doc.subject_name(r.subject_id),
                      r.status.value, r.notes or ""]
            for col, value in enumerate(values, 1):
                c = ws.cell(row=row, column=col, value=value)
                c.border = border
                c.font = Font(size=9)
            ws.cell(row=row, column=3).fill = self._fill(COLORS[r.status.value])
        ws.freeze_panes = "A2"
