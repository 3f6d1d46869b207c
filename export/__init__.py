"""Export-Modul: Text, iCalendar, Excel (openpyxl) und PDF (fpdf2)."""

from export.excel_export import ExcelExporter
from export.ics_export import build_ics, export_ics
from export.pdf_export import PdfExporter
from export.text_export import decode_share_token, encode_share_token, schedule_text

__all__ = [
    "ExcelExporter",
    "PdfExporter",
    "build_ics",
    "export_ics",
    "schedule_text",
    "encode_share_token",
    "decode_share_token",
]
