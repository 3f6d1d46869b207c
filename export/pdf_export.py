"""PDF-Export für den Stundenplan (fpdf2).

Eine Tabelle im A4-Querformat mit einer Zeile pro Zeitslot, sortiert nach
Wochentag und Beginn. Die Fach-Spalte trägt die (aufgehellte) Fachfarbe.
"""

from pathlib import Path

from models.schedule_document import ScheduleDocument

from export.helpers import COLORS, hex_to_rgb, lighten, sorted_slots, today_str


def _pdf_safe(text: str) -> str:
    """Ersetzt nicht-latin-1-fähige Zeichen für fpdf2-Built-in-Fonts."""
    text = (
        text
        .replace("—", " - ")   # em dash —
        .replace("–", "-")      # en dash –
        .replace("•", "-")      # bullet •
    )
    return text.encode("latin-1", "replace").decode("latin-1")


# ─── A4-Querformat-Dimensionen ────────────────────────────────────────────────
# Landscape A4: 297 × 210 mm
# Nutzbare Breite (Margin 10 links+rechts): 277 mm
# Spalten: Tag(36) + Zeit(35) + Fach(80) + Raum(46) + Lehrkraft(80) = 277 mm

_COLS = [
    ("Tag",       36),
    ("Zeit",      35),
    ("Fach",      80),
    ("Raum",      46),
    ("Lehrkraft", 80),
]
_ROW_HEADER_H  = 8    # mm
_ROW_H         = 8    # mm
_FONT_HEADER   = 9    # pt
_FONT_CONTENT  = 9    # pt
_PAGE_BOTTOM   = 190  # mm, darunter neue Seite


class _SchedulePdf:
    """Interner Wrapper um fpdf.FPDF für Stundenplan-Seiten."""

    def __init__(self, title: str):
        from fpdf import FPDF

        class _Pdf(FPDF):
            def __init__(inner, t):
                super().__init__(orientation="L", unit="mm", format="A4")
                inner._title = t
                inner.alias_nb_pages()
                inner.set_auto_page_break(auto=False)
                inner.set_margins(left=10, top=22, right=10)

            def header(inner):
                inner.set_font("Helvetica", "B", 11)
                inner.set_xy(10, 8)
                inner.cell(0, 7, _pdf_safe(inner._title), border=0, align="L")
                inner.ln(0)
                inner.set_draw_color(150, 150, 150)
                inner.line(10, 18, inner.w - 10, 18)

            def footer(inner):
                inner.set_y(-14)
                inner.set_font("Helvetica", "I", 7)
                inner.cell(
                    0, 8,
                    f"{today_str()}  |  Seite {inner.page_no()}/{{nb}}",
                    border=0, align="C",
                )

        self._pdf = _Pdf(title)

    @property
    def page_count(self) -> int:
        return self._pdf.page_no()

    def add_page(self) -> None:
        self._pdf.add_page()

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self._pdf.output(str(path))

    def draw_cell(
        self,
        x: float, y: float,
        w: float, h: float,
        text: str = "",
        bg_hex: str | None = None,
        bold: bool = False,
        font_size: int = _FONT_CONTENT,
        text_color: tuple[int, int, int] = (0, 0, 0),
        align: str = "L",
    ) -> None:
        """Zeichnet eine Zelle mit Hintergrund, Rand und einzeiligem Text."""
        pdf = self._pdf
        if bg_hex:
            r, g, b = hex_to_rgb(bg_hex)
            pdf.set_fill_color(r, g, b)
            pdf.rect(x, y, w, h, style="F")
        pdf.set_draw_color(180, 180, 180)
        pdf.rect(x, y, w, h, style="D")
        if text:
            pdf.set_font("Helvetica", "B" if bold else "", font_size)
            pdf.set_text_color(*text_color)
            pdf.set_xy(x + 1, y)
            pdf.cell(w - 2, h, _pdf_safe(text)[:48], border=0, align=align)
            pdf.set_text_color(0, 0, 0)

    def draw_header_row(self, x: float, y: float) -> float:
        cx = x
        for label, w in _COLS:
            self.draw_cell(cx, y, w, _ROW_HEADER_H, label, bg_hex=COLORS["header"],
                           bold=True, font_size=_FONT_HEADER,
                           text_color=(255, 255, 255), align="C")
            cx += w
        return y + _ROW_HEADER_H


class PdfExporter:
    """Exportiert ein ScheduleDocument als PDF-Tabelle."""

    def __init__(self, doc: ScheduleDocument, profile_name: str = "Stundenplan"):
        self.doc = doc
        self.profile_name = profile_name
        self._table_x = 10.0

    def export(self, output_path: Path) -> Path:
        pdf = _SchedulePdf(f"{self.profile_name} - Wochenplan")
        pdf.add_page()
        y = pdf.draw_header_row(self._table_x, 22.0)

        for slot, subject in sorted_slots(self.doc):
            if y + _ROW_H > _PAGE_BOTTOM:
                pdf.add_page()
                y = pdf.draw_header_row(self._table_x, 22.0)
            color = lighten(subject.color) if subject else COLORS["unknown"]
            values = [
                (slot.day, None),
                (f"{slot.start_time} - {slot.end_time}", None),
                (subject.name if subject else "Unknown Subject", color),
                (subject.room if subject else "", None),
                (subject.instructor if subject else "", None),
            ]
            cx = self._table_x
            for (text, bg), (_, w) in zip(values, _COLS):
                pdf.draw_cell(cx, y, w, _ROW_H, text, bg_hex=bg)
                cx += w
            y += _ROW_H

        output_path = Path(output_path)
        pdf.save(output_path)
        return output_path
