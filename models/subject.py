"""Datenmodell für ein Unterrichtsfach (Pydantic v2)."""

from models.base import StoredModel


class Subject(StoredModel):
    """Repräsentiert ein Unterrichtsfach eines Profils."""

    id: str
    name: str
    color: str = "#3B82F6"   # Anzeigefarbe "#RRGGBB"
    instructor: str = ""
    room: str = ""

    @property
    def rgb_hex(self) -> str:
        """Farbe als RRGGBB ohne #, z.B. für Excel-Füllungen."""
        return self.color.lstrip("#").upper()
