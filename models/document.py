"""Metadaten hochgeladener PDF-Dokumente (Pydantic v2)."""

from datetime import datetime
from enum import Enum

from models.base import StoredModel


class DocumentCategory(str, Enum):
    NOTES = "notes"
    ASSIGNMENT = "assignment"
    REFERENCE = "reference"
    SYLLABUS = "syllabus"


class PdfDocument(StoredModel):
    id: str
    title: str
    description: str = ""
    subject_id: str
    category: DocumentCategory = DocumentCategory.NOTES
    file_name: str
    file_size: int       # Bytes
    upload_date: datetime
    uploaded_by: str

    @property
    def size_label(self) -> str:
        """Dateigröße lesbar, z.B. "1.5 MB"."""
        if self.file_size < 1024:
            return f"{self.file_size} B"
        if self.file_size < 1024 * 1024:
            return f"{self.file_size / 1024:.1f} KB"
        return f"{self.file_size / (1024 * 1024):.1f} MB"
