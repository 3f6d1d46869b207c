"""Dokumentbibliothek: Metadaten hochgeladener PDF-Dateien.

Gespeichert werden nur die Metadaten; die Datei selbst bleibt, wo sie ist.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from config.defaults import KEY_DOCUMENTS, MAX_DOCUMENT_BYTES
from models.base import new_id
from models.document import DocumentCategory, PdfDocument
from models.errors import (
    DocumentRejectedError,
    EntityNotFoundError,
    InvalidEntityError,
    PermissionDeniedError,
)
from models.session import Session
from storage.local_store import LocalStore

logger = logging.getLogger(__name__)


def check_pdf(file_name: str, file_size: int) -> None:
    """Nur .pdf-Dateien bis 10 MB werden angenommen."""
    if Path(file_name).suffix.lower() != ".pdf":
        raise DocumentRejectedError(f"Invalid file type: {file_name} (please select a PDF file)")
    if file_size > MAX_DOCUMENT_BYTES:
        raise DocumentRejectedError(
            f"File too large: {file_size} Bytes (maximal {MAX_DOCUMENT_BYTES})"
        )


class DocumentLibrary:
    """PDF-Metadaten unter "pdf-documents"."""

    def __init__(self, store: LocalStore, session: Session,
                 clock: Callable[[], datetime] = datetime.now):
        self.store = store
        self.session = session
        self._now = clock

    def documents(self) -> list[PdfDocument]:
        return [PdfDocument.model_validate(d) for d in self.store.get_list(KEY_DOCUMENTS)]

    def _save(self, docs: list[PdfDocument]) -> None:
        self.store.set(KEY_DOCUMENTS, [d.to_json_dict() for d in docs])

    def upload(self, title: str, subject_id: str, file_name: str, file_size: int,
               category: DocumentCategory = DocumentCategory.NOTES,
               description: str = "") -> PdfDocument:
        if not self.session.is_teacher:
            raise PermissionDeniedError("Only teachers can upload documents")
        if not title.strip() or not subject_id:
            raise InvalidEntityError("Please fill in all required fields and select a file")
        check_pdf(file_name, file_size)
        doc = PdfDocument(
            id=new_id("doc"),
            title=title.strip(),
            description=description,
            subject_id=subject_id,
            category=category,
            file_name=Path(file_name).name,
            file_size=file_size,
            upload_date=self._now(),
            uploaded_by=self.session.display_name,
        )
        self._save(self.documents() + [doc])
        logger.info(f"Dokument hochgeladen: {doc.title} ({doc.size_label})")
        return doc

    def upload_file(self, path: Path, title: str, subject_id: str,
                    category: DocumentCategory = DocumentCategory.NOTES,
                    description: str = "") -> PdfDocument:
        """Wie upload(), Name und Größe werden aus der Datei gelesen."""
        path = Path(path)
        if not path.is_file():
            raise DocumentRejectedError(f"Datei nicht gefunden: {path}")
        return self.upload(title, subject_id, path.name, path.stat().st_size,
                           category=category, description=description)

    def delete(self, document_id: str) -> None:
        if not self.session.is_teacher:
            raise PermissionDeniedError("Only teachers can delete documents")
        docs = self.documents()
        remaining = [d for d in docs if d.id != document_id]
        if len(remaining) == len(docs):
            raise EntityNotFoundError(f"Dokument nicht gefunden: {document_id}")
        self._save(remaining)

    def search(self, term: str = "", subject_id: Optional[str] = None,
               category: Optional[DocumentCategory] = None) -> list[PdfDocument]:
        """Suche in Titel und Beschreibung (ohne Groß-/Kleinschreibung)."""
        needle = term.lower()
        result = []
        for d in self.documents():
            if needle and needle not in d.title.lower() and needle not in d.description.lower():
                continue
            if subject_id is not None and d.subject_id != subject_id:
                continue
            if category is not None and d.category != category:
                continue
            result.append(d)
        return result
