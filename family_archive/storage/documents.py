"""Document repository."""

import json
from typing import Any

from sqlalchemy import or_

from family_archive.errors import NotFoundError
from family_archive.storage.sqlite import ArchiveDatabase, Document, Person

UPDATABLE_FIELDS = {
    "person_id",
    "document_type",
    "extracted_text",
    "clean_text",
    "confidence_score",
    "tags",
}


def _with_person_name(document: Document, person_name: str | None) -> dict[str, Any]:
    data = document.to_dict()
    data["person_name"] = person_name
    return data


class DocumentRepository:
    """Access to uploaded documents."""

    def __init__(self, db: ArchiveDatabase):
        self.db = db

    def create(
        self,
        file_path: str,
        original_filename: str | None = None,
        person_id: str | None = None,
        document_type: str = "unknown",
        extracted_text: str | None = None,
        clean_text: str | None = None,
        confidence_score: float = 0.0,
        tags: dict[str, Any] | None = None,
        file_size: int | None = None,
        mime_type: str | None = None,
    ) -> Document:
        """Add a document record.

        Returns:
            Created Document object
        """
        with self.db.session_scope() as session:
            doc = Document(
                file_path=file_path,
                original_filename=original_filename,
                person_id=person_id,
                document_type=document_type,
                extracted_text=extracted_text,
                clean_text=clean_text,
                confidence_score=confidence_score,
                tags=json.dumps(tags, ensure_ascii=False) if tags else None,
                file_size=file_size,
                mime_type=mime_type,
            )
            session.add(doc)
            session.flush()
            session.refresh(doc)
            return doc

    def get(self, document_id: str) -> Document | None:
        session = self.db.get_session()
        try:
            return session.get(Document, document_id)
        finally:
            session.close()

    def require(self, document_id: str) -> Document:
        document = self.get(document_id)
        if document is None:
            raise NotFoundError("Document not found", details={"document_id": document_id})
        return document

    def list_page(self, limit: int = 20, offset: int = 0) -> list[dict[str, Any]]:
        """Newest documents first, with the linked person's name."""
        session = self.db.get_session()
        try:
            rows = (
                session.query(Document, Person.full_name)
                .outerjoin(Person, Document.person_id == Person.id)
                .order_by(Document.upload_date.desc())
                .limit(limit)
                .offset(offset)
                .all()
            )
            return [_with_person_name(doc, name) for doc, name in rows]
        finally:
            session.close()

    def count(self) -> int:
        session = self.db.get_session()
        try:
            return session.query(Document).count()
        finally:
            session.close()

    def for_person(self, person_id: str) -> list[Document]:
        session = self.db.get_session()
        try:
            return (
                session.query(Document)
                .filter(Document.person_id == person_id)
                .order_by(Document.upload_date.desc())
                .all()
            )
        finally:
            session.close()

    def search(self, term: str | None = None, document_type: str | None = None) -> list[dict[str, Any]]:
        """Search by text (OCR text or filename) or by document type."""
        session = self.db.get_session()
        try:
            query = session.query(Document, Person.full_name).outerjoin(
                Person, Document.person_id == Person.id
            )
            if term:
                pattern = f"%{term}%"
                query = query.filter(
                    or_(
                        Document.extracted_text.ilike(pattern),
                        Document.clean_text.ilike(pattern),
                        Document.original_filename.ilike(pattern),
                    )
                )
            elif document_type:
                query = query.filter(Document.document_type == document_type)
            rows = query.order_by(Document.upload_date.desc()).all()
            return [_with_person_name(doc, name) for doc, name in rows]
        finally:
            session.close()

    def update(self, document_id: str, changes: dict[str, Any]) -> Document:
        """Apply field changes to a document.

        Raises:
            NotFoundError: If no such document exists
        """
        with self.db.session_scope() as session:
            doc = session.get(Document, document_id)
            if doc is None:
                raise NotFoundError("Document not found", details={"document_id": document_id})
            for key, value in changes.items():
                if key not in UPDATABLE_FIELDS:
                    continue
                if key == "tags" and isinstance(value, dict):
                    value = json.dumps(value, ensure_ascii=False)
                setattr(doc, key, value)
            session.flush()
            session.refresh(doc)
            return doc

    def delete(self, document_id: str) -> bool:
        """Delete a document record. Returns True if a row was removed."""
        with self.db.session_scope() as session:
            doc = session.get(Document, document_id)
            if doc is None:
                return False
            session.delete(doc)
        return True
