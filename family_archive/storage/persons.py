"""Person repository: CRUD, family rows and timelines."""

import logging
from datetime import date
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import aliased

from family_archive.errors import NotFoundError
from family_archive.storage.sqlite import (
    ArchiveDatabase,
    Document,
    Event,
    FamilyRelationship,
    Person,
    Photo,
)

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"full_name", "gender", "birth_date", "death_date", "biography", "avatar_url"}


class PersonRepository:
    """Access to person records."""

    def __init__(self, db: ArchiveDatabase):
        """Initialize the repository.

        Args:
            db: Initialized storage handle
        """
        self.db = db

    def create(
        self,
        full_name: str,
        gender: str = "unknown",
        birth_date: date | None = None,
        death_date: date | None = None,
        biography: str | None = None,
        avatar_url: str | None = None,
    ) -> Person:
        """Add a person record.

        Returns:
            Created Person object
        """
        with self.db.session_scope() as session:
            person = Person(
                full_name=full_name,
                gender=gender or "unknown",
                birth_date=birth_date,
                death_date=death_date,
                biography=biography,
                avatar_url=avatar_url,
            )
            session.add(person)
            session.flush()
            session.refresh(person)
        logger.info("Created person %s (%s)", person.id, person.full_name)
        return person

    def get(self, person_id: str) -> Person | None:
        """Get a person by id, or None."""
        session = self.db.get_session()
        try:
            return session.get(Person, person_id)
        finally:
            session.close()

    def require(self, person_id: str) -> Person:
        """Get a person by id.

        Raises:
            NotFoundError: If no such person exists
        """
        person = self.get(person_id)
        if person is None:
            raise NotFoundError("Person not found", details={"person_id": person_id})
        return person

    def list_page(self, limit: int = 20, offset: int = 0) -> list[Person]:
        """Get one page of persons ordered by name."""
        session = self.db.get_session()
        try:
            return (
                session.query(Person)
                .order_by(Person.full_name.asc(), Person.id.asc())
                .limit(limit)
                .offset(offset)
                .all()
            )
        finally:
            session.close()

    def list_all(self) -> list[Person]:
        """Get every person ordered by name."""
        session = self.db.get_session()
        try:
            return session.query(Person).order_by(Person.full_name.asc(), Person.id.asc()).all()
        finally:
            session.close()

    def count(self) -> int:
        """Total number of persons."""
        session = self.db.get_session()
        try:
            return session.query(Person).count()
        finally:
            session.close()

    def search(self, term: str) -> list[Person]:
        """Search for people by name substring (case-insensitive)."""
        session = self.db.get_session()
        try:
            return (
                session.query(Person)
                .filter(Person.full_name.ilike(f"%{term}%"))
                .order_by(Person.full_name.asc())
                .all()
            )
        finally:
            session.close()

    def update(self, person_id: str, changes: dict[str, Any]) -> Person:
        """Apply field changes to a person.

        Args:
            person_id: Person to update
            changes: Mapping of field name to new value; unknown fields are ignored

        Raises:
            NotFoundError: If no such person exists
        """
        with self.db.session_scope() as session:
            person = session.get(Person, person_id)
            if person is None:
                raise NotFoundError("Person not found", details={"person_id": person_id})
            for key, value in changes.items():
                if key in UPDATABLE_FIELDS:
                    setattr(person, key, value)
            session.flush()
            session.refresh(person)
            return person

    def delete(self, person_id: str) -> bool:
        """Delete a person and every edge and event that references them.

        Documents and photos of the person are kept but detached.

        Returns:
            True if a person was deleted
        """
        with self.db.session_scope() as session:
            person = session.get(Person, person_id)
            if person is None:
                return False

            removed_edges = (
                session.query(FamilyRelationship)
                .filter(
                    or_(
                        FamilyRelationship.person_id == person_id,
                        FamilyRelationship.relative_id == person_id,
                    )
                )
                .delete(synchronize_session=False)
            )
            session.query(Event).filter(Event.person_id == person_id).delete(
                synchronize_session=False
            )
            session.query(Document).filter(Document.person_id == person_id).update(
                {"person_id": None}, synchronize_session=False
            )
            session.query(Photo).filter(Photo.person_id == person_id).update(
                {"person_id": None}, synchronize_session=False
            )
            session.delete(person)

        logger.info("Deleted person %s and %d relationship edge(s)", person_id, removed_edges)
        return True

    def family(self, person_id: str) -> list[dict[str, Any]]:
        """Outgoing relationship rows of a person with the relative's name and avatar."""
        session = self.db.get_session()
        try:
            rows = (
                session.query(FamilyRelationship, Person)
                .join(Person, FamilyRelationship.relative_id == Person.id)
                .filter(FamilyRelationship.person_id == person_id)
                .order_by(FamilyRelationship.relation_type, Person.full_name)
                .all()
            )
            return [
                {
                    "relation_id": rel.id,
                    "relation_type": rel.relation_type,
                    "person_id": relative.id,
                    "full_name": relative.full_name,
                    "avatar_url": relative.avatar_url,
                }
                for rel, relative in rows
            ]
        finally:
            session.close()

    def add_event(
        self,
        person_id: str,
        event_type: str,
        event_date: date | None = None,
        description: str | None = None,
        document_id: str | None = None,
        photo_id: str | None = None,
    ) -> Event:
        """Add a life event for a person."""
        with self.db.session_scope() as session:
            event = Event(
                person_id=person_id,
                event_type=event_type,
                event_date=event_date,
                description=description,
                document_id=document_id,
                photo_id=photo_id,
            )
            session.add(event)
            session.flush()
            session.refresh(event)
            return event

    def timeline(self, person_id: str) -> list[dict[str, Any]]:
        """Events of a person ordered by date, with linked file paths."""
        doc = aliased(Document)
        photo = aliased(Photo)
        session = self.db.get_session()
        try:
            rows = (
                session.query(Event, doc.file_path, photo.file_path)
                .outerjoin(doc, Event.document_id == doc.id)
                .outerjoin(photo, Event.photo_id == photo.id)
                .filter(Event.person_id == person_id)
                .order_by(Event.event_date.asc())
                .all()
            )
            return [
                {
                    "event_id": event.id,
                    "event_type": event.event_type,
                    "event_date": event.event_date.isoformat() if event.event_date else None,
                    "description": event.description,
                    "document_path": document_path,
                    "photo_path": photo_path,
                }
                for event, document_path, photo_path in rows
            ]
        finally:
            session.close()
