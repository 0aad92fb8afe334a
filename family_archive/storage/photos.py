"""Photo repository."""

from datetime import date
from typing import Any

from sqlalchemy import or_

from family_archive.errors import NotFoundError
from family_archive.storage.sqlite import ArchiveDatabase, Person, Photo

UPDATABLE_FIELDS = {"person_id", "event_name", "date_taken", "detected_faces", "width", "height"}


def _with_person_name(photo: Photo, person_name: str | None) -> dict[str, Any]:
    data = photo.to_dict()
    data["person_name"] = person_name
    return data


class PhotoRepository:
    """Access to uploaded photos."""

    def __init__(self, db: ArchiveDatabase):
        self.db = db

    def create(
        self,
        file_path: str,
        original_filename: str | None = None,
        person_id: str | None = None,
        event_name: str | None = None,
        date_taken: date | None = None,
        file_size: int | None = None,
        width: int | None = None,
        height: int | None = None,
    ) -> Photo:
        with self.db.session_scope() as session:
            photo = Photo(
                file_path=file_path,
                original_filename=original_filename,
                person_id=person_id,
                event_name=event_name,
                date_taken=date_taken,
                file_size=file_size,
                width=width,
                height=height,
            )
            session.add(photo)
            session.flush()
            session.refresh(photo)
            return photo

    def get(self, photo_id: str) -> Photo | None:
        session = self.db.get_session()
        try:
            return session.get(Photo, photo_id)
        finally:
            session.close()

    def require(self, photo_id: str) -> Photo:
        photo = self.get(photo_id)
        if photo is None:
            raise NotFoundError("Photo not found", details={"photo_id": photo_id})
        return photo

    def _page(self, query, limit: int, offset: int) -> dict[str, Any]:
        total = query.count()
        rows = query.order_by(Photo.created_at.desc()).limit(limit).offset(offset).all()
        return {
            "photos": [_with_person_name(photo, name) for photo, name in rows],
            "total": total,
        }

    def list_page(self, limit: int = 20, offset: int = 0) -> dict[str, Any]:
        """Newest photos first, with the linked person's name and a total count."""
        session = self.db.get_session()
        try:
            query = session.query(Photo, Person.full_name).outerjoin(
                Person, Photo.person_id == Person.id
            )
            return self._page(query, limit, offset)
        finally:
            session.close()

    def for_person(self, person_id: str) -> list[Photo]:
        session = self.db.get_session()
        try:
            return (
                session.query(Photo)
                .filter(Photo.person_id == person_id)
                .order_by(Photo.created_at.desc())
                .all()
            )
        finally:
            session.close()

    def search(self, term: str, limit: int = 20, offset: int = 0) -> dict[str, Any]:
        """Search by filename, event name or person name."""
        pattern = f"%{term}%"
        session = self.db.get_session()
        try:
            query = (
                session.query(Photo, Person.full_name)
                .outerjoin(Person, Photo.person_id == Person.id)
                .filter(
                    or_(
                        Photo.original_filename.ilike(pattern),
                        Photo.event_name.ilike(pattern),
                        Person.full_name.ilike(pattern),
                    )
                )
            )
            return self._page(query, limit, offset)
        finally:
            session.close()

    def update(self, photo_id: str, changes: dict[str, Any]) -> Photo:
        with self.db.session_scope() as session:
            photo = session.get(Photo, photo_id)
            if photo is None:
                raise NotFoundError("Photo not found", details={"photo_id": photo_id})
            for key, value in changes.items():
                if key in UPDATABLE_FIELDS:
                    setattr(photo, key, value)
            session.flush()
            session.refresh(photo)
            return photo

    def delete(self, photo_id: str) -> bool:
        with self.db.session_scope() as session:
            photo = session.get(Photo, photo_id)
            if photo is None:
                return False
            session.delete(photo)
        return True

    def stats(self) -> dict[str, Any]:
        """Photo counts and the five most recent uploads."""
        session = self.db.get_session()
        try:
            total = session.query(Photo).count()
            with_person = session.query(Photo).filter(Photo.person_id.isnot(None)).count()
            recent = (
                session.query(Photo, Person.full_name)
                .outerjoin(Person, Photo.person_id == Person.id)
                .order_by(Photo.created_at.desc())
                .limit(5)
                .all()
            )
            return {
                "total_photos": total,
                "photos_with_person": with_person,
                "photos_without_person": total - with_person,
                "recent_photos": [_with_person_name(photo, name) for photo, name in recent],
            }
        finally:
            session.close()
