"""SQLite database for the family archive.

This module defines the database schema and the ``ArchiveDatabase`` handle.
The handle is created once per process (or per test), initialized
explicitly, and passed to every repository that needs storage.
"""

import json
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from sqlalchemy import (
    Column,
    Date,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> str:
    return datetime.utcnow().isoformat()


def _iso(value: Any) -> Any:
    return value.isoformat() if value is not None else None


class Person(Base):
    """A family member."""

    __tablename__ = "persons"

    id = Column(String(36), primary_key=True, default=_new_id)
    full_name = Column(String(100), nullable=False, index=True)
    gender = Column(String(10), nullable=False, default="unknown")
    birth_date = Column(Date)
    death_date = Column(Date)
    biography = Column(Text)
    avatar_url = Column(String)
    created_at = Column(String, default=_now)
    updated_at = Column(String, default=_now, onupdate=_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "person_id": self.id,
            "full_name": self.full_name,
            "gender": self.gender,
            "birth_date": _iso(self.birth_date),
            "death_date": _iso(self.death_date),
            "biography": self.biography,
            "avatar_url": self.avatar_url,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<Person(id={self.id}, name='{self.full_name}')>"


class FamilyRelationship(Base):
    """Directed edge: the relative is the person's ``relation_type``."""

    __tablename__ = "family_relationships"
    __table_args__ = (
        UniqueConstraint("person_id", "relative_id", "relation_type", name="uq_relationship_triple"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    person_id = Column(
        String(36), ForeignKey("persons.id", ondelete="CASCADE"), nullable=False, index=True
    )
    relative_id = Column(
        String(36), ForeignKey("persons.id", ondelete="CASCADE"), nullable=False, index=True
    )
    relation_type = Column(String(20), nullable=False)  # parent, child, spouse, sibling
    created_at = Column(String, default=_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "relation_id": self.id,
            "person_id": self.person_id,
            "relative_id": self.relative_id,
            "relation_type": self.relation_type,
            "created_at": self.created_at,
        }

    def __repr__(self) -> str:
        return (
            f"<FamilyRelationship(id={self.id}, "
            f"type='{self.relation_type}', "
            f"person={self.person_id}, "
            f"relative={self.relative_id})>"
        )


class Document(Base):
    """Uploaded document with its OCR analysis."""

    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=_new_id)
    person_id = Column(String(36), ForeignKey("persons.id", ondelete="SET NULL"), index=True)
    file_path = Column(String, nullable=False)
    original_filename = Column(String)
    document_type = Column(String, default="unknown", index=True)
    extracted_text = Column(Text)
    clean_text = Column(Text)
    confidence_score = Column(Float, default=0.0)
    tags = Column(Text)  # JSON-encoded key info
    file_size = Column(Integer)
    mime_type = Column(String)
    upload_date = Column(String, default=_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "document_id": self.id,
            "person_id": self.person_id,
            "file_path": self.file_path,
            "original_filename": self.original_filename,
            "document_type": self.document_type,
            "extracted_text": self.extracted_text,
            "clean_text": self.clean_text,
            "confidence_score": self.confidence_score,
            "tags": json.loads(self.tags) if self.tags else None,
            "file_size": self.file_size,
            "mime_type": self.mime_type,
            "upload_date": self.upload_date,
        }

    def __repr__(self) -> str:
        return f"<Document(id={self.id}, type='{self.document_type}')>"


class Photo(Base):
    """Uploaded family photo."""

    __tablename__ = "photos"

    id = Column(String(36), primary_key=True, default=_new_id)
    person_id = Column(String(36), ForeignKey("persons.id", ondelete="SET NULL"), index=True)
    file_path = Column(String, nullable=False)
    original_filename = Column(String)
    event_name = Column(String)
    date_taken = Column(Date)
    detected_faces = Column(Integer, default=0)
    file_size = Column(Integer)
    width = Column(Integer)
    height = Column(Integer)
    created_at = Column(String, default=_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "photo_id": self.id,
            "person_id": self.person_id,
            "file_path": self.file_path,
            "original_filename": self.original_filename,
            "event_name": self.event_name,
            "date_taken": _iso(self.date_taken),
            "detected_faces": self.detected_faces,
            "file_size": self.file_size,
            "width": self.width,
            "height": self.height,
            "created_at": self.created_at,
        }

    def __repr__(self) -> str:
        return f"<Photo(id={self.id}, file='{self.original_filename}')>"


class Event(Base):
    """Life event (birth, death, marriage, etc.)."""

    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=_new_id)
    person_id = Column(
        String(36), ForeignKey("persons.id", ondelete="CASCADE"), nullable=False, index=True
    )
    event_type = Column(String, nullable=False)
    event_date = Column(Date)
    description = Column(Text)
    document_id = Column(String(36), ForeignKey("documents.id", ondelete="SET NULL"))
    photo_id = Column(String(36), ForeignKey("photos.id", ondelete="SET NULL"))
    created_at = Column(String, default=_now)

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, type='{self.event_type}', person_id={self.person_id})>"


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _create_engine(url: str) -> Engine:
    if not url.startswith("sqlite"):
        return create_engine(url)

    kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection, otherwise every session sees an empty database
        kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


class ArchiveDatabase:
    """Storage handle shared by the repositories.

    Lifecycle is explicit: construct, ``initialize()`` before use, ``close()``
    on shutdown. Repositories receive the handle in their constructors.
    """

    def __init__(self, url: str = "sqlite:///./family_archive.db"):
        """Create an uninitialized handle.

        Args:
            url: SQLAlchemy database URL
        """
        self.url = url
        self.engine: Engine | None = None
        self.Session: sessionmaker | None = None

    @property
    def is_initialized(self) -> bool:
        return self.engine is not None

    def initialize(self) -> "ArchiveDatabase":
        """Open the engine and create the schema if needed."""
        if self.engine is None:
            self.engine = _create_engine(self.url)
            self.Session = sessionmaker(bind=self.engine, expire_on_commit=False)
        Base.metadata.create_all(self.engine)
        return self

    def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        if self.engine is not None:
            self.engine.dispose()
        self.engine = None
        self.Session = None

    def get_session(self) -> Session:
        """Get a new database session."""
        if self.Session is None:
            raise RuntimeError("ArchiveDatabase is not initialized; call initialize() first")
        return self.Session()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Session that commits on success and rolls back on error."""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def reset_database(self) -> None:
        """Drop and recreate every table. Deletes ALL data."""
        if self.engine is None:
            raise RuntimeError("ArchiveDatabase is not initialized; call initialize() first")
        Base.metadata.drop_all(self.engine)
        Base.metadata.create_all(self.engine)

    def __enter__(self) -> "ArchiveDatabase":
        return self.initialize()

    def __exit__(self, *exc_info: object) -> None:
        self.close()
