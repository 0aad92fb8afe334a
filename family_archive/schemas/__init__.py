"""Pydantic schemas for archive request bodies."""

from family_archive.schemas.archive import (
    DocumentUpdate,
    PersonCreate,
    PersonUpdate,
    PhotoUpdate,
    RelationshipCreate,
)

__all__ = [
    "PersonCreate",
    "PersonUpdate",
    "DocumentUpdate",
    "PhotoUpdate",
    "RelationshipCreate",
]
