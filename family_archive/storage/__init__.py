"""Storage module: database handle, models and repositories."""

from family_archive.storage.documents import DocumentRepository
from family_archive.storage.persons import PersonRepository
from family_archive.storage.photos import PhotoRepository
from family_archive.storage.relationships import (
    AddResult,
    ReciprocalInconsistency,
    RelationshipStore,
    RemovalResult,
)
from family_archive.storage.sqlite import (
    ArchiveDatabase,
    Document,
    Event,
    FamilyRelationship,
    Person,
    Photo,
)

__all__ = [
    "ArchiveDatabase",
    "Person",
    "FamilyRelationship",
    "Document",
    "Photo",
    "Event",
    "PersonRepository",
    "RelationshipStore",
    "DocumentRepository",
    "PhotoRepository",
    "AddResult",
    "RemovalResult",
    "ReciprocalInconsistency",
]
