"""Relationship store.

Keeps the edge set symmetric: every edge with a reciprocal type is written
and removed together with its reverse edge, inside one transaction. Inserts
are idempotent on ``(person_id, relative_id, relation_type)``, so concurrent
adds of the same pair converge on a single pair of rows.
"""

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import case, distinct, func, or_
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased

from family_archive.errors import NotFoundError, ValidationError
from family_archive.family.reciprocal import RelationType, normalize_relation_type, reciprocal_of
from family_archive.family.tree_builder import summarize_neighbor
from family_archive.storage.sqlite import ArchiveDatabase, FamilyRelationship, Person

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReciprocalInconsistency:
    """An edge whose reverse edge is missing from storage."""

    relation_id: str
    person_id: str
    relative_id: str
    relation_type: str
    expected_type: str

    def __str__(self) -> str:
        return (
            f"edge {self.relation_id} ({self.person_id} -{self.relation_type}-> "
            f"{self.relative_id}) has no reverse '{self.expected_type}' edge"
        )

    def to_dict(self) -> dict[str, str]:
        """JSON-ready form for API responses."""
        return {
            "relation_id": self.relation_id,
            "person_id": self.person_id,
            "relative_id": self.relative_id,
            "relation_type": self.relation_type,
            "expected_type": self.expected_type,
        }


@dataclass
class AddResult:
    """Outcome of ``add_relationship``."""

    relationship: FamilyRelationship
    created: bool
    reciprocal: FamilyRelationship | None = None


@dataclass
class RemovalResult:
    """Outcome of ``remove_relationship``."""

    relationship: dict[str, Any]
    reciprocal_removed: bool
    inconsistency: ReciprocalInconsistency | None = None


def _denormalize(rel: FamilyRelationship, person: Person, relative: Person) -> dict[str, Any]:
    row = rel.to_dict()
    row["person"] = summarize_neighbor(person).to_dict()
    row["person"]["avatar_url"] = person.avatar_url
    row["relative"] = summarize_neighbor(relative).to_dict()
    row["relative"]["avatar_url"] = relative.avatar_url
    return row


class RelationshipStore:
    """Durable, reciprocity-preserving edge storage."""

    def __init__(self, db: ArchiveDatabase):
        """Initialize the store.

        Args:
            db: Initialized storage handle
        """
        self.db = db

    def _insert_edge(
        self, session: Session, person_id: str, relative_id: str, relation_type: str
    ) -> tuple[FamilyRelationship, bool]:
        """Insert an edge unless the same triple already exists.

        Returns:
            The stored edge and whether this call created it
        """
        triple = {
            "person_id": person_id,
            "relative_id": relative_id,
            "relation_type": relation_type,
        }
        if session.get_bind().dialect.name == "sqlite":
            stmt = (
                sqlite_insert(FamilyRelationship)
                .values(**triple)
                .on_conflict_do_nothing(index_elements=list(triple))
            )
            created = session.execute(stmt).rowcount == 1
        else:
            created = self._insert_in_savepoint(session, triple)

        edge = session.query(FamilyRelationship).filter_by(**triple).one()
        return edge, created

    def _insert_in_savepoint(self, session: Session, triple: dict[str, str]) -> bool:
        """Insert an edge inside a SAVEPOINT.

        A unique-constraint conflict means a concurrent writer stored the same
        triple first; only the savepoint is rolled back.
        """
        try:
            with session.begin_nested():
                session.add(FamilyRelationship(**triple))
        except IntegrityError:
            logger.debug("Edge already stored: %s", triple)
            return False
        return True

    def add_relationship(
        self, person_id: str | None, relative_id: str | None, relation_type: str | None
    ) -> AddResult:
        """Add a relationship and its reciprocal.

        Args:
            person_id: Person the edge starts from
            relative_id: The relative; the edge reads "relative is person's <type>"
            relation_type: parent, child, spouse or sibling

        Returns:
            AddResult with the primary edge (new or pre-existing)

        Raises:
            ValidationError: Missing or non-string fields, an unknown type, or a
                self-relationship
            NotFoundError: If either person does not exist
        """
        fields = (
            ("personId", person_id),
            ("relativeId", relative_id),
            ("relationType", relation_type),
        )
        not_text = [name for name, value in fields if value is not None and not isinstance(value, str)]
        if not_text:
            raise ValidationError(
                "Fields must be strings: " + ", ".join(not_text), details={"invalid": not_text}
            )

        missing = [name for name, value in fields if not value]
        if missing:
            raise ValidationError(
                "Missing required fields: " + ", ".join(missing), details={"missing": missing}
            )

        relation = normalize_relation_type(relation_type)
        if relation is None:
            raise ValidationError(
                f"Unsupported relation type: {relation_type}",
                details={"allowed": [t.value for t in RelationType]},
            )

        if person_id == relative_id:
            raise ValidationError(
                "A person cannot be related to themselves", details={"person_id": person_id}
            )

        with self.db.session_scope() as session:
            missing_ids = [pid for pid in (person_id, relative_id) if session.get(Person, pid) is None]
            if missing_ids:
                raise NotFoundError(
                    "One or both persons not found", details={"missing_person_ids": missing_ids}
                )

            primary, created = self._insert_edge(session, person_id, relative_id, relation.value)

            reciprocal = None
            reciprocal_type = reciprocal_of(relation)
            if reciprocal_type is not None:
                reciprocal, _ = self._insert_edge(session, relative_id, person_id, reciprocal_type)

        if created:
            logger.info(
                "Added relationship %s: %s -%s-> %s", primary.id, person_id, relation.value, relative_id
            )
        else:
            logger.debug("Relationship %s already present", primary.id)
        return AddResult(relationship=primary, created=created, reciprocal=reciprocal)

    def remove_relationship(self, relation_id: str) -> RemovalResult:
        """Remove an edge and its reverse edge.

        A reverse edge that is already gone is not an error; it is reported as
        a ReciprocalInconsistency and logged as a warning.

        Raises:
            NotFoundError: If the edge does not exist
        """
        with self.db.session_scope() as session:
            edge = session.get(FamilyRelationship, relation_id)
            if edge is None:
                raise NotFoundError("Relationship not found", details={"relation_id": relation_id})

            snapshot = edge.to_dict()
            session.delete(edge)

            reciprocal_removed = False
            inconsistency = None
            reciprocal_type = reciprocal_of(edge.relation_type)
            if reciprocal_type is not None:
                removed = (
                    session.query(FamilyRelationship)
                    .filter(
                        FamilyRelationship.person_id == edge.relative_id,
                        FamilyRelationship.relative_id == edge.person_id,
                        FamilyRelationship.relation_type == reciprocal_type,
                    )
                    .delete(synchronize_session=False)
                )
                reciprocal_removed = removed > 0
                if not reciprocal_removed:
                    inconsistency = ReciprocalInconsistency(
                        relation_id=edge.id,
                        person_id=edge.person_id,
                        relative_id=edge.relative_id,
                        relation_type=edge.relation_type,
                        expected_type=reciprocal_type,
                    )

        if inconsistency is not None:
            logger.warning("Reciprocal edge already missing: %s", inconsistency)
        logger.info("Removed relationship %s", relation_id)
        return RemovalResult(
            relationship=snapshot,
            reciprocal_removed=reciprocal_removed,
            inconsistency=inconsistency,
        )

    def get(self, relation_id: str) -> FamilyRelationship | None:
        """Get an edge by ID, or None."""
        session = self.db.get_session()
        try:
            return session.get(FamilyRelationship, relation_id)
        finally:
            session.close()

    def list_edges(self) -> list[FamilyRelationship]:
        """Every stored edge, unjoined."""
        session = self.db.get_session()
        try:
            return session.query(FamilyRelationship).all()
        finally:
            session.close()

    def list_relationships(self) -> list[dict[str, Any]]:
        """Every edge with both endpoints' display fields."""
        return self._denormalized_rows()

    def relationships_for_person(self, person_id: str) -> list[dict[str, Any]]:
        """Edges where the person is either endpoint, with display fields."""
        return self._denormalized_rows(person_id)

    def _denormalized_rows(self, person_id: str | None = None) -> list[dict[str, Any]]:
        person = aliased(Person)
        relative = aliased(Person)
        session = self.db.get_session()
        try:
            query = (
                session.query(FamilyRelationship, person, relative)
                .join(person, FamilyRelationship.person_id == person.id)
                .join(relative, FamilyRelationship.relative_id == relative.id)
            )
            if person_id is not None:
                query = query.filter(
                    or_(
                        FamilyRelationship.person_id == person_id,
                        FamilyRelationship.relative_id == person_id,
                    )
                )
            rows = query.order_by(person.full_name, relative.full_name, FamilyRelationship.id).all()
            return [_denormalize(rel, p, r) for rel, p, r in rows]
        finally:
            session.close()

    def stats(self) -> dict[str, int]:
        """Aggregate edge counts, overall and per relation type."""
        session = self.db.get_session()
        try:
            per_type = [
                func.sum(case((FamilyRelationship.relation_type == t.value, 1), else_=0))
                for t in RelationType
            ]
            row = session.query(
                func.count(distinct(FamilyRelationship.person_id)),
                func.count(FamilyRelationship.id),
                *per_type,
            ).one()
        finally:
            session.close()

        stats = {
            "total_persons": row[0] or 0,
            "total_relationships": row[1] or 0,
        }
        for relation, count in zip(RelationType, row[2:]):
            stats[f"{relation.value}_relationships"] = int(count or 0)
        return stats

    def find_inconsistencies(self) -> list[ReciprocalInconsistency]:
        """Edges whose reverse edge is missing."""
        edges = self.list_edges()
        triples = {(e.person_id, e.relative_id, e.relation_type) for e in edges}
        found = []
        for edge in edges:
            expected = reciprocal_of(edge.relation_type)
            if expected is None:
                continue
            if (edge.relative_id, edge.person_id, expected) not in triples:
                found.append(
                    ReciprocalInconsistency(
                        relation_id=edge.id,
                        person_id=edge.person_id,
                        relative_id=edge.relative_id,
                        relation_type=edge.relation_type,
                        expected_type=expected,
                    )
                )
        return found

    def reconcile(self) -> list[ReciprocalInconsistency]:
        """Insert every missing reverse edge.

        Returns:
            The inconsistencies that were repaired
        """
        inconsistencies = self.find_inconsistencies()
        if not inconsistencies:
            return []

        with self.db.session_scope() as session:
            for item in inconsistencies:
                self._insert_edge(session, item.relative_id, item.person_id, item.expected_type)
                logger.warning("Repaired %s", item)
        return inconsistencies
