"""Tests for the reciprocity-preserving relationship store."""

import logging

import pytest

from family_archive.errors import NotFoundError, ValidationError
from family_archive.storage import FamilyRelationship, PersonRepository, RelationshipStore


def triples(store):
    return sorted((e.person_id, e.relative_id, e.relation_type) for e in store.list_edges())


@pytest.fixture
def people(db):
    repo = PersonRepository(db)
    return {
        "a": repo.create(full_name="Alice Archer", gender="female"),
        "b": repo.create(full_name="Bob Archer", gender="male"),
    }


@pytest.fixture
def store(db):
    return RelationshipStore(db)


class TestAddRelationship:
    """Tests for add_relationship."""

    def test_writes_both_halves(self, store, people):
        a, b = people["a"].id, people["b"].id
        result = store.add_relationship(a, b, "parent")

        assert result.created is True
        assert result.relationship.relation_type == "parent"
        assert triples(store) == sorted([(a, b, "parent"), (b, a, "child")])

    def test_duplicate_add_is_noop(self, store, people):
        a, b = people["a"].id, people["b"].id
        first = store.add_relationship(a, b, "parent")
        second = store.add_relationship(a, b, "parent")

        assert second.created is False
        assert second.relationship.id == first.relationship.id
        assert len(store.list_edges()) == 2

    def test_adding_from_the_other_side_converges(self, store, people):
        """(A, B, parent) and (B, A, child) describe the same relationship."""
        a, b = people["a"].id, people["b"].id
        store.add_relationship(a, b, "parent")
        result = store.add_relationship(b, a, "child")

        assert result.created is False
        assert len(store.list_edges()) == 2

    def test_symmetric_type(self, store, people):
        a, b = people["a"].id, people["b"].id
        store.add_relationship(a, b, "spouse")

        assert triples(store) == sorted([(a, b, "spouse"), (b, a, "spouse")])

    def test_relation_type_is_normalized(self, store, people):
        result = store.add_relationship(people["a"].id, people["b"].id, " Sibling ")

        assert result.relationship.relation_type == "sibling"

    def test_self_relationship_rejected_before_write(self, store, people):
        with pytest.raises(ValidationError):
            store.add_relationship(people["a"].id, people["a"].id, "sibling")

        assert store.list_edges() == []

    def test_missing_fields(self, store, people):
        with pytest.raises(ValidationError) as exc_info:
            store.add_relationship(people["a"].id, None, "")

        assert exc_info.value.details == {"missing": ["relativeId", "relationType"]}
        assert exc_info.value.status_code == 400

    def test_non_string_fields(self, store, people):
        with pytest.raises(ValidationError) as exc_info:
            store.add_relationship({"a": 1}, people["b"].id, ["child"])

        assert exc_info.value.details == {"invalid": ["personId", "relationType"]}
        assert store.list_edges() == []

    def test_unknown_type(self, store, people):
        with pytest.raises(ValidationError, match="Unsupported relation type"):
            store.add_relationship(people["a"].id, people["b"].id, "cousin")

    def test_unknown_person(self, store, people):
        with pytest.raises(NotFoundError) as exc_info:
            store.add_relationship(people["a"].id, "missing-id", "child")

        assert exc_info.value.details == {"missing_person_ids": ["missing-id"]}
        assert exc_info.value.status_code == 404
        assert store.list_edges() == []


class TestRemoveRelationship:
    """Tests for remove_relationship."""

    def test_removes_reciprocal(self, store, people):
        a, b = people["a"].id, people["b"].id
        added = store.add_relationship(a, b, "child")
        result = store.remove_relationship(added.relationship.id)

        assert result.reciprocal_removed is True
        assert result.inconsistency is None
        assert store.list_edges() == []

    def test_removes_only_its_reciprocal(self, store, people, db):
        a, b = people["a"].id, people["b"].id
        c = PersonRepository(db).create(full_name="Carol Archer").id
        spouse = store.add_relationship(a, b, "spouse")
        store.add_relationship(a, c, "child")

        store.remove_relationship(spouse.relationship.id)

        assert triples(store) == sorted([(a, c, "child"), (c, a, "parent")])

    def test_missing_reciprocal_is_not_an_error(self, store, people, db, caplog):
        a, b = people["a"].id, people["b"].id
        added = store.add_relationship(a, b, "parent")
        with db.session_scope() as session:
            session.query(FamilyRelationship).filter_by(person_id=b, relative_id=a).delete()

        with caplog.at_level(logging.WARNING, logger="family_archive"):
            result = store.remove_relationship(added.relationship.id)

        assert result.reciprocal_removed is False
        assert result.inconsistency.expected_type == "child"
        assert "Reciprocal edge already missing" in caplog.text
        assert store.list_edges() == []

    def test_unknown_edge(self, store):
        with pytest.raises(NotFoundError):
            store.remove_relationship("no-such-edge")


class TestQueries:
    """Tests for the read side of the store."""

    def test_relationships_for_person_are_denormalized(self, store, family):
        rows = store.relationships_for_person(family["daughter"].id)

        # parent x2 and sibling from her side, child x2 and sibling pointing at her
        assert len(rows) == 6
        row = rows[0]
        assert set(row) >= {"relation_id", "person_id", "relative_id", "relation_type", "person", "relative"}
        assert row["person"]["full_name"]
        assert "avatar_url" in row["relative"]

    def test_stats(self, store, family):
        stats = store.stats()

        assert stats["total_relationships"] == 12
        assert stats["total_persons"] == 4
        assert stats["parent_relationships"] == 4
        assert stats["child_relationships"] == 4
        assert stats["spouse_relationships"] == 2
        assert stats["sibling_relationships"] == 2


class TestReconcile:
    """Tests for repairing pre-existing drift."""

    def test_finds_and_repairs_missing_halves(self, store, people, db):
        a, b = people["a"].id, people["b"].id
        with db.session_scope() as session:
            session.add(FamilyRelationship(person_id=a, relative_id=b, relation_type="child"))

        found = store.find_inconsistencies()
        assert [(i.person_id, i.expected_type) for i in found] == [(a, "parent")]

        repaired = store.reconcile()

        assert len(repaired) == 1
        assert store.find_inconsistencies() == []
        assert triples(store) == sorted([(a, b, "child"), (b, a, "parent")])

    def test_consistent_store_needs_nothing(self, store, family):
        assert store.reconcile() == []


class TestSavepointInsert:
    """The SAVEPOINT insert used on engines without ON CONFLICT support."""

    def test_duplicate_is_absorbed(self, store, people, db):
        a, b = people["a"].id, people["b"].id
        triple = {"person_id": a, "relative_id": b, "relation_type": "sibling"}

        with db.session_scope() as session:
            assert store._insert_in_savepoint(session, triple) is True
        with db.session_scope() as session:
            assert store._insert_in_savepoint(session, triple) is False
            assert session.query(FamilyRelationship).filter_by(**triple).count() == 1

        assert triples(store) == [(a, b, "sibling")]
