"""Family tree API endpoints."""

import logging

from quart import Blueprint, jsonify

from family_archive.api.common import get_database, parse_body
from family_archive.family import build_family_forest
from family_archive.schemas import RelationshipCreate
from family_archive.storage import PersonRepository, RelationshipStore

logger = logging.getLogger(__name__)

family_tree_bp = Blueprint("family_tree", __name__, url_prefix="/api/family-tree")


@family_tree_bp.route("/person/<person_id>", methods=["GET"])
async def get_person_relationships(person_id: str):
    """Get a person and every relationship row touching them.

    Returns:
        JSON with the person and denormalized relationship rows
    """
    db = get_database()
    person = PersonRepository(db).require(person_id)
    relationships = RelationshipStore(db).relationships_for_person(person_id)

    return jsonify(
        {
            "success": True,
            "person": person.to_dict(),
            "relationships": relationships,
        }
    )


@family_tree_bp.route("/full", methods=["GET"])
async def get_full_tree():
    """Get all persons, all relationships and the computed forest.

    The forest is rebuilt from storage on every request.
    """
    db = get_database()
    persons = PersonRepository(db).list_all()
    store = RelationshipStore(db)
    forest = build_family_forest(persons, store.list_edges())

    return jsonify(
        {
            "success": True,
            "persons": [p.to_dict() for p in persons],
            "relationships": store.list_relationships(),
            "tree": forest.to_list(),
        }
    )


@family_tree_bp.route("/relationship", methods=["POST"])
async def add_relationship():
    """Add a relationship and its reciprocal.

    Body:
        personId, relativeId, relationType (parent|child|spouse|sibling)
    """
    body = await parse_body(RelationshipCreate)
    result = RelationshipStore(get_database()).add_relationship(
        body.person_id, body.relative_id, body.relation_type
    )

    return jsonify(
        {
            "success": True,
            "relationId": result.relationship.id,
            "created": result.created,
            "message": "Relationship added" if result.created else "Relationship already exists",
        }
    ), 201 if result.created else 200


@family_tree_bp.route("/relationship/<relation_id>", methods=["DELETE"])
async def delete_relationship(relation_id: str):
    """Delete a relationship and its reciprocal."""
    result = RelationshipStore(get_database()).remove_relationship(relation_id)

    payload = {
        "success": True,
        "message": "Relationship deleted",
        "reciprocalRemoved": result.reciprocal_removed,
    }
    if result.inconsistency is not None:
        payload["inconsistency"] = result.inconsistency.to_dict()
    return jsonify(payload)


@family_tree_bp.route("/stats", methods=["GET"])
async def get_stats():
    """Relationship counts overall and per relation type."""
    return jsonify({"success": True, "stats": RelationshipStore(get_database()).stats()})
