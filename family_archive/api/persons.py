"""Person management API endpoints."""

import logging

from quart import Blueprint, jsonify, request

from family_archive.api.common import get_database, page_info, pagination, parse_body
from family_archive.errors import NotFoundError, ValidationError
from family_archive.schemas import PersonCreate, PersonUpdate
from family_archive.storage import PersonRepository

logger = logging.getLogger(__name__)

persons_bp = Blueprint("persons", __name__, url_prefix="/api/persons")


@persons_bp.route("", methods=["POST"])
async def create_person():
    """Create a person."""
    body = await parse_body(PersonCreate)
    person = PersonRepository(get_database()).create(**body.model_dump())
    return jsonify({"success": True, "person": person.to_dict()}), 201


@persons_bp.route("", methods=["GET"])
async def list_persons():
    """List persons ordered by name.

    Query parameters:
        - page: Page number (default: 1)
        - limit: Page size (default: 20)
    """
    page, limit, offset = pagination()
    repo = PersonRepository(get_database())
    persons = repo.list_page(limit=limit, offset=offset)

    return jsonify(
        {
            "success": True,
            "persons": [p.to_dict() for p in persons],
            "pagination": page_info(page, limit, repo.count()),
        }
    )


@persons_bp.route("/search", methods=["GET"])
async def search_persons():
    """Search persons by name.

    Query parameters:
        - q: Name substring (required)
    """
    term = request.args.get("q", "").strip()
    if not term:
        raise ValidationError("Search query 'q' is required")

    persons = PersonRepository(get_database()).search(term)
    return jsonify({"success": True, "persons": [p.to_dict() for p in persons], "count": len(persons)})


@persons_bp.route("/<person_id>", methods=["GET"])
async def get_person(person_id: str):
    person = PersonRepository(get_database()).require(person_id)
    return jsonify({"success": True, "person": person.to_dict()})


@persons_bp.route("/<person_id>", methods=["PUT"])
async def update_person(person_id: str):
    """Update a person; at least one field is required."""
    body = await parse_body(PersonUpdate)
    repo = PersonRepository(get_database())
    current = repo.require(person_id)

    changes = body.changes()
    birth = changes.get("birth_date", current.birth_date)
    death = changes.get("death_date", current.death_date)
    if birth and death and death < birth:
        raise ValidationError("death_date must not be before birth_date")

    person = repo.update(person_id, changes)
    return jsonify({"success": True, "person": person.to_dict()})


@persons_bp.route("/<person_id>", methods=["DELETE"])
async def delete_person(person_id: str):
    """Delete a person with their relationships and events."""
    if not PersonRepository(get_database()).delete(person_id):
        raise NotFoundError("Person not found", details={"person_id": person_id})
    return jsonify({"success": True, "message": "Person deleted"})


@persons_bp.route("/<person_id>/family", methods=["GET"])
async def get_family(person_id: str):
    """Direct relatives of a person grouped by relation type."""
    repo = PersonRepository(get_database())
    repo.require(person_id)
    return jsonify({"success": True, "family": repo.family(person_id)})


@persons_bp.route("/<person_id>/timeline", methods=["GET"])
async def get_timeline(person_id: str):
    """Life events of a person ordered by date."""
    repo = PersonRepository(get_database())
    repo.require(person_id)
    return jsonify({"success": True, "timeline": repo.timeline(person_id)})
