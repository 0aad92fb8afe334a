"""Relation types and their reciprocals.

An edge ``(person_id, relative_id, relation_type)`` reads "the relative is the
person's <relation_type>". ``(A, B, "child")`` therefore means B is a child of
A, and its reciprocal is ``(B, A, "parent")``.
"""

from enum import Enum


class RelationType(str, Enum):
    """Supported family relation types."""

    PARENT = "parent"
    CHILD = "child"
    SPOUSE = "spouse"
    SIBLING = "sibling"


RECIPROCALS: dict[RelationType, RelationType] = {
    RelationType.PARENT: RelationType.CHILD,
    RelationType.CHILD: RelationType.PARENT,
    RelationType.SPOUSE: RelationType.SPOUSE,
    RelationType.SIBLING: RelationType.SIBLING,
}


def normalize_relation_type(relation_type: str | RelationType | None) -> RelationType | None:
    """Coerce a raw relation type to a RelationType, or None if unknown."""
    if isinstance(relation_type, RelationType):
        return relation_type
    if not isinstance(relation_type, str):
        return None
    try:
        return RelationType(relation_type.strip().lower())
    except ValueError:
        return None


def reciprocal_of(relation_type: str | RelationType | None) -> str | None:
    """Return the relation type the reverse edge must carry.

    Args:
        relation_type: Relation type of the forward edge

    Returns:
        The reciprocal relation type, or None when no reciprocal is defined
    """
    normalized = normalize_relation_type(relation_type)
    if normalized is None:
        return None
    return RECIPROCALS[normalized].value
