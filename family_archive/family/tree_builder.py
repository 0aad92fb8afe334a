"""Family forest construction.

Builds request-scoped FamilyNode views from the full person and edge sets.
Nodes never hold other nodes: buckets contain id-keyed NeighborSummary
records, and traversal goes through ``FamilyForest.nodes``.

Persons may be any objects exposing ``id``, ``full_name``, ``gender``,
``birth_date``, ``death_date`` and (optionally) ``avatar_url``; edges need
``person_id``, ``relative_id`` and ``relation_type``. ORM rows and plain
namespaces both work.
"""

from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from family_archive.family.reciprocal import RelationType, normalize_relation_type

# Bucket that receives the relative for each edge type
BUCKET_FOR_RELATION: dict[RelationType, str] = {
    RelationType.PARENT: "parents",
    RelationType.CHILD: "children",
    RelationType.SPOUSE: "spouses",
    RelationType.SIBLING: "siblings",
}


def _iso(value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    return value


@dataclass(frozen=True)
class NeighborSummary:
    """Lightweight display projection of a related person."""

    person_id: str
    full_name: str
    gender: str | None = None
    birth_date: date | None = None
    death_date: date | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "person_id": self.person_id,
            "full_name": self.full_name,
            "gender": self.gender,
            "birth_date": _iso(self.birth_date),
            "death_date": _iso(self.death_date),
        }


def summarize_neighbor(person: Any) -> NeighborSummary:
    """Project a person onto the fields shown for a relative."""
    return NeighborSummary(
        person_id=person.id,
        full_name=person.full_name,
        gender=getattr(person, "gender", None),
        birth_date=getattr(person, "birth_date", None),
        death_date=getattr(person, "death_date", None),
    )


def _sort_key(summary: NeighborSummary) -> tuple[str, str]:
    return (summary.full_name or "", summary.person_id)


@dataclass
class FamilyNode:
    """A person together with its four typed neighbor buckets."""

    person_id: str
    full_name: str
    gender: str | None = None
    birth_date: date | None = None
    death_date: date | None = None
    avatar_url: str | None = None
    children: list[NeighborSummary] = field(default_factory=list)
    parents: list[NeighborSummary] = field(default_factory=list)
    spouses: list[NeighborSummary] = field(default_factory=list)
    siblings: list[NeighborSummary] = field(default_factory=list)

    @classmethod
    def from_person(cls, person: Any) -> "FamilyNode":
        """Seed an empty node from a person record."""
        return cls(
            person_id=person.id,
            full_name=person.full_name,
            gender=getattr(person, "gender", None),
            birth_date=getattr(person, "birth_date", None),
            death_date=getattr(person, "death_date", None),
            avatar_url=getattr(person, "avatar_url", None),
        )

    @property
    def is_root(self) -> bool:
        """A node is a forest root when no parent is recorded."""
        return not self.parents

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "person_id": self.person_id,
            "full_name": self.full_name,
            "gender": self.gender,
            "birth_date": _iso(self.birth_date),
            "death_date": _iso(self.death_date),
            "avatar_url": self.avatar_url,
            "children": [s.to_dict() for s in self.children],
            "parents": [s.to_dict() for s in self.parents],
            "spouses": [s.to_dict() for s in self.spouses],
            "siblings": [s.to_dict() for s in self.siblings],
        }


@dataclass
class FamilyForest:
    """Result of a forest build: root sequence plus id lookup."""

    roots: list[FamilyNode]
    nodes: dict[str, FamilyNode]

    def get(self, person_id: str) -> FamilyNode | None:
        """Look up a node by person id."""
        return self.nodes.get(person_id)

    def walk(self, root_id: str) -> Iterator[tuple[FamilyNode, int]]:
        """Yield ``(node, depth)`` pairs below ``root_id`` following children.

        Breadth-first with a visited set, so cyclic parent/child data still
        terminates. Each node is yielded at most once.
        """
        start = self.nodes.get(root_id)
        if start is None:
            return
        visited = {root_id}
        queue: deque[tuple[FamilyNode, int]] = deque([(start, 0)])
        while queue:
            node, depth = queue.popleft()
            yield node, depth
            for child in node.children:
                if child.person_id in visited:
                    continue
                child_node = self.nodes.get(child.person_id)
                if child_node is None:
                    continue
                visited.add(child.person_id)
                queue.append((child_node, depth + 1))

    def to_list(self) -> list[dict[str, Any]]:
        """Serialize the root sequence."""
        return [root.to_dict() for root in self.roots]


def build_family_forest(persons: Iterable[Any], edges: Iterable[Any]) -> FamilyForest:
    """Build the family forest from complete person and edge sets.

    One pass over the edges fills each node's buckets; edges whose endpoints
    are unknown, or whose type is not a family relation, are skipped. A
    bucket never holds the same neighbor twice.

    Args:
        persons: All persons
        edges: All relationship edges

    Returns:
        FamilyForest whose roots are the persons without a parent edge
    """
    nodes: dict[str, FamilyNode] = {}
    summaries: dict[str, NeighborSummary] = {}
    for person in persons:
        nodes[person.id] = FamilyNode.from_person(person)
        summaries[person.id] = summarize_neighbor(person)

    seen: set[tuple[str, str, str]] = set()
    for edge in edges:
        node = nodes.get(edge.person_id)
        relative = summaries.get(edge.relative_id)
        relation = normalize_relation_type(edge.relation_type)
        if node is None or relative is None or relation is None:
            continue

        bucket_name = BUCKET_FOR_RELATION[relation]
        key = (edge.person_id, bucket_name, edge.relative_id)
        if key in seen:
            continue
        seen.add(key)
        getattr(node, bucket_name).append(relative)

    for node in nodes.values():
        for bucket_name in BUCKET_FOR_RELATION.values():
            getattr(node, bucket_name).sort(key=_sort_key)

    roots = sorted(
        (node for node in nodes.values() if node.is_root),
        key=lambda n: (n.full_name or "", n.person_id),
    )
    return FamilyForest(roots=roots, nodes=nodes)
