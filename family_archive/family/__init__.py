"""Family relationship logic: reciprocal resolution and forest building."""

from family_archive.family.reciprocal import (
    RelationType,
    normalize_relation_type,
    reciprocal_of,
)
from family_archive.family.tree_builder import (
    FamilyForest,
    FamilyNode,
    NeighborSummary,
    build_family_forest,
    summarize_neighbor,
)

__all__ = [
    "RelationType",
    "normalize_relation_type",
    "reciprocal_of",
    "FamilyForest",
    "FamilyNode",
    "NeighborSummary",
    "build_family_forest",
    "summarize_neighbor",
]
