"""HTTP API blueprints."""

from family_archive.api.documents import documents_bp
from family_archive.api.family_tree import family_tree_bp
from family_archive.api.persons import persons_bp
from family_archive.api.photos import photos_bp

blueprints = [family_tree_bp, persons_bp, documents_bp, photos_bp]

__all__ = ["blueprints", "family_tree_bp", "persons_bp", "documents_bp", "photos_bp"]
