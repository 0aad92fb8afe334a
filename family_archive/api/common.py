"""Helpers shared by the API blueprints."""

import logging
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel
from quart import current_app, request

from family_archive.errors import ValidationError
from family_archive.storage import ArchiveDatabase

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def get_database() -> ArchiveDatabase:
    """Storage handle owned by the running app."""
    return current_app.extensions["archive_db"]


async def parse_body(model: type[ModelT]) -> ModelT:
    """Validate the JSON request body against a pydantic model.

    Raises:
        ValidationError: If the body is missing or not a JSON object
        pydantic.ValidationError: If a field is invalid
    """
    data = await request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return model.model_validate(data)


def pagination() -> tuple[int, int, int]:
    """Read ``page`` and ``limit`` query parameters.

    Returns:
        Tuple of (page, limit, offset)
    """
    page = max(request.args.get("page", 1, type=int) or 1, 1)
    limit = request.args.get("limit", DEFAULT_PAGE_SIZE, type=int) or DEFAULT_PAGE_SIZE
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    return page, limit, (page - 1) * limit


def page_info(page: int, limit: int, total: int) -> dict[str, Any]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": (total + limit - 1) // limit,
    }


def allowed_file(filename: str | None, extensions: set[str]) -> bool:
    """Check if file extension is allowed."""
    if not filename:
        return False
    return Path(filename).suffix.lower() in extensions


def remove_stored_file(file_path: str | None) -> None:
    """Delete an uploaded file; a file that is already gone only logs a warning."""
    if not file_path:
        return
    path = Path(file_path)
    try:
        path.unlink()
    except FileNotFoundError:
        logger.warning("Stored file already missing: %s", path)
