"""Photo upload and management API endpoints."""

import logging
import uuid
from datetime import date
from pathlib import Path

from PIL import Image, UnidentifiedImageError
from quart import Blueprint, current_app, jsonify, request
from werkzeug.utils import secure_filename

from family_archive.api.common import (
    allowed_file,
    get_database,
    page_info,
    pagination,
    parse_body,
    remove_stored_file,
)
from family_archive.errors import NotFoundError, ValidationError
from family_archive.schemas import PhotoUpdate
from family_archive.storage import PersonRepository, PhotoRepository

logger = logging.getLogger(__name__)

photos_bp = Blueprint("photos", __name__, url_prefix="/api/photos")


def _image_size(path: Path) -> tuple[int, int]:
    """Width and height read from the image header."""
    with Image.open(path) as image:
        return image.size


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"Invalid date_taken: {value}") from e


@photos_bp.route("/upload", methods=["POST"])
async def upload_photos():
    """Upload up to ten photos.

    Accepts multipart/form-data with one or more ``photos`` files and
    optional ``person_id``, ``event_name`` and ``date_taken`` form fields.
    """
    files = await request.files
    form = await request.form

    uploads = [f for f in files.getlist("photos") if f.filename]
    if not uploads:
        raise ValidationError("No photos provided")

    max_photos = current_app.config["MAX_PHOTOS_PER_UPLOAD"]
    if len(uploads) > max_photos:
        raise ValidationError(f"At most {max_photos} photos can be uploaded at once")

    extensions = current_app.config["PHOTO_EXTENSIONS"]
    rejected = [f.filename for f in uploads if not allowed_file(f.filename, extensions)]
    if rejected:
        raise ValidationError("Only image files are allowed", details={"rejected": rejected})

    person_id = form.get("person_id") or None
    event_name = form.get("event_name") or None
    date_taken = _parse_date(form.get("date_taken"))

    db = get_database()
    if person_id:
        PersonRepository(db).require(person_id)

    upload_folder = Path(current_app.config["UPLOAD_FOLDER"]) / "photos"
    upload_folder.mkdir(parents=True, exist_ok=True)
    repo = PhotoRepository(db)

    created = []
    for upload in uploads:
        file_path = upload_folder / f"{uuid.uuid4().hex}_{secure_filename(upload.filename)}"
        await upload.save(str(file_path))

        try:
            width, height = _image_size(file_path)
        except UnidentifiedImageError as e:
            remove_stored_file(str(file_path))
            raise ValidationError(f"Not a readable image: {upload.filename}") from e

        photo = repo.create(
            file_path=str(file_path),
            original_filename=upload.filename,
            person_id=person_id,
            event_name=event_name,
            date_taken=date_taken,
            file_size=file_path.stat().st_size,
            width=width,
            height=height,
        )
        created.append(photo.to_dict())

    logger.info("Uploaded %d photo(s)", len(created))
    return jsonify(
        {
            "success": True,
            "message": f"{len(created)} photo(s) uploaded successfully",
            "photos": created,
        }
    ), 201


@photos_bp.route("", methods=["GET"])
async def list_photos():
    page, limit, offset = pagination()
    result = PhotoRepository(get_database()).list_page(limit=limit, offset=offset)
    return jsonify(
        {
            "success": True,
            "photos": result["photos"],
            "pagination": page_info(page, limit, result["total"]),
        }
    )


@photos_bp.route("/stats", methods=["GET"])
async def get_photo_stats():
    return jsonify({"success": True, "stats": PhotoRepository(get_database()).stats()})


@photos_bp.route("/search", methods=["GET"])
async def search_photos():
    """Search photos by filename, event name or person name.

    Query parameters:
        - q: Search text (required)
        - page, limit: Pagination
    """
    term = request.args.get("q", "").strip()
    if not term:
        raise ValidationError("Search query 'q' is required")

    page, limit, offset = pagination()
    result = PhotoRepository(get_database()).search(term, limit=limit, offset=offset)
    return jsonify(
        {
            "success": True,
            "photos": result["photos"],
            "pagination": page_info(page, limit, result["total"]),
        }
    )


@photos_bp.route("/person/<person_id>", methods=["GET"])
async def get_person_photos(person_id: str):
    db = get_database()
    PersonRepository(db).require(person_id)
    photos = PhotoRepository(db).for_person(person_id)
    return jsonify({"success": True, "photos": [p.to_dict() for p in photos]})


@photos_bp.route("/<photo_id>", methods=["GET"])
async def get_photo(photo_id: str):
    photo = PhotoRepository(get_database()).require(photo_id)
    return jsonify({"success": True, "photo": photo.to_dict()})


@photos_bp.route("/<photo_id>", methods=["PUT"])
async def update_photo(photo_id: str):
    body = await parse_body(PhotoUpdate)
    db = get_database()
    changes = body.changes()
    if changes.get("person_id"):
        PersonRepository(db).require(changes["person_id"])

    photo = PhotoRepository(db).update(photo_id, changes)
    return jsonify({"success": True, "photo": photo.to_dict()})


@photos_bp.route("/<photo_id>", methods=["DELETE"])
async def delete_photo(photo_id: str):
    """Delete a photo record and its stored file."""
    repo = PhotoRepository(get_database())
    photo = repo.require(photo_id)

    if not repo.delete(photo_id):
        raise NotFoundError("Photo not found", details={"photo_id": photo_id})
    remove_stored_file(photo.file_path)
    return jsonify({"success": True, "message": "Photo deleted"})
