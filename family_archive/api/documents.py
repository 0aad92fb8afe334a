"""Document upload and management API endpoints."""

import logging
import uuid
from pathlib import Path
from typing import Any

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
from family_archive.ingestion import DocumentAnalysis, DocumentAnalyzer
from family_archive.ingestion.analysis import classify_document
from family_archive.schemas import DocumentUpdate
from family_archive.storage import DocumentRepository, PersonRepository

logger = logging.getLogger(__name__)

documents_bp = Blueprint("documents", __name__, url_prefix="/api/documents")


def _analyzer() -> DocumentAnalyzer:
    return current_app.extensions["document_analyzer"]


def _analyze(file_path: Path, original_filename: str) -> DocumentAnalysis | None:
    """Run OCR analysis; failures are logged and yield None."""
    analyzer = _analyzer()
    if not analyzer.supports(file_path):
        return None
    try:
        return analyzer.analyze(file_path, original_filename)
    except Exception:
        logger.exception("OCR failed for %s", original_filename)
        return None


def _analysis_fields(analysis: DocumentAnalysis) -> dict[str, Any]:
    return {
        "document_type": analysis.document_type,
        "extracted_text": analysis.original_text,
        "clean_text": analysis.cleaned_text,
        "confidence_score": analysis.confidence,
        "tags": {
            **analysis.key_info,
            "language": analysis.language,
            "word_count": analysis.word_count,
        },
    }


@documents_bp.route("/upload", methods=["POST"])
async def upload_document():
    """Upload a document and run OCR analysis on it.

    Accepts multipart/form-data with a ``document`` file and an optional
    ``person_id`` form field. The document is stored even if OCR fails.
    """
    files = await request.files
    form = await request.form

    file = files.get("document")
    if file is None or not file.filename:
        raise ValidationError("No document provided")

    extensions = current_app.config["DOCUMENT_EXTENSIONS"]
    if not allowed_file(file.filename, extensions):
        raise ValidationError(
            f"File type not allowed. Supported: {', '.join(sorted(extensions))}"
        )

    person_id = form.get("person_id") or None
    db = get_database()
    if person_id:
        PersonRepository(db).require(person_id)

    original_filename = file.filename
    upload_folder = Path(current_app.config["UPLOAD_FOLDER"]) / "documents"
    upload_folder.mkdir(parents=True, exist_ok=True)
    file_path = upload_folder / f"{uuid.uuid4().hex}_{secure_filename(original_filename)}"
    await file.save(str(file_path))

    analysis = _analyze(file_path, original_filename)
    if analysis is not None:
        fields = _analysis_fields(analysis)
    else:
        fields = {"document_type": classify_document(None, original_filename)}

    document = DocumentRepository(db).create(
        file_path=str(file_path),
        original_filename=original_filename,
        person_id=person_id,
        file_size=file_path.stat().st_size,
        mime_type=file.mimetype,
        **fields,
    )

    return jsonify(
        {
            "success": True,
            "message": "Document uploaded successfully",
            "document": document.to_dict(),
            "ocr": analysis.to_dict() if analysis is not None else None,
        }
    ), 201


@documents_bp.route("", methods=["GET"])
async def list_documents():
    """List documents, newest first, with the linked person's name.

    Query parameters:
        - page: Page number (default: 1)
        - limit: Page size (default: 20)
    """
    page, limit, offset = pagination()
    repo = DocumentRepository(get_database())

    return jsonify(
        {
            "success": True,
            "documents": repo.list_page(limit=limit, offset=offset),
            "pagination": page_info(page, limit, repo.count()),
        }
    )


@documents_bp.route("/search", methods=["GET"])
async def search_documents():
    """Search documents.

    Query parameters:
        - q: Text to look for in the extracted text or filename
        - type: Document type
    """
    term = request.args.get("q", "").strip() or None
    document_type = request.args.get("type", "").strip() or None
    if term is None and document_type is None:
        raise ValidationError("Provide a search query 'q' or a document 'type'")

    documents = DocumentRepository(get_database()).search(term=term, document_type=document_type)
    return jsonify({"success": True, "documents": documents, "count": len(documents)})


@documents_bp.route("/person/<person_id>", methods=["GET"])
async def get_person_documents(person_id: str):
    db = get_database()
    PersonRepository(db).require(person_id)
    documents = DocumentRepository(db).for_person(person_id)
    return jsonify({"success": True, "documents": [d.to_dict() for d in documents]})


@documents_bp.route("/<document_id>", methods=["GET"])
async def get_document(document_id: str):
    document = DocumentRepository(get_database()).require(document_id)
    return jsonify({"success": True, "document": document.to_dict()})


@documents_bp.route("/<document_id>", methods=["PUT"])
async def update_document(document_id: str):
    body = await parse_body(DocumentUpdate)
    db = get_database()
    changes = body.changes()
    if changes.get("person_id"):
        PersonRepository(db).require(changes["person_id"])

    document = DocumentRepository(db).update(document_id, changes)
    return jsonify({"success": True, "document": document.to_dict()})


@documents_bp.route("/<document_id>", methods=["DELETE"])
async def delete_document(document_id: str):
    """Delete a document record and its stored file."""
    repo = DocumentRepository(get_database())
    document = repo.require(document_id)

    repo.delete(document_id)
    remove_stored_file(document.file_path)
    logger.info("Deleted document %s", document_id)
    return jsonify({"success": True, "message": "Document deleted"})


@documents_bp.route("/<document_id>/reprocess", methods=["POST"])
async def reprocess_document(document_id: str):
    """Run OCR analysis again on a stored document."""
    repo = DocumentRepository(get_database())
    document = repo.require(document_id)

    file_path = Path(document.file_path)
    if not file_path.exists():
        raise NotFoundError("Stored file not found", details={"file_path": str(file_path)})
    if not _analyzer().supports(file_path):
        raise ValidationError(f"OCR is not supported for {file_path.suffix or 'this file'}")

    analysis = _analyzer().analyze(file_path, document.original_filename or file_path.name)
    document = repo.update(document_id, _analysis_fields(analysis))

    return jsonify(
        {
            "success": True,
            "message": "Document reprocessed",
            "document": document.to_dict(),
            "ocr": analysis.to_dict(),
        }
    )
