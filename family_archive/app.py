"""Main Quart application for the Family Archive backend."""

import logging
from pathlib import Path

import pydantic
from quart import Quart, jsonify
from quart_cors import cors
from werkzeug.exceptions import HTTPException

from family_archive import __version__
from family_archive.api import blueprints
from family_archive.config import get_config
from family_archive.errors import ArchiveError
from family_archive.ingestion import DocumentAnalyzer, OCRProcessor
from family_archive.logging_config import configure_logging
from family_archive.storage import ArchiveDatabase

logger = logging.getLogger(__name__)


def create_app(
    config_name: str = "development",
    database: ArchiveDatabase | None = None,
    analyzer: DocumentAnalyzer | None = None,
) -> Quart:
    """Create and configure the Quart application.

    Args:
        config_name: Configuration environment name
        database: Storage handle to use instead of one built from the config
        analyzer: Document analyzer to use instead of the Tesseract-backed one

    Returns:
        Configured Quart app
    """
    app = Quart(__name__)

    # Load configuration
    config = get_config(config_name)
    app.config.from_object(config)
    configure_logging(config.LOG_LEVEL)

    # Enable CORS for frontend (only needed in development)
    if config.DEBUG:
        app = cors(
            app,
            allow_origin=config.CORS_ORIGINS,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization"],
        )

    # Ensure required directories exist
    upload_folder = Path(config.UPLOAD_FOLDER)
    (upload_folder / "documents").mkdir(parents=True, exist_ok=True)
    (upload_folder / "photos").mkdir(parents=True, exist_ok=True)

    db = database or ArchiveDatabase(config.DATABASE_URL)
    app.extensions["archive_db"] = db
    app.extensions["document_analyzer"] = analyzer or DocumentAnalyzer(
        OCRProcessor(languages=config.OCR_LANGUAGES, tesseract_config=config.TESSERACT_CONFIG)
    )

    @app.before_serving
    async def open_database() -> None:
        if not db.is_initialized:
            db.initialize()
        logger.info("Archive database ready")

    @app.after_serving
    async def close_database() -> None:
        db.close()

    # Register blueprints
    for blueprint in blueprints:
        app.register_blueprint(blueprint)

    register_error_handlers(app)
    register_routes(app)

    return app


def register_error_handlers(app: Quart) -> None:
    """Map every error to the JSON error payload."""

    @app.errorhandler(ArchiveError)
    async def handle_archive_error(error: ArchiveError):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(pydantic.ValidationError)
    async def handle_invalid_body(error: pydantic.ValidationError):
        details = [
            {"field": ".".join(str(p) for p in e["loc"]), "message": e["msg"]}
            for e in error.errors()
        ]
        return jsonify({"success": False, "error": "Invalid request", "details": details}), 400

    @app.errorhandler(HTTPException)
    async def handle_http_error(error: HTTPException):
        return jsonify({"success": False, "error": error.description or error.name}), error.code

    @app.errorhandler(Exception)
    async def handle_unexpected(error: Exception):
        logger.exception("Unhandled error")
        return jsonify({"success": False, "error": "Internal server error"}), 500


def register_routes(app: Quart) -> None:
    """Register API routes.

    Args:
        app: Quart application
    """

    @app.route("/api/health", methods=["GET"])
    async def health_check():
        """Health check endpoint."""
        return jsonify(
            {
                "status": "healthy",
                "service": "family-archive-backend",
                "version": __version__,
            }
        )
