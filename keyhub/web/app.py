"""Flask application configuration and blueprint registration."""

from __future__ import annotations

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from keyhub.logger import get_logger
from keyhub.core.schema import DB_VERSION, get_db_version
from keyhub.exceptions import (
    ConflictError,
    ImportFormatError,
    InvalidInputError,
    InvalidKeyError,
    InvalidOperationError,
    KeyhubError,
    NotFoundError,
    StorageError,
)

from .routes.languages import languages_bp
from .routes.projects import projects_bp
from .routes.translation import translation_bp
from .routes.transfer import transfer_bp
from .routes.settings import settings_bp

logger = get_logger(__name__)

ERROR_STATUS = {
    InvalidKeyError: 400,
    InvalidInputError: 400,
    InvalidOperationError: 400,
    ImportFormatError: 400,
    NotFoundError: 404,
    ConflictError: 409,
    StorageError: 500,
}


def status_for(error: KeyhubError) -> int:
    for error_type, status in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return status
    return 500


def build_app() -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)

    # Ensure JSON responses keep Unicode data.
    app.json.ensure_ascii = False
    app.json.sort_keys = False

    register_blueprints(app)
    register_default_routes(app)
    register_error_handlers(app)

    return app


def register_blueprints(app: Flask) -> None:
    """Register Flask blueprints."""
    app.register_blueprint(languages_bp, url_prefix="/api/languages")
    app.register_blueprint(projects_bp, url_prefix="/api/projects")
    app.register_blueprint(translation_bp, url_prefix="/api/projects")
    app.register_blueprint(transfer_bp, url_prefix="/api")
    app.register_blueprint(settings_bp, url_prefix="/api/settings")


def register_default_routes(app: Flask) -> None:
    """Register the health route."""

    @app.get("/health")
    def health_check():
        logger.debug("Health check requested")
        return jsonify({"status": "ok", "db_version": get_db_version(), "expected_db_version": DB_VERSION})


def register_error_handlers(app: Flask) -> None:
    """Map domain errors and HTTP errors to JSON responses."""

    @app.errorhandler(KeyhubError)
    def handle_keyhub_error(e: KeyhubError):
        status = status_for(e)
        payload = e.to_dict()
        if isinstance(e, InvalidKeyError):
            payload["validation"] = e.result.to_dict()
        if status >= 500:
            logger.error("Request failed: %s", e.message)
            payload = {"error": "The operation failed and nothing was saved", "code": e.code}
        else:
            logger.debug("Request rejected (%s): %s", status, e.message)
        return jsonify(payload), status

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"error": e.description, "code": e.name.lower().replace(" ", "_")}), e.code

    @app.errorhandler(Exception)
    def internal_error(e):
        """Handle unexpected errors with a generic message."""
        logger.exception("Internal server error: %s", e)
        return jsonify({"error": "Internal server error"}), 500
