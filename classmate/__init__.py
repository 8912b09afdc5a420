"""ClassMate Google sync gateway application factory."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from flask import Flask

from classmate.config import config_by_name
from classmate.domains.google.errors import GoogleSyncError
from classmate.extensions import init_extensions


def create_app(config_name: Optional[str] = None) -> Flask:
    """Create and configure the ClassMate Flask application."""
    env_name = (config_name or os.environ.get("APP_ENV") or "development").lower()
    project_root = Path(__file__).resolve().parent.parent
    instance_root = project_root / "instance"

    app = Flask(__name__, instance_path=str(instance_root), instance_relative_config=True)
    config_cls = config_by_name.get(env_name, config_by_name["development"])
    app.config.from_object(config_cls)

    # Normalize sqlite path to absolute to avoid "unable to open database file"
    db_uri = app.config.get("SQLALCHEMY_DATABASE_URI") or ""
    if db_uri.startswith("sqlite:///"):
        db_path = Path(db_uri.replace("sqlite:///", "", 1))
        if not db_path.is_absolute():
            db_path = project_root / db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)
        app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{db_path}"

    init_extensions(app)
    _register_blueprints(app)
    _register_error_handlers(app)

    @app.get("/health")
    def health():
        return {"status": "ok"}, 200

    # Register CLI commands
    from classmate.scripts.google_sync import register_commands

    register_commands(app)

    return app


def _register_blueprints(app: Flask) -> None:
    """Lazy import and register all controllers."""
    from classmate.domains.google.controllers import google_api_bp

    app.register_blueprint(google_api_bp, url_prefix="/api/google")


def _register_error_handlers(app: Flask) -> None:
    """Render every failure as ``{"error": kind, "message": ...}``."""
    from werkzeug.exceptions import HTTPException

    @app.errorhandler(GoogleSyncError)
    def _gateway_error(exc: GoogleSyncError):
        return exc.to_dict(), exc.status_code

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        kind = "RateLimited" if exc.code == 429 else exc.name.replace(" ", "")
        return {"error": kind, "message": exc.description}, exc.code

    @app.errorhandler(Exception)
    def _generic_error(exc: Exception):
        app.logger.exception("Unhandled error: %s", exc)
        # In debug/testing, surface the exception message to speed up diagnosis
        if app.debug or app.testing:
            return {"error": "InternalError", "message": str(exc)}, 500
        return {"error": "InternalError", "message": "Unexpected error"}, 500
