# checklist/__init__.py
import logging
import os

from flask import Flask, jsonify, request

from .config import config
from .errors import ChecklistError, DocumentNotFound, WorkbookUnreadable
from .extensions import cors, db

logger = logging.getLogger(__name__)


def _seed_questions(app):
    """Import the configured workbook once; a missing/broken file only logs."""
    from .ingest.pipeline import import_workbook

    path = app.config.get("SEED_WORKBOOK")
    if not path:
        logger.info("SEED_WORKBOOK not set, starting without an Excel import")
        return
    try:
        import_workbook(path)
    except (DocumentNotFound, WorkbookUnreadable) as e:
        logger.warning(f"No questions seeded from {path}: {e}")
        logger.warning("Application will continue without initial questions")


def _register_error_handlers(app):

    @app.errorhandler(ChecklistError)
    def _checklist_error(e):
        if e.status_code >= 500:
            logger.error(f"{request.method} {request.path}: {e}")
        return jsonify(e.to_dict()), e.status_code

    # every /api/* error is JSON, never an HTML page
    @app.errorhandler(404)
    def _404(e):
        if request.path.startswith("/api/"):
            return jsonify({"error": "not found", "path": request.path}), 404
        return e

    @app.errorhandler(405)
    def _405(e):
        if request.path.startswith("/api/"):
            return jsonify({"error": "method not allowed", "path": request.path}), 405
        return e

    @app.errorhandler(413)
    def _413(e):
        if request.path.startswith("/api/"):
            return jsonify({"error": "payload too large"}), 413
        return e


def create_app(config_name=None):
    config_name = config_name or os.getenv("APP_ENV", "default")
    app = Flask(__name__)
    app.config.from_object(config[config_name])
    app.url_map.strict_slashes = False

    logging.basicConfig(level=app.config["LOG_LEVEL"],
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    db.init_app(app)
    cors.init_app(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}},
                  supports_credentials=True)

    from .routes.admin import bp as admin_bp
    from .routes.questions import bp as questions_bp
    from .routes.responses import bp as responses_bp
    app.register_blueprint(questions_bp, url_prefix="/api/questions")
    app.register_blueprint(responses_bp, url_prefix="/api/responses")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")

    from .cli import register_commands
    register_commands(app)

    _register_error_handlers(app)

    @app.get("/api/health")
    def health():
        return {"status": "ok", "message": "Server is running"}

    with app.app_context():
        db.create_all()
        _seed_questions(app)
    return app
