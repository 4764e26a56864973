# backend/shopledger/__init__.py
import logging

from flask import Flask, current_app, request
from werkzeug.exceptions import HTTPException

from .config import Config, LedgerNames
from .extensions import db, migrate
from .tabular import SqlTableStore, StoreError
from .validation import ConflictError, NotFoundError, ValidationError


def get_store() -> SqlTableStore:
    """Tabular store bound to the request's database session."""
    return SqlTableStore(db.session)


def get_names() -> LedgerNames:
    return LedgerNames.from_config(current_app.config)


def _configure_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.getLogger("shopledger").setLevel(level)
    app.logger.setLevel(level)
    if not logging.getLogger().handlers:
        logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def handle_validation(e):
        body = {"error": str(e)}
        details = getattr(e, "details", None)
        if details:
            body["details"] = details
        return body, 400

    @app.errorhandler(NotFoundError)
    def handle_not_found(e):
        return {"error": str(e.args[0]) if e.args else "Not found"}, 404

    @app.errorhandler(ConflictError)
    def handle_conflict(e):
        return {"error": str(e)}, 409

    @app.errorhandler(StoreError)
    def handle_store_error(e):
        current_app.logger.warning("Store call failed: %s", e)
        return {"error": "Data store unavailable", "table": e.table}, 502

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return e
        current_app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return {"error": "Internal server error"}, 500


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    _configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.products import products_bp
    from .routes.sales import sales_bp
    from .routes.transactions import transactions_bp
    from .routes.reports import reports_bp
    from .routes.migration import migration_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(transactions_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(migration_bp)

    _register_error_handlers(app)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        }
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
