# backend/posdocs/__init__.py
import logging

from flask import Flask, request

from .config import Config
from .extensions import db, migrate
from .services.idempotency_service import InMemoryKeyValueStore


def create_app(config_overrides=None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    app.logger.setLevel(getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Duplicate-submission guard for write endpoints; tests inject their own
    app.extensions.setdefault("idempotency_store", InMemoryKeyValueStore())

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.invoices import invoices_bp
    from .routes.receipts import receipts_bp
    from .routes.credit_notes import credit_notes_bp
    from .routes.refunds import refunds_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(invoices_bp)
    app.register_blueprint(receipts_bp)
    app.register_blueprint(credit_notes_bp)
    app.register_blueprint(refunds_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config["ALLOWED_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type, X-Idempotency-Key"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
