# backend/stockdocs/__init__.py
from __future__ import annotations

from typing import Any, Mapping

from flask import Flask, request

from .config import Config
from .extensions import db, migrate



def create_app(overrides: Mapping[str, Any] | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.delivery_notes import delivery_notes_bp
    from .routes.purchase_orders import purchase_orders_bp
    from .routes.return_notes import return_notes_bp
    from .routes.invoices import invoices_bp
    from .routes.quotes import quotes_bp
    from .routes.cash_controls import cash_controls_bp
    from .routes.sales_journals import sales_journals_bp
    from .routes.orders import orders_bp
    from .routes.settings import settings_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(delivery_notes_bp)
    app.register_blueprint(purchase_orders_bp)
    app.register_blueprint(return_notes_bp)
    app.register_blueprint(invoices_bp)
    app.register_blueprint(quotes_bp)
    app.register_blueprint(cash_controls_bp)
    app.register_blueprint(sales_journals_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(settings_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin and origin in app.config.get("CORS_ORIGINS", ()):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
