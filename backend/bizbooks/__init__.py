import logging

from flask import Flask, g, request

from .config import Config
from .extensions import db, migrate


def create_app(overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    logging.getLogger("bizbooks").setLevel(app.config.get("BIZBOOKS_LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.vendors import vendors_bp
    from .routes.customers import customers_bp
    from .routes.purchase_orders import purchase_orders_bp
    from .routes.sale_orders import sale_orders_bp
    from .routes.invoices import invoices_bp
    from .routes.payments import payments_bp
    from .routes.expenses import expenses_bp
    from .routes.reports import reports_bp
    from .routes.exports import exports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(vendors_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(purchase_orders_bp)
    app.register_blueprint(sale_orders_bp)
    app.register_blueprint(invoices_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(expenses_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(exports_bp)

    allowed_origins = set(app.config.get("CORS_ALLOWED_ORIGINS") or [])

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    @app.teardown_request
    def drop_record_store(exc):
        # One RecordStore per request, even when the app context outlives it.
        g.pop("record_store", None)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
