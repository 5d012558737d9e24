"""
financespro/__init__.py

Flask application factory for the FinancesPro Suisse API.

Requirements:
- JSON only: every response (including errors) is a {status, message?, data?, errors?} envelope.
- One SQLAlchemy engine per process (SQLite for dev, PostgreSQL-ready). The gateway,
  registries and invoice engine receive it by reference through the Backend container.
- Tenant isolation is enforced server-side in every registry query.
"""

from __future__ import annotations

import logging
import logging.config
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

import click
from flask import Flask, request

from .extensions import BACKEND_KEY, db, login_manager, migrate

if TYPE_CHECKING:
    from .dashboard import DashboardAggregator
    from .database import Database
    from .invoicing import FactureEngine
    from .registries import ClientRegistry, ServiceRegistry

logger = logging.getLogger(__name__)


@dataclass
class Backend:
    """Process-wide services shared by the blueprints."""

    database: Database
    clients: ClientRegistry
    services: ServiceRegistry
    factures: FactureEngine
    dashboard: DashboardAggregator


def _configure_logging(app: Flask) -> None:
    level = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "default"},
        },
        "loggers": {
            "financespro": {"level": level, "handlers": ["console"], "propagate": False},
        },
    })


def create_app(test_config: dict | None = None) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object("config.Config")
    if test_config:
        app.config.update(test_config)

    _configure_logging(app)

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # Registers the request loader / unauthorized handler on login_manager.
    from . import security  # noqa: F401
    from .errors import register_error_handlers

    register_error_handlers(app)

    # ----------------------------------------------------------------------
    # Backend wiring (single pool, injected by reference)
    # ----------------------------------------------------------------------
    from .dashboard import DashboardAggregator
    from .database import Database
    from .invoicing import FactureEngine
    from .registries import ClientRegistry, ServiceRegistry

    with app.app_context():
        database = Database(db.engine)

    app.extensions[BACKEND_KEY] = Backend(
        database=database,
        clients=ClientRegistry(db.session),
        services=ServiceRegistry(db.session),
        factures=FactureEngine(
            db.session,
            database,
            tva_rate=Decimal(str(app.config["TVA_RATE"])),
            number_prefix=app.config["INVOICE_NUMBER_PREFIX"],
            number_width=app.config["INVOICE_NUMBER_WIDTH"],
        ),
        dashboard=DashboardAggregator(database),
    )

    # ----------------------------------------------------------------------
    # Blueprints
    # ----------------------------------------------------------------------
    from .blueprints.admin import admin_bp
    from .blueprints.auth import auth_bp
    from .blueprints.clients import clients_bp
    from .blueprints.factures import factures_bp
    from .blueprints.services import services_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(clients_bp)
    app.register_blueprint(services_bp)
    app.register_blueprint(factures_bp)
    app.register_blueprint(admin_bp)

    @app.after_request
    def _log_request(response):
        logger.info("request method=%s path=%s status=%s", request.method, request.path, response.status_code)
        return response

    # ----------------------------------------------------------------------
    # CLI
    # ----------------------------------------------------------------------
    @app.cli.command("init-db")
    def init_db_command():
        """Create all tables (use `flask db upgrade` once migrations exist)."""
        db.create_all()
        click.echo("Database tables created.")

    @app.cli.command("create-admin")
    @click.option("--email", required=True)
    @click.option("--password", required=True)
    @click.option("--full-name", default="Administrateur")
    @click.option("--company", default="FinancesPro Suisse")
    def create_admin_command(email, password, full_name, company):
        """Bootstrap an administrator account."""
        from .accounts import create_administrator
        from .errors import ValidationError

        try:
            user = create_administrator(email, password, full_name, company)
        except ValidationError as exc:
            raise click.ClickException(exc.message)
        click.echo(f"Administrator {user.email} created.")

    @app.cli.command("mark-overdue")
    @click.option("--today", default=None, help="Reference date (YYYY-MM-DD), defaults to today.")
    def mark_overdue_command(today):
        """Move pending invoices past their due date to "overdue"."""
        reference = date.fromisoformat(today) if today else None
        count = app.extensions[BACKEND_KEY].factures.mark_overdue(reference)
        click.echo(f"{count} invoice(s) marked overdue.")

    # ----------------------------------------------------------------------
    # Home
    # ----------------------------------------------------------------------
    @app.route("/")
    def index():
        return {
            "message": f"Welcome to {app.config['APP_NAME']} API",
            "version": app.config["APP_VERSION"],
            "status": "active",
        }

    return app
