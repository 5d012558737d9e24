"""
Central place for Flask extensions.

This avoids circular imports and keeps create_app clean.
Extensions are initialized in create_app() in __init__.py, where the app context is available.
"""

from __future__ import annotations

from flask import current_app
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

# Global extension instances - these are imported and initialized in create_app() in __init__.py.
db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()

BACKEND_KEY = "financespro"


def get_backend():
    """Return the Backend container (gateway, registries, engine) built by create_app()."""
    return current_app.extensions[BACKEND_KEY]
