"""Administration blueprint: platform figures and account status."""

from .routes import admin_bp  # noqa: F401
