"""Service catalog blueprint."""

from .routes import services_bp  # noqa: F401
