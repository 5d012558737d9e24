"""
financespro/blueprints/factures/__init__.py

Blueprint package export.

IMPORTANT:
- Must expose factures_bp for app factory registration.
"""

from __future__ import annotations

from .routes import factures_bp  # noqa: F401
