"""
Auth blueprint package (register / login / me).

Registered by financespro.create_app(); the handlers live in routes.py.
"""

from .routes import auth_bp  # noqa: F401
