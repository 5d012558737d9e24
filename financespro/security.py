"""
financespro/security.py

Token-based access control for the FinancesPro API.

Key rules:
- Bearer JWT (HS256, shared secret, fixed lifetime). No refresh, no revocation list.
- Tenant guard: Flask-Login request_loader decodes the token and exposes a Principal
  as current_user WITHOUT reading the database. Routes use @login_required.
- Admin guard: @admin_required re-reads the user row and checks account_type.
  Missing user -> 401, not an administrator -> 403.

IMPORTANT:
- Decorators must preserve wrapped function metadata to avoid Flask endpoint collisions.
  We use functools.wraps everywhere.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Any, Callable, Optional

import jwt
from flask import current_app, g, request
from flask_login import UserMixin, current_user

from .errors import InsufficientPrivilegeError, InvalidTokenError, NoTokenError, UserNotFoundError
from .extensions import db, login_manager
from .models import User

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"


class Principal(UserMixin):
    """Decoded token claims attached to the request as current_user."""

    def __init__(self, claims: dict):
        self.id = claims["id"]
        self.email = claims.get("email")
        self.role = claims.get("role")

    def get_id(self):
        return self.id

    def __repr__(self):
        return f"<Principal {self.email}>"


# ---------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------
def issue_token(user: User) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "id": user.id,
        "email": user.email,
        "role": user.account_type,
        "iat": now,
        "exp": now + timedelta(hours=current_app.config["JWT_EXPIRES_HOURS"]),
    }
    return jwt.encode(payload, current_app.config["JWT_SECRET_KEY"], algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """Return the claims. Raises jwt.ExpiredSignatureError / jwt.InvalidTokenError."""
    claims = jwt.decode(token, current_app.config["JWT_SECRET_KEY"], algorithms=[JWT_ALGORITHM])
    if not claims.get("id"):
        raise jwt.InvalidTokenError("token has no id claim")
    return claims


def _bearer_token(req) -> Optional[str]:
    header = req.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    token = header[len("Bearer "):].strip()
    return token or None


# ---------------------------------------------------------------------
# Flask-Login wiring
# ---------------------------------------------------------------------
@login_manager.request_loader
def load_principal_from_request(req) -> Optional[Principal]:
    """Tenant guard: stateless verification of the bearer token."""
    token = _bearer_token(req)
    if token is None:
        g.auth_failure = "missing"
        return None

    try:
        claims = decode_token(token)
    except jwt.ExpiredSignatureError:
        g.auth_failure = "expired"
        logger.info("auth_rejected reason=expired path=%s", req.path)
        return None
    except jwt.InvalidTokenError:
        g.auth_failure = "invalid"
        logger.info("auth_rejected reason=invalid path=%s", req.path)
        return None

    return Principal(claims)


@login_manager.unauthorized_handler
def unauthorized():
    """Called by @login_required when no principal could be loaded."""
    if g.get("auth_failure", "missing") == "missing":
        raise NoTokenError()
    raise InvalidTokenError()


def get_authenticated_user() -> User:
    """Re-read the caller's user row (401 if it vanished since the token was issued)."""
    user = db.session.get(User, current_user.id)
    if user is None:
        raise UserNotFoundError()
    return user


def admin_required(view_func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator: administrator-only. Place below @login_required."""
    @wraps(view_func)
    def wrapper(*args: Any, **kwargs: Any):
        user = get_authenticated_user()
        if not user.is_admin:
            logger.info("admin_rejected user_id=%s path=%s", user.id, request.path)
            raise InsufficientPrivilegeError()
        return view_func(*args, **kwargs)

    return wrapper
