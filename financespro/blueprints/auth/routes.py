"""
Authentication Routes

Provides:
- POST /api/auth/register
- POST /api/auth/login
- GET  /api/auth/me

Rules:
- Tokens are stateless bearer JWTs (24h). There is no logout/refresh endpoint.
- /me re-reads the user row: an account deleted after token issuance gets 401 here.
"""

from flask import Blueprint
from flask_login import login_required

from ... import accounts
from ...errors import success
from ...security import get_authenticated_user, issue_token
from ...utils import json_body

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


# ============================================================
# REGISTER
# ============================================================

@auth_bp.route("/register", methods=["POST"])
def register():
    """Create an "entreprise" account and return it with a token."""
    user = accounts.register(json_body())
    return success(
        {"user": user.to_dict(), "token": issue_token(user)},
        message="Compte créé avec succès",
        status=201,
    )


# ============================================================
# LOGIN
# ============================================================

@auth_bp.route("/login", methods=["POST"])
def login():
    user = accounts.authenticate(json_body())
    return success(
        {"user": user.to_dict(), "token": issue_token(user)},
        message="Connexion réussie",
    )


# ============================================================
# ME
# ============================================================

@auth_bp.route("/me", methods=["GET"])
@login_required
def me():
    """Return the caller's current user record."""
    user = get_authenticated_user()
    return success({"user": user.to_dict()})
