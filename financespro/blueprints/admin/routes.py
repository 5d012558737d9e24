"""
financespro/blueprints/admin/routes.py

Admin Routes – Platform Administration

Includes:
- Platform statistics, user directory, companies overview, recent activity
- User status changes (active / inactive / suspended)

SECURITY:
- Every route is @login_required + @admin_required: the user row is re-read and
  account_type must be "administrateur" (401 if the user vanished, 403 otherwise).
- Figures are read-only SQL aggregations (see dashboard.py).
"""

from __future__ import annotations

from flask import Blueprint
from flask_login import login_required

from ... import accounts
from ...errors import success
from ...extensions import get_backend
from ...security import admin_required
from ...utils import json_body

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.route("/stats", methods=["GET"])
@login_required
@admin_required
def stats():
    return success(get_backend().dashboard.platform_stats())


@admin_bp.route("/users", methods=["GET"])
@login_required
@admin_required
def list_users():
    """All accounts, newest first."""
    return success(get_backend().dashboard.list_users())


@admin_bp.route("/users/<user_id>", methods=["GET"])
@login_required
@admin_required
def user_detail(user_id: str):
    """One account with its client / service / invoice counts and paid revenue."""
    return success(get_backend().dashboard.user_detail(user_id))


@admin_bp.route("/companies", methods=["GET"])
@login_required
@admin_required
def companies():
    return success(get_backend().dashboard.list_companies())


@admin_bp.route("/recent-activity", methods=["GET"])
@login_required
@admin_required
def recent_activity():
    return success(get_backend().dashboard.recent_activity())


@admin_bp.route("/users/<user_id>/status", methods=["PUT"])
@login_required
@admin_required
def update_user_status(user_id: str):
    """
    Change an account status.

    Non-active accounts cannot log in. Tokens already issued stay valid until they expire.
    """
    user = accounts.set_status(user_id, json_body().get("status"))
    return success(user.to_dict(), message="Statut de l'utilisateur mis à jour avec succès")
