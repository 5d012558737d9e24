"""
financespro/blueprints/factures/routes.py

Invoice routes (tenant-scoped).

Includes:
- CRUD over /api/factures
- GET /api/factures/stats/dashboard

IMPORTANT:
- Amounts in the body are ignored; the engine recomputes them from the articles.
- DELETE of an unknown id answers success (idempotent).
"""

from __future__ import annotations

from flask import Blueprint
from flask_login import current_user, login_required

from ...errors import success
from ...extensions import get_backend
from ...invoicing import serialize_facture
from ...utils import json_body

factures_bp = Blueprint("factures", __name__, url_prefix="/api/factures")


# ---------------------------------------------------------------------
# Lists / dashboard
# ---------------------------------------------------------------------
@factures_bp.route("", methods=["GET"])
@login_required
def list_factures():
    factures = get_backend().factures.list(current_user.id)
    return success([serialize_facture(f) for f in factures])


@factures_bp.route("/stats/dashboard", methods=["GET"])
@login_required
def dashboard_stats():
    return success(get_backend().dashboard.tenant_dashboard(current_user.id))


# ---------------------------------------------------------------------
# Single invoice
# ---------------------------------------------------------------------
@factures_bp.route("/<facture_id>", methods=["GET"])
@login_required
def get_facture(facture_id: str):
    facture = get_backend().factures.get(facture_id, current_user.id)
    return success(serialize_facture(facture))


@factures_bp.route("", methods=["POST"])
@login_required
def create_facture():
    facture = get_backend().factures.create(json_body(), current_user.id)
    return success(serialize_facture(facture), message="Facture créée avec succès", status=201)


@factures_bp.route("/<facture_id>", methods=["PUT"])
@login_required
def update_facture(facture_id: str):
    facture = get_backend().factures.update(facture_id, current_user.id, json_body())
    return success(serialize_facture(facture), message="Facture mise à jour avec succès")


@factures_bp.route("/<facture_id>", methods=["DELETE"])
@login_required
def delete_facture(facture_id: str):
    get_backend().factures.delete(facture_id, current_user.id)
    return success(message="Facture supprimée avec succès")
