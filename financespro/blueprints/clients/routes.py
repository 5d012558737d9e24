"""
Client routes (tenant-scoped).

GET|POST /api/clients, GET|PUT|DELETE /api/clients/<id>
"""

from flask import Blueprint
from flask_login import current_user, login_required

from ...errors import success
from ...extensions import get_backend
from ...utils import json_body

clients_bp = Blueprint("clients", __name__, url_prefix="/api/clients")


@clients_bp.route("", methods=["GET"])
@login_required
def list_clients():
    clients = get_backend().clients.list(current_user.id)
    return success([c.to_dict() for c in clients])


@clients_bp.route("/<client_id>", methods=["GET"])
@login_required
def get_client(client_id: str):
    client = get_backend().clients.get(client_id, current_user.id)
    return success(client.to_dict())


@clients_bp.route("", methods=["POST"])
@login_required
def create_client():
    client = get_backend().clients.create(json_body(), current_user.id)
    return success(client.to_dict(), message="Client créé avec succès", status=201)


@clients_bp.route("/<client_id>", methods=["PUT"])
@login_required
def update_client(client_id: str):
    client = get_backend().clients.update(client_id, current_user.id, json_body())
    return success(client.to_dict(), message="Client mis à jour avec succès")


@clients_bp.route("/<client_id>", methods=["DELETE"])
@login_required
def delete_client(client_id: str):
    # Unknown ids are not distinguished from deleted ones.
    get_backend().clients.delete(client_id, current_user.id)
    return success(message="Client supprimé avec succès")
