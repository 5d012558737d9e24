"""
Service catalog routes (tenant-scoped).

GET|POST /api/services, GET|PUT|DELETE /api/services/<id>
"""

from flask import Blueprint
from flask_login import current_user, login_required

from ...errors import success
from ...extensions import get_backend
from ...utils import json_body

services_bp = Blueprint("services", __name__, url_prefix="/api/services")


@services_bp.route("", methods=["GET"])
@login_required
def list_services():
    services = get_backend().services.list(current_user.id)
    return success([s.to_dict() for s in services])


@services_bp.route("/<service_id>", methods=["GET"])
@login_required
def get_service(service_id: str):
    service = get_backend().services.get(service_id, current_user.id)
    return success(service.to_dict())


@services_bp.route("", methods=["POST"])
@login_required
def create_service():
    service = get_backend().services.create(json_body(), current_user.id)
    return success(service.to_dict(), message="Service créé avec succès", status=201)


@services_bp.route("/<service_id>", methods=["PUT"])
@login_required
def update_service(service_id: str):
    service = get_backend().services.update(service_id, current_user.id, json_body())
    return success(service.to_dict(), message="Service mis à jour avec succès")


@services_bp.route("/<service_id>", methods=["DELETE"])
@login_required
def delete_service(service_id: str):
    get_backend().services.delete(service_id, current_user.id)
    return success(message="Service supprimé avec succès")
