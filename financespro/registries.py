"""
financespro/registries.py

Tenant-scoped CRUD over clients and services.

Rules:
- Every query filters on user_id. A record owned by another tenant is reported
  as NotFound (never Forbidden), so existence does not leak across tenants.
- The body is validated before any write.
- Mutations follow the audit pattern: flush -> record_mutation -> commit (once).
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import scoped_session

from .audit import record_mutation, snapshot
from .errors import NotFoundError, ValidationError, field_error
from .models import Client, Service
from .utils import clean_str, generate_id, is_valid_email, parse_decimal

logger = logging.getLogger(__name__)


class OwnedRegistry:
    """Base CRUD for models carrying a user_id column."""

    model: Any = None
    id_prefix = ""
    not_found_message = "Ressource introuvable"

    def __init__(self, session: scoped_session):
        self.session = session

    # -----------------------------------------------------------------
    # Hooks
    # -----------------------------------------------------------------
    def validate(self, payload: dict, owner_id: str, record=None) -> dict:
        """Return the fields to apply. `record` is the stored row on update, None on create."""
        raise NotImplementedError

    def apply(self, record, fields: dict, *, creating: bool) -> None:
        for key, value in fields.items():
            setattr(record, key, value)

    # -----------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------
    def _owned(self, owner_id: str):
        return self.session.query(self.model).filter(self.model.user_id == owner_id)

    def list(self, owner_id: str) -> list:
        return (
            self._owned(owner_id)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .all()
        )

    def find(self, record_id: str, owner_id: str):
        return self._owned(owner_id).filter(self.model.id == record_id).first()

    def get(self, record_id: str, owner_id: str):
        record = self.find(record_id, owner_id)
        if record is None:
            raise NotFoundError(self.not_found_message)
        return record

    # -----------------------------------------------------------------
    # Mutations
    # -----------------------------------------------------------------
    def create(self, payload: dict, owner_id: str):
        fields = self.validate(payload, owner_id)

        record = self.model(id=generate_id(self.id_prefix), user_id=owner_id)
        self.apply(record, fields, creating=True)

        self.session.add(record)
        self.session.flush()
        record_mutation(record, "CREATE", after=snapshot(record))
        self.session.commit()

        logger.info("%s_created id=%s user_id=%s", self.id_prefix, record.id, owner_id)
        return record

    def update(self, record_id: str, owner_id: str, payload: dict):
        record = self.get(record_id, owner_id)
        fields = self.validate(payload, owner_id, record=record)

        before_snapshot = snapshot(record)
        self.apply(record, fields, creating=False)

        self.session.flush()
        record_mutation(record, "UPDATE", before=before_snapshot, after=snapshot(record))
        self.session.commit()

        logger.info("%s_updated id=%s user_id=%s", self.id_prefix, record.id, owner_id)
        return record

    def delete(self, record_id: str, owner_id: str) -> bool:
        """Delete if present. Returns False for unknown (or foreign) ids; callers still report success."""
        record = self.find(record_id, owner_id)
        if record is None:
            logger.debug("%s_delete_noop id=%s user_id=%s", self.id_prefix, record_id, owner_id)
            return False

        before_snapshot = snapshot(record)
        self.session.delete(record)
        self.session.flush()
        record_mutation(record, "DELETE", before=before_snapshot)
        self.session.commit()

        logger.info("%s_deleted id=%s user_id=%s", self.id_prefix, record_id, owner_id)
        return True


class ClientRegistry(OwnedRegistry):
    model = Client
    id_prefix = "client"
    not_found_message = "Client introuvable"

    def validate(self, payload: dict, owner_id: str, record=None) -> dict:
        errors = []

        company = clean_str(payload.get("company"))
        if not company:
            errors.append(field_error("company", "Le nom de l'entreprise est obligatoire"))

        email = clean_str(payload.get("email"))
        if not is_valid_email(email):
            errors.append(field_error("email", "Un email valide est obligatoire"))

        if errors:
            raise ValidationError(errors=errors)

        return {
            "company": company,
            "contact_person": clean_str(payload.get("contact_person")),
            "email": email,
            "phone": clean_str(payload.get("phone")),
            "address": clean_str(payload.get("address")),
            "city": clean_str(payload.get("city")),
            "postal_code": clean_str(payload.get("postal_code")),
            "country": clean_str(payload.get("country")) or "Suisse",
            "category": clean_str(payload.get("category")) or "facture",
        }


class ServiceRegistry(OwnedRegistry):
    model = Service
    id_prefix = "service"
    not_found_message = "Service introuvable"

    def validate(self, payload: dict, owner_id: str, record=None) -> dict:
        errors = []

        name = clean_str(payload.get("name"))
        if not name:
            errors.append(field_error("name", "Le nom du service est obligatoire"))

        price = parse_decimal(payload.get("price"))
        if price is None:
            errors.append(field_error("price", "Le prix doit être un nombre"))
        elif price < 0:
            errors.append(field_error("price", "Le prix ne peut pas être négatif"))

        if errors:
            raise ValidationError(errors=errors)

        return {
            "name": name,
            "description": clean_str(payload.get("description")),
            "price": price,
            "category": clean_str(payload.get("category")) or "service",
        }
