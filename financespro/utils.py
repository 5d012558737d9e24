"""
Utility functions shared across the app. This includes:
- generate_id: opaque record keys ("client_<ms>_<rand>").
- json_body: the request body as a dict (400 otherwise).
- small parsers/validators used by the registries and the invoice engine.
"""

from __future__ import annotations

import re
import secrets
import string
import time
from datetime import date
from decimal import Decimal, InvalidOperation

from flask import request

from .errors import ValidationError

_ID_ALPHABET = string.ascii_lowercase + string.digits
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def generate_id(prefix: str) -> str:
    """
    Record key: "{prefix}_{epoch-ms}_{5 base-36 chars}".

    Collisions are possible in theory; the primary key constraint rejects them.
    """
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(5))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


def json_body() -> dict:
    """Return the JSON object sent with the request (empty dict if no body)."""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Le corps de la requête doit être un objet JSON")
    return payload


def clean_str(value) -> str | None:
    """Strip strings, map empty values to None."""
    if value is None:
        return None
    raw = str(value).strip()
    return raw or None


def is_valid_email(value) -> bool:
    return isinstance(value, str) and bool(_EMAIL_RE.match(value.strip()))


def is_number(value) -> bool:
    """JSON numbers only (bool is an int subclass and is rejected)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_decimal(value) -> Decimal | None:
    """Parse a decimal from a JSON number or a string (accepts comma or dot)."""
    if value is None or isinstance(value, bool):
        return None
    raw = str(value).strip().replace(",", ".")
    if raw == "":
        return None
    try:
        parsed = Decimal(raw)
    except (InvalidOperation, ValueError):
        return None
    if not parsed.is_finite():
        return None
    return parsed


def parse_iso_date(value) -> date | None:
    """Parse "YYYY-MM-DD" (a trailing time part is ignored)."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None
