"""
financespro/audit.py

Mutation history for tenant records (clients, services, factures).

Each create / update / delete made through a registry adds one AuditLog row:
- actor id and email taken from the bearer token (email kept as a snapshot)
- the record's table name and id
- JSON snapshots of the columns before and/or after the change
- the caller's IP address

IMPORTANT:
- record_mutation() only adds the row to the current session. The registry
  flushes the record first and commits once afterwards, so the entry and the
  change land in the same transaction.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from flask import has_request_context, request
from flask_login import current_user

from .extensions import db
from .models import AuditLog

Snapshot = dict[str, Any]


def _json_value(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


def snapshot(record: Any) -> Snapshot:
    """Column values of a mapped record, JSON-ready."""
    return {
        column.name: _json_value(getattr(record, column.name))
        for column in record.__table__.columns
    }


def _actor() -> tuple[Optional[str], Optional[str], Optional[str]]:
    """(user id, email, ip) of the current request; all None from the CLI."""
    if not has_request_context():
        return None, None, None
    if current_user.is_authenticated:
        return current_user.get_id(), current_user.email, request.remote_addr
    return None, None, request.remote_addr


def record_mutation(
    record: Any,
    action: str,
    *,
    before: Optional[Snapshot] = None,
    after: Optional[Snapshot] = None,
) -> AuditLog:
    if record.id is None:
        raise ValueError("record must be flushed before its mutation is recorded")

    user_id, user_email, ip_address = _actor()
    entry = AuditLog(
        user_id=user_id,
        user_email=user_email,
        entity_type=record.__tablename__,
        entity_id=str(record.id),
        action=action,
        before_data=json.dumps(before, ensure_ascii=False) if before else None,
        after_data=json.dumps(after, ensure_ascii=False) if after else None,
        ip_address=ip_address,
    )
    db.session.add(entry)
    return entry
