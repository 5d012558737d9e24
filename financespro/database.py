"""
financespro/database.py

Persistence gateway over the process-wide SQLAlchemy engine (connection pool).

Contract:
- query(sql, params) -> list of row mappings
- get(sql, params)   -> first row as dict, or None
- all(sql, params)   -> list of dicts
- run(sql, params)   -> first row of a RETURNING clause as dict, or None
                        (executed and committed in its own transaction)

IMPORTANT:
- Statements always use bound parameters (":name" placeholders). Never format user input into SQL.
- Every call checks a connection out of the pool inside a `with` block, so it is returned
  to the pool even when the statement raises.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


class Database:
    """Thin query helper bound to one Engine. Constructed once in create_app()."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def query(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> list:
        with self.engine.connect() as conn:
            result = conn.execute(text(sql), dict(params or {}))
            if not result.returns_rows:
                return []
            return list(result.mappings().all())

    def get(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> Optional[dict]:
        rows = self.query(sql, params)
        return dict(rows[0]) if rows else None

    def all(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> list[dict]:
        return [dict(row) for row in self.query(sql, params)]

    def run(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> Optional[dict]:
        """Execute a write statement in its own transaction (commit on success, rollback on error)."""
        with self.engine.begin() as conn:
            result = conn.execute(text(sql), dict(params or {}))
            if not result.returns_rows:
                return None
            row = result.mappings().first()
            return dict(row) if row is not None else None
