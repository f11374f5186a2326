"""Dialect-aware ``INSERT ... ON CONFLICT`` construction.

Postgres (production) and SQLite (tests) both support ON CONFLICT with the same
SQLAlchemy API, but each dialect ships its own ``insert`` construct.
"""

from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def conflict_insert(db: AsyncSession, table: Any):
    """Return the dialect's ``insert(table)`` supporting ``on_conflict_*``."""
    dialect = db.get_bind().dialect.name
    try:
        return _INSERTS[dialect](table)
    except KeyError:
        raise NotImplementedError(f"ON CONFLICT is not supported for {dialect}") from None
