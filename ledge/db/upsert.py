"""
Dialect-aware INSERT ... ON CONFLICT statements.

PostgreSQL in production, SQLite in tests; both support the same
``on_conflict_do_update`` / ``on_conflict_do_nothing`` API.
"""

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession


def insert_for(session: AsyncSession, model):
    """
    Build a dialect-specific ``insert(model)`` for the session's bind.

    Raises:
        ValueError: For dialects without ON CONFLICT support
    """
    dialect = session.get_bind().dialect.name

    if dialect == "postgresql":
        return pg_insert(model)
    if dialect == "sqlite":
        return sqlite_insert(model)

    raise ValueError(f"Upsert not supported for dialect: {dialect}")
