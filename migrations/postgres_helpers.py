"""
Cross-dialect (PostgreSQL + SQLite) migration helpers.

Idempotent guards so a revision can be re-run against a database that was
first created with ``flask init-db``.
"""

from __future__ import annotations

from alembic import op
from sqlalchemy import inspect


def table_exists(table_name: str) -> bool:
    return table_name in inspect(op.get_bind()).get_table_names()
