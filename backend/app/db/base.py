"""Declarative Base — the one metadata registry behind every Rally table.

Invariants:
    - activities, users and messages all register on Base.metadata
    - alembic env and the test fixtures create tables from this metadata only
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all Rally ORM models."""
    pass
