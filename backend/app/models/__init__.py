"""ORM Models — SQLAlchemy declarative models for persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Activity is the only entity this engine mutates; users are read, messages appended

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all / autogenerate
"""

from app.models.activity import Activity  # noqa: F401
from app.models.user import User  # noqa: F401
from app.models.message import Message  # noqa: F401
