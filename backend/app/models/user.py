"""User ORM — read-only profile projection consumed by the user directory.

Invariants:
    - Rows are owned by the external profile service; this engine never writes them
    - id is the opaque user reference stored in activity membership sets
"""

from datetime import datetime, timezone

from sqlalchemy import String, Text, Boolean, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class User(Base):
    """User profile: nickname, avatar and sport preferences."""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    nickname: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    avatar: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    level: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    bio: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sports_preferences: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
