"""Activity ORM — one row per activity document, membership sets stored inline.

Invariants:
    - id is UUID primary key
    - organizer_id immutable after insert
    - participants / join_requests are JSON arrays of user ids, disjoint
    - current_count mirrors len(participants) and is written in the same UPDATE
    - revision increments on every membership/status write (optimistic concurrency token)

Design Decisions:
    - JSON arrays over a join table: the activity is a single document whose guarded
      updates must touch one row only (ADR: one-row CAS is the atomicity unit)
    - participant_index denormalizes participants as ",u1,u2," for portable
      "activities I joined" lookups (LIKE works on SQLite and PostgreSQL alike)
    - city / start_time / views_count / created_at indexed for the listing orders
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, DateTime, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Activity(Base):
    """Activity document: capacity-bounded, time-scheduled group event."""
    __tablename__ = "activities"
    __table_args__ = (
        Index("ix_activities_status_start", "status", "start_time"),
        Index("ix_activities_organizer_created", "organizer_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    organizer_id: Mapped[str] = mapped_column(String(64), nullable=False)

    # Descriptive
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    sport: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    cover_image: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    location: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    fee: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    contact_info: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    # Schedule
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=120)

    # Capacity config
    max_count: Mapped[int] = mapped_column(Integer, nullable=False)
    min_count: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    gender_limit: Mapped[str] = mapped_column(String(20), nullable=False, default="all")
    age_range: Mapped[list] = mapped_column(JSON, nullable=False, default=lambda: [18, 60])
    level_requirement: Mapped[str] = mapped_column(
        String(20), nullable=False, default="all",
    )

    # Membership
    participants: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    join_requests: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    participant_index: Mapped[str] = mapped_column(Text, nullable=False, default=",")
    current_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="recruiting",
    )
    views_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    likes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    revision: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
