"""Initial schema — activities, users, messages.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("nickname", sa.String(100), nullable=False, server_default=""),
        sa.Column("avatar", sa.String(500), nullable=False, server_default=""),
        sa.Column("level", sa.String(20), nullable=False, server_default=""),
        sa.Column("bio", sa.Text, nullable=False, server_default=""),
        sa.Column("is_verified", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("sports_preferences", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "activities",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("organizer_id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("sport", sa.String(50), nullable=False),
        sa.Column("category", sa.String(50), nullable=False, server_default=""),
        sa.Column("cover_image", sa.String(500), nullable=False, server_default=""),
        sa.Column("images", sa.JSON, nullable=False),
        sa.Column("location", sa.JSON, nullable=False),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("tags", sa.JSON, nullable=False),
        sa.Column("fee", sa.JSON, nullable=False),
        sa.Column("contact_info", sa.JSON, nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration", sa.Integer, nullable=False, server_default="120"),
        sa.Column("max_count", sa.Integer, nullable=False),
        sa.Column("min_count", sa.Integer, nullable=False, server_default="2"),
        sa.Column("gender_limit", sa.String(20), nullable=False, server_default="all"),
        sa.Column("age_range", sa.JSON, nullable=False),
        sa.Column("level_requirement", sa.String(20), nullable=False, server_default="all"),
        sa.Column("participants", sa.JSON, nullable=False),
        sa.Column("join_requests", sa.JSON, nullable=False),
        sa.Column("participant_index", sa.Text, nullable=False, server_default=","),
        sa.Column("current_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="recruiting"),
        sa.Column("views_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("likes_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("revision", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_activities_sport", "activities", ["sport"])
    op.create_index("ix_activities_city", "activities", ["city"])
    op.create_index("ix_activities_status_start", "activities", ["status", "start_time"])
    op.create_index(
        "ix_activities_organizer_created", "activities", ["organizer_id", "created_at"],
    )

    op.create_table(
        "messages",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("sender_id", sa.String(64), nullable=False),
        sa.Column("receiver_id", sa.String(64), nullable=False),
        sa.Column("type", sa.String(20), nullable=False, server_default="activity"),
        sa.Column("kind", sa.String(30), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("related_id", sa.String(64), nullable=True),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_messages_receiver_id", "messages", ["receiver_id"])


def downgrade() -> None:
    op.drop_index("ix_messages_receiver_id", table_name="messages")
    op.drop_table("messages")
    op.drop_index("ix_activities_organizer_created", table_name="activities")
    op.drop_index("ix_activities_status_start", table_name="activities")
    op.drop_index("ix_activities_city", table_name="activities")
    op.drop_index("ix_activities_sport", table_name="activities")
    op.drop_table("activities")
    op.drop_table("users")
