"""SQL Activity Store — SQLAlchemy implementation of the ActivityStore protocol.

Invariants:
    - Every primitive opens its own short session and commits before returning
    - commit() is a single UPDATE ... WHERE id = :id AND revision = :expected;
      rowcount 1 means the candidate is now the stored document, 0 means someone else won
    - count_view() is a single UPDATE views_count = views_count + 1 (atomic, no revision bump)
    - Every call bounded by timeout_seconds; a timeout surfaces as TransientStoreError
    - Rows read back from SQLite come without tzinfo; they are normalized to UTC here

Design Decisions:
    - Snapshot <-> row mapping lives only in this module: core never sees ORM objects
    - A timed-out commit may still have landed; the enforcer's retry then re-reads,
      the transition guard fails, and the caller gets Conflict instead of a double apply
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, TypeVar

from sqlalchemy import select, update

from app.core.activity_state import ActivitySnapshot
from app.core.domain_types import ActivityId, ActivityStatus, SortOrder, UserId
from app.core.errors import TransientStoreError
from app.core.listing import ActivityQuery
from app.infrastructure.database import DatabaseSessionManager
from app.models.activity import Activity

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def participant_index(participants: tuple[str, ...]) -> str:
    """Delimited membership string used for "joined by user" lookups."""
    if any("," in p for p in participants):
        raise ValueError("participant ids cannot contain the index delimiter ','")
    return "," + "".join(f"{p}," for p in participants)


def to_snapshot(row: Activity) -> ActivitySnapshot:
    return ActivitySnapshot(
        id=ActivityId(row.id),
        organizer_id=UserId(row.organizer_id),
        title=row.title,
        description=row.description,
        sport=row.sport,
        category=row.category,
        cover_image=row.cover_image,
        images=tuple(row.images or ()),
        location=dict(row.location or {}),
        tags=tuple(row.tags or ()),
        fee=dict(row.fee or {}),
        contact_info=dict(row.contact_info or {}),
        start_time=_aware(row.start_time),
        end_time=_aware(row.end_time),
        duration=row.duration,
        max_count=row.max_count,
        min_count=row.min_count,
        gender_limit=row.gender_limit,
        age_range=tuple(row.age_range or (18, 60)),
        level_requirement=row.level_requirement,
        status=ActivityStatus(row.status),
        participants=tuple(UserId(p) for p in row.participants),
        join_requests=tuple(UserId(u) for u in row.join_requests),
        current_count=row.current_count,
        views_count=row.views_count,
        likes_count=row.likes_count,
        revision=row.revision,
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


def to_row(snapshot: ActivitySnapshot) -> Activity:
    return Activity(
        id=snapshot.id,
        organizer_id=snapshot.organizer_id,
        title=snapshot.title,
        description=snapshot.description,
        sport=snapshot.sport,
        category=snapshot.category,
        cover_image=snapshot.cover_image,
        images=list(snapshot.images),
        location=dict(snapshot.location),
        city=snapshot.location.get("city") or None,
        tags=list(snapshot.tags),
        fee=dict(snapshot.fee),
        contact_info=dict(snapshot.contact_info),
        start_time=snapshot.start_time,
        end_time=snapshot.end_time,
        duration=snapshot.duration,
        max_count=snapshot.max_count,
        min_count=snapshot.min_count,
        gender_limit=snapshot.gender_limit,
        age_range=list(snapshot.age_range),
        level_requirement=snapshot.level_requirement,
        status=snapshot.status.value,
        participants=list(snapshot.participants),
        join_requests=list(snapshot.join_requests),
        participant_index=participant_index(snapshot.participants),
        current_count=snapshot.current_count,
        views_count=snapshot.views_count,
        likes_count=snapshot.likes_count,
        revision=snapshot.revision,
        created_at=snapshot.created_at,
        updated_at=snapshot.updated_at,
    )


_ORDERINGS = {
    SortOrder.START_ASC: (Activity.start_time.asc(), Activity.id.asc()),
    SortOrder.CREATED_DESC: (Activity.created_at.desc(), Activity.id.asc()),
    SortOrder.VIEWS_DESC: (
        Activity.views_count.desc(), Activity.start_time.asc(), Activity.id.asc(),
    ),
}


class SqlActivityStore:
    """ActivityStore backed by the `activities` table."""

    def __init__(self, manager: DatabaseSessionManager, timeout_seconds: float = 5.0):
        self._manager = manager
        self._timeout = timeout_seconds

    async def _bounded(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        try:
            return await asyncio.wait_for(call(), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Activity store {operation} timed out after {self._timeout}s")
            raise TransientStoreError(operation)

    async def insert(self, snapshot: ActivitySnapshot) -> ActivitySnapshot:
        async def _insert() -> ActivitySnapshot:
            async with self._manager.session() as db:
                db.add(to_row(snapshot))
                await db.commit()
            return snapshot
        return await self._bounded("insert", _insert)

    async def get(self, activity_id: ActivityId) -> ActivitySnapshot | None:
        async def _get() -> ActivitySnapshot | None:
            async with self._manager.session() as db:
                row = await db.get(Activity, activity_id)
                return to_snapshot(row) if row else None
        return await self._bounded("get", _get)

    async def count_view(self, activity_id: ActivityId) -> ActivitySnapshot | None:
        async def _count_view() -> ActivitySnapshot | None:
            async with self._manager.session() as db:
                result = await db.execute(
                    update(Activity)
                    .where(Activity.id == activity_id)
                    .values(views_count=Activity.views_count + 1)
                    .execution_options(synchronize_session=False),
                )
                if result.rowcount == 0:
                    await db.rollback()
                    return None
                row = (
                    await db.execute(select(Activity).where(Activity.id == activity_id))
                ).scalar_one()
                snapshot = to_snapshot(row)
                await db.commit()
                return snapshot
        return await self._bounded("count_view", _count_view)

    async def commit(
        self, candidate: ActivitySnapshot, expected_revision: int,
    ) -> ActivitySnapshot | None:
        async def _commit() -> ActivitySnapshot | None:
            async with self._manager.session() as db:
                result = await db.execute(
                    update(Activity)
                    .where(
                        Activity.id == candidate.id,
                        Activity.revision == expected_revision,
                    )
                    .values(
                        participants=list(candidate.participants),
                        join_requests=list(candidate.join_requests),
                        participant_index=participant_index(candidate.participants),
                        current_count=candidate.current_count,
                        status=candidate.status.value,
                        updated_at=candidate.updated_at,
                        revision=candidate.revision,
                    )
                    .execution_options(synchronize_session=False),
                )
                await db.commit()
                return candidate if result.rowcount == 1 else None
        return await self._bounded("commit", _commit)

    async def query(self, criteria: ActivityQuery) -> list[ActivitySnapshot]:
        async def _query() -> list[ActivitySnapshot]:
            async with self._manager.session() as db:
                result = await db.execute(_build_select(criteria))
                return [to_snapshot(row) for row in result.scalars().all()]
        return await self._bounded("query", _query)


def _build_select(criteria: ActivityQuery):
    stmt = select(Activity)
    if criteria.statuses:
        stmt = stmt.where(Activity.status.in_([s.value for s in criteria.statuses]))
    if criteria.sports:
        stmt = stmt.where(Activity.sport.in_(criteria.sports))
    if criteria.city:
        stmt = stmt.where(Activity.city == criteria.city)
    if criteria.start_from is not None:
        stmt = stmt.where(Activity.start_time >= criteria.start_from)
    if criteria.start_before is not None:
        stmt = stmt.where(Activity.start_time < criteria.start_before)
    if criteria.organizer_id is not None:
        stmt = stmt.where(Activity.organizer_id == criteria.organizer_id)
    if criteria.participant_id is not None:
        stmt = stmt.where(
            Activity.participant_index.contains(
                f",{criteria.participant_id},", autoescape=True,
            ),
        )
    if criteria.exclude_ids:
        stmt = stmt.where(Activity.id.notin_(criteria.exclude_ids))
    return (
        stmt.order_by(*_ORDERINGS[criteria.order])
        .offset(criteria.skip)
        .limit(criteria.limit)
    )
