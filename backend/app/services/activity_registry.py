"""Activity Registry — creation, detail, and every listing read path.

Invariants:
    - create(): startTime must be strictly in the future; the organizer is the first
      participant, current_count starts at 1, status starts at recruiting, revision at 0
    - get_detail() increments views_count exactly once per call (outside the revision guard)
    - Reads never write membership state and never dispatch notifications
    - recommend() with a short primary page is backfilled by most-viewed recruiting
      activities, without duplicates, up to page_size

Design Decisions:
    - Query construction is pure (core/listing.py); this service only sequences
      store reads and profile enrichment
    - Profiles fetched with one lookup_many per page, never per item
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable

from app.core.activity_state import ActivitySnapshot
from app.core.activity_views import detail_view, owned_view, summary_view
from app.core.domain_types import ActivityId, ActivityStatus, UserId
from app.core.errors import ActionValidationError, ActivityNotFoundError
from app.core.listing import (
    PageRequest, build_backfill_query, build_joined_query, build_list_query,
    build_my_activities_query, build_recommend_query, has_more, merge_backfill,
)
from app.core.repository_protocols import ActivityStore, UserDirectory, UserRef
from app.schemas.activity import ActivityCreate, ListFilters, MyListFilters, PageParams

logger = logging.getLogger(__name__)


class ActivityRegistry:
    """Read paths and creation for activities."""

    def __init__(
        self,
        store: ActivityStore,
        users: UserDirectory,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._store = store
        self._users = users
        self._clock = clock

    async def create(self, organizer: UserRef, payload: ActivityCreate) -> dict:
        now = self._clock()
        schedule = payload.date_time
        if schedule.start_time <= now:
            raise ActionValidationError(
                "Activity start time must be in the future", field="dateTime.startTime",
            )
        capacity = payload.participants
        snapshot = ActivitySnapshot(
            id=ActivityId(uuid.uuid4()),
            organizer_id=organizer.id,
            title=payload.title,
            description=payload.description,
            sport=payload.sport,
            category=payload.category,
            cover_image=payload.cover_image,
            images=tuple(payload.images),
            location=payload.location.model_dump(by_alias=True, exclude_none=True),
            start_time=schedule.start_time,
            end_time=schedule.end_time,
            duration=schedule.duration,
            max_count=capacity.max_count,
            min_count=capacity.min_count,
            gender_limit=capacity.gender_limit,
            age_range=capacity.age_range,
            level_requirement=capacity.level_requirement,
            fee=payload.fee.model_dump(by_alias=True),
            tags=tuple(payload.tags),
            contact_info=dict(payload.contact_info),
            status=ActivityStatus.RECRUITING,
            participants=(organizer.id,),
            current_count=1,
            created_at=now,
            updated_at=now,
        )
        created = await self._store.insert(snapshot)
        logger.info(
            f"Activity created: {created.title}",
            extra={"activity_id": str(created.id), "actor_id": organizer.id},
        )
        return detail_view(created, {organizer.id: organizer}, organizer.id)

    async def get_detail(self, activity_id: ActivityId, viewer: UserRef | None) -> dict:
        snapshot = await self._store.count_view(activity_id)
        if snapshot is None:
            raise ActivityNotFoundError(str(activity_id))
        ids = [snapshot.organizer_id, *snapshot.participants]
        if snapshot.is_organizer(viewer.id if viewer else None):
            ids.extend(snapshot.join_requests)
        profiles = await self._users.lookup_many(ids)
        return detail_view(snapshot, profiles, viewer.id if viewer else None)

    async def list_activities(self, viewer: UserRef | None, filters: ListFilters) -> dict:
        page = PageRequest(filters.page, filters.page_size)
        criteria = build_list_query(
            status=filters.status,
            sport=filters.sport,
            time_range=filters.time_range,
            city=filters.city_filter,
            page=page,
            now=self._clock(),
        )
        items = await self._store.query(criteria)
        return await self._page(items, page, viewer)

    async def recommend(self, viewer: UserRef | None, params: PageParams) -> dict:
        page = PageRequest(params.page, params.page_size)
        now = self._clock()
        preferences = viewer.sports_preferences if viewer else ()
        items = await self._store.query(build_recommend_query(preferences, page, now))
        if len(items) < page.page_size:
            backfill = await self._store.query(
                build_backfill_query(items, page.page_size - len(items), now),
            )
            items = merge_backfill(items, backfill, page.page_size)
        return await self._page(items, page, viewer)

    async def my_activities(self, organizer: UserRef, filters: MyListFilters) -> dict:
        page = PageRequest(filters.page, filters.page_size)
        items = await self._store.query(
            build_my_activities_query(organizer.id, filters.status, page),
        )
        profiles = {organizer.id: organizer}
        return {
            "activities": [owned_view(a, profiles) for a in items],
            "hasMore": has_more(len(items), page.page_size),
        }

    async def my_joined_activities(self, member: UserRef, filters: MyListFilters) -> dict:
        page = PageRequest(filters.page, filters.page_size)
        items = await self._store.query(
            build_joined_query(UserId(member.id), filters.status, page),
        )
        return await self._page(items, page, member)

    async def _page(
        self, items: list[ActivitySnapshot], page: PageRequest, viewer: UserRef | None,
    ) -> dict:
        profiles = await self._users.lookup_many(a.organizer_id for a in items)
        viewer_id = viewer.id if viewer else None
        return {
            "activities": [summary_view(a, profiles, viewer_id) for a in items],
            "hasMore": has_more(len(items), page.page_size),
        }
