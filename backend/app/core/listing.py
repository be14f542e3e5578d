"""Listing Queries — pure construction of store queries for every read path.

Invariants:
    - Public listings order by start time ascending; "my activities" by created_at descending;
      recommendation backfill by views_count descending
    - skip = (page - 1) * page_size; has_more = (returned == page_size)
    - merge_backfill never returns duplicates and never exceeds page_size
    - Status "all" on the public list means the live statuses (recruiting + ongoing);
      on the personal lists it means no status filter

Design Decisions:
    - ActivityQuery is a plain value object: the store adapter translates it to SQL,
      fakes translate it to list comprehensions, and tests assert on it directly
    - Offset pagination kept for simplicity; keyset pagination on (start_time, id) is the
      replacement if listing volume grows
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from app.core.activity_state import ActivitySnapshot
from app.core.domain_types import (
    ActivityId, ActivityStatus, SortOrder, TimeRange, UserId,
)


LIVE_STATUSES = (ActivityStatus.RECRUITING, ActivityStatus.ONGOING)


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    page_size: int = 20

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass(frozen=True)
class ActivityQuery:
    """Store-agnostic description of one listing query."""
    statuses: tuple[ActivityStatus, ...] = ()
    sports: tuple[str, ...] = ()
    city: str | None = None
    start_from: datetime | None = None
    start_before: datetime | None = None
    organizer_id: UserId | None = None
    participant_id: UserId | None = None
    exclude_ids: tuple[ActivityId, ...] = ()
    order: SortOrder = SortOrder.START_ASC
    skip: int = 0
    limit: int = 20


def resolve_statuses(status: str, *, all_means_live: bool) -> tuple[ActivityStatus, ...]:
    """Map a wire status filter to the statuses it selects."""
    if status == "all":
        return LIVE_STATUSES if all_means_live else ()
    return (ActivityStatus(status),)


def time_window(
    time_range: TimeRange, now: datetime,
) -> tuple[datetime | None, datetime | None]:
    if time_range == TimeRange.TODAY:
        return now, now + timedelta(days=1)
    if time_range == TimeRange.WEEK:
        return now, now + timedelta(days=7)
    return None, None


def build_list_query(
    *,
    status: str,
    sport: str,
    time_range: TimeRange,
    city: str | None,
    page: PageRequest,
    now: datetime,
) -> ActivityQuery:
    start_from, start_before = time_window(time_range, now)
    return ActivityQuery(
        statuses=resolve_statuses(status, all_means_live=True),
        sports=() if sport == "all" else (sport,),
        city=city,
        start_from=start_from,
        start_before=start_before,
        order=SortOrder.START_ASC,
        skip=page.skip,
        limit=page.page_size,
    )


def build_recommend_query(
    preferences: tuple[str, ...], page: PageRequest, now: datetime,
) -> ActivityQuery:
    """Primary tier: future recruiting activities in the viewer's sports."""
    return ActivityQuery(
        statuses=(ActivityStatus.RECRUITING,),
        sports=preferences,
        start_from=now,
        order=SortOrder.START_ASC,
        skip=page.skip,
        limit=page.page_size,
    )


def build_backfill_query(
    returned: list[ActivitySnapshot], remaining: int, now: datetime,
) -> ActivityQuery:
    """Backfill tier: most-viewed future recruiting activities not already returned."""
    return ActivityQuery(
        statuses=(ActivityStatus.RECRUITING,),
        start_from=now,
        exclude_ids=tuple(a.id for a in returned),
        order=SortOrder.VIEWS_DESC,
        skip=0,
        limit=remaining,
    )


def build_my_activities_query(
    organizer_id: UserId, status: str, page: PageRequest,
) -> ActivityQuery:
    return ActivityQuery(
        statuses=resolve_statuses(status, all_means_live=False),
        organizer_id=organizer_id,
        order=SortOrder.CREATED_DESC,
        skip=page.skip,
        limit=page.page_size,
    )


def build_joined_query(
    participant_id: UserId, status: str, page: PageRequest,
) -> ActivityQuery:
    return ActivityQuery(
        statuses=resolve_statuses(status, all_means_live=False),
        participant_id=participant_id,
        order=SortOrder.START_ASC,
        skip=page.skip,
        limit=page.page_size,
    )


def merge_backfill(
    primary: list[ActivitySnapshot],
    backfill: list[ActivitySnapshot],
    page_size: int,
) -> list[ActivitySnapshot]:
    """Append backfill items not already present, preserving order, capped at page_size."""
    seen = {a.id for a in primary}
    merged = list(primary)
    for activity in backfill:
        if len(merged) >= page_size:
            break
        if activity.id in seen:
            continue
        seen.add(activity.id)
        merged.append(activity)
    return merged[:page_size]


def has_more(returned_count: int, page_size: int) -> bool:
    return returned_count == page_size
