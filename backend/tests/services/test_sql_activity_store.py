"""SQL Activity Store — revision-guarded commit, view counting, queries against SQLite.

Tests cover:
    - insert/get round trip keeps membership order and UTC datetimes
    - commit with a stale revision returns None and leaves the row untouched
    - count_view bumps views only
    - joined lookup matches exact user ids, not prefixes; ids holding the delimiter are refused
    - concurrent approvals through the real adapter never over-enroll
    - notifications land in the messages table
"""

import asyncio
from datetime import timedelta, timezone

import pytest
from sqlalchemy import select

from app.core.activity_state import check_invariants
from app.core.domain_types import MembershipSet, NotificationKind
from app.core.errors import ConflictError
from app.core.listing import ActivityQuery, PageRequest, build_joined_query
from app.core.notifications import request_approved
from app.core.store_ops import apply_ops, guarded_push
from app.infrastructure.activity_store import SqlActivityStore
from app.infrastructure.notification_sink import SqlNotificationSink
from app.infrastructure.user_directory import SqlUserDirectory
from app.models.message import Message
from app.services.capacity_enforcer import CapacityEnforcer
from app.services.membership_workflow import MembershipWorkflow
from app.services.notification_dispatcher import NotificationDispatcher, drain_in_flight
from tests.snapshot_factory import NOW, ORGANIZER, make_snapshot


async def test_insert_get_round_trip(test_manager):
    store = SqlActivityStore(test_manager)
    activity = make_snapshot(participants=("u1", "u2"), join_requests=("u3",))
    await store.insert(activity)

    loaded = await store.get(activity.id)

    assert loaded.participants == (ORGANIZER, "u1", "u2")
    assert loaded.join_requests == ("u3",)
    assert loaded.start_time == activity.start_time
    assert loaded.start_time.tzinfo == timezone.utc
    assert loaded.location == activity.location


async def test_stale_commit_is_rejected(test_manager):
    store = SqlActivityStore(test_manager)
    activity = make_snapshot()
    await store.insert(activity)
    first = apply_ops(activity, [guarded_push(MembershipSet.JOIN_REQUESTS, "u1")], NOW)
    second = apply_ops(activity, [guarded_push(MembershipSet.JOIN_REQUESTS, "u2")], NOW)

    assert await store.commit(first, expected_revision=activity.revision) == first
    assert await store.commit(second, expected_revision=activity.revision) is None

    stored = await store.get(activity.id)
    assert stored.join_requests == ("u1",)
    assert stored.revision == 1


async def test_count_view_does_not_touch_revision(test_manager):
    store = SqlActivityStore(test_manager)
    activity = make_snapshot()
    await store.insert(activity)

    viewed = await store.count_view(activity.id)

    assert viewed.views_count == 1
    assert viewed.revision == activity.revision
    assert await store.count_view(make_snapshot().id) is None


async def test_joined_lookup_matches_exact_ids(test_manager):
    store = SqlActivityStore(test_manager)
    mine = make_snapshot(participants=("u1",))
    lookalike = make_snapshot(participants=("u10",))
    await store.insert(mine)
    await store.insert(lookalike)

    found = await store.query(build_joined_query("u1", "all", PageRequest()))

    assert [a.id for a in found] == [mine.id]



async def test_insert_refuses_ids_containing_the_index_delimiter(test_manager):
    store = SqlActivityStore(test_manager)

    with pytest.raises(ValueError):
        await store.insert(make_snapshot(participants=("a,b",)))

    assert await store.query(build_joined_query("a", "all", PageRequest())) == []

async def test_query_excludes_ids_and_limits(test_manager):
    store = SqlActivityStore(test_manager)
    items = [
        make_snapshot(start_time=NOW + timedelta(days=1, hours=h)) for h in range(3)
    ]
    for item in items:
        await store.insert(item)

    found = await store.query(ActivityQuery(exclude_ids=(items[0].id,), limit=1))

    assert [a.id for a in found] == [items[1].id]


async def test_concurrent_approvals_through_sql(test_manager):
    store = SqlActivityStore(test_manager)
    applicants = ("u1", "u2", "u3", "u4")
    activity = make_snapshot(join_requests=applicants, max_count=3)
    await store.insert(activity)
    workflow = MembershipWorkflow(
        CapacityEnforcer(store, base_delay_ms=5, clock=lambda: NOW),
        NotificationDispatcher(SqlNotificationSink(test_manager)),
    )

    results = await asyncio.gather(
        *(workflow.approve(activity.id, ORGANIZER, u) for u in applicants),
        return_exceptions=True,
    )
    await drain_in_flight()

    final = await store.get(activity.id)
    winners = [r for r in results if not isinstance(r, Exception)]
    assert final.current_count == len(final.participants) <= final.max_count
    assert len(winners) == len(final.participants) - 1
    assert check_invariants(final) == []
    assert all(isinstance(r, ConflictError) for r in results if isinstance(r, Exception))


async def test_sink_writes_message_rows(test_manager):
    sink = SqlNotificationSink(test_manager)
    activity = make_snapshot()

    await sink.emit(request_approved(activity, "u1"))

    async with test_manager.session() as db:
        rows = (await db.execute(select(Message))).scalars().all()
    assert len(rows) == 1
    assert rows[0].receiver_id == "u1"
    assert rows[0].kind == NotificationKind.REQUEST_APPROVED.value
    assert rows[0].related_id == str(activity.id)
    assert rows[0].is_read is False


async def test_user_directory_resolves_seeded_users(test_manager):
    directory = SqlUserDirectory(test_manager)

    ana = await directory.resolve("u1")
    found = await directory.lookup_many(["u1", "ghost"])

    assert ana.nickname == "Ana"
    assert set(found) == {"u1"}
