"""Listing Queries — pure query construction, pagination and backfill merge.

Tests cover:
    - list: status "all" means live statuses, sport "all" means no filter, time windows
    - personal lists: status "all" means no filter, ordering per list
    - merge_backfill: no duplicates, capped at page_size
    - has_more semantics
"""

from datetime import timedelta

from app.core.domain_types import ActivityStatus, SortOrder, TimeRange
from app.core.listing import (
    LIVE_STATUSES, PageRequest, build_backfill_query, build_joined_query,
    build_list_query, build_my_activities_query, build_recommend_query,
    has_more, merge_backfill,
)
from tests.snapshot_factory import NOW, make_snapshot


def _list(**overrides):
    args = dict(
        status="recruiting", sport="all", time_range=TimeRange.ALL,
        city=None, page=PageRequest(), now=NOW,
    )
    args.update(overrides)
    return build_list_query(**args)


# ─── list ────────────────────────────────────────────────────────

def test_list_defaults_to_recruiting_start_ascending():
    query = _list()
    assert query.statuses == (ActivityStatus.RECRUITING,)
    assert query.sports == ()
    assert query.order == SortOrder.START_ASC


def test_list_all_status_means_live_statuses():
    assert _list(status="all").statuses == LIVE_STATUSES


def test_list_sport_filter():
    assert _list(sport="tennis").sports == ("tennis",)


def test_list_today_window():
    query = _list(time_range=TimeRange.TODAY)
    assert query.start_from == NOW
    assert query.start_before == NOW + timedelta(days=1)


def test_list_week_window():
    assert _list(time_range=TimeRange.WEEK).start_before == NOW + timedelta(days=7)


def test_list_pagination_skip():
    query = _list(page=PageRequest(page=3, page_size=10))
    assert query.skip == 20
    assert query.limit == 10


# ─── personal lists ──────────────────────────────────────────────

def test_my_activities_all_status_is_unfiltered():
    query = build_my_activities_query("org", "all", PageRequest())
    assert query.statuses == ()
    assert query.organizer_id == "org"
    assert query.order == SortOrder.CREATED_DESC


def test_joined_query_filters_on_participant():
    query = build_joined_query("u1", "cancelled", PageRequest())
    assert query.participant_id == "u1"
    assert query.statuses == (ActivityStatus.CANCELLED,)


# ─── recommend ───────────────────────────────────────────────────

def test_recommend_primary_tier_uses_preferences():
    query = build_recommend_query(("tennis", "golf"), PageRequest(), NOW)
    assert query.sports == ("tennis", "golf")
    assert query.start_from == NOW
    assert query.statuses == (ActivityStatus.RECRUITING,)


def test_backfill_excludes_returned_and_orders_by_views():
    returned = [make_snapshot(), make_snapshot()]
    query = build_backfill_query(returned, remaining=5, now=NOW)
    assert set(query.exclude_ids) == {a.id for a in returned}
    assert query.order == SortOrder.VIEWS_DESC
    assert query.limit == 5


def test_merge_backfill_skips_duplicates_and_caps():
    a, b, c = make_snapshot(), make_snapshot(), make_snapshot()
    merged = merge_backfill([a], [a, b, c], page_size=2)
    assert [x.id for x in merged] == [a.id, b.id]


# ─── has_more ────────────────────────────────────────────────────

def test_has_more_only_on_full_page():
    assert has_more(20, 20)
    assert not has_more(19, 20)
    assert not has_more(0, 20)
