"""Activity State — derived membership views and invariant checking.

Tests cover:
    - viewer_status derives none / requested / joined from the two sets
    - has_free_slot and is_terminal
    - check_invariants reports each violation class
"""

from dataclasses import replace

from app.core.activity_state import check_invariants, viewer_status
from app.core.domain_types import ActivityStatus, ViewerStatus
from tests.snapshot_factory import make_snapshot


# ─── viewer_status ───────────────────────────────────────────────

def test_viewer_status_for_stranger_is_none():
    assert viewer_status(make_snapshot(), "stranger") == ViewerStatus.NONE


def test_viewer_status_for_anonymous_is_none():
    assert viewer_status(make_snapshot(), None) == ViewerStatus.NONE


def test_viewer_status_for_requester_is_requested():
    snapshot = make_snapshot(join_requests=("u1",))
    assert viewer_status(snapshot, "u1") == ViewerStatus.REQUESTED


def test_viewer_status_for_participant_is_joined():
    snapshot = make_snapshot(participants=("u1",))
    assert viewer_status(snapshot, "u1") == ViewerStatus.JOINED


def test_organizer_is_joined():
    snapshot = make_snapshot()
    assert viewer_status(snapshot, snapshot.organizer_id) == ViewerStatus.JOINED


# ─── derived flags ───────────────────────────────────────────────

def test_has_free_slot_false_when_full():
    assert not make_snapshot(participants=("u1",), max_count=2).has_free_slot


def test_has_free_slot_true_below_max():
    assert make_snapshot(max_count=2).has_free_slot


def test_terminal_statuses():
    assert make_snapshot(status=ActivityStatus.CANCELLED).is_terminal
    assert make_snapshot(status=ActivityStatus.COMPLETED).is_terminal
    assert not make_snapshot(status=ActivityStatus.ONGOING).is_terminal


# ─── check_invariants ────────────────────────────────────────────

def test_consistent_snapshot_has_no_violations():
    snapshot = make_snapshot(participants=("u1",), join_requests=("u2",))
    assert check_invariants(snapshot) == []


def test_missing_organizer_is_violation():
    snapshot = make_snapshot()
    broken = replace(snapshot, participants=(), current_count=0)
    assert "organizer missing from participants" in check_invariants(broken)


def test_cancelled_activity_may_lack_organizer():
    snapshot = make_snapshot(status=ActivityStatus.CANCELLED)
    assert check_invariants(replace(snapshot, participants=(), current_count=0)) == []


def test_over_capacity_is_violation():
    snapshot = make_snapshot(participants=("u1", "u2"), max_count=2)
    assert any("exceed max_count" in v for v in check_invariants(snapshot))


def test_overlapping_sets_is_violation():
    snapshot = make_snapshot(participants=("u1",), join_requests=("u1",))
    assert any("both joined and requested" in v for v in check_invariants(snapshot))


def test_counter_drift_is_violation():
    snapshot = replace(make_snapshot(participants=("u1",)), current_count=5)
    assert any("current_count" in v for v in check_invariants(snapshot))
