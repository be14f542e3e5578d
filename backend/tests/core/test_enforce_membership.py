"""Membership Enforcement — guard order and op plans for each transition.

Tests cover:
    - request_join: not recruiting, organizer self-join, duplicates, full activity
    - approve / reject: organizer-only, pending-only, capacity
    - leave: organizer cannot leave, non-participant conflicts
    - cancel: organizer-only, terminal statuses refuse
    - ops plans applied to the checked snapshot satisfy every invariant
"""

from app.core.activity_state import check_invariants
from app.core.domain_types import ActivityStatus
from app.core.enforce_membership import (
    approve_ops, cancel_ops, check_approve, check_cancel, check_leave,
    check_reject, check_request_join, leave_ops, reject_ops, request_join_ops,
)
from app.core.errors import CapacityExceededError, ConflictError, ForbiddenError
from app.core.store_ops import apply_ops
from tests.snapshot_factory import NOW, ORGANIZER, make_snapshot


# ─── request_join ────────────────────────────────────────────────

def test_request_join_passes_for_stranger():
    assert check_request_join(make_snapshot(), "u1") is None


def test_request_join_refuses_non_recruiting():
    error = check_request_join(make_snapshot(status=ActivityStatus.ONGOING), "u1")
    assert isinstance(error, ConflictError)


def test_request_join_refuses_organizer():
    error = check_request_join(make_snapshot(), ORGANIZER)
    assert isinstance(error, ConflictError)
    assert "Organizer" in error.message


def test_request_join_refuses_participant():
    error = check_request_join(make_snapshot(participants=("u1",)), "u1")
    assert "Already joined" in error.message


def test_request_join_refuses_duplicate_request():
    error = check_request_join(make_snapshot(join_requests=("u1",)), "u1")
    assert "Already requested" in error.message


def test_request_join_refuses_full_activity():
    error = check_request_join(make_snapshot(participants=("u1",), max_count=2), "u2")
    assert isinstance(error, CapacityExceededError)


def test_request_join_ops_add_pending_request():
    snapshot = make_snapshot()
    result = apply_ops(snapshot, request_join_ops("u1"), NOW)
    assert result.join_requests == ("u1",)
    assert result.participants == snapshot.participants


# ─── approve ─────────────────────────────────────────────────────

def test_approve_requires_organizer():
    snapshot = make_snapshot(participants=("u2",), join_requests=("u1",))
    assert isinstance(check_approve(snapshot, "u2", "u1"), ForbiddenError)


def test_approve_forbidden_checked_before_state():
    snapshot = make_snapshot(status=ActivityStatus.CANCELLED)
    assert isinstance(check_approve(snapshot, "stranger", "u1"), ForbiddenError)


def test_approve_requires_pending_request():
    error = check_approve(make_snapshot(), ORGANIZER, "u1")
    assert isinstance(error, ConflictError)
    assert "no pending join request" in error.message


def test_approve_refuses_when_full():
    snapshot = make_snapshot(participants=("u2",), join_requests=("u1",), max_count=2)
    assert isinstance(check_approve(snapshot, ORGANIZER, "u1"), CapacityExceededError)


def test_approve_ops_move_user_and_count():
    snapshot = make_snapshot(join_requests=("u1",))
    assert check_approve(snapshot, ORGANIZER, "u1") is None
    result = apply_ops(snapshot, approve_ops(snapshot, "u1"), NOW)
    assert "u1" in result.participants
    assert "u1" not in result.join_requests
    assert result.current_count == 2
    assert check_invariants(result) == []


# ─── reject ──────────────────────────────────────────────────────

def test_reject_requires_organizer():
    snapshot = make_snapshot(join_requests=("u1",))
    assert isinstance(check_reject(snapshot, "u1", "u1"), ForbiddenError)


def test_reject_ops_remove_request_only():
    snapshot = make_snapshot(join_requests=("u1",))
    assert check_reject(snapshot, ORGANIZER, "u1") is None
    result = apply_ops(snapshot, reject_ops("u1"), NOW)
    assert result.join_requests == ()
    assert result.current_count == snapshot.current_count


# ─── leave ───────────────────────────────────────────────────────

def test_leave_refuses_organizer():
    assert isinstance(check_leave(make_snapshot(), ORGANIZER), ConflictError)


def test_leave_refuses_non_participant():
    error = check_leave(make_snapshot(join_requests=("u1",)), "u1")
    assert "Not a participant" in error.message


def test_leave_ops_free_a_slot():
    snapshot = make_snapshot(participants=("u1",), max_count=2)
    assert check_leave(snapshot, "u1") is None
    result = apply_ops(snapshot, leave_ops("u1"), NOW)
    assert result.participants == (ORGANIZER,)
    assert result.current_count == 1
    assert result.has_free_slot


# ─── cancel ──────────────────────────────────────────────────────

def test_cancel_requires_organizer():
    assert isinstance(check_cancel(make_snapshot(participants=("u1",)), "u1"), ForbiddenError)


def test_cancel_allowed_from_ongoing():
    assert check_cancel(make_snapshot(status=ActivityStatus.ONGOING), ORGANIZER) is None


def test_cancel_refuses_terminal_status():
    for status in (ActivityStatus.CANCELLED, ActivityStatus.COMPLETED):
        assert isinstance(check_cancel(make_snapshot(status=status), ORGANIZER), ConflictError)


def test_cancel_ops_keep_membership_sets():
    snapshot = make_snapshot(participants=("u1",), join_requests=("u2",))
    result = apply_ops(snapshot, cancel_ops(snapshot), NOW)
    assert result.status == ActivityStatus.CANCELLED
    assert result.participants == snapshot.participants
    assert result.join_requests == snapshot.join_requests
