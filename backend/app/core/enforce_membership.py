"""Membership Enforcement — guards and store-op plans for every membership transition.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - check_* return an error instance on violation, None on success: first error wins
    - *_ops return the guarded primitives that perform the transition; they assume the
      matching check_* passed against the SAME snapshot
    - Only recruiting activities accept membership changes

Design Decisions:
    - Guards return errors (not raise): same chaining idiom as validate_* helpers,
      the enforcer decides when to raise
    - Check order: actor role (Forbidden) before activity state (Conflict) before
      capacity (CapacityExceeded): a stranger never learns whether an activity is full
    - approve re-checks capacity in the plan AND the bounded_increment ceiling re-checks it
      at apply time against the freshest read
"""

from app.core.activity_state import ActivitySnapshot
from app.core.domain_types import ActivityStatus, MembershipSet, UserId
from app.core.enforce_lifecycle import check_status_transition
from app.core.errors import (
    CapacityExceededError, ConflictError, ForbiddenError, RallyError,
)
from app.core.store_ops import (
    StoreOp, bounded_increment, conditional_set, guarded_pull, guarded_push,
)


def check_recruiting(snapshot: ActivitySnapshot) -> RallyError | None:
    if not snapshot.is_recruiting:
        return ConflictError(
            f"Activity is not recruiting (status: {snapshot.status.value})",
        )
    return None


def check_organizer(snapshot: ActivitySnapshot, caller: UserId, verb: str) -> RallyError | None:
    if not snapshot.is_organizer(caller):
        return ForbiddenError(f"Only the organizer can {verb}")
    return None


def check_capacity(snapshot: ActivitySnapshot) -> RallyError | None:
    if not snapshot.has_free_slot:
        return CapacityExceededError(snapshot.max_count)
    return None


# ─── request_join (NONE -> REQUESTED) ───────────────────────────

def check_request_join(snapshot: ActivitySnapshot, actor: UserId) -> RallyError | None:
    if (error := check_recruiting(snapshot)):
        return error
    if snapshot.is_organizer(actor):
        return ConflictError("Organizer cannot join their own activity")
    if actor in snapshot.participants:
        return ConflictError("Already joined this activity")
    if actor in snapshot.join_requests:
        return ConflictError("Already requested to join this activity")
    return check_capacity(snapshot)


def request_join_ops(actor: UserId) -> list[StoreOp]:
    return [guarded_push(MembershipSet.JOIN_REQUESTS, actor)]


# ─── approve (REQUESTED -> JOINED) ──────────────────────────────

def check_approve(
    snapshot: ActivitySnapshot, caller: UserId, target: UserId,
) -> RallyError | None:
    return (
        check_organizer(snapshot, caller, "approve join requests")
        or check_recruiting(snapshot)
        or _check_pending(snapshot, target)
        or check_capacity(snapshot)
    )


def approve_ops(snapshot: ActivitySnapshot, target: UserId) -> list[StoreOp]:
    return [
        guarded_pull(MembershipSet.JOIN_REQUESTS, target),
        guarded_push(MembershipSet.PARTICIPANTS, target),
        bounded_increment("current_count", 1, floor=1, ceiling=snapshot.max_count),
    ]


# ─── reject (REQUESTED -> NONE) ─────────────────────────────────

def check_reject(
    snapshot: ActivitySnapshot, caller: UserId, target: UserId,
) -> RallyError | None:
    return (
        check_organizer(snapshot, caller, "reject join requests")
        or check_recruiting(snapshot)
        or _check_pending(snapshot, target)
    )


def reject_ops(target: UserId) -> list[StoreOp]:
    return [guarded_pull(MembershipSet.JOIN_REQUESTS, target)]


# ─── leave (JOINED -> NONE) ─────────────────────────────────────

def check_leave(snapshot: ActivitySnapshot, caller: UserId) -> RallyError | None:
    if (error := check_recruiting(snapshot)):
        return error
    if snapshot.is_organizer(caller):
        return ConflictError("Organizer cannot leave their own activity")
    if caller not in snapshot.participants:
        return ConflictError("Not a participant of this activity")
    return None


def leave_ops(caller: UserId) -> list[StoreOp]:
    return [
        guarded_pull(MembershipSet.PARTICIPANTS, caller),
        bounded_increment("current_count", -1, floor=1),
    ]


# ─── cancel (non-terminal -> CANCELLED) ─────────────────────────

def check_cancel(snapshot: ActivitySnapshot, caller: UserId) -> RallyError | None:
    return (
        check_organizer(snapshot, caller, "cancel the activity")
        or check_status_transition(snapshot.status, ActivityStatus.CANCELLED)
    )


def cancel_ops(snapshot: ActivitySnapshot) -> list[StoreOp]:
    return [conditional_set("status", ActivityStatus.CANCELLED, expected=snapshot.status)]


# ─── helpers ────────────────────────────────────────────────────

def _check_pending(snapshot: ActivitySnapshot, target: UserId) -> RallyError | None:
    if target not in snapshot.join_requests:
        return ConflictError(f"User '{target}' has no pending join request")
    return None
