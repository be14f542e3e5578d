"""Store Primitives — the four guarded single-document operations and their pure application.

Invariants:
    - Exactly four primitives: conditional_set, guarded_push, guarded_pull, bounded_increment
    - Every primitive carries its own guard; a failed guard aborts the WHOLE op list
    - apply_ops is PURE: no IO, returns a new snapshot (revision + 1, updated_at = now)
    - apply_ops never returns a snapshot that fails check_invariants

Design Decisions:
    - Ops as frozen dataclasses, applied client-side: the SQL row stores membership as JSON
      arrays, so "pull + push + increment if pending and not full" cannot be one portable
      UPDATE expression. The adapter instead commits the applied candidate under a revision
      guard (ADR: optimistic read-verify-write, see capacity_enforcer)
    - Guard failures raise RallyError subclasses: the enforcer must stop, not retry,
      when the fresh read already violates a guard
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Sequence, Union

from app.core.activity_state import ActivitySnapshot, check_invariants
from app.core.domain_types import ActivityStatus, MembershipSet, UserId
from app.core.errors import (
    CapacityExceededError, ConflictError, InvariantViolationError,
)


SETTABLE_FIELDS = frozenset({"status"})
COUNTER_FIELDS = frozenset({"current_count"})

_ANY = object()


@dataclass(frozen=True)
class ConditionalSet:
    """Set `field` to `value` only if it currently equals `expected` (or unconditionally)."""
    field: str
    value: Any
    expected: Any = _ANY


@dataclass(frozen=True)
class GuardedPush:
    """Append `user_id` to a membership set only if absent."""
    target: MembershipSet
    user_id: UserId


@dataclass(frozen=True)
class GuardedPull:
    """Remove `user_id` from a membership set only if present."""
    target: MembershipSet
    user_id: UserId


@dataclass(frozen=True)
class BoundedIncrement:
    """Add `delta` to a counter only if the result stays within [floor, ceiling]."""
    field: str
    delta: int
    floor: int = 0
    ceiling: int | None = None


StoreOp = Union[ConditionalSet, GuardedPush, GuardedPull, BoundedIncrement]


# ─── Constructors ────────────────────────────────────────────────

def conditional_set(field: str, value: Any, expected: Any = _ANY) -> ConditionalSet:
    if field not in SETTABLE_FIELDS:
        raise ValueError(f"field '{field}' is not conditionally settable")
    return ConditionalSet(field, value, expected)


def guarded_push(target: MembershipSet, user_id: UserId) -> GuardedPush:
    return GuardedPush(target, user_id)


def guarded_pull(target: MembershipSet, user_id: UserId) -> GuardedPull:
    return GuardedPull(target, user_id)


def bounded_increment(
    field: str, delta: int, *, floor: int = 0, ceiling: int | None = None,
) -> BoundedIncrement:
    if field not in COUNTER_FIELDS:
        raise ValueError(f"field '{field}' is not a bounded counter")
    return BoundedIncrement(field, delta, floor, ceiling)


# ─── Application ─────────────────────────────────────────────────

def _set_name(target: MembershipSet) -> str:
    return target.value


def _apply_one(snapshot: ActivitySnapshot, op: StoreOp) -> ActivitySnapshot:
    if isinstance(op, ConditionalSet):
        current = getattr(snapshot, op.field)
        if op.expected is not _ANY and current != op.expected:
            raise ConflictError(
                f"{op.field} is '{_display(current)}', expected '{_display(op.expected)}'",
            )
        return replace(snapshot, **{op.field: op.value})

    if isinstance(op, GuardedPush):
        members = getattr(snapshot, _set_name(op.target))
        if op.user_id in members:
            raise ConflictError(f"User '{op.user_id}' already in {op.target.value}")
        return replace(snapshot, **{_set_name(op.target): (*members, op.user_id)})

    if isinstance(op, GuardedPull):
        members = getattr(snapshot, _set_name(op.target))
        if op.user_id not in members:
            raise ConflictError(f"User '{op.user_id}' not in {op.target.value}")
        remaining = tuple(m for m in members if m != op.user_id)
        return replace(snapshot, **{_set_name(op.target): remaining})

    if isinstance(op, BoundedIncrement):
        result = getattr(snapshot, op.field) + op.delta
        if op.ceiling is not None and result > op.ceiling:
            raise CapacityExceededError(op.ceiling)
        if result < op.floor:
            raise ConflictError(f"{op.field} would drop below {op.floor}")
        return replace(snapshot, **{op.field: result})

    raise TypeError(f"Unknown store op: {op!r}")


def _display(value: Any) -> Any:
    return value.value if isinstance(value, ActivityStatus) else value


def apply_ops(
    snapshot: ActivitySnapshot, ops: Sequence[StoreOp], now: datetime,
) -> ActivitySnapshot:
    """Apply all ops in order against `snapshot`. All-or-nothing; pure."""
    candidate = snapshot
    for op in ops:
        candidate = _apply_one(candidate, op)
    candidate = replace(
        candidate, revision=snapshot.revision + 1, updated_at=now,
    )
    violations = check_invariants(candidate)
    if violations:
        raise InvariantViolationError(violations)
    return candidate
