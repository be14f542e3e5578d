"""Status Lifecycle Enforcement — monotonic activity status transitions.

Invariants:
    - recruiting -> {ongoing, cancelled}; ongoing -> {completed, cancelled}
    - cancelled and completed are absorbing (no outgoing transitions)
    - check_status_transition is PURE: returns error instance on violation, None on success
"""

from app.core.domain_types import ActivityStatus
from app.core.errors import ConflictError, RallyError


ALLOWED_TRANSITIONS: dict[ActivityStatus, frozenset[ActivityStatus]] = {
    ActivityStatus.RECRUITING: frozenset({ActivityStatus.ONGOING, ActivityStatus.CANCELLED}),
    ActivityStatus.ONGOING: frozenset({ActivityStatus.COMPLETED, ActivityStatus.CANCELLED}),
    ActivityStatus.CANCELLED: frozenset(),
    ActivityStatus.COMPLETED: frozenset(),
}


def check_status_transition(
    current: ActivityStatus, target: ActivityStatus,
) -> RallyError | None:
    if target not in ALLOWED_TRANSITIONS[current]:
        return ConflictError(
            f"Cannot move activity from '{current.value}' to '{target.value}'",
        )
    return None
