"""Activity State — immutable snapshot of one activity document plus derived membership views.

Invariants:
    - organizer_id in participants while status != cancelled
    - len(participants) <= max_count
    - participants and join_requests are disjoint
    - current_count == len(participants) (denormalized counter never drifts)
    - revision increases by exactly 1 per committed mutation

Design Decisions:
    - Frozen dataclass: a snapshot is what was READ at one revision; changes produce a new
      snapshot via store_ops.apply_ops, never in-place mutation (ADR: optimistic concurrency
      needs the read state to stay intact for the revision guard)
    - Membership sets kept as tuples: ordered (organizer first) and hashable
    - ViewerStatus derived from set membership, never persisted separately
"""

from dataclasses import dataclass, field
from datetime import datetime

from app.core.domain_types import ActivityId, ActivityStatus, UserId, ViewerStatus


TERMINAL_STATUSES = frozenset({ActivityStatus.CANCELLED, ActivityStatus.COMPLETED})


@dataclass(frozen=True)
class ActivitySnapshot:
    """One activity document at a given revision: pure data, no IO."""

    id: ActivityId
    organizer_id: UserId
    title: str
    description: str
    sport: str
    start_time: datetime
    end_time: datetime
    max_count: int
    min_count: int
    created_at: datetime
    updated_at: datetime
    duration: int = 120
    category: str = ""
    cover_image: str = ""
    images: tuple[str, ...] = ()
    location: dict = field(default_factory=dict)
    gender_limit: str = "all"
    age_range: tuple[int, int] = (18, 60)
    level_requirement: str = "all"
    fee: dict = field(default_factory=dict)
    tags: tuple[str, ...] = ()
    contact_info: dict = field(default_factory=dict)
    status: ActivityStatus = ActivityStatus.RECRUITING
    participants: tuple[UserId, ...] = ()
    join_requests: tuple[UserId, ...] = ()
    current_count: int = 0
    views_count: int = 0
    likes_count: int = 0
    revision: int = 0

    @property
    def participant_count(self) -> int:
        return len(self.participants)

    @property
    def has_free_slot(self) -> bool:
        return self.participant_count < self.max_count

    @property
    def is_recruiting(self) -> bool:
        return self.status == ActivityStatus.RECRUITING

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def is_organizer(self, user_id: str | None) -> bool:
        return user_id is not None and user_id == self.organizer_id


def viewer_status(snapshot: ActivitySnapshot, user_id: str | None) -> ViewerStatus:
    """Derive the (activity, user) membership state from the two sets."""
    if user_id is None:
        return ViewerStatus.NONE
    if user_id in snapshot.participants:
        return ViewerStatus.JOINED
    if user_id in snapshot.join_requests:
        return ViewerStatus.REQUESTED
    return ViewerStatus.NONE


def check_invariants(snapshot: ActivitySnapshot) -> list[str]:
    """Return every violated invariant (empty list = consistent). Pure."""
    violations = []
    if (
        snapshot.status != ActivityStatus.CANCELLED
        and snapshot.organizer_id not in snapshot.participants
    ):
        violations.append("organizer missing from participants")
    if snapshot.participant_count > snapshot.max_count:
        violations.append(
            f"participants {snapshot.participant_count} exceed max_count {snapshot.max_count}",
        )
    overlap = set(snapshot.participants) & set(snapshot.join_requests)
    if overlap:
        violations.append(f"users both joined and requested: {sorted(overlap)}")
    if len(set(snapshot.participants)) != snapshot.participant_count:
        violations.append("duplicate participant entries")
    if len(set(snapshot.join_requests)) != len(snapshot.join_requests):
        violations.append("duplicate join request entries")
    if snapshot.current_count != snapshot.participant_count:
        violations.append(
            f"current_count {snapshot.current_count} != participants {snapshot.participant_count}",
        )
    return violations
