"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell: dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - ActivityStore.commit is the ONLY membership/status write path: the candidate is
      persisted iff the stored revision still equals expected_revision
    - count_view is deliberately outside the revision guard: views are monotonic,
      not safety-critical, and must not make concurrent approvals lose their race
"""

from dataclasses import dataclass
from typing import Iterable, Protocol

from app.core.activity_state import ActivitySnapshot
from app.core.domain_types import ActivityId, UserId
from app.core.listing import ActivityQuery
from app.core.notifications import NotificationEvent


@dataclass(frozen=True)
class UserRef:
    """Resolved user reference: the only user data the engine consumes."""
    id: UserId
    nickname: str = ""
    avatar: str = ""
    level: str = ""
    bio: str = ""
    is_verified: bool = False
    sports_preferences: tuple[str, ...] = ()


class ActivityStore(Protocol):
    """Contract for activity document persistence: implemented by shell."""
    async def insert(self, snapshot: ActivitySnapshot) -> ActivitySnapshot: ...
    async def get(self, activity_id: ActivityId) -> ActivitySnapshot | None: ...
    async def count_view(self, activity_id: ActivityId) -> ActivitySnapshot | None: ...
    async def commit(
        self, candidate: ActivitySnapshot, expected_revision: int,
    ) -> ActivitySnapshot | None: ...
    async def query(self, criteria: ActivityQuery) -> list[ActivitySnapshot]: ...


class UserDirectory(Protocol):
    """Contract for user lookup: implemented by shell."""
    async def resolve(self, user_id: str) -> UserRef: ...
    async def lookup_many(self, user_ids: Iterable[str]) -> dict[str, UserRef]: ...


class NotificationSink(Protocol):
    """Contract for notification record production: implemented by shell."""
    async def emit(self, event: NotificationEvent) -> None: ...
