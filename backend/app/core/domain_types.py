"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - ActivityId wraps UUID, UserId wraps str: never pass bare ids through domain logic
    - All valid states encoded as Enums: no raw string matching
    - ViewerStatus is DERIVED from the two membership sets, never stored

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (wire envelope is JSON)
    - UserId is str, not UUID: user ids are issued by the external identity service
"""

from enum import Enum, IntEnum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

ActivityId = NewType("ActivityId", UUID)
UserId = NewType("UserId", str)

# Commas delimit the stored membership index, so ids never contain one (nor whitespace)
USER_ID_PATTERN = r"^[^,\s]+$"


# ─── Enums ───────────────────────────────────────────────────────

class ActivityStatus(str, Enum):
    """Activity lifecycle states: maps to DB `status` column."""
    RECRUITING = "recruiting"
    ONGOING = "ongoing"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class ViewerStatus(str, Enum):
    """Per (activity, user) membership state."""
    NONE = "none"
    REQUESTED = "requested"
    JOINED = "joined"


class MembershipSet(str, Enum):
    """The two disjoint user-reference sets stored on an activity."""
    PARTICIPANTS = "participants"
    JOIN_REQUESTS = "join_requests"


class NotificationKind(str, Enum):
    """Events emitted by the membership workflow after a commit."""
    JOIN_REQUESTED = "join_requested"
    REQUEST_APPROVED = "request_approved"
    REQUEST_REJECTED = "request_rejected"
    ACTIVITY_CANCELLED = "activity_cancelled"


class SortOrder(str, Enum):
    """Listing orders supported by the activity store."""
    START_ASC = "start_asc"
    CREATED_DESC = "created_desc"
    VIEWS_DESC = "views_desc"


class TimeRange(str, Enum):
    """Start-time windows accepted by the list action."""
    ALL = "all"
    TODAY = "today"
    WEEK = "week"


class ResultCode(IntEnum):
    """Numeric codes carried by every response envelope."""
    OK = 0
    VALIDATION = 4001
    CONFLICT = 4002
    FORBIDDEN = 4003
    USER_NOT_FOUND = 4004
    ACTIVITY_NOT_FOUND = 4005
    INTERNAL = 5001
