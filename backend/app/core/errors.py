"""Error Hierarchy — typed, categorized exceptions for all Rally failure modes.

Invariants:
    - Every error has a numeric code (ResultCode), category (ErrorCategory), severity (ErrorSeverity)
    - Business-rule errors (4xxx) are returned to the caller as envelopes, never as crashes
    - Infrastructure errors (5001) never leak internal details in the envelope message
    - to_response() produces the uniform {code, message, data, timestamp} envelope

Design Decisions:
    - Single hierarchy with RallyError base: ActionDispatch and the FastAPI global
      handler catch all (ADR: uniform error shape)
    - CapacityExceededError subclasses ConflictError: callers that only care about
      "state guard violated" handle both with one except clause
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone

from app.core.domain_types import ResultCode

INTERNAL_MESSAGE = "Internal server error"


def envelope(
    code: int, message: str, data: Any = None, at: datetime | None = None,
) -> dict:
    """The one response shape every action and transport failure uses."""
    at = at or datetime.now(timezone.utc)
    return {
        "code": int(code),
        "message": message,
        "data": data,
        "timestamp": int(at.timestamp() * 1000),
    }


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    TIMEOUT = "timeout"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    activity_id: str | None = None
    actor_id: str | None = None
    action: str | None = None
    attempt: int | None = None
    debug_info: dict[str, Any] | None = None


class RallyError(Exception):
    """Base exception for all Rally errors."""

    def __init__(
        self,
        message: str,
        code: ResultCode,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self, data: Any = None) -> dict:
        """Convert to the standard result envelope."""
        return envelope(self.code, self.message, data, at=self.context.timestamp)


# ─── Domain Errors (4xxx) ───────────────────────────────────────

class ActionValidationError(RallyError):
    """Malformed or missing input. Never retried."""
    def __init__(
        self, message: str, field: str | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, ResultCode.VALIDATION, ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.field = field


class ConflictError(RallyError):
    """State guard violated: duplicate request, wrong pending state, lost race."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, ResultCode.CONFLICT, ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )


class CapacityExceededError(ConflictError):
    """No free participant slot left at commit time."""
    def __init__(
        self, max_count: int, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Activity is full ({max_count}/{max_count})", context,
        )
        self.max_count = max_count


class ConcurrencyError(ConflictError):
    """Optimistic retries exhausted against concurrent writers."""
    def __init__(self, attempts: int, context: ErrorContext | None = None):
        super().__init__(
            f"Activity was modified concurrently; gave up after {attempts} attempt(s)",
            context,
        )
        self.attempts = attempts


class ForbiddenError(RallyError):
    """Actor lacks the role required for the action."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, ResultCode.FORBIDDEN, ErrorCategory.FORBIDDEN,
            ErrorSeverity.WARNING, context, 403,
        )


class UserNotFoundError(RallyError):
    """Actor id does not resolve in the user directory."""
    def __init__(self, user_id: str, context: ErrorContext | None = None):
        super().__init__(
            f"User '{user_id}' not found",
            ResultCode.USER_NOT_FOUND, ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )
        self.user_id = user_id


class ActivityNotFoundError(RallyError):
    """Activity id does not resolve."""
    def __init__(self, activity_id: str, context: ErrorContext | None = None):
        super().__init__(
            f"Activity '{activity_id}' not found",
            ResultCode.ACTIVITY_NOT_FOUND, ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )
        self.activity_id = activity_id


# ─── Infrastructure Errors (5001) ───────────────────────────────

class TransientStoreError(RallyError):
    """Store I/O timed out or hit an operational error. Retryable for guarded updates."""
    def __init__(self, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Store {operation} failed transiently",
            ResultCode.INTERNAL, ErrorCategory.TIMEOUT,
            ErrorSeverity.ERROR, context, 503,
        )
        self.operation = operation


class DatabaseError(RallyError):
    """Database operation failed (non-retryable)."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            ResultCode.INTERNAL, ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class InvariantViolationError(RallyError):
    """A candidate state broke an activity invariant. Indicates a bug, never a user error."""
    def __init__(self, violations: list[str], context: ErrorContext | None = None):
        super().__init__(
            f"Activity invariants violated: {'; '.join(violations)}",
            ResultCode.INTERNAL, ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.violations = violations
