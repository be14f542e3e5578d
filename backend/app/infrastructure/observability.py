"""Structured Logging — one JSON line per record, tagged with the action being served.

Invariants:
    - Every record carries timestamp, level, logger and message
    - activity_id, actor_id, action, error_code, attempt, receiver_id and path are
      emitted only when set, either via extra= or via the bound action context
    - Context bound by bind_action_context() reaches every record logged while the action
      runs, including records from the enforcer and the store adapter
    - setup_logging() is idempotent: a second call replaces the Rally handler

Design Decisions:
    - Plain logging + a small JSONFormatter, no logging dependency
    - contextvars carry the action context: each asyncio task copies it at creation, so
      concurrent actions on one loop stay apart
    - fmt="text" is for local runs and tests
"""

import json
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Iterator

_bound: ContextVar[tuple[str | None, str | None]] = ContextVar(
    "rally_action_context", default=(None, None),
)

RECORD_FIELDS = (
    "activity_id", "actor_id", "action", "error_code", "attempt", "receiver_id", "path",
)
TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s [%(action)s] %(message)s"


@contextmanager
def bind_action_context(action: str, actor_id: str | None) -> Iterator[None]:
    token = _bound.set((action, actor_id))
    try:
        yield
    finally:
        _bound.reset(token)


class ActionContextFilter(logging.Filter):
    """Fill action/actor_id from the bound context unless the call site set them."""

    def filter(self, record: logging.LogRecord) -> bool:
        action, actor_id = _bound.get()
        if getattr(record, "action", None) is None:
            record.action = action
        if getattr(record, "actor_id", None) is None:
            record.actor_id = actor_id
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (name, value)
            for name in RECORD_FIELDS
            if (value := getattr(record, name, None)) is not None
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class _RallyHandler(logging.StreamHandler):
    pass


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    handler = _RallyHandler()
    handler.addFilter(ActionContextFilter())
    handler.setFormatter(JSONFormatter() if fmt == "json" else logging.Formatter(TEXT_FORMAT))
    root = logging.getLogger()
    for existing in [h for h in root.handlers if isinstance(h, _RallyHandler)]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
