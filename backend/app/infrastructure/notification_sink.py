"""SQL Notification Sink — writes one `messages` row per notification event.

Invariants:
    - One row per emit() call; the sink never deduplicates (the dispatcher is at-most-once)
    - Uses its own session: the workflow's write has already committed when this runs
"""

import logging

from app.core.notifications import NotificationEvent
from app.infrastructure.database import DatabaseSessionManager
from app.models.message import Message

logger = logging.getLogger(__name__)


class SqlNotificationSink:
    """NotificationSink backed by the `messages` inbox table."""

    def __init__(self, manager: DatabaseSessionManager):
        self._manager = manager

    async def emit(self, event: NotificationEvent) -> None:
        async with self._manager.session() as db:
            db.add(Message(
                sender_id=event.sender_id,
                receiver_id=event.receiver_id,
                type="activity",
                kind=event.kind.value,
                content=event.content,
                related_id=str(event.activity_id),
            ))
            await db.commit()
        logger.info(
            f"Notification {event.kind.value} recorded",
            extra={"receiver_id": event.receiver_id, "activity_id": str(event.activity_id)},
        )
