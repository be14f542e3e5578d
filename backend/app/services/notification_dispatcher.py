"""Notification Dispatcher — fire-and-forget, at-most-once emission of committed state changes.

Invariants:
    - dispatch() is called only AFTER the state mutation committed
    - dispatch() never awaits delivery and never raises: each event runs in its own task
    - Each emit is attempted exactly once, bounded by timeout_seconds (at-most-once)
    - Sink failures and timeouts are logged, never propagated to the mutating caller

Design Decisions:
    - Module-level in-flight set: dispatchers are built per request, but shutdown (and tests)
      must be able to wait for every detached emit via drain_in_flight()
    - No retry, no dead-letter queue: the inbox is advisory; losing a notification never
      corrupts an activity
"""

import asyncio
import logging
from typing import Iterable

from app.core.notifications import NotificationEvent
from app.core.repository_protocols import NotificationSink

logger = logging.getLogger(__name__)

# Strong references keep detached tasks alive until they finish.
_in_flight: set[asyncio.Task] = set()


class NotificationDispatcher:
    """Detaches one emit task per event; the caller continues immediately."""

    def __init__(self, sink: NotificationSink, timeout_seconds: float = 2.0):
        self._sink = sink
        self._timeout = timeout_seconds

    def dispatch(self, events: Iterable[NotificationEvent]) -> int:
        """Schedule every event for emission. Returns how many were scheduled."""
        scheduled = 0
        for event in events:
            task = asyncio.create_task(self._emit_once(event))
            _in_flight.add(task)
            task.add_done_callback(_in_flight.discard)
            scheduled += 1
        return scheduled

    async def _emit_once(self, event: NotificationEvent) -> None:
        try:
            await asyncio.wait_for(self._sink.emit(event), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Notification {event.kind.value} timed out after {self._timeout}s",
                extra={"receiver_id": event.receiver_id, "activity_id": str(event.activity_id)},
            )
        except Exception as e:
            logger.error(
                f"Notification {event.kind.value} failed: {e}",
                extra={"receiver_id": event.receiver_id, "activity_id": str(event.activity_id)},
                exc_info=True,
            )


async def drain_in_flight() -> int:
    """Wait for every scheduled emit to finish (shutdown hook, test helper).

    Returns how many tasks were awaited.
    """
    drained = 0
    while _in_flight:
        batch = list(_in_flight)
        drained += len(batch)
        await asyncio.gather(*batch, return_exceptions=True)
        _in_flight.difference_update(batch)
    return drained
