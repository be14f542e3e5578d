"""Capacity Invariant Enforcer — optimistic read-verify-write loop around the activity store.

Invariants:
    - Every membership/status write goes through mutate(); nothing else calls store.commit()
    - Each attempt: fresh read -> pure plan (guards) -> apply_ops (primitive guards) ->
      commit conditioned on the revision that was read
    - Business-rule errors from plan/apply_ops propagate immediately, never retried
    - Revision conflicts and TransientStoreError retried up to max_attempts total,
      with exponential backoff and ±25% jitter
    - Exhausted revision conflicts raise ConcurrencyError (Conflict, 4002);
      exhausted transient failures re-raise the TransientStoreError (5001)

Design Decisions:
    - Optimistic retry over a compound SQL guard: membership is stored as JSON arrays, and
      "pull + push + increment if pending and not full" is not a portable single UPDATE
      (ADR: revision CAS on one row gives linearizability per activity)
    - N writers racing on one activity all commit when N <= max_attempts: an attempt only
      fails if another writer committed between its read and its commit. Default 5
    - The loser of an approval race re-reads, fails check_capacity, and gets
      CapacityExceededError instead of being silently enrolled
"""

import asyncio
import logging
import random
from datetime import datetime, timezone
from typing import Callable, Sequence

from app.core.activity_state import ActivitySnapshot
from app.core.domain_types import ActivityId
from app.core.errors import (
    ActivityNotFoundError, ConcurrencyError, RallyError, TransientStoreError,
)
from app.core.repository_protocols import ActivityStore
from app.core.store_ops import StoreOp, apply_ops

logger = logging.getLogger(__name__)

Plan = Callable[[ActivitySnapshot], Sequence[StoreOp]]


class CapacityEnforcer:
    """Owns the bounded optimistic retry loop for guarded activity updates."""

    def __init__(
        self,
        store: ActivityStore,
        max_attempts: int = 5,
        base_delay_ms: int = 20,
        max_delay_ms: int = 250,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._store = store
        self.max_attempts = max(1, max_attempts)
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self._clock = clock

    async def read(self, activity_id: ActivityId) -> ActivitySnapshot:
        """Single read, no retry. Raises ActivityNotFoundError."""
        snapshot = await self._store.get(activity_id)
        if snapshot is None:
            raise ActivityNotFoundError(str(activity_id))
        return snapshot

    async def mutate(self, activity_id: ActivityId, plan: Plan) -> ActivitySnapshot:
        """Apply plan's ops atomically against the latest revision. Returns the committed snapshot."""
        for attempt in range(1, self.max_attempts + 1):
            try:
                committed = await self._attempt(activity_id, plan)
            except TransientStoreError as e:
                if attempt >= self.max_attempts:
                    raise
                await self._wait(attempt, f"transient store failure ({e.operation})", activity_id)
                continue
            except RallyError as e:
                e.context.activity_id = str(activity_id)
                e.context.attempt = attempt
                raise

            if committed is not None:
                if attempt > 1:
                    logger.info(
                        f"Guarded update committed after {attempt} attempts",
                        extra={"activity_id": str(activity_id), "attempt": attempt},
                    )
                return committed

            if attempt < self.max_attempts:
                await self._wait(attempt, "revision changed", activity_id)

        logger.warning(
            f"Guarded update gave up after {self.max_attempts} attempts",
            extra={"activity_id": str(activity_id), "error_code": "CONCURRENCY_CONFLICT"},
        )
        error = ConcurrencyError(self.max_attempts)
        error.context.activity_id = str(activity_id)
        raise error

    async def _attempt(
        self, activity_id: ActivityId, plan: Plan,
    ) -> ActivitySnapshot | None:
        snapshot = await self.read(activity_id)
        ops = plan(snapshot)
        candidate = apply_ops(snapshot, ops, self._clock())
        return await self._store.commit(candidate, expected_revision=snapshot.revision)

    async def _wait(self, attempt: int, reason: str, activity_id: ActivityId) -> None:
        delay = self._backoff(attempt - 1)
        logger.warning(
            f"Retrying guarded update after {delay}ms: {reason}",
            extra={"activity_id": str(activity_id), "attempt": attempt},
        )
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311
