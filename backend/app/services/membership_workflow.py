"""Membership Workflow — join / approve / reject / leave / cancel as guarded transitions.

Invariants:
    - Every transition is one CapacityEnforcer.mutate() call: guards run against the
      freshest read on every attempt, so a retried request re-validates from scratch
    - Notifications are dispatched only after mutate() returned a committed snapshot
    - A rejected transition (Forbidden / Conflict / CapacityExceeded) emits nothing
    - cancel notifies every participant except the organizer exactly once

Design Decisions:
    - Plans are closures over the pure check_*/*_ops pairs: the workflow holds no rules
      of its own, it only sequences enforce -> commit -> notify
    - advance_status is an internal hook for an external scheduler (ongoing/completed),
      not reachable through the public action surface
"""

import logging

from app.core.activity_state import ActivitySnapshot
from app.core.domain_types import ActivityId, ActivityStatus, UserId
from app.core.enforce_lifecycle import check_status_transition
from app.core.enforce_membership import (
    approve_ops, cancel_ops, check_approve, check_cancel, check_leave,
    check_reject, check_request_join, leave_ops, reject_ops, request_join_ops,
)
from app.core.errors import RallyError
from app.core.notifications import (
    activity_cancelled, join_requested, request_approved, request_rejected,
)
from app.core.repository_protocols import UserRef
from app.core.store_ops import StoreOp, conditional_set
from app.services.capacity_enforcer import CapacityEnforcer
from app.services.notification_dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)


def _raise_if(error: RallyError | None, actor_id: str) -> None:
    if error:
        error.context.actor_id = actor_id
        raise error


class MembershipWorkflow:
    """Sequences guarded membership transitions and their notifications."""

    def __init__(self, enforcer: CapacityEnforcer, notifier: NotificationDispatcher):
        self._enforcer = enforcer
        self._notifier = notifier

    async def request_join(self, activity_id: ActivityId, actor: UserRef) -> ActivitySnapshot:
        def plan(snapshot: ActivitySnapshot) -> list[StoreOp]:
            _raise_if(check_request_join(snapshot, actor.id), actor.id)
            return request_join_ops(actor.id)

        committed = await self._enforcer.mutate(activity_id, plan)
        logger.info(
            "Join requested",
            extra={"activity_id": str(activity_id), "actor_id": actor.id},
        )
        self._notifier.dispatch([join_requested(committed, actor.id, actor.nickname)])
        return committed

    async def approve(
        self, activity_id: ActivityId, caller: UserId, target: UserId,
    ) -> ActivitySnapshot:
        def plan(snapshot: ActivitySnapshot) -> list[StoreOp]:
            _raise_if(check_approve(snapshot, caller, target), caller)
            return approve_ops(snapshot, target)

        committed = await self._enforcer.mutate(activity_id, plan)
        logger.info(
            f"Approved {target} ({committed.current_count}/{committed.max_count})",
            extra={"activity_id": str(activity_id), "actor_id": caller},
        )
        self._notifier.dispatch([request_approved(committed, target)])
        return committed

    async def reject(
        self, activity_id: ActivityId, caller: UserId, target: UserId,
    ) -> ActivitySnapshot:
        def plan(snapshot: ActivitySnapshot) -> list[StoreOp]:
            _raise_if(check_reject(snapshot, caller, target), caller)
            return reject_ops(target)

        committed = await self._enforcer.mutate(activity_id, plan)
        logger.info(
            f"Rejected {target}",
            extra={"activity_id": str(activity_id), "actor_id": caller},
        )
        self._notifier.dispatch([request_rejected(committed, target)])
        return committed

    async def leave(self, activity_id: ActivityId, caller: UserId) -> ActivitySnapshot:
        def plan(snapshot: ActivitySnapshot) -> list[StoreOp]:
            _raise_if(check_leave(snapshot, caller), caller)
            return leave_ops(caller)

        committed = await self._enforcer.mutate(activity_id, plan)
        logger.info(
            f"Participant left ({committed.current_count}/{committed.max_count})",
            extra={"activity_id": str(activity_id), "actor_id": caller},
        )
        return committed

    async def cancel(self, activity_id: ActivityId, caller: UserId) -> ActivitySnapshot:
        def plan(snapshot: ActivitySnapshot) -> list[StoreOp]:
            _raise_if(check_cancel(snapshot, caller), caller)
            return cancel_ops(snapshot)

        committed = await self._enforcer.mutate(activity_id, plan)
        events = activity_cancelled(committed)
        logger.info(
            f"Activity cancelled, notifying {len(events)} participants",
            extra={"activity_id": str(activity_id), "actor_id": caller},
        )
        self._notifier.dispatch(events)
        return committed

    async def advance_status(
        self, activity_id: ActivityId, target: ActivityStatus,
    ) -> ActivitySnapshot:
        """Scheduler hook: recruiting -> ongoing -> completed. No notifications."""
        def plan(snapshot: ActivitySnapshot) -> list[StoreOp]:
            if (error := check_status_transition(snapshot.status, target)):
                raise error
            return [conditional_set("status", target, expected=snapshot.status)]

        committed = await self._enforcer.mutate(activity_id, plan)
        logger.info(
            f"Status advanced to {target.value}",
            extra={"activity_id": str(activity_id)},
        )
        return committed
