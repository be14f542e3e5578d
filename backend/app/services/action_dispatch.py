"""Action Dispatch — explicit routing from action name to handler, wrapped in the result envelope.

Invariants:
    - Every action->handler mapping is visible in one dict: no getattr magic
    - execute() NEVER raises: every outcome is an envelope {code, message, data, timestamp}
    - Check order per action: payload validation (4001) -> actor resolution (4004) ->
      activity lookup (4005) -> role / state / capacity guards (4003 / 4002)
    - Unexpected exceptions are logged with traceback and surface only as 5001
    - Every 5001 envelope carries the same generic message; the detail stays in the log
    - action/actor bound to every log record emitted while the action runs

Design Decisions:
    - Explicit dict over getattr: adding an action requires editing _handlers
      (ADR: ExMA no convention-over-config)
    - Read actions (detail / list / recommend) accept an anonymous or unknown actor and
      show viewerStatus "none"; write actions and personal lists require a known actor
    - advance_status is deliberately absent: scheduler hook only
"""

import logging
import re
from typing import Any, Awaitable, Callable, TypeVar

from pydantic import BaseModel, ValidationError

from app.core.domain_types import (
    USER_ID_PATTERN, ActivityId, ResultCode, UserId, ViewerStatus,
)
from app.core.errors import INTERNAL_MESSAGE, ActionValidationError, RallyError, envelope
from app.core.repository_protocols import UserDirectory, UserRef
from app.infrastructure.observability import bind_action_context
from app.schemas.activity import (
    ActivityCreate, ActivityRef, ListFilters, MemberDecision, MyListFilters, PageParams,
)
from app.services.activity_registry import ActivityRegistry
from app.services.membership_workflow import MembershipWorkflow

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)
Handler = Callable[[str | None, dict], Awaitable[Any]]


def _parse(model: type[M], data: dict) -> M:
    """Validate one action payload; the first failing field becomes a 4001."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(loc) for loc in first["loc"]) or None
        message = f"{field}: {first['msg']}" if field else first["msg"]
        raise ActionValidationError(message, field=field)


class ActionDispatch:
    """Routes action -> handler. Explicit registration, no auto-discovery."""

    def __init__(
        self,
        registry: ActivityRegistry,
        workflow: MembershipWorkflow,
        users: UserDirectory,
    ):
        self._registry = registry
        self._workflow = workflow
        self._users = users

        # ADR: every mapping explicit, adding an action means editing this dict
        self._handlers: dict[str, Handler] = {
            # Creation and reads
            "create": self._create,
            "detail": self._detail,
            "list": self._list,
            "recommend": self._recommend,
            "my_activities": self._my_activities,
            "my_joined_activities": self._my_joined_activities,

            # Membership transitions
            "join_request": self._join_request,
            "approve_request": self._approve_request,
            "reject_request": self._reject_request,
            "leave_activity": self._leave_activity,
            "cancel_activity": self._cancel_activity,
        }

    @property
    def actions(self) -> frozenset[str]:
        return frozenset(self._handlers)

    async def execute(
        self, action: str | None, actor_id: str | None, data: dict | None,
    ) -> dict:
        """Route action to handler. Returns the result envelope; never raises."""
        with bind_action_context(action or "", actor_id):
            if not action:
                return ActionValidationError("Missing action").to_response()
            handler = self._handlers.get(action)
            if not handler:
                logger.warning(f"Unsupported action: {action}")
                return ActionValidationError(f"Unsupported action '{action}'").to_response()
            try:
                result = await handler(actor_id, data or {})
            except RallyError as e:
                e.context.action = action
                e.context.actor_id = e.context.actor_id or actor_id
                self._log_failure(e)
                if e.code == ResultCode.INTERNAL:
                    return envelope(ResultCode.INTERNAL, INTERNAL_MESSAGE)
                return e.to_response()
            except Exception as e:
                logger.error(f"Action {action} failed unexpectedly: {e}", exc_info=True)
                return envelope(ResultCode.INTERNAL, INTERNAL_MESSAGE)
            return envelope(ResultCode.OK, "success", result)

    def _log_failure(self, error: RallyError) -> None:
        extra = {"error_code": int(error.code), "activity_id": error.context.activity_id}
        if error.code == ResultCode.INTERNAL:
            logger.error(f"Action failed: {error.message}", extra=extra)
        else:
            logger.info(f"Action rejected: {error.message}", extra=extra)

    # ─── actor resolution ───────────────────────────────────────

    async def _require_actor(self, actor_id: str | None) -> UserRef:
        if not actor_id:
            raise ActionValidationError("Missing actor", field="actor")
        if not re.match(USER_ID_PATTERN, actor_id):
            raise ActionValidationError("actor: malformed user id", field="actor")
        return await self._users.resolve(actor_id)

    async def _optional_actor(self, actor_id: str | None) -> UserRef | None:
        if not actor_id:
            return None
        return (await self._users.lookup_many([actor_id])).get(actor_id)

    # ─── creation and reads ─────────────────────────────────────

    async def _create(self, actor_id: str | None, data: dict) -> dict:
        payload = _parse(ActivityCreate, data)
        organizer = await self._require_actor(actor_id)
        activity = await self._registry.create(organizer, payload)
        return {"activityId": activity["id"], "activity": activity}

    async def _detail(self, actor_id: str | None, data: dict) -> dict:
        ref = _parse(ActivityRef, data)
        viewer = await self._optional_actor(actor_id)
        activity = await self._registry.get_detail(ActivityId(ref.activity_id), viewer)
        return {"activity": activity}

    async def _list(self, actor_id: str | None, data: dict) -> dict:
        filters = _parse(ListFilters, data)
        viewer = await self._optional_actor(actor_id)
        return await self._registry.list_activities(viewer, filters)

    async def _recommend(self, actor_id: str | None, data: dict) -> dict:
        params = _parse(PageParams, data)
        viewer = await self._optional_actor(actor_id)
        return await self._registry.recommend(viewer, params)

    async def _my_activities(self, actor_id: str | None, data: dict) -> dict:
        filters = _parse(MyListFilters, data)
        organizer = await self._require_actor(actor_id)
        return await self._registry.my_activities(organizer, filters)

    async def _my_joined_activities(self, actor_id: str | None, data: dict) -> dict:
        filters = _parse(MyListFilters, data)
        member = await self._require_actor(actor_id)
        return await self._registry.my_joined_activities(member, filters)

    # ─── membership transitions ─────────────────────────────────

    async def _join_request(self, actor_id: str | None, data: dict) -> dict:
        ref = _parse(ActivityRef, data)
        actor = await self._require_actor(actor_id)
        await self._workflow.request_join(ActivityId(ref.activity_id), actor)
        return {"viewerStatus": ViewerStatus.REQUESTED.value}

    async def _approve_request(self, actor_id: str | None, data: dict) -> dict:
        decision = _parse(MemberDecision, data)
        caller = await self._require_actor(actor_id)
        committed = await self._workflow.approve(
            ActivityId(decision.activity_id), caller.id, UserId(decision.user_id),
        )
        return {
            "approved": True,
            "userId": decision.user_id,
            "currentCount": committed.current_count,
        }

    async def _reject_request(self, actor_id: str | None, data: dict) -> dict:
        decision = _parse(MemberDecision, data)
        caller = await self._require_actor(actor_id)
        await self._workflow.reject(
            ActivityId(decision.activity_id), caller.id, UserId(decision.user_id),
        )
        return {"rejected": True, "userId": decision.user_id}

    async def _leave_activity(self, actor_id: str | None, data: dict) -> dict:
        ref = _parse(ActivityRef, data)
        caller = await self._require_actor(actor_id)
        committed = await self._workflow.leave(ActivityId(ref.activity_id), caller.id)
        return {
            "viewerStatus": ViewerStatus.NONE.value,
            "currentCount": committed.current_count,
        }

    async def _cancel_activity(self, actor_id: str | None, data: dict) -> dict:
        ref = _parse(ActivityRef, data)
        caller = await self._require_actor(actor_id)
        committed = await self._workflow.cancel(ActivityId(ref.activity_id), caller.id)
        return {"cancelled": True, "status": committed.status.value}

