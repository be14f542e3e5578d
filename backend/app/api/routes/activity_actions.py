"""Activity Actions Route — single POST endpoint carrying the {action, actor, data} envelope.

Invariants:
    - Business outcomes (success AND domain failures) return HTTP 200 with the envelope;
      the envelope code is the contract, not the HTTP status
    - A 5001 envelope (internal path) is sent with HTTP 500
    - Only a malformed envelope (not JSON / wrong shape) is rejected by FastAPI (400)
    - Components are built per request from the current db manager and settings

Design Decisions:
    - One endpoint over one route per action: mirrors the action-dispatch contract that
      clients already speak, and keeps the mapping in ActionDispatch only
    - Depends(build_action_dispatch) so tests override the whole engine in one place
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.core.domain_types import ResultCode
from app.infrastructure.activity_store import SqlActivityStore
from app.infrastructure.database import get_db_manager
from app.infrastructure.notification_sink import SqlNotificationSink
from app.infrastructure.user_directory import SqlUserDirectory
from app.schemas.activity import ActionRequest, ActionResponse
from app.services.action_dispatch import ActionDispatch
from app.services.activity_registry import ActivityRegistry
from app.services.capacity_enforcer import CapacityEnforcer
from app.services.membership_workflow import MembershipWorkflow
from app.services.notification_dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/activities", tags=["activities"])


def build_action_dispatch() -> ActionDispatch:
    """Wire store, directory, enforcer, notifier and workflow for one request."""
    settings = get_settings()
    manager = get_db_manager()
    store = SqlActivityStore(manager, timeout_seconds=settings.store_timeout_seconds)
    users = SqlUserDirectory(manager)
    enforcer = CapacityEnforcer(
        store,
        max_attempts=settings.store_max_attempts,
        base_delay_ms=settings.store_base_delay_ms,
        max_delay_ms=settings.store_max_delay_ms,
    )
    notifier = NotificationDispatcher(
        SqlNotificationSink(manager),
        timeout_seconds=settings.notification_timeout_seconds,
    )
    return ActionDispatch(
        registry=ActivityRegistry(store, users),
        workflow=MembershipWorkflow(enforcer, notifier),
        users=users,
    )


@router.post("/actions", response_model=ActionResponse)
async def run_action(
    body: ActionRequest,
    dispatch: ActionDispatch = Depends(build_action_dispatch),
):
    """Execute one activity action. Always answers with the result envelope."""
    result = await dispatch.execute(body.action, body.actor, body.data)
    if result["code"] == ResultCode.INTERNAL:
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=result)
    return result
