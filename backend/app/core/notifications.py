"""Notification Events — pure construction of the events each transition fans out.

Invariants:
    - Events are built from the COMMITTED snapshot, never from the pre-write read
    - cancellation fans out exactly one event per participant except the organizer
    - Builders are PURE (no IO, no delivery); the dispatcher handles emission
"""

from dataclasses import dataclass

from app.core.activity_state import ActivitySnapshot
from app.core.domain_types import ActivityId, NotificationKind, UserId


@dataclass(frozen=True)
class NotificationEvent:
    """One notification record destined for a single receiver's inbox."""
    kind: NotificationKind
    sender_id: UserId
    receiver_id: UserId
    activity_id: ActivityId
    content: str


def join_requested(
    activity: ActivitySnapshot, requester_id: UserId, requester_name: str,
) -> NotificationEvent:
    return NotificationEvent(
        kind=NotificationKind.JOIN_REQUESTED,
        sender_id=requester_id,
        receiver_id=activity.organizer_id,
        activity_id=activity.id,
        content=f'{requester_name or requester_id} requested to join your activity "{activity.title}"',
    )


def request_approved(activity: ActivitySnapshot, target_id: UserId) -> NotificationEvent:
    return NotificationEvent(
        kind=NotificationKind.REQUEST_APPROVED,
        sender_id=activity.organizer_id,
        receiver_id=target_id,
        activity_id=activity.id,
        content=f'Your request to join "{activity.title}" was approved',
    )


def request_rejected(activity: ActivitySnapshot, target_id: UserId) -> NotificationEvent:
    return NotificationEvent(
        kind=NotificationKind.REQUEST_REJECTED,
        sender_id=activity.organizer_id,
        receiver_id=target_id,
        activity_id=activity.id,
        content=f'Your request to join "{activity.title}" was declined',
    )


def activity_cancelled(activity: ActivitySnapshot) -> list[NotificationEvent]:
    return [
        NotificationEvent(
            kind=NotificationKind.ACTIVITY_CANCELLED,
            sender_id=activity.organizer_id,
            receiver_id=participant_id,
            activity_id=activity.id,
            content=f'Activity "{activity.title}" has been cancelled',
        )
        for participant_id in activity.participants
        if participant_id != activity.organizer_id
    ]
