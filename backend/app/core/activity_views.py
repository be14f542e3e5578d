"""Activity Views — pure formatting of snapshots into camelCase wire dicts.

Invariants:
    - PURE: no IO; all user profiles arrive pre-resolved
    - joinRequests profiles are only ever exposed to the organizer
    - Datetimes serialized as ISO-8601 UTC strings
"""

from datetime import datetime

from app.core.activity_state import ActivitySnapshot, viewer_status
from app.core.repository_protocols import UserRef


def _iso(value: datetime) -> str:
    return value.isoformat()


def profile_view(user: UserRef) -> dict:
    return {
        "id": user.id,
        "nickname": user.nickname,
        "avatar": user.avatar,
        "level": user.level,
        "isVerified": user.is_verified,
    }


def organizer_view(snapshot: ActivitySnapshot, profiles: dict[str, UserRef]) -> dict:
    user = profiles.get(snapshot.organizer_id)
    if user is None:
        return {"id": snapshot.organizer_id, "nickname": "", "avatar": "", "isVerified": False}
    return {
        "id": user.id,
        "nickname": user.nickname,
        "avatar": user.avatar,
        "isVerified": user.is_verified,
        "bio": user.bio,
    }


def summary_view(
    snapshot: ActivitySnapshot,
    profiles: dict[str, UserRef],
    viewer_id: str | None = None,
) -> dict:
    """Listing card: enough to render a row, plus the viewer's membership state."""
    return {
        "id": str(snapshot.id),
        "title": snapshot.title,
        "description": snapshot.description,
        "sport": snapshot.sport,
        "category": snapshot.category,
        "coverImage": snapshot.cover_image,
        "location": dict(snapshot.location),
        "dateTime": {
            "startTime": _iso(snapshot.start_time),
            "endTime": _iso(snapshot.end_time),
            "duration": snapshot.duration,
        },
        "capacity": {
            "maxCount": snapshot.max_count,
            "minCount": snapshot.min_count,
            "currentCount": snapshot.current_count,
            "genderLimit": snapshot.gender_limit,
            "ageRange": list(snapshot.age_range),
            "levelRequirement": snapshot.level_requirement,
        },
        "fee": dict(snapshot.fee),
        "tags": list(snapshot.tags),
        "status": snapshot.status.value,
        "viewsCount": snapshot.views_count,
        "likesCount": snapshot.likes_count,
        "createdAt": _iso(snapshot.created_at),
        "organizer": organizer_view(snapshot, profiles),
        "viewerStatus": viewer_status(snapshot, viewer_id).value,
    }


def detail_view(
    snapshot: ActivitySnapshot,
    profiles: dict[str, UserRef],
    viewer_id: str | None = None,
) -> dict:
    is_organizer = snapshot.is_organizer(viewer_id)
    view = summary_view(snapshot, profiles, viewer_id)
    view.update({
        "images": list(snapshot.images),
        "contactInfo": dict(snapshot.contact_info),
        "participants": list(snapshot.participants),
        "participantsInfo": [
            profile_view(profiles[p]) for p in snapshot.participants if p in profiles
        ],
        "joinRequests": [
            profile_view(profiles[u]) for u in snapshot.join_requests if u in profiles
        ] if is_organizer else [],
        "isOrganizer": is_organizer,
        "updatedAt": _iso(snapshot.updated_at),
    })
    return view


def owned_view(snapshot: ActivitySnapshot, profiles: dict[str, UserRef]) -> dict:
    """Organizer's own listing: summary plus pending request count."""
    view = summary_view(snapshot, profiles, snapshot.organizer_id)
    view["joinRequestsCount"] = len(snapshot.join_requests)
    return view
