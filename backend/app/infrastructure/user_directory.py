"""SQL User Directory — resolves actor ids against the read-only `users` projection.

Invariants:
    - resolve() raises UserNotFoundError for unknown ids (surfaces as code 4004)
    - lookup_many() silently omits unknown ids (used for display enrichment only)
"""

from typing import Iterable

from sqlalchemy import select

from app.core.domain_types import UserId
from app.core.errors import UserNotFoundError
from app.core.repository_protocols import UserRef
from app.infrastructure.database import DatabaseSessionManager
from app.models.user import User


def _to_ref(row: User) -> UserRef:
    return UserRef(
        id=UserId(row.id),
        nickname=row.nickname,
        avatar=row.avatar,
        level=row.level,
        bio=row.bio,
        is_verified=row.is_verified,
        sports_preferences=tuple(row.sports_preferences or ()),
    )


class SqlUserDirectory:
    """UserDirectory backed by the `users` table."""

    def __init__(self, manager: DatabaseSessionManager):
        self._manager = manager

    async def resolve(self, user_id: str) -> UserRef:
        async with self._manager.session() as db:
            row = await db.get(User, user_id)
        if row is None:
            raise UserNotFoundError(user_id)
        return _to_ref(row)

    async def lookup_many(self, user_ids: Iterable[str]) -> dict[str, UserRef]:
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return {}
        async with self._manager.session() as db:
            result = await db.execute(select(User).where(User.id.in_(ids)))
            rows = result.scalars().all()
        return {row.id: _to_ref(row) for row in rows}
