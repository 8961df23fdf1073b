from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cambright.db.models import Follow


class FollowRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, *, follower_id: str, following_id: str) -> Follow | None:
        stmt = select(Follow).where(
            Follow.follower_id == follower_id, Follow.following_id == following_id
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def create(self, *, follower_id: str, following_id: str) -> Follow:
        follow = Follow(follower_id=follower_id, following_id=following_id)
        self._session.add(follow)
        await self._session.flush()
        return follow

    async def delete(self, follow: Follow) -> None:
        await self._session.delete(follow)
        await self._session.flush()
