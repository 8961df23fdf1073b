from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cambright.db.models import Tutor, TutorRole


class TutorRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: str) -> Tutor | None:
        stmt = select(Tutor).where(Tutor.user_id == user_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def is_active(self, user_id: str) -> bool:
        stmt = select(func.count()).select_from(Tutor).where(
            Tutor.user_id == user_id, Tutor.is_active.is_(True)
        )
        return bool((await self._session.execute(stmt)).scalar_one())

    async def create(self, *, user_id: str, role: TutorRole, added_by: str) -> Tutor:
        tutor = Tutor(user_id=user_id, role=role, is_active=True, added_by=added_by)
        self._session.add(tutor)
        await self._session.flush()
        return tutor

    async def list_page(self, *, active: bool | None = None, offset: int = 0, limit: int = 20) -> list[Tutor]:
        stmt = select(Tutor).order_by(Tutor.created_at, Tutor.user_id).offset(offset).limit(limit)
        if active is not None:
            stmt = stmt.where(Tutor.is_active.is_(active))
        return list((await self._session.execute(stmt)).scalars().all())

    async def count(self, *, active: bool | None = None) -> int:
        stmt = select(func.count()).select_from(Tutor)
        if active is not None:
            stmt = stmt.where(Tutor.is_active.is_(active))
        return (await self._session.execute(stmt)).scalar_one()
