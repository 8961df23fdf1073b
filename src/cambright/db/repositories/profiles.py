"""
cambright.db.repositories.profiles

Repository for `Profile` and `Tag` entities.

Responsibilities:
- Create and look up community profiles (by user id, name, primary key).
- Maintain the profile <-> tag association.
- Apply XP and follower counter changes under a row lock.
"""

from __future__ import annotations

import uuid

from sqlalchemy import delete, desc, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from cambright.db.models import Profile, Tag, profile_tags


class ProfileRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        user_id: str,
        name: str,
        image_url: str = "",
        email: str = "",
        xp: int = 5,
    ) -> Profile:
        profile = Profile(
            user_id=user_id,
            name=name,
            image_url=image_url,
            email=email,
            biog="",
            xp=xp,
            followers=0,
            following=0,
        )
        self._session.add(profile)
        await self._session.flush()
        return profile

    async def get(self, profile_id: uuid.UUID) -> Profile | None:
        return await self._session.get(Profile, profile_id)

    async def get_by_user_id(self, user_id: str, *, for_update: bool = False) -> Profile | None:
        stmt = select(Profile).where(Profile.user_id == user_id)
        if for_update:
            stmt = stmt.with_for_update()
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_by_name(self, name: str) -> Profile | None:
        stmt = select(Profile).where(Profile.name == name)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_by_ids(self, profile_ids: list[uuid.UUID]) -> list[Profile]:
        if not profile_ids:
            return []
        stmt = select(Profile).where(Profile.id.in_(profile_ids))
        return list((await self._session.execute(stmt)).scalars().all())

    async def list_by_xp(self) -> list[Profile]:
        # Ties are broken by name so the ranking is stable between requests.
        stmt = select(Profile).order_by(desc(Profile.xp), Profile.name)
        return list((await self._session.execute(stmt)).scalars().all())

    async def ranked_user_ids(self) -> list[str]:
        stmt = select(Profile.user_id).order_by(desc(Profile.xp), Profile.name)
        return list((await self._session.execute(stmt)).scalars().all())

    # --- tags ----------------------------------------------------------------

    async def tag_names(self, profile_id: uuid.UUID) -> list[str]:
        stmt = (
            select(Tag.name)
            .join(profile_tags, profile_tags.c.tag_id == Tag.id)
            .where(profile_tags.c.profile_id == profile_id)
            .order_by(Tag.name)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def get_tag(self, name: str) -> Tag | None:
        stmt = select(Tag).where(Tag.name == name)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_or_create_tag(self, name: str) -> Tag:
        tag = await self.get_tag(name)
        if tag is not None:
            return tag
        tag = Tag(name=name)
        self._session.add(tag)
        await self._session.flush()
        return tag

    async def has_tag(self, profile_id: uuid.UUID, tag_id: uuid.UUID) -> bool:
        stmt = select(func.count()).select_from(profile_tags).where(
            profile_tags.c.profile_id == profile_id, profile_tags.c.tag_id == tag_id
        )
        return bool((await self._session.execute(stmt)).scalar_one())

    async def attach_tag(self, profile_id: uuid.UUID, tag_id: uuid.UUID) -> None:
        if await self.has_tag(profile_id, tag_id):
            return
        await self._session.execute(
            insert(profile_tags).values(profile_id=profile_id, tag_id=tag_id)
        )

    async def detach_tag(self, profile_id: uuid.UUID, tag_id: uuid.UUID) -> None:
        await self._session.execute(
            delete(profile_tags).where(
                profile_tags.c.profile_id == profile_id, profile_tags.c.tag_id == tag_id
            )
        )

    async def tag_usage(self, tag_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(profile_tags).where(profile_tags.c.tag_id == tag_id)
        return int((await self._session.execute(stmt)).scalar_one())

    async def delete_tag(self, tag_id: uuid.UUID) -> None:
        await self._session.execute(delete(Tag).where(Tag.id == tag_id))


# --- Module Notes -----------------------------------------------------------
# `with_for_update` is a no-op on SQLite and a real row lock on Postgres; XP transfers
# rely on it when running against a server database.
