"""
cambright.services.profiles

Community profile service (transaction owner).

Responsibilities:
- Create the caller's profile on first sign-in (unique name, starter XP and tag).
- Bio and tag maintenance.
- XP transfers between users.
- Follow / unfollow with counter bookkeeping.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cambright.db.models import Profile
from cambright.db.repositories.follows import FollowRepo
from cambright.db.repositories.profiles import ProfileRepo
from cambright.errors import InvalidInputError, NotFoundError, PermissionDeniedError
from cambright.observability.logging import get_logger

log = get_logger(__name__)

STARTER_XP = 5
STARTER_TAG = "Beginner"


@dataclass(frozen=True, slots=True)
class IdentityClaims:
    # Fields the identity provider exposes about the signed-in user.
    user_id: str
    username: str | None = None
    first_name: str | None = None
    image_url: str | None = None
    email: str | None = None


@dataclass(frozen=True, slots=True)
class XpTransfer:
    current_user_xp: int
    target_user_xp: int


class ProfileService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session
        self._profiles = ProfileRepo(session)
        self._follows = FollowRepo(session)

    async def initial_account(self, identity: IdentityClaims) -> Profile:
        profile = await self._profiles.get_by_user_id(identity.user_id)
        if profile is not None:
            image_url = identity.image_url or ""
            if image_url and profile.image_url != image_url:
                profile.image_url = image_url
                await self._session.commit()
            return profile

        try:
            return await self._create_account(identity)
        except IntegrityError:
            # A concurrent first sign-in won the insert (same user id, name or starter tag).
            await self._session.rollback()
        profile = await self._profiles.get_by_user_id(identity.user_id)
        if profile is not None:
            log.info("profile_create_raced", profile_id=str(profile.id))
            return profile
        return await self._create_account(identity)

    async def _create_account(self, identity: IdentityClaims) -> Profile:
        name = identity.username or identity.first_name or "anonymous"
        if await self._profiles.get_by_name(name) is not None:
            name = f"{name}-{identity.user_id}"

        profile = await self._profiles.create(
            user_id=identity.user_id,
            name=name,
            image_url=identity.image_url or "",
            email=identity.email or "",
            xp=STARTER_XP,
        )
        tag = await self._profiles.get_or_create_tag(STARTER_TAG)
        await self._profiles.attach_tag(profile.id, tag.id)
        await self._session.commit()
        log.info("profile_created", profile_id=str(profile.id), name=name)
        return profile

    async def require(self, user_id: str) -> Profile:
        profile = await self._profiles.get_by_user_id(user_id)
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    async def by_name(self, name: str) -> Profile:
        profile = await self._profiles.get_by_name(name)
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    async def tags(self, profile: Profile) -> list[str]:
        return await self._profiles.tag_names(profile.id)

    async def update_bio(self, user_id: str, bio: str) -> Profile:
        profile = await self.require(user_id)
        profile.biog = bio
        await self._session.commit()
        return profile

    async def add_tag(self, *, actor_id: str, actor_is_admin: bool, user_id: str, tag_name: str) -> list[str]:
        if actor_id != user_id and not actor_is_admin:
            raise PermissionDeniedError("Forbidden")
        profile = await self._profiles.get_by_user_id(user_id)
        if profile is None:
            raise NotFoundError("User not found")
        tag = await self._profiles.get_or_create_tag(tag_name)
        await self._profiles.attach_tag(profile.id, tag.id)
        await self._session.commit()
        return await self._profiles.tag_names(profile.id)

    async def delete_tag(self, *, actor_id: str, actor_is_admin: bool, user_id: str, tag_name: str) -> None:
        if actor_id != user_id and not actor_is_admin:
            raise PermissionDeniedError("Forbidden")
        tag = await self._profiles.get_tag(tag_name)
        if tag is None:
            raise NotFoundError("Tag not found")
        profile = await self._profiles.get_by_user_id(user_id)
        if profile is None:
            raise NotFoundError("User not found")

        await self._profiles.detach_tag(profile.id, tag.id)
        # Tags are shared between profiles; only orphaned ones go away.
        if await self._profiles.tag_usage(tag.id) == 0:
            await self._profiles.delete_tag(tag.id)
        await self._session.commit()

    async def give_xp(self, *, giver_id: str, target_id: str, amount: int) -> XpTransfer:
        if amount <= 0:
            raise InvalidInputError("Invalid XP amount")
        if giver_id == target_id:
            raise InvalidInputError("Cannot give XP to yourself")

        target = await self._profiles.get_by_user_id(target_id, for_update=True)
        if target is None:
            raise NotFoundError("User not found")
        giver = await self._profiles.get_by_user_id(giver_id, for_update=True)
        if giver is None:
            raise NotFoundError("Current user not found")
        if giver.xp < amount:
            raise InvalidInputError("Not enough XP")

        giver.xp -= amount
        target.xp += amount
        await self._session.commit()
        log.info("xp_transferred", giver=giver_id, target=target_id, amount=amount)
        return XpTransfer(current_user_xp=giver.xp, target_user_xp=target.xp)

    async def is_following(self, *, follower_id: str, target_id: str) -> bool:
        return await self._follows.get(follower_id=follower_id, following_id=target_id) is not None

    async def set_following(self, *, follower_id: str, target_id: str, follow: bool) -> bool:
        if follower_id == target_id:
            raise InvalidInputError("Cannot follow yourself")
        follower = await self._profiles.get_by_user_id(follower_id, for_update=True)
        target = await self._profiles.get_by_user_id(target_id, for_update=True)
        if follower is None or target is None:
            raise NotFoundError("User not found")

        existing = await self._follows.get(follower_id=follower_id, following_id=target_id)
        if follow and existing is None:
            await self._follows.create(follower_id=follower_id, following_id=target_id)
            follower.following += 1
            target.followers += 1
        elif not follow and existing is not None:
            await self._follows.delete(existing)
            follower.following = max(0, follower.following - 1)
            target.followers = max(0, target.followers - 1)
        await self._session.commit()
        return follow


# --- Module Notes -----------------------------------------------------------
# Following twice or unfollowing a user that is not followed leaves counters as-is.
