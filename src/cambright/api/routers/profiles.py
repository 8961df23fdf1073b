"""
cambright.api.routers.profiles

Community profile endpoints.

Responsibilities:
- First sign-in account creation and profile reads.
- Bio/tag maintenance, XP gifting and follow state.
"""

from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_400_BAD_REQUEST

from cambright.api.deps import db_session
from cambright.auth.deps import get_principal
from cambright.auth.models import Principal
from cambright.db.models import Profile
from cambright.services.profiles import IdentityClaims, ProfileService

router = APIRouter(prefix="/api", tags=["profiles"])


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AccountRequest(_Body):
    username: str | None = None
    first_name: str | None = Field(default=None, alias="firstName")
    image_url: str | None = Field(default=None, alias="imageUrl")
    email: str | None = None


class BioRequest(_Body):
    new_bio: Any = Field(default=None, alias="newBio")


class TagRequest(_Body):
    user_id: str | None = Field(default=None, alias="userId")
    tag_name: str | None = Field(default=None, alias="tagName")


class GiveXpRequest(_Body):
    user_id: str = Field(alias="userId", min_length=1)
    xp_amount: Any = Field(default=None, alias="xpAmount")


class FollowRequest(_Body):
    action: Literal["follow", "unfollow"]
    target_user_id: str = Field(alias="targetUserId", min_length=1)


def profile_out(profile: Profile, tags: list[str] | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {
        "id": str(profile.id),
        "userId": profile.user_id,
        "name": profile.name,
        "imageUrl": profile.image_url,
        "email": profile.email,
        "biog": profile.biog,
        "XP": profile.xp,
        "followers": profile.followers,
        "following": profile.following,
        "createdAt": profile.created_at.isoformat(),
    }
    if tags is not None:
        body["tags"] = tags
    return body


@router.post("/account")
async def initial_account(
    body: AccountRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    svc = ProfileService(session=session)
    profile = await svc.initial_account(
        IdentityClaims(
            user_id=principal.user_id,
            username=body.username,
            first_name=body.first_name,
            image_url=body.image_url,
            email=body.email,
        )
    )
    return profile_out(profile, await svc.tags(profile))


@router.get("/accnt")
async def my_account(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    svc = ProfileService(session=session)
    profile = await svc.require(principal.user_id)
    return profile_out(profile, await svc.tags(profile))


@router.get("/profiles/{name}")
async def public_profile(name: str, session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    svc = ProfileService(session=session)
    profile = await svc.by_name(name)
    out = profile_out(profile, await svc.tags(profile))
    out.pop("email")
    return out


@router.post("/update-bio")
async def update_bio(
    body: BioRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    if not isinstance(body.new_bio, str) or not body.new_bio:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Invalid bio")
    profile = await ProfileService(session=session).update_bio(principal.user_id, body.new_bio)
    return {"message": "Bio updated successfully", "biog": profile.biog}


@router.post("/add-tag")
async def add_tag(
    body: TagRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    if not body.user_id or not body.tag_name:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Missing userId or tagName")
    tags = await ProfileService(session=session).add_tag(
        actor_id=principal.user_id,
        actor_is_admin=principal.is_admin,
        user_id=body.user_id,
        tag_name=body.tag_name,
    )
    return {"message": "Tag added successfully", "tags": tags}


@router.post("/delete-tag")
async def delete_tag(
    body: TagRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, str]:
    if not body.user_id or not body.tag_name:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Missing userId or tagName")
    await ProfileService(session=session).delete_tag(
        actor_id=principal.user_id,
        actor_is_admin=principal.is_admin,
        user_id=body.user_id,
        tag_name=body.tag_name,
    )
    return {"message": "Tag deleted successfully"}


@router.post("/give-xp")
async def give_xp(
    body: GiveXpRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, int]:
    amount = body.xp_amount
    # bool is an int subclass; `true` is not an XP amount.
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Invalid XP amount")
    result = await ProfileService(session=session).give_xp(
        giver_id=principal.user_id, target_id=body.user_id, amount=amount
    )
    return {"currentUserXP": result.current_user_xp, "targetUserXP": result.target_user_xp}


@router.get("/follow")
async def follow_state(
    user_id: str = Query(alias="userId", min_length=1),
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, bool]:
    following = await ProfileService(session=session).is_following(
        follower_id=principal.user_id, target_id=user_id
    )
    return {"isFollowing": following}


@router.post("/follow")
async def follow(
    body: FollowRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, bool]:
    following = await ProfileService(session=session).set_following(
        follower_id=principal.user_id,
        target_id=body.target_user_id,
        follow=body.action == "follow",
    )
    return {"success": True, "isFollowing": following}
