"""
cambright.api.routers.rooms

Group chat endpoints: rooms, chat channels, members and messages.

Responsibilities:
- Resolve the caller's profile (401 without one) and delegate to `RoomService`.
- Shape rooms, members and messages into camelCase JSON.
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from cambright.api.deps import db_session
from cambright.auth.deps import get_principal
from cambright.auth.models import Principal
from cambright.db.models import Chat, ChatType, Member, MemberRole, Message, Profile, Room
from cambright.services.rooms import MessagePage, RoomDetail, RoomService

router = APIRouter(prefix="/api", tags=["rooms"])


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RoomRequest(_Body):
    name: str = Field(min_length=1, max_length=256)
    image_url: str = Field(default="", alias="imageUrl")


class UpdateRoomRequest(_Body):
    name: str | None = Field(default=None, min_length=1, max_length=256)
    image_url: str | None = Field(default=None, alias="imageUrl")


class ChatRequest(_Body):
    name: str = Field(min_length=1, max_length=128)
    type: ChatType = ChatType.text


class RoleRequest(_Body):
    role: MemberRole


class MessageRequest(_Body):
    content: str | None = None
    file_url: str | None = Field(default=None, alias="fileUrl")


def room_out(room: Room) -> dict[str, Any]:
    return {
        "id": str(room.id),
        "name": room.name,
        "imageUrl": room.image_url,
        "inviteCode": room.invite_code,
        "profileId": str(room.profile_id),
        "createdAt": room.created_at.isoformat(),
        "updatedAt": room.updated_at.isoformat(),
    }


def chat_out(chat: Chat) -> dict[str, Any]:
    return {
        "id": str(chat.id),
        "roomId": str(chat.room_id),
        "profileId": str(chat.profile_id),
        "name": chat.name,
        "type": chat.type.value,
    }


def member_out(member: Member, profile: Profile | None) -> dict[str, Any]:
    return {
        "id": str(member.id),
        "roomId": str(member.room_id),
        "profileId": str(member.profile_id),
        "role": member.role.value,
        "profile": (
            {"id": str(profile.id), "userId": profile.user_id, "name": profile.name, "imageUrl": profile.image_url}
            if profile is not None
            else None
        ),
    }


def detail_out(detail: RoomDetail) -> dict[str, Any]:
    return {
        **room_out(detail.room),
        "chats": [chat_out(c) for c in detail.chats],
        "members": [member_out(m, detail.profiles.get(m.profile_id)) for m in detail.members],
    }


def message_out(message: Message, member: dict[str, Any] | None = None) -> dict[str, Any]:
    return {
        "id": str(message.id),
        "chatId": str(message.chat_id),
        "memberId": str(message.member_id),
        "content": message.content,
        "fileUrl": message.file_url,
        "deleted": message.deleted,
        "createdAt": message.created_at.isoformat(),
        "updatedAt": message.updated_at.isoformat(),
        "member": member,
    }


def page_out(page: MessagePage) -> dict[str, Any]:
    items = []
    for message in page.items:
        member = page.members.get(message.member_id)
        items.append(
            message_out(
                message,
                member_out(member, page.profiles.get(member.profile_id)) if member is not None else None,
            )
        )
    return {"items": items, "nextCursor": str(page.next_cursor) if page.next_cursor else None}


async def _caller(svc: RoomService, principal: Principal) -> Profile:
    return await svc.current_profile(principal.user_id)


# --- rooms -------------------------------------------------------------------


@router.post("/rooms")
async def create_room(
    body: RoomRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    svc = RoomService(session=session)
    profile = await _caller(svc, principal)
    room = await svc.create_room(profile, name=body.name, image_url=body.image_url)
    return detail_out(await svc.detail(room.id, profile))


@router.get("/rooms")
async def my_rooms(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> list[dict[str, Any]]:
    svc = RoomService(session=session)
    profile = await _caller(svc, principal)
    return [room_out(r) for r in await svc.rooms_for(profile)]


@router.get("/rooms/{room_id}")
async def room_detail(
    room_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    svc = RoomService(session=session)
    profile = await _caller(svc, principal)
    return detail_out(await svc.detail(room_id, profile))


@router.patch("/rooms/{room_id}")
async def update_room(
    room_id: uuid.UUID,
    body: UpdateRoomRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    svc = RoomService(session=session)
    profile = await _caller(svc, principal)
    values = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    return room_out(await svc.update_room(room_id, profile, values))


@router.delete("/rooms/{room_id}")
async def delete_room(
    room_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    svc = RoomService(session=session)
    profile = await _caller(svc, principal)
    return room_out(await svc.delete_room(room_id, profile))


@router.patch("/rooms/{room_id}/invite-code")
async def rotate_invite_code(
    room_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    svc = RoomService(session=session)
    profile = await _caller(svc, principal)
    return room_out(await svc.rotate_invite_code(room_id, profile))


@router.post("/rooms/join/{invite_code}")
async def join_room(
    invite_code: str,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    svc = RoomService(session=session)
    profile = await _caller(svc, principal)
    return room_out(await svc.join(invite_code, profile))


@router.post("/rooms/{room_id}/leave")
async def leave_room(
    room_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    svc = RoomService(session=session)
    profile = await _caller(svc, principal)
    return room_out(await svc.leave(room_id, profile))


# --- chats -------------------------------------------------------------------


@router.post("/chats")
async def create_chat(
    body: ChatRequest,
    room_id: uuid.UUID = Query(alias="roomId"),
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    svc = RoomService(session=session)
    profile = await _caller(svc, principal)
    return detail_out(await svc.create_chat(room_id, profile, name=body.name, type=body.type))


@router.patch("/chats/{chat_id}")
async def update_chat(
    chat_id: uuid.UUID,
    body: ChatRequest,
    room_id: uuid.UUID = Query(alias="roomId"),
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    svc = RoomService(session=session)
    profile = await _caller(svc, principal)
    detail = await svc.update_chat(room_id, chat_id, profile, {"name": body.name, "type": body.type})
    return detail_out(detail)


@router.delete("/chats/{chat_id}")
async def delete_chat(
    chat_id: uuid.UUID,
    room_id: uuid.UUID = Query(alias="roomId"),
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    svc = RoomService(session=session)
    profile = await _caller(svc, principal)
    return detail_out(await svc.delete_chat(room_id, chat_id, profile))


# --- members -----------------------------------------------------------------


@router.patch("/members/{member_id}")
async def change_role(
    member_id: uuid.UUID,
    body: RoleRequest,
    room_id: uuid.UUID = Query(alias="roomId"),
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    svc = RoomService(session=session)
    profile = await _caller(svc, principal)
    return detail_out(await svc.change_role(room_id, member_id, profile, body.role))


@router.delete("/members/{member_id}")
async def kick_member(
    member_id: uuid.UUID,
    room_id: uuid.UUID = Query(alias="roomId"),
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    svc = RoomService(session=session)
    profile = await _caller(svc, principal)
    return detail_out(await svc.kick(room_id, member_id, profile))


# --- messages ----------------------------------------------------------------


@router.post("/messages")
async def post_message(
    body: MessageRequest,
    room_id: uuid.UUID = Query(alias="roomId"),
    chat_id: uuid.UUID = Query(alias="chatId"),
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    svc = RoomService(session=session)
    profile = await _caller(svc, principal)
    message = await svc.post_message(
        room_id, chat_id, profile, content=body.content or "", file_url=body.file_url
    )
    return message_out(message)


@router.get("/messages")
async def list_messages(
    chat_id: uuid.UUID = Query(alias="chatId"),
    cursor: uuid.UUID | None = Query(default=None),
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    svc = RoomService(session=session)
    profile = await _caller(svc, principal)
    return page_out(await svc.messages(chat_id, profile, cursor=cursor))


@router.delete("/messages/{message_id}")
async def delete_message(
    message_id: uuid.UUID,
    chat_id: uuid.UUID = Query(alias="chatId"),
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    svc = RoomService(session=session)
    profile = await _caller(svc, principal)
    return message_out(await svc.delete_message(chat_id, message_id, profile))
