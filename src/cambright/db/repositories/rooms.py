"""
cambright.db.repositories.rooms

Repository for group chat structure: `Room`, `Member` and `Chat`.

Responsibilities:
- Create rooms together with their `general` chat and owner membership.
- Membership queries (who belongs where, with which role).
- Chat channel CRUD inside a room.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import case, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from cambright.db.models import Chat, ChatType, Member, MemberRole, Message, Room

GENERAL_CHAT = "general"

# Members are listed ADMIN, MODERATOR, GUEST regardless of how the enum sorts as text.
_ROLE_ORDER = case(
    *[(Member.role == role, index) for index, role in enumerate(MemberRole)],
    else_=len(MemberRole),
)


def new_invite_code() -> str:
    return str(uuid.uuid4())


class RoomRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, owner_profile_id: uuid.UUID, name: str, image_url: str) -> Room:
        room = Room(
            name=name,
            image_url=image_url,
            invite_code=new_invite_code(),
            profile_id=owner_profile_id,
        )
        self._session.add(room)
        await self._session.flush()
        self._session.add(
            Chat(room_id=room.id, profile_id=owner_profile_id, name=GENERAL_CHAT, type=ChatType.text)
        )
        self._session.add(Member(room_id=room.id, profile_id=owner_profile_id, role=MemberRole.admin))
        await self._session.flush()
        return room

    async def get(self, room_id: uuid.UUID) -> Room | None:
        return await self._session.get(Room, room_id)

    async def get_owned(self, room_id: uuid.UUID, profile_id: uuid.UUID) -> Room | None:
        stmt = select(Room).where(Room.id == room_id, Room.profile_id == profile_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_by_invite_code(self, invite_code: str) -> Room | None:
        stmt = select(Room).where(Room.invite_code == invite_code)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_profile(self, profile_id: uuid.UUID) -> list[Room]:
        stmt = (
            select(Room)
            .join(Member, Member.room_id == Room.id)
            .where(Member.profile_id == profile_id)
            .order_by(Room.created_at)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def update(self, room: Room, values: dict[str, Any]) -> Room:
        for key, value in values.items():
            setattr(room, key, value)
        await self._session.flush()
        return room

    async def delete(self, room: Room) -> None:
        chat_ids = select(Chat.id).where(Chat.room_id == room.id)
        await self._session.execute(delete(Message).where(Message.chat_id.in_(chat_ids)))
        await self._session.execute(delete(Chat).where(Chat.room_id == room.id))
        await self._session.execute(delete(Member).where(Member.room_id == room.id))
        await self._session.delete(room)
        await self._session.flush()


class MemberRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, member_id: uuid.UUID, room_id: uuid.UUID) -> Member | None:
        stmt = select(Member).where(Member.id == member_id, Member.room_id == room_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_for_profile(self, room_id: uuid.UUID, profile_id: uuid.UUID) -> Member | None:
        stmt = select(Member).where(Member.room_id == room_id, Member.profile_id == profile_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def create(
        self, *, room_id: uuid.UUID, profile_id: uuid.UUID, role: MemberRole = MemberRole.guest
    ) -> Member:
        member = Member(room_id=room_id, profile_id=profile_id, role=role)
        self._session.add(member)
        await self._session.flush()
        return member

    async def list_for_room(self, room_id: uuid.UUID) -> list[Member]:
        stmt = select(Member).where(Member.room_id == room_id).order_by(_ROLE_ORDER, Member.created_at)
        return list((await self._session.execute(stmt)).scalars().all())

    async def list_by_ids(self, member_ids: list[uuid.UUID]) -> list[Member]:
        if not member_ids:
            return []
        stmt = select(Member).where(Member.id.in_(member_ids))
        return list((await self._session.execute(stmt)).scalars().all())

    async def delete(self, member: Member) -> None:
        await self._session.execute(delete(Message).where(Message.member_id == member.id))
        await self._session.delete(member)
        await self._session.flush()


class ChatRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self, *, room_id: uuid.UUID, profile_id: uuid.UUID, name: str, type: ChatType
    ) -> Chat:
        chat = Chat(room_id=room_id, profile_id=profile_id, name=name, type=type)
        self._session.add(chat)
        await self._session.flush()
        return chat

    async def get(self, chat_id: uuid.UUID) -> Chat | None:
        return await self._session.get(Chat, chat_id)

    async def get_in_room(self, chat_id: uuid.UUID, room_id: uuid.UUID) -> Chat | None:
        stmt = select(Chat).where(Chat.id == chat_id, Chat.room_id == room_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_room(self, room_id: uuid.UUID) -> list[Chat]:
        stmt = select(Chat).where(Chat.room_id == room_id).order_by(Chat.created_at)
        return list((await self._session.execute(stmt)).scalars().all())

    async def update(self, chat: Chat, values: dict[str, Any]) -> Chat:
        for key, value in values.items():
            setattr(chat, key, value)
        await self._session.flush()
        return chat

    async def delete(self, chat: Chat) -> None:
        await self._session.execute(delete(Message).where(Message.chat_id == chat.id))
        await self._session.delete(chat)
        await self._session.flush()


# --- Module Notes -----------------------------------------------------------
# Invite codes are random UUID4 strings; rotating one invalidates old invite links.
