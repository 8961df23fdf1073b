"""
cambright.services.rooms

Group chat service (transaction owner).

Responsibilities:
- Room lifecycle: create, update, delete, invite code rotation, join and leave.
- Chat channel management by room admins/moderators (`general` is fixed).
- Member role changes and kicks by the room owner.
- Posting and paging messages for room members.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from cambright.db.models import Chat, ChatType, Member, MemberRole, Message, Profile, Room
from cambright.db.repositories.messages import MESSAGES_BATCH, MessageRepo
from cambright.db.repositories.profiles import ProfileRepo
from cambright.db.repositories.rooms import GENERAL_CHAT, ChatRepo, MemberRepo, RoomRepo, new_invite_code
from cambright.errors import InvalidInputError, NotFoundError, PermissionDeniedError, UnauthorizedError
from cambright.observability.logging import get_logger

log = get_logger(__name__)

_CHANNEL_MANAGERS = (MemberRole.admin, MemberRole.moderator)


@dataclass(slots=True)
class RoomDetail:
    room: Room
    chats: list[Chat]
    members: list[Member]
    profiles: dict[uuid.UUID, Profile]


@dataclass(slots=True)
class MessagePage:
    items: list[Message]
    members: dict[uuid.UUID, Member]
    profiles: dict[uuid.UUID, Profile]
    next_cursor: uuid.UUID | None


class RoomService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session
        self._profiles = ProfileRepo(session)
        self._rooms = RoomRepo(session)
        self._members = MemberRepo(session)
        self._chats = ChatRepo(session)
        self._messages = MessageRepo(session)

    async def current_profile(self, user_id: str) -> Profile:
        profile = await self._profiles.get_by_user_id(user_id)
        if profile is None:
            raise UnauthorizedError("Unauthorized")
        return profile

    async def _membership(self, room_id: uuid.UUID, profile: Profile) -> tuple[Room, Member]:
        room = await self._rooms.get(room_id)
        member = await self._members.get_for_profile(room_id, profile.id) if room else None
        if room is None or member is None:
            raise NotFoundError("Room not found")
        return room, member

    async def _owned(self, room_id: uuid.UUID, profile: Profile) -> Room:
        room = await self._rooms.get_owned(room_id, profile.id)
        if room is None:
            raise NotFoundError("Room not found")
        return room

    async def _manager(self, room_id: uuid.UUID, profile: Profile) -> Room:
        room, member = await self._membership(room_id, profile)
        if member.role not in _CHANNEL_MANAGERS:
            raise PermissionDeniedError("Forbidden")
        return room

    # --- rooms ---------------------------------------------------------------

    async def create_room(self, profile: Profile, *, name: str, image_url: str) -> Room:
        room = await self._rooms.create(owner_profile_id=profile.id, name=name, image_url=image_url)
        await self._session.commit()
        log.info("room_created", room_id=str(room.id))
        return room

    async def rooms_for(self, profile: Profile) -> list[Room]:
        return await self._rooms.list_for_profile(profile.id)

    async def detail(self, room_id: uuid.UUID, profile: Profile) -> RoomDetail:
        room, _ = await self._membership(room_id, profile)
        return await self._detail(room)

    async def _detail(self, room: Room) -> RoomDetail:
        members = await self._members.list_for_room(room.id)
        profiles = await self._profiles.list_by_ids([m.profile_id for m in members])
        return RoomDetail(
            room=room,
            chats=await self._chats.list_for_room(room.id),
            members=members,
            profiles={p.id: p for p in profiles},
        )

    async def update_room(self, room_id: uuid.UUID, profile: Profile, values: dict[str, Any]) -> Room:
        room = await self._owned(room_id, profile)
        await self._rooms.update(room, values)
        await self._session.commit()
        return room

    async def delete_room(self, room_id: uuid.UUID, profile: Profile) -> Room:
        room = await self._owned(room_id, profile)
        await self._rooms.delete(room)
        await self._session.commit()
        log.info("room_deleted", room_id=str(room_id))
        return room

    async def rotate_invite_code(self, room_id: uuid.UUID, profile: Profile) -> Room:
        room, _ = await self._membership(room_id, profile)
        room.invite_code = new_invite_code()
        await self._session.commit()
        return room

    async def join(self, invite_code: str, profile: Profile) -> Room:
        room = await self._rooms.get_by_invite_code(invite_code)
        if room is None:
            raise NotFoundError("Room not found")
        if await self._members.get_for_profile(room.id, profile.id) is None:
            await self._members.create(room_id=room.id, profile_id=profile.id)
            await self._session.commit()
            log.info("room_joined", room_id=str(room.id))
        return room

    async def leave(self, room_id: uuid.UUID, profile: Profile) -> Room:
        room, member = await self._membership(room_id, profile)
        if room.profile_id == profile.id:
            raise InvalidInputError("The room owner cannot leave")
        await self._members.delete(member)
        await self._session.commit()
        return room

    # --- chats ---------------------------------------------------------------

    async def create_chat(self, room_id: uuid.UUID, profile: Profile, *, name: str, type: ChatType) -> RoomDetail:
        if name == GENERAL_CHAT:
            raise InvalidInputError("Name cannot be 'general'")
        room = await self._manager(room_id, profile)
        await self._chats.create(room_id=room.id, profile_id=profile.id, name=name, type=type)
        await self._session.commit()
        return await self._detail(room)

    async def _editable_chat(self, room: Room, chat_id: uuid.UUID) -> Chat:
        chat = await self._chats.get_in_room(chat_id, room.id)
        if chat is None:
            raise NotFoundError("Chat not found")
        if chat.name == GENERAL_CHAT:
            raise InvalidInputError("The general chat cannot be changed")
        return chat

    async def update_chat(
        self, room_id: uuid.UUID, chat_id: uuid.UUID, profile: Profile, values: dict[str, Any]
    ) -> RoomDetail:
        if values.get("name") == GENERAL_CHAT:
            raise InvalidInputError("Name cannot be 'general'")
        room = await self._manager(room_id, profile)
        chat = await self._editable_chat(room, chat_id)
        await self._chats.update(chat, values)
        await self._session.commit()
        return await self._detail(room)

    async def delete_chat(self, room_id: uuid.UUID, chat_id: uuid.UUID, profile: Profile) -> RoomDetail:
        room = await self._manager(room_id, profile)
        chat = await self._editable_chat(room, chat_id)
        await self._chats.delete(chat)
        await self._session.commit()
        return await self._detail(room)

    # --- members -------------------------------------------------------------

    async def _other_member(self, room_id: uuid.UUID, member_id: uuid.UUID, profile: Profile) -> tuple[Room, Member]:
        room = await self._owned(room_id, profile)
        member = await self._members.get(member_id, room.id)
        if member is None or member.profile_id == profile.id:
            raise NotFoundError("Member not found")
        return room, member

    async def change_role(
        self, room_id: uuid.UUID, member_id: uuid.UUID, profile: Profile, role: MemberRole
    ) -> RoomDetail:
        room, member = await self._other_member(room_id, member_id, profile)
        member.role = role
        await self._session.commit()
        return await self._detail(room)

    async def kick(self, room_id: uuid.UUID, member_id: uuid.UUID, profile: Profile) -> RoomDetail:
        room, member = await self._other_member(room_id, member_id, profile)
        await self._members.delete(member)
        await self._session.commit()
        return await self._detail(room)

    # --- messages ------------------------------------------------------------

    async def post_message(
        self,
        room_id: uuid.UUID,
        chat_id: uuid.UUID,
        profile: Profile,
        *,
        content: str,
        file_url: str | None = None,
    ) -> Message:
        if not content:
            raise InvalidInputError("Content Missing")
        room, member = await self._membership(room_id, profile)
        if await self._chats.get_in_room(chat_id, room.id) is None:
            raise NotFoundError("Chat not found")
        message = await self._messages.create(
            chat_id=chat_id, member_id=member.id, content=content, file_url=file_url
        )
        await self._session.commit()
        return message

    async def _chat_membership(self, chat_id: uuid.UUID, profile: Profile) -> tuple[Chat, Member]:
        chat = await self._chats.get(chat_id)
        if chat is None:
            raise NotFoundError("Chat not found")
        _, member = await self._membership(chat.room_id, profile)
        return chat, member

    async def messages(self, chat_id: uuid.UUID, profile: Profile, *, cursor: uuid.UUID | None = None) -> MessagePage:
        chat, _ = await self._chat_membership(chat_id, profile)
        items = await self._messages.page(chat.id, cursor=cursor)
        members = await self._members.list_by_ids(list({m.member_id for m in items}))
        profiles = await self._profiles.list_by_ids([m.profile_id for m in members])
        return MessagePage(
            items=items,
            members={m.id: m for m in members},
            profiles={p.id: p for p in profiles},
            next_cursor=items[-1].id if len(items) == MESSAGES_BATCH else None,
        )

    async def delete_message(self, chat_id: uuid.UUID, message_id: uuid.UUID, profile: Profile) -> Message:
        chat, member = await self._chat_membership(chat_id, profile)
        message = await self._messages.get(message_id, chat.id)
        if message is None or message.deleted:
            raise NotFoundError("Message not found")
        if message.member_id != member.id and member.role not in _CHANNEL_MANAGERS:
            raise PermissionDeniedError("Forbidden")
        await self._messages.soft_delete(message)
        await self._session.commit()
        return message
