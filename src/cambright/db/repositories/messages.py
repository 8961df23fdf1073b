"""
cambright.db.repositories.messages

Repository for chat `Message` entities.

Responsibilities:
- Persist messages sent by room members.
- Page through a chat newest-first using the id of the last seen message as cursor.
"""

from __future__ import annotations

import uuid

from sqlalchemy import and_, desc, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from cambright.db.models import Message

MESSAGES_BATCH = 10


class MessageRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self, *, chat_id: uuid.UUID, member_id: uuid.UUID, content: str, file_url: str | None
    ) -> Message:
        message = Message(chat_id=chat_id, member_id=member_id, content=content, file_url=file_url)
        self._session.add(message)
        await self._session.flush()
        return message

    async def get(self, message_id: uuid.UUID, chat_id: uuid.UUID) -> Message | None:
        stmt = select(Message).where(Message.id == message_id, Message.chat_id == chat_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def page(
        self, chat_id: uuid.UUID, *, cursor: uuid.UUID | None = None, limit: int = MESSAGES_BATCH
    ) -> list[Message]:
        stmt = select(Message).where(Message.chat_id == chat_id)
        if cursor is not None:
            anchor = await self.get(cursor, chat_id)
            if anchor is None:
                return []
            # Strictly older than the anchor; id breaks ties between equal timestamps.
            stmt = stmt.where(
                or_(
                    Message.created_at < anchor.created_at,
                    and_(Message.created_at == anchor.created_at, Message.id < anchor.id),
                )
            )
        stmt = stmt.order_by(desc(Message.created_at), desc(Message.id)).limit(limit)
        return list((await self._session.execute(stmt)).scalars().all())

    async def soft_delete(self, message: Message) -> Message:
        message.file_url = None
        message.content = "This message has been deleted."
        message.deleted = True
        await self._session.flush()
        return message
