"""
cambright.db.repositories.notes

Repository for `Note` and `NoteChapter` entities.

Responsibilities:
- Create, query and delete notes (tutor-authored content).
- Maintain chapter ordering by `position` (append = last + 1, first = 1).
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cambright.db.models import Note, NoteChapter, NoteEnrollment, NoteProgress


class NoteRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, user_id: str, title: str) -> Note:
        note = Note(user_id=user_id, title=title, is_published=False)
        self._session.add(note)
        await self._session.flush()
        return note

    async def get(self, note_id: uuid.UUID) -> Note | None:
        return await self._session.get(Note, note_id)

    async def get_owned(self, note_id: uuid.UUID, user_id: str) -> Note | None:
        stmt = select(Note).where(Note.id == note_id, Note.user_id == user_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_published(self, note_id: uuid.UUID) -> Note | None:
        stmt = select(Note).where(Note.id == note_id, Note.is_published.is_(True))
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_owned(self, user_id: str) -> list[Note]:
        stmt = select(Note).where(Note.user_id == user_id).order_by(desc(Note.created_at))
        return list((await self._session.execute(stmt)).scalars().all())

    async def search_published(
        self, *, title: str | None = None, subject: str | None = None
    ) -> list[Note]:
        stmt = select(Note).where(Note.is_published.is_(True))
        if title:
            # Case-insensitive "contains" that behaves the same on SQLite and Postgres.
            stmt = stmt.where(func.lower(Note.title).contains(title.lower()))
        if subject:
            stmt = stmt.where(Note.subject == subject)
        stmt = stmt.order_by(desc(Note.created_at))
        return list((await self._session.execute(stmt)).scalars().all())

    async def list_by_ids(self, note_ids: list[uuid.UUID]) -> list[Note]:
        if not note_ids:
            return []
        stmt = select(Note).where(Note.id.in_(note_ids)).order_by(desc(Note.created_at))
        return list((await self._session.execute(stmt)).scalars().all())

    async def update(self, note: Note, values: dict[str, Any]) -> Note:
        for key, value in values.items():
            setattr(note, key, value)
        await self._session.flush()
        return note

    async def delete(self, note: Note) -> None:
        chapter_ids = select(NoteChapter.id).where(NoteChapter.note_id == note.id)
        await self._session.execute(
            delete(NoteProgress).where(NoteProgress.chapter_id.in_(chapter_ids))
        )
        await self._session.execute(delete(NoteChapter).where(NoteChapter.note_id == note.id))
        await self._session.execute(
            delete(NoteEnrollment).where(NoteEnrollment.note_id == note.id)
        )
        await self._session.delete(note)
        await self._session.flush()


class ChapterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def next_position(self, note_id: uuid.UUID) -> int:
        stmt = select(func.max(NoteChapter.position)).where(NoteChapter.note_id == note_id)
        last = (await self._session.execute(stmt)).scalar_one_or_none()
        return 1 if last is None else last + 1

    async def create(self, *, note_id: uuid.UUID, title: str) -> NoteChapter:
        chapter = NoteChapter(
            note_id=note_id,
            title=title,
            position=await self.next_position(note_id),
            is_published=False,
            is_free=False,
        )
        self._session.add(chapter)
        await self._session.flush()
        return chapter

    async def get(self, note_id: uuid.UUID, chapter_id: uuid.UUID) -> NoteChapter | None:
        stmt = select(NoteChapter).where(
            NoteChapter.id == chapter_id, NoteChapter.note_id == note_id
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_note(
        self, note_id: uuid.UUID, *, published_only: bool = False
    ) -> list[NoteChapter]:
        stmt = select(NoteChapter).where(NoteChapter.note_id == note_id)
        if published_only:
            stmt = stmt.where(NoteChapter.is_published.is_(True))
        stmt = stmt.order_by(NoteChapter.position)
        return list((await self._session.execute(stmt)).scalars().all())

    async def published_ids_by_note(
        self, note_ids: list[uuid.UUID]
    ) -> dict[uuid.UUID, list[uuid.UUID]]:
        result: dict[uuid.UUID, list[uuid.UUID]] = {nid: [] for nid in note_ids}
        if not note_ids:
            return result
        stmt = (
            select(NoteChapter.note_id, NoteChapter.id)
            .where(NoteChapter.note_id.in_(note_ids), NoteChapter.is_published.is_(True))
            .order_by(NoteChapter.position)
        )
        for note_id, chapter_id in (await self._session.execute(stmt)).all():
            result[note_id].append(chapter_id)
        return result

    async def count_published(self, note_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(NoteChapter).where(
            NoteChapter.note_id == note_id, NoteChapter.is_published.is_(True)
        )
        return int((await self._session.execute(stmt)).scalar_one())

    async def next_published(self, chapter: NoteChapter) -> NoteChapter | None:
        stmt = (
            select(NoteChapter)
            .where(
                NoteChapter.note_id == chapter.note_id,
                NoteChapter.is_published.is_(True),
                NoteChapter.position > chapter.position,
            )
            .order_by(NoteChapter.position)
            .limit(1)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def update(self, chapter: NoteChapter, values: dict[str, Any]) -> NoteChapter:
        for key, value in values.items():
            setattr(chapter, key, value)
        await self._session.flush()
        return chapter

    async def set_positions(self, note_id: uuid.UUID, positions: dict[uuid.UUID, int]) -> int:
        chapters = await self.list_for_note(note_id)
        updated = 0
        for chapter in chapters:
            if chapter.id in positions:
                chapter.position = positions[chapter.id]
                updated += 1
        await self._session.flush()
        return updated

    async def delete(self, chapter: NoteChapter) -> None:
        await self._session.execute(
            delete(NoteProgress).where(NoteProgress.chapter_id == chapter.id)
        )
        await self._session.delete(chapter)
        await self._session.flush()


# --- Module Notes -----------------------------------------------------------
# Ownership is expressed in the query (`get_owned`) so callers cannot forget it.
