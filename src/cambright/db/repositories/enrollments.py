"""
cambright.db.repositories.enrollments

Repository for note enrollment and per-chapter progress.

Responsibilities:
- Enroll/disenroll users in published notes.
- Upsert chapter completion and compute completion counts.
"""

from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cambright.db.models import NoteChapter, NoteEnrollment, NoteProgress


class EnrollmentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, *, user_id: str, note_id: uuid.UUID) -> NoteEnrollment | None:
        stmt = select(NoteEnrollment).where(
            NoteEnrollment.user_id == user_id, NoteEnrollment.note_id == note_id
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def create(self, *, user_id: str, note_id: uuid.UUID) -> NoteEnrollment:
        enrollment = NoteEnrollment(user_id=user_id, note_id=note_id)
        self._session.add(enrollment)
        await self._session.flush()
        return enrollment

    async def delete(self, enrollment: NoteEnrollment) -> None:
        await self._session.delete(enrollment)
        await self._session.flush()

    async def note_ids_for_user(self, user_id: str) -> list[uuid.UUID]:
        stmt = select(NoteEnrollment.note_id).where(NoteEnrollment.user_id == user_id)
        return list((await self._session.execute(stmt)).scalars().all())


class ProgressRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, *, user_id: str, chapter_id: uuid.UUID) -> NoteProgress | None:
        stmt = select(NoteProgress).where(
            NoteProgress.user_id == user_id, NoteProgress.chapter_id == chapter_id
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def upsert(
        self, *, user_id: str, chapter_id: uuid.UUID, is_completed: bool
    ) -> NoteProgress:
        progress = await self.get(user_id=user_id, chapter_id=chapter_id)
        if progress is None:
            progress = NoteProgress(
                user_id=user_id, chapter_id=chapter_id, is_completed=is_completed
            )
            self._session.add(progress)
        else:
            progress.is_completed = is_completed
        await self._session.flush()
        return progress

    async def completed_published_count(self, *, user_id: str, note_id: uuid.UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(NoteProgress)
            .join(NoteChapter, NoteChapter.id == NoteProgress.chapter_id)
            .where(
                NoteProgress.user_id == user_id,
                NoteProgress.is_completed.is_(True),
                NoteChapter.note_id == note_id,
                NoteChapter.is_published.is_(True),
            )
        )
        return int((await self._session.execute(stmt)).scalar_one())
