"""
cambright.services.notes

Note authoring and reading service (transaction owner).

Responsibilities:
- Tutor-side authoring: notes, chapters, ordering and publish state.
- Reader-side: catalogue search, enrollment, chapter progress and dashboard.

Publish rules:
- A chapter may be published once it has a title and a video or session link.
- A note may be published once title, description, image and subject are set and
  at least one chapter is published.
- Removing the last published chapter (delete or unpublish) unpublishes the note.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from cambright.db.models import Note, NoteChapter, NoteProgress
from cambright.db.repositories.enrollments import EnrollmentRepo, ProgressRepo
from cambright.db.repositories.notes import ChapterRepo, NoteRepo
from cambright.errors import InvalidInputError, NotFoundError
from cambright.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(slots=True)
class CatalogueEntry:
    note: Note
    chapter_ids: list[uuid.UUID]
    progress: float | None


@dataclass(slots=True)
class ChapterReading:
    note: Note
    chapter: NoteChapter
    is_enrolled: bool
    progress: NoteProgress | None
    next_chapter: NoteChapter | None


@dataclass(slots=True)
class Dashboard:
    completed: list[CatalogueEntry] = field(default_factory=list)
    in_progress: list[CatalogueEntry] = field(default_factory=list)


def progress_percentage(completed: int, published: int) -> float:
    if published == 0:
        return 0.0
    return completed / published * 100


class NoteService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session
        self._notes = NoteRepo(session)
        self._chapters = ChapterRepo(session)
        self._enrollments = EnrollmentRepo(session)
        self._progress = ProgressRepo(session)

    # --- authoring -----------------------------------------------------------

    async def create(self, *, user_id: str, title: str) -> Note:
        note = await self._notes.create(user_id=user_id, title=title)
        await self._session.commit()
        log.info("note_created", note_id=str(note.id))
        return note

    async def owned(self, note_id: uuid.UUID, user_id: str) -> Note:
        note = await self._notes.get_owned(note_id, user_id)
        if note is None:
            raise NotFoundError("Note not found")
        return note

    async def list_owned(self, user_id: str) -> list[Note]:
        return await self._notes.list_owned(user_id)

    async def update(self, note_id: uuid.UUID, user_id: str, values: dict[str, Any]) -> Note:
        note = await self.owned(note_id, user_id)
        await self._notes.update(note, values)
        await self._session.commit()
        return note

    async def delete(self, note_id: uuid.UUID, user_id: str) -> Note:
        note = await self.owned(note_id, user_id)
        await self._notes.delete(note)
        await self._session.commit()
        log.info("note_deleted", note_id=str(note_id))
        return note

    async def publish(self, note_id: uuid.UUID, user_id: str) -> Note:
        note = await self.owned(note_id, user_id)
        if not (note.title and note.description and note.image_url and note.subject):
            raise InvalidInputError("Please fill all required fields")
        if await self._chapters.count_published(note.id) == 0:
            raise InvalidInputError("At least one published chapter is required")
        note.is_published = True
        await self._session.commit()
        return note

    async def unpublish(self, note_id: uuid.UUID, user_id: str) -> Note:
        note = await self.owned(note_id, user_id)
        note.is_published = False
        await self._session.commit()
        return note

    async def add_chapter(self, note_id: uuid.UUID, user_id: str, title: str) -> NoteChapter:
        note = await self.owned(note_id, user_id)
        chapter = await self._chapters.create(note_id=note.id, title=title)
        await self._session.commit()
        return chapter

    async def chapters(self, note: Note, *, published_only: bool = False) -> list[NoteChapter]:
        return await self._chapters.list_for_note(note.id, published_only=published_only)

    async def reorder_chapters(
        self, note_id: uuid.UUID, user_id: str, positions: dict[uuid.UUID, int]
    ) -> int:
        note = await self.owned(note_id, user_id)
        updated = await self._chapters.set_positions(note.id, positions)
        await self._session.commit()
        return updated

    async def _owned_chapter(
        self, note_id: uuid.UUID, chapter_id: uuid.UUID, user_id: str
    ) -> tuple[Note, NoteChapter]:
        note = await self.owned(note_id, user_id)
        chapter = await self._chapters.get(note.id, chapter_id)
        if chapter is None:
            raise NotFoundError("Chapter not found")
        return note, chapter

    async def update_chapter(
        self, note_id: uuid.UUID, chapter_id: uuid.UUID, user_id: str, values: dict[str, Any]
    ) -> NoteChapter:
        _, chapter = await self._owned_chapter(note_id, chapter_id, user_id)
        # Publish state only moves through the publish/unpublish operations.
        values.pop("is_published", None)
        await self._chapters.update(chapter, values)
        await self._session.commit()
        return chapter

    async def delete_chapter(
        self, note_id: uuid.UUID, chapter_id: uuid.UUID, user_id: str
    ) -> NoteChapter:
        note, chapter = await self._owned_chapter(note_id, chapter_id, user_id)
        await self._chapters.delete(chapter)
        await self._unpublish_if_empty(note)
        await self._session.commit()
        return chapter

    async def publish_chapter(
        self, note_id: uuid.UUID, chapter_id: uuid.UUID, user_id: str
    ) -> NoteChapter:
        _, chapter = await self._owned_chapter(note_id, chapter_id, user_id)
        if not chapter.title:
            raise InvalidInputError("Title is required")
        if not chapter.video_url and not chapter.session_link:
            raise InvalidInputError("Either videoUrl or sessionLink is required")
        chapter.is_published = True
        await self._session.commit()
        return chapter

    async def unpublish_chapter(
        self, note_id: uuid.UUID, chapter_id: uuid.UUID, user_id: str
    ) -> NoteChapter:
        note, chapter = await self._owned_chapter(note_id, chapter_id, user_id)
        chapter.is_published = False
        await self._session.flush()
        await self._unpublish_if_empty(note)
        await self._session.commit()
        return chapter

    async def _unpublish_if_empty(self, note: Note) -> None:
        if note.is_published and await self._chapters.count_published(note.id) == 0:
            note.is_published = False
            await self._session.flush()
            log.info("note_auto_unpublished", note_id=str(note.id))

    # --- reading -------------------------------------------------------------

    async def visible(self, note_id: uuid.UUID, user_id: str | None) -> tuple[Note, bool]:
        """Return the note and whether the caller owns it; hidden drafts are 404."""
        note = await self._notes.get(note_id)
        if note is None:
            raise NotFoundError("Note not found")
        is_owner = user_id is not None and note.user_id == user_id
        if not is_owner and not note.is_published:
            raise NotFoundError("Note not found")
        return note, is_owner

    async def catalogue(
        self, *, user_id: str | None, title: str | None = None, subject: str | None = None
    ) -> list[CatalogueEntry]:
        notes = await self._notes.search_published(title=title, subject=subject)
        return await self._entries(notes, user_id)

    async def _entries(self, notes: list[Note], user_id: str | None) -> list[CatalogueEntry]:
        chapter_ids = await self._chapters.published_ids_by_note([n.id for n in notes])
        enrolled = set(await self._enrollments.note_ids_for_user(user_id)) if user_id else set()
        entries = []
        for note in notes:
            progress = None
            if note.id in enrolled:
                completed = await self._progress.completed_published_count(
                    user_id=user_id, note_id=note.id
                )
                progress = progress_percentage(completed, len(chapter_ids[note.id]))
            entries.append(CatalogueEntry(note=note, chapter_ids=chapter_ids[note.id], progress=progress))
        return entries

    async def enroll(self, note_id: uuid.UUID, user_id: str) -> None:
        note = await self._notes.get_published(note_id)
        if note is None:
            raise NotFoundError("Note not found")
        if await self._enrollments.get(user_id=user_id, note_id=note.id) is not None:
            raise InvalidInputError("Already enrolled")
        await self._enrollments.create(user_id=user_id, note_id=note.id)
        await self._session.commit()

    async def disenroll(self, note_id: uuid.UUID, user_id: str) -> None:
        enrollment = await self._enrollments.get(user_id=user_id, note_id=note_id)
        if enrollment is None:
            raise NotFoundError("Not enrolled")
        await self._enrollments.delete(enrollment)
        await self._session.commit()

    async def read_chapter(
        self, note_id: uuid.UUID, chapter_id: uuid.UUID, user_id: str
    ) -> ChapterReading:
        note, is_owner = await self.visible(note_id, user_id)
        chapter = await self._chapters.get(note.id, chapter_id)
        if chapter is None or (not is_owner and not chapter.is_published):
            raise NotFoundError("Chapter not found")

        is_enrolled = await self._enrollments.get(user_id=user_id, note_id=note.id) is not None
        next_chapter = await self._chapters.next_published(chapter) if is_enrolled else None
        progress = await self._progress.get(user_id=user_id, chapter_id=chapter.id)
        return ChapterReading(
            note=note,
            chapter=chapter,
            is_enrolled=is_enrolled,
            progress=progress,
            next_chapter=next_chapter,
        )

    async def set_progress(
        self, note_id: uuid.UUID, chapter_id: uuid.UUID, user_id: str, is_completed: bool
    ) -> NoteProgress:
        chapter = await self._chapters.get(note_id, chapter_id)
        if chapter is None:
            raise NotFoundError("Chapter not found")
        progress = await self._progress.upsert(
            user_id=user_id, chapter_id=chapter.id, is_completed=is_completed
        )
        await self._session.commit()
        return progress

    async def dashboard(self, user_id: str) -> Dashboard:
        notes = await self._notes.list_by_ids(await self._enrollments.note_ids_for_user(user_id))
        dashboard = Dashboard()
        for entry in await self._entries(notes, user_id):
            if entry.progress is not None and entry.progress >= 100:
                dashboard.completed.append(entry)
            else:
                dashboard.in_progress.append(entry)
        return dashboard
