"""
cambright.api.routers.notes

Note authoring and reading endpoints.

Responsibilities:
- Tutor authoring: notes, chapters, ordering and publish state.
- Reader flows: catalogue, enrollment, chapter view, progress and dashboard.
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED, HTTP_400_BAD_REQUEST, HTTP_401_UNAUTHORIZED

from cambright.api.deps import db_session, settings_dep
from cambright.auth.deps import get_optional_principal, get_principal
from cambright.auth.models import Principal
from cambright.db.models import Note, NoteChapter
from cambright.services.notes import CatalogueEntry, NoteService
from cambright.services.tutors import TutorService
from cambright.settings import Settings

router = APIRouter(prefix="/api", tags=["notes"])


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CreateNoteRequest(_Body):
    title: str = Field(min_length=1)


class UpdateNoteRequest(_Body):
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    image_url: str | None = Field(default=None, alias="imageUrl")
    subject: str | None = None
    attachment_url: str | None = Field(default=None, alias="attachmentUrl")


class CreateChapterRequest(_Body):
    title: str = Field(min_length=1)


class UpdateChapterRequest(_Body):
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    video_url: str | None = Field(default=None, alias="videoUrl")
    session_link: str | None = Field(default=None, alias="sessionLink")
    is_free: bool | None = Field(default=None, alias="isFree")
    is_published: bool | None = Field(default=None, alias="isPublished")


class ChapterPosition(_Body):
    id: uuid.UUID
    position: int = Field(ge=1)


class ReorderRequest(_Body):
    items: list[ChapterPosition] = Field(alias="list")


class ProgressRequest(_Body):
    is_completed: Any = Field(default=None, alias="isCompleted")


async def require_tutor(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> Principal:
    if not await TutorService(session=session, settings=settings).is_tutor(principal):
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return principal


def note_out(note: Note) -> dict[str, Any]:
    return {
        "id": str(note.id),
        "userId": note.user_id,
        "title": note.title,
        "description": note.description,
        "imageUrl": note.image_url,
        "subject": note.subject,
        "attachmentUrl": note.attachment_url,
        "isPublished": note.is_published,
        "createdAt": note.created_at.isoformat(),
        "updatedAt": note.updated_at.isoformat(),
    }


def chapter_out(chapter: NoteChapter) -> dict[str, Any]:
    return {
        "id": str(chapter.id),
        "noteId": str(chapter.note_id),
        "title": chapter.title,
        "description": chapter.description,
        "videoUrl": chapter.video_url,
        "sessionLink": chapter.session_link,
        "position": chapter.position,
        "isPublished": chapter.is_published,
        "isFree": chapter.is_free,
    }


def entry_out(entry: CatalogueEntry) -> dict[str, Any]:
    return {
        **note_out(entry.note),
        "chapters": [{"id": str(cid)} for cid in entry.chapter_ids],
        "progress": entry.progress,
    }


# --- authoring ---------------------------------------------------------------


@router.post("/notes")
async def create_note(
    body: CreateNoteRequest,
    principal: Principal = Depends(require_tutor),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    note = await NoteService(session=session).create(user_id=principal.user_id, title=body.title)
    return note_out(note)


@router.get("/notes/mine")
async def my_notes(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> list[dict[str, Any]]:
    return [note_out(n) for n in await NoteService(session=session).list_owned(principal.user_id)]


@router.patch("/notes/{note_id}")
async def update_note(
    note_id: uuid.UUID,
    body: UpdateNoteRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    values = body.model_dump(exclude_unset=True)
    if values.get("title") is None:
        values.pop("title", None)
    note = await NoteService(session=session).update(note_id, principal.user_id, values)
    return note_out(note)


@router.delete("/notes/{note_id}")
async def delete_note(
    note_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    return note_out(await NoteService(session=session).delete(note_id, principal.user_id))


@router.patch("/notes/{note_id}/publish")
async def publish_note(
    note_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    return note_out(await NoteService(session=session).publish(note_id, principal.user_id))


@router.patch("/notes/{note_id}/unpublish")
async def unpublish_note(
    note_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    return note_out(await NoteService(session=session).unpublish(note_id, principal.user_id))


@router.post("/notes/{note_id}/chapters")
async def create_chapter(
    note_id: uuid.UUID,
    body: CreateChapterRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    chapter = await NoteService(session=session).add_chapter(note_id, principal.user_id, body.title)
    return chapter_out(chapter)


@router.put("/notes/{note_id}/chapters/reorder")
async def reorder_chapters(
    note_id: uuid.UUID,
    body: ReorderRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    positions = {item.id: item.position for item in body.items}
    updated = await NoteService(session=session).reorder_chapters(note_id, principal.user_id, positions)
    return {"message": "Success", "updated": updated}


@router.patch("/notes/{note_id}/chapters/{chapter_id}")
async def update_chapter(
    note_id: uuid.UUID,
    chapter_id: uuid.UUID,
    body: UpdateChapterRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    values = body.model_dump(exclude_unset=True)
    for required in ("title", "is_free"):
        if values.get(required) is None:
            values.pop(required, None)
    chapter = await NoteService(session=session).update_chapter(
        note_id, chapter_id, principal.user_id, values
    )
    return chapter_out(chapter)


@router.delete("/notes/{note_id}/chapters/{chapter_id}")
async def delete_chapter(
    note_id: uuid.UUID,
    chapter_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    chapter = await NoteService(session=session).delete_chapter(note_id, chapter_id, principal.user_id)
    return chapter_out(chapter)


@router.patch("/notes/{note_id}/chapters/{chapter_id}/publish")
async def publish_chapter(
    note_id: uuid.UUID,
    chapter_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    chapter = await NoteService(session=session).publish_chapter(note_id, chapter_id, principal.user_id)
    return chapter_out(chapter)


@router.patch("/notes/{note_id}/chapters/{chapter_id}/unpublish")
async def unpublish_chapter(
    note_id: uuid.UUID,
    chapter_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    chapter = await NoteService(session=session).unpublish_chapter(note_id, chapter_id, principal.user_id)
    return chapter_out(chapter)


# --- reading -----------------------------------------------------------------


@router.get("/notes")
async def catalogue(
    title: str | None = None,
    subject: str | None = None,
    principal: Principal | None = Depends(get_optional_principal),
    session: AsyncSession = Depends(db_session),
) -> list[dict[str, Any]]:
    entries = await NoteService(session=session).catalogue(
        user_id=principal.user_id if principal else None, title=title, subject=subject
    )
    return [entry_out(e) for e in entries]


@router.get("/notes/{note_id}")
async def note_detail(
    note_id: uuid.UUID,
    principal: Principal | None = Depends(get_optional_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    svc = NoteService(session=session)
    note, is_owner = await svc.visible(note_id, principal.user_id if principal else None)
    chapters = await svc.chapters(note, published_only=not is_owner)
    return {**note_out(note), "chapters": [chapter_out(c) for c in chapters]}


@router.get("/notes/{note_id}/chapters/{chapter_id}")
async def read_chapter(
    note_id: uuid.UUID,
    chapter_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    reading = await NoteService(session=session).read_chapter(note_id, chapter_id, principal.user_id)
    return {
        "chapter": chapter_out(reading.chapter),
        "note": note_out(reading.note),
        "isEnrolled": reading.is_enrolled,
        "userProgress": (
            {"isCompleted": reading.progress.is_completed} if reading.progress is not None else None
        ),
        "nextChapter": chapter_out(reading.next_chapter) if reading.next_chapter else None,
    }


@router.post("/notes/{note_id}/enroll", status_code=HTTP_201_CREATED)
async def enroll(
    note_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, str]:
    await NoteService(session=session).enroll(note_id, principal.user_id)
    return {"message": "Enrolled successfully"}


@router.delete("/notes/{note_id}/enroll")
async def disenroll(
    note_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, str]:
    await NoteService(session=session).disenroll(note_id, principal.user_id)
    return {"message": "Disenrolled successfully"}


@router.put("/notes/{note_id}/chapters/{chapter_id}/progress")
async def set_progress(
    note_id: uuid.UUID,
    chapter_id: uuid.UUID,
    body: ProgressRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    if not isinstance(body.is_completed, bool):
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Invalid data")
    progress = await NoteService(session=session).set_progress(
        note_id, chapter_id, principal.user_id, body.is_completed
    )
    return {
        "userId": progress.user_id,
        "chapterId": str(progress.chapter_id),
        "isCompleted": progress.is_completed,
    }


@router.get("/dashboard/notes")
async def dashboard(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    result = await NoteService(session=session).dashboard(principal.user_id)
    return {
        "completedNotes": [entry_out(e) for e in result.completed],
        "notesInProgress": [entry_out(e) for e in result.in_progress],
    }
