"""
cambright.db.models

Persistence schema for the school/community service.

Responsibilities:
- Define ORM models for every feature area:
  - Profile, Tag, Follow: community identity, XP and social graph
  - Tutor: who may author notes
  - Note, NoteChapter, NoteEnrollment, NoteProgress: content delivery
  - Sprint, TaskList, Task, AuditLog: org-scoped Kanban tracker
  - Room, Member, Chat, Message: group chat
  - Asset: uploaded file metadata
"""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    Column,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid as SAUuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from cambright.db.base import Base


def utcnow() -> datetime:
    return datetime.now(UTC)


def _pk() -> Mapped[uuid.UUID]:
    return mapped_column(SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4)


class TutorRole(enum.StrEnum):
    tutor = "TUTOR"
    senior_tutor = "SENIOR_TUTOR"


class AuditAction(enum.StrEnum):
    create = "CREATE"
    update = "UPDATE"
    delete = "DELETE"


class EntityType(enum.StrEnum):
    sprint = "SPRINT"
    list = "LIST"
    task = "TASK"


class MemberRole(enum.StrEnum):
    # Declaration order is the display order of member lists.
    admin = "ADMIN"
    moderator = "MODERATOR"
    guest = "GUEST"


class ChatType(enum.StrEnum):
    text = "TEXT"
    audio = "AUDIO"
    video = "VIDEO"


class AssetType(enum.StrEnum):
    school_image = "SCHOOL_IMAGE"
    school_banner = "SCHOOL_BANNER"
    post_image = "POST_IMAGE"
    course_image = "COURSE_IMAGE"
    note_image = "NOTE_IMAGE"
    chapter_video = "CHAPTER_VIDEO"
    message_file = "MESSAGE_FILE"
    general_file = "GENERAL_FILE"


# --- Community --------------------------------------------------------------

profile_tags = Table(
    "profile_tags",
    Base.metadata,
    Column("profile_id", SAUuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", SAUuid(as_uuid=True), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = _pk()
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False, unique=True)
    image_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    email: Mapped[str] = mapped_column(String(320), nullable=False, default="")
    biog: Mapped[str] = mapped_column(Text, nullable=False, default="")
    xp: Mapped[int] = mapped_column(Integer, nullable=False, default=5, index=True)
    followers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    following: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)


class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[uuid.UUID] = _pk()
    name: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)


class Follow(Base):
    __tablename__ = "follows"

    id: Mapped[uuid.UUID] = _pk()
    follower_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    following_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    __table_args__ = (UniqueConstraint("follower_id", "following_id"),)


class Tutor(Base):
    __tablename__ = "tutors"

    id: Mapped[uuid.UUID] = _pk()
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    role: Mapped[TutorRole] = mapped_column(Enum(TutorRole), nullable=False, default=TutorRole.tutor)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    added_by: Mapped[str] = mapped_column(String(128), nullable=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)


# --- Notes ------------------------------------------------------------------


class Note(Base):
    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = _pk()
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    subject: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    attachment_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)


class NoteChapter(Base):
    __tablename__ = "note_chapters"

    id: Mapped[uuid.UUID] = _pk()
    note_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("notes.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    video_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    session_link: Mapped[str | None] = mapped_column(Text, nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_free: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (Index("ix_note_chapters_note_position", "note_id", "position"),)


class NoteEnrollment(Base):
    __tablename__ = "note_enrollments"

    id: Mapped[uuid.UUID] = _pk()
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    note_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("notes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    __table_args__ = (UniqueConstraint("user_id", "note_id"),)


class NoteProgress(Base):
    __tablename__ = "note_progress"

    id: Mapped[uuid.UUID] = _pk()
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    chapter_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("note_chapters.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (UniqueConstraint("user_id", "chapter_id"),)


# --- Tracker ----------------------------------------------------------------


class Sprint(Base):
    __tablename__ = "sprints"

    id: Mapped[uuid.UUID] = _pk()
    org_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    image_id: Mapped[str] = mapped_column(String(256), nullable=False)
    image_thumb_url: Mapped[str] = mapped_column(Text, nullable=False)
    image_full_url: Mapped[str] = mapped_column(Text, nullable=False)
    image_link_html: Mapped[str] = mapped_column(Text, nullable=False)
    image_user_name: Mapped[str] = mapped_column(String(256), nullable=False)
    is_template: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)


class TaskList(Base):
    __tablename__ = "lists"

    id: Mapped[uuid.UUID] = _pk()
    sprint_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("sprints.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (Index("ix_lists_sprint_order", "sprint_id", "order"),)


class Task(Base):
    __tablename__ = "tasks"

    id: Mapped[uuid.UUID] = _pk()
    list_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("lists.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False)
    due_date: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (Index("ix_tasks_list_order", "list_id", "order"),)


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = _pk()
    org_id: Mapped[str] = mapped_column(String(128), nullable=False)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    user_name: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    action: Mapped[AuditAction] = mapped_column(Enum(AuditAction), nullable=False)
    entity_type: Mapped[EntityType] = mapped_column(Enum(EntityType), nullable=False)
    entity_id: Mapped[uuid.UUID] = mapped_column(SAUuid(as_uuid=True), nullable=False, index=True)
    entity_title: Mapped[str] = mapped_column(String(256), nullable=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    __table_args__ = (Index("ix_audit_logs_org_created", "org_id", "created_at"),)


# --- Group chat -------------------------------------------------------------


class Room(Base):
    __tablename__ = "rooms"

    id: Mapped[uuid.UUID] = _pk()
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    image_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    invite_code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    profile_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)


class Member(Base):
    __tablename__ = "members"

    id: Mapped[uuid.UUID] = _pk()
    room_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    profile_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[MemberRole] = mapped_column(Enum(MemberRole), nullable=False, default=MemberRole.guest)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    __table_args__ = (UniqueConstraint("room_id", "profile_id"),)


class Chat(Base):
    __tablename__ = "chats"

    id: Mapped[uuid.UUID] = _pk()
    room_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    profile_id: Mapped[uuid.UUID] = mapped_column(SAUuid(as_uuid=True), nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    type: Mapped[ChatType] = mapped_column(Enum(ChatType), nullable=False, default=ChatType.text)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)


class Message(Base):
    __tablename__ = "messages"

    id: Mapped[uuid.UUID] = _pk()
    chat_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("chats.id", ondelete="CASCADE"), nullable=False
    )
    member_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    file_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (Index("ix_messages_chat_created", "chat_id", "created_at"),)


# --- Assets -----------------------------------------------------------------


class Asset(Base):
    __tablename__ = "assets"

    id: Mapped[uuid.UUID] = _pk()
    key: Mapped[str] = mapped_column(String(512), nullable=False, unique=True)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(128), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    asset_type: Mapped[AssetType] = mapped_column(Enum(AssetType), nullable=False, index=True)
    uploaded_by: Mapped[str] = mapped_column(String(128), nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)


# --- Module Notes -----------------------------------------------------------
# Relationships are resolved with explicit queries in repositories rather than ORM
# relationship() attributes, which keeps async sessions free of implicit lazy loads.
# Child rows are deleted explicitly before parents, so deletes behave the same on
# backends that skip ON DELETE CASCADE (see `db/session.py` for the SQLite pragma).
