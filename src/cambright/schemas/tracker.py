"""
cambright.schemas.tracker

Validation models for tracker writes (sprints, lists, tasks).

Every model is checked before the service touches the database. Wire names are
camelCase (`sprintId`, `dueDate`); Python attributes are snake_case.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

TITLE_MIN_LENGTH = 3
DESCRIPTION_MIN_LENGTH = 3


def _check_title(value: Any) -> str:
    if value is None or not isinstance(value, str):
        raise PydanticCustomError("title_required", "Title is required")
    if len(value) < TITLE_MIN_LENGTH:
        raise PydanticCustomError("title_too_short", "Title is too short")
    return value


class TrackerModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _Titled(TrackerModel):
    # Declared with a None default so a missing title reports "Title is required".
    title: str = Field(default=None, validate_default=True)  # type: ignore[assignment]

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, value: Any) -> str:
        return _check_title(value)


# --- Sprint -----------------------------------------------------------------


class CreateSprint(_Titled):
    # Unsplash-style "id|thumbUrl|fullUrl|linkHTML|userName".
    image: str = Field(min_length=1)
    template: bool = False


class UpdateSprint(_Titled):
    id: uuid.UUID


class DeleteSprint(TrackerModel):
    id: uuid.UUID


class GrabSprint(TrackerModel):
    # Kept as a raw string: empty ids are a 400, unparsable ids a 404 (service).
    sprint_id: str | None = None


# --- List -------------------------------------------------------------------


class CreateList(_Titled):
    sprint_id: uuid.UUID


class UpdateList(_Titled):
    id: uuid.UUID
    sprint_id: uuid.UUID


class DeleteList(TrackerModel):
    id: uuid.UUID
    sprint_id: uuid.UUID


class CopyList(TrackerModel):
    id: uuid.UUID
    sprint_id: uuid.UUID


class ListOrderItem(TrackerModel):
    id: uuid.UUID
    order: int = Field(ge=0)


class UpdateListOrder(TrackerModel):
    sprint_id: uuid.UUID
    items: list[ListOrderItem]


# --- Task -------------------------------------------------------------------


class CreateTask(_Titled):
    sprint_id: uuid.UUID
    list_id: uuid.UUID
    due_date: datetime | None = None


class UpdateTask(TrackerModel):
    id: uuid.UUID
    sprint_id: uuid.UUID
    title: str | None = None
    description: str | None = None
    due_date: datetime | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, value: Any) -> str | None:
        return None if value is None else _check_title(value)

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, value: Any) -> str | None:
        if value is None:
            return None
        if not isinstance(value, str):
            raise PydanticCustomError("description_required", "Description is required")
        if len(value) < DESCRIPTION_MIN_LENGTH:
            raise PydanticCustomError("description_too_short", "Description is too short")
        return value


class DeleteTask(TrackerModel):
    id: uuid.UUID
    sprint_id: uuid.UUID


class CopyTask(TrackerModel):
    id: uuid.UUID
    sprint_id: uuid.UUID


class TaskOrderItem(TrackerModel):
    id: uuid.UUID
    order: int = Field(ge=0)
    list_id: uuid.UUID


class UpdateTaskOrder(TrackerModel):
    sprint_id: uuid.UUID
    items: list[TaskOrderItem]


# --- Module Notes -----------------------------------------------------------
# Validation errors surface as FastAPI 422 responses; the image split check lives in
# the tracker service because it depends on the five-part payload convention.
