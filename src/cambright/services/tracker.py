"""
cambright.services.tracker

Organization-scoped Kanban tracker service (transaction owner).

Responsibilities:
- Sprint, list and task CRUD, copy and reorder, always filtered by the caller's org.
- Deep copy of a (template) sprint into the caller's org.
- One `AuditLog` row per create/update/delete/copy.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from cambright.auth.models import Principal
from cambright.db.models import AuditAction, AuditLog, EntityType, Sprint, Task, TaskList
from cambright.db.repositories.audit import AuditLogRepo
from cambright.db.repositories.profiles import ProfileRepo
from cambright.db.repositories.sprints import ListRepo, SprintRepo, TaskRepo
from cambright.errors import InvalidInputError, NotFoundError, UnauthorizedError
from cambright.observability.logging import get_logger
from cambright.schemas import tracker as schemas

log = get_logger(__name__)

IMAGE_PARTS = ("image_id", "image_thumb_url", "image_full_url", "image_link_html", "image_user_name")


def split_image(image: str) -> dict[str, str]:
    parts = image.split("|")
    if len(parts) != len(IMAGE_PARTS) or not all(parts):
        raise InvalidInputError("Missing Fields")
    return dict(zip(IMAGE_PARTS, parts, strict=True))


def parse_uuid(value: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(value)
    except ValueError:
        return None


@dataclass(slots=True)
class Board:
    sprint: Sprint
    lists: list[TaskList]
    tasks: dict[uuid.UUID, list[Task]]


class TrackerService:
    def __init__(self, *, session: AsyncSession, principal: Principal) -> None:
        if not principal.org_id:
            raise UnauthorizedError("Unauthorized")
        self._session = session
        self._principal = principal
        self._org_id: str = principal.org_id
        self._sprints = SprintRepo(session)
        self._lists = ListRepo(session)
        self._tasks = TaskRepo(session)
        self._audit = AuditLogRepo(session)
        self._profiles = ProfileRepo(session)

    async def _log(self, action: AuditAction, entity_type: EntityType, entity_id: uuid.UUID, title: str) -> None:
        profile = await self._profiles.get_by_user_id(self._principal.user_id)
        await self._audit.add(
            org_id=self._org_id,
            user_id=self._principal.user_id,
            user_name=profile.name if profile is not None else "",
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            entity_title=title,
        )

    # --- sprints -------------------------------------------------------------

    async def sprint(self, sprint_id: uuid.UUID) -> Sprint:
        sprint = await self._sprints.get_for_org(sprint_id, self._org_id)
        if sprint is None:
            raise NotFoundError("Sprint not found")
        return sprint

    async def sprints(self) -> list[Sprint]:
        return await self._sprints.list_for_org(self._org_id)

    async def templates(self) -> list[Sprint]:
        return await self._sprints.list_templates()

    async def board(self, sprint_id: uuid.UUID) -> Board:
        sprint = await self.sprint(sprint_id)
        lists = await self._lists.list_for_sprint(sprint.id)
        tasks = await self._tasks.list_for_lists([tl.id for tl in lists])
        return Board(sprint=sprint, lists=lists, tasks=tasks)

    async def create_sprint(self, data: schemas.CreateSprint) -> Sprint:
        image = split_image(data.image)
        sprint = await self._sprints.create(
            org_id=self._org_id, title=data.title, is_template=data.template, **image
        )
        await self._log(AuditAction.create, EntityType.sprint, sprint.id, sprint.title)
        await self._session.commit()
        log.info("sprint_created", sprint_id=str(sprint.id), org_id=self._org_id)
        return sprint

    async def update_sprint(self, data: schemas.UpdateSprint) -> Sprint:
        sprint = await self.sprint(data.id)
        sprint.title = data.title
        await self._session.flush()
        await self._log(AuditAction.update, EntityType.sprint, sprint.id, sprint.title)
        await self._session.commit()
        return sprint

    async def delete_sprint(self, data: schemas.DeleteSprint) -> Sprint:
        sprint = await self.sprint(data.id)
        await self._sprints.delete(sprint)
        await self._log(AuditAction.delete, EntityType.sprint, sprint.id, sprint.title)
        await self._session.commit()
        log.info("sprint_deleted", sprint_id=str(sprint.id), org_id=self._org_id)
        return sprint

    async def grab_sprint(self, data: schemas.GrabSprint) -> Sprint:
        # Any sprint id is accepted as a source; the copy always lands in the caller's org.
        if not data.sprint_id:
            raise InvalidInputError("Missing sprintId")
        source_id = parse_uuid(data.sprint_id)
        source = await self._sprints.get(source_id) if source_id else None
        if source is None:
            raise NotFoundError("Sprint not found")
        copy = await self._sprints.copy_into(source, org_id=self._org_id)
        await self._log(AuditAction.create, EntityType.sprint, copy.id, copy.title)
        await self._session.commit()
        log.info("sprint_grabbed", source_id=str(source.id), sprint_id=str(copy.id), org_id=self._org_id)
        return copy

    # --- lists ---------------------------------------------------------------

    async def _list(self, list_id: uuid.UUID, sprint_id: uuid.UUID) -> TaskList:
        task_list = await self._lists.get_for_org(list_id, self._org_id, sprint_id=sprint_id)
        if task_list is None:
            raise NotFoundError("List not found")
        return task_list

    async def create_list(self, data: schemas.CreateList) -> TaskList:
        sprint = await self.sprint(data.sprint_id)
        task_list = await self._lists.create(sprint_id=sprint.id, title=data.title)
        await self._log(AuditAction.create, EntityType.list, task_list.id, task_list.title)
        await self._session.commit()
        return task_list

    async def update_list(self, data: schemas.UpdateList) -> TaskList:
        task_list = await self._list(data.id, data.sprint_id)
        await self._lists.update(task_list, {"title": data.title})
        await self._log(AuditAction.update, EntityType.list, task_list.id, task_list.title)
        await self._session.commit()
        return task_list

    async def delete_list(self, data: schemas.DeleteList) -> TaskList:
        task_list = await self._list(data.id, data.sprint_id)
        await self._lists.delete(task_list)
        await self._log(AuditAction.delete, EntityType.list, task_list.id, task_list.title)
        await self._session.commit()
        return task_list

    async def copy_list(self, data: schemas.CopyList) -> TaskList:
        source = await self._list(data.id, data.sprint_id)
        copy = await self._lists.copy(source)
        await self._log(AuditAction.create, EntityType.list, copy.id, copy.title)
        await self._session.commit()
        return copy

    async def reorder_lists(self, data: schemas.UpdateListOrder) -> list[TaskList]:
        sprint = await self.sprint(data.sprint_id)
        lists = {tl.id: tl for tl in await self._lists.list_for_sprint(sprint.id)}
        for item in data.items:
            if item.id not in lists:
                raise NotFoundError("List not found")
            lists[item.id].order = item.order
        # All positions land in one commit or not at all.
        await self._session.commit()
        return sorted(lists.values(), key=lambda tl: tl.order)

    # --- tasks ---------------------------------------------------------------

    async def _task(self, task_id: uuid.UUID, sprint_id: uuid.UUID) -> Task:
        task = await self._tasks.get_for_org(task_id, self._org_id, sprint_id=sprint_id)
        if task is None:
            raise NotFoundError("Task not found")
        return task

    async def create_task(self, data: schemas.CreateTask) -> Task:
        task_list = await self._list(data.list_id, data.sprint_id)
        task = await self._tasks.create(list_id=task_list.id, title=data.title, due_date=data.due_date)
        await self._log(AuditAction.create, EntityType.task, task.id, task.title)
        await self._session.commit()
        return task

    async def update_task(self, data: schemas.UpdateTask) -> Task:
        task = await self._task(data.id, data.sprint_id)
        values = data.model_dump(include={"title", "description", "due_date"}, exclude_unset=True)
        if values.get("title") is None:
            values.pop("title", None)
        await self._tasks.update(task, values)
        await self._log(AuditAction.update, EntityType.task, task.id, task.title)
        await self._session.commit()
        return task

    async def delete_task(self, data: schemas.DeleteTask) -> Task:
        task = await self._task(data.id, data.sprint_id)
        await self._tasks.delete(task)
        await self._log(AuditAction.delete, EntityType.task, task.id, task.title)
        await self._session.commit()
        return task

    async def copy_task(self, data: schemas.CopyTask) -> Task:
        source = await self._task(data.id, data.sprint_id)
        copy = await self._tasks.copy(source)
        await self._log(AuditAction.create, EntityType.task, copy.id, copy.title)
        await self._session.commit()
        return copy

    async def reorder_tasks(self, data: schemas.UpdateTaskOrder) -> list[Task]:
        sprint = await self.sprint(data.sprint_id)
        list_ids = {tl.id for tl in await self._lists.list_for_sprint(sprint.id)}
        tasks = []
        for item in data.items:
            if item.list_id not in list_ids:
                raise NotFoundError("List not found")
            task = await self._task(item.id, sprint.id)
            task.order = item.order
            task.list_id = item.list_id
            tasks.append(task)
        await self._session.commit()
        return tasks

    # --- activity ------------------------------------------------------------

    async def audit_logs(self, *, limit: int = 50) -> list[AuditLog]:
        return await self._audit.list_for_org(self._org_id, limit=limit)

    async def entity_audit_logs(self, entity_type: EntityType, entity_id: uuid.UUID) -> list[AuditLog]:
        return await self._audit.list_for_entity(self._org_id, entity_type, entity_id)
