"""
cambright.db.repositories.sprints

Repository for tracker boards: `Sprint`, `TaskList` and `Task`.

Responsibilities:
- Org-scoped lookups (every query joins back to `Sprint.org_id`).
- Append ordering for lists and tasks (last + 1, first = 1).
- Cascading deletes and deep copies of sprints.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cambright.db.models import Sprint, Task, TaskList


class SprintRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, org_id: str, title: str, is_template: bool, **image: str) -> Sprint:
        sprint = Sprint(org_id=org_id, title=title, is_template=is_template, **image)
        self._session.add(sprint)
        await self._session.flush()
        return sprint

    async def get(self, sprint_id: uuid.UUID) -> Sprint | None:
        return await self._session.get(Sprint, sprint_id)

    async def get_for_org(self, sprint_id: uuid.UUID, org_id: str) -> Sprint | None:
        stmt = select(Sprint).where(Sprint.id == sprint_id, Sprint.org_id == org_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_org(self, org_id: str) -> list[Sprint]:
        stmt = select(Sprint).where(Sprint.org_id == org_id).order_by(desc(Sprint.created_at))
        return list((await self._session.execute(stmt)).scalars().all())

    async def list_templates(self) -> list[Sprint]:
        stmt = select(Sprint).where(Sprint.is_template.is_(True)).order_by(desc(Sprint.created_at))
        return list((await self._session.execute(stmt)).scalars().all())

    async def delete(self, sprint: Sprint) -> None:
        list_ids = select(TaskList.id).where(TaskList.sprint_id == sprint.id)
        await self._session.execute(delete(Task).where(Task.list_id.in_(list_ids)))
        await self._session.execute(delete(TaskList).where(TaskList.sprint_id == sprint.id))
        await self._session.delete(sprint)
        await self._session.flush()

    async def copy_into(self, source: Sprint, *, org_id: str) -> Sprint:
        # Deep copy: sprint -> lists -> tasks, keeping each row's order.
        copy = Sprint(
            org_id=org_id,
            title=source.title,
            image_id=source.image_id,
            image_thumb_url=source.image_thumb_url,
            image_full_url=source.image_full_url,
            image_link_html=source.image_link_html,
            image_user_name=source.image_user_name,
            is_template=False,
        )
        self._session.add(copy)
        await self._session.flush()

        lists = ListRepo(self._session)
        tasks = TaskRepo(self._session)
        for task_list in await lists.list_for_sprint(source.id):
            new_list = TaskList(sprint_id=copy.id, title=task_list.title, order=task_list.order)
            self._session.add(new_list)
            await self._session.flush()
            for task in await tasks.list_for_list(task_list.id):
                self._session.add(
                    Task(
                        list_id=new_list.id,
                        title=task.title,
                        description=task.description,
                        order=task.order,
                        due_date=task.due_date,
                    )
                )
        await self._session.flush()
        return copy


class ListRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def next_order(self, sprint_id: uuid.UUID) -> int:
        stmt = select(func.max(TaskList.order)).where(TaskList.sprint_id == sprint_id)
        last = (await self._session.execute(stmt)).scalar_one_or_none()
        return 1 if last is None else last + 1

    async def create(self, *, sprint_id: uuid.UUID, title: str) -> TaskList:
        task_list = TaskList(sprint_id=sprint_id, title=title, order=await self.next_order(sprint_id))
        self._session.add(task_list)
        await self._session.flush()
        return task_list

    async def get_for_org(
        self, list_id: uuid.UUID, org_id: str, *, sprint_id: uuid.UUID | None = None
    ) -> TaskList | None:
        stmt = (
            select(TaskList)
            .join(Sprint, Sprint.id == TaskList.sprint_id)
            .where(TaskList.id == list_id, Sprint.org_id == org_id)
        )
        if sprint_id is not None:
            stmt = stmt.where(TaskList.sprint_id == sprint_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_sprint(self, sprint_id: uuid.UUID) -> list[TaskList]:
        stmt = select(TaskList).where(TaskList.sprint_id == sprint_id).order_by(TaskList.order)
        return list((await self._session.execute(stmt)).scalars().all())

    async def update(self, task_list: TaskList, values: dict[str, Any]) -> TaskList:
        for key, value in values.items():
            setattr(task_list, key, value)
        await self._session.flush()
        return task_list

    async def delete(self, task_list: TaskList) -> None:
        await self._session.execute(delete(Task).where(Task.list_id == task_list.id))
        await self._session.delete(task_list)
        await self._session.flush()

    async def copy(self, source: TaskList) -> TaskList:
        copy = TaskList(
            sprint_id=source.sprint_id,
            title=f"{source.title} - Copy",
            order=await self.next_order(source.sprint_id),
        )
        self._session.add(copy)
        await self._session.flush()
        for task in await TaskRepo(self._session).list_for_list(source.id):
            self._session.add(
                Task(
                    list_id=copy.id,
                    title=task.title,
                    description=task.description,
                    order=task.order,
                    due_date=task.due_date,
                )
            )
        await self._session.flush()
        return copy


class TaskRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def next_order(self, list_id: uuid.UUID) -> int:
        stmt = select(func.max(Task.order)).where(Task.list_id == list_id)
        last = (await self._session.execute(stmt)).scalar_one_or_none()
        return 1 if last is None else last + 1

    async def create(self, *, list_id: uuid.UUID, title: str, due_date: Any = None) -> Task:
        task = Task(
            list_id=list_id,
            title=title,
            order=await self.next_order(list_id),
            due_date=due_date,
        )
        self._session.add(task)
        await self._session.flush()
        return task

    async def get_for_org(
        self, task_id: uuid.UUID, org_id: str, *, sprint_id: uuid.UUID | None = None
    ) -> Task | None:
        stmt = (
            select(Task)
            .join(TaskList, TaskList.id == Task.list_id)
            .join(Sprint, Sprint.id == TaskList.sprint_id)
            .where(Task.id == task_id, Sprint.org_id == org_id)
        )
        if sprint_id is not None:
            stmt = stmt.where(TaskList.sprint_id == sprint_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_list(self, list_id: uuid.UUID) -> list[Task]:
        stmt = select(Task).where(Task.list_id == list_id).order_by(Task.order)
        return list((await self._session.execute(stmt)).scalars().all())

    async def list_for_lists(self, list_ids: list[uuid.UUID]) -> dict[uuid.UUID, list[Task]]:
        result: dict[uuid.UUID, list[Task]] = {lid: [] for lid in list_ids}
        if not list_ids:
            return result
        stmt = select(Task).where(Task.list_id.in_(list_ids)).order_by(Task.order)
        for task in (await self._session.execute(stmt)).scalars().all():
            result[task.list_id].append(task)
        return result

    async def update(self, task: Task, values: dict[str, Any]) -> Task:
        for key, value in values.items():
            setattr(task, key, value)
        await self._session.flush()
        return task

    async def delete(self, task: Task) -> None:
        await self._session.delete(task)
        await self._session.flush()

    async def copy(self, source: Task) -> Task:
        copy = Task(
            list_id=source.list_id,
            title=f"{source.title} - Copy",
            description=source.description,
            order=await self.next_order(source.list_id),
            due_date=source.due_date,
        )
        self._session.add(copy)
        await self._session.flush()
        return copy
