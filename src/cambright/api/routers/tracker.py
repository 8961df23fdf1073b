"""
cambright.api.routers.tracker

Organization-scoped Kanban tracker endpoints (sprints, lists, tasks, activity).

Responsibilities:
- Validate writes with `cambright.schemas.tracker` before any database access.
- Delegate to `TrackerService`, which scopes every query to the caller's org.
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_404_NOT_FOUND

from cambright.api.deps import db_session
from cambright.auth.deps import get_org_principal, get_principal
from cambright.auth.models import Principal
from cambright.db.models import AuditLog, EntityType, Sprint, Task, TaskList
from cambright.db.repositories.sprints import SprintRepo
from cambright.schemas import tracker as schemas
from cambright.services.tracker import TrackerService, parse_uuid

router = APIRouter(prefix="/api", tags=["tracker"])


def tracker(
    principal: Principal = Depends(get_org_principal),
    session: AsyncSession = Depends(db_session),
) -> TrackerService:
    return TrackerService(session=session, principal=principal)


def sprint_out(sprint: Sprint) -> dict[str, Any]:
    return {
        "id": str(sprint.id),
        "orgId": sprint.org_id,
        "title": sprint.title,
        "imageId": sprint.image_id,
        "imageThumbUrl": sprint.image_thumb_url,
        "imageFullUrl": sprint.image_full_url,
        "imageLinkHTML": sprint.image_link_html,
        "imageUserName": sprint.image_user_name,
        "isTemplate": sprint.is_template,
        "createdAt": sprint.created_at.isoformat(),
        "updatedAt": sprint.updated_at.isoformat(),
    }


def list_out(task_list: TaskList) -> dict[str, Any]:
    return {
        "id": str(task_list.id),
        "sprintId": str(task_list.sprint_id),
        "title": task_list.title,
        "order": task_list.order,
    }


def task_out(task: Task) -> dict[str, Any]:
    return {
        "id": str(task.id),
        "listId": str(task.list_id),
        "title": task.title,
        "description": task.description,
        "order": task.order,
        "dueDate": task.due_date.isoformat() if task.due_date else None,
    }


def audit_out(entry: AuditLog) -> dict[str, Any]:
    return {
        "id": str(entry.id),
        "orgId": entry.org_id,
        "userId": entry.user_id,
        "userName": entry.user_name,
        "action": entry.action.value,
        "entityType": entry.entity_type.value,
        "entityId": str(entry.entity_id),
        "entityTitle": entry.entity_title,
        "createdAt": entry.created_at.isoformat(),
    }


# --- sprints -----------------------------------------------------------------


@router.post("/sprints")
async def create_sprint(
    body: schemas.CreateSprint, svc: TrackerService = Depends(tracker)
) -> dict[str, Any]:
    return sprint_out(await svc.create_sprint(body))


@router.get("/sprints")
async def list_sprints(svc: TrackerService = Depends(tracker)) -> list[dict[str, Any]]:
    return [sprint_out(s) for s in await svc.sprints()]


@router.get("/sprints/templates")
async def list_templates(svc: TrackerService = Depends(tracker)) -> list[dict[str, Any]]:
    return [sprint_out(s) for s in await svc.templates()]


@router.get("/sprints/{sprint_id}")
async def get_board(sprint_id: uuid.UUID, svc: TrackerService = Depends(tracker)) -> dict[str, Any]:
    board = await svc.board(sprint_id)
    return {
        **sprint_out(board.sprint),
        "lists": [
            {**list_out(tl), "tasks": [task_out(t) for t in board.tasks[tl.id]]}
            for tl in board.lists
        ],
    }


@router.patch("/sprints")
async def update_sprint(
    body: schemas.UpdateSprint, svc: TrackerService = Depends(tracker)
) -> dict[str, Any]:
    return sprint_out(await svc.update_sprint(body))


@router.delete("/sprints")
async def delete_sprint(
    body: schemas.DeleteSprint, svc: TrackerService = Depends(tracker)
) -> dict[str, Any]:
    return sprint_out(await svc.delete_sprint(body))


@router.get("/sprint/{sprint_id}")
async def sprint_org(
    sprint_id: str,
    _: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, str]:
    # Used by the client to redirect into the sprint's organization.
    parsed = parse_uuid(sprint_id)
    sprint = await SprintRepo(session).get(parsed) if parsed else None
    if sprint is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Sprint not found")
    return {"orgId": sprint.org_id}


@router.post("/grab-sprint")
async def grab_sprint(
    body: schemas.GrabSprint, svc: TrackerService = Depends(tracker)
) -> dict[str, str]:
    copy = await svc.grab_sprint(body)
    return {"sprintId": str(copy.id)}


# --- lists -------------------------------------------------------------------


@router.post("/lists")
async def create_list(body: schemas.CreateList, svc: TrackerService = Depends(tracker)) -> dict[str, Any]:
    return list_out(await svc.create_list(body))


@router.patch("/lists")
async def update_list(body: schemas.UpdateList, svc: TrackerService = Depends(tracker)) -> dict[str, Any]:
    return list_out(await svc.update_list(body))


@router.delete("/lists")
async def delete_list(body: schemas.DeleteList, svc: TrackerService = Depends(tracker)) -> dict[str, Any]:
    return list_out(await svc.delete_list(body))


@router.post("/lists/copy")
async def copy_list(body: schemas.CopyList, svc: TrackerService = Depends(tracker)) -> dict[str, Any]:
    return list_out(await svc.copy_list(body))


@router.put("/lists/order")
async def reorder_lists(
    body: schemas.UpdateListOrder, svc: TrackerService = Depends(tracker)
) -> list[dict[str, Any]]:
    return [list_out(tl) for tl in await svc.reorder_lists(body)]


# --- tasks -------------------------------------------------------------------


@router.post("/tasks")
async def create_task(body: schemas.CreateTask, svc: TrackerService = Depends(tracker)) -> dict[str, Any]:
    return task_out(await svc.create_task(body))


@router.patch("/tasks")
async def update_task(body: schemas.UpdateTask, svc: TrackerService = Depends(tracker)) -> dict[str, Any]:
    return task_out(await svc.update_task(body))


@router.delete("/tasks")
async def delete_task(body: schemas.DeleteTask, svc: TrackerService = Depends(tracker)) -> dict[str, Any]:
    return task_out(await svc.delete_task(body))


@router.post("/tasks/copy")
async def copy_task(body: schemas.CopyTask, svc: TrackerService = Depends(tracker)) -> dict[str, Any]:
    return task_out(await svc.copy_task(body))


@router.put("/tasks/order")
async def reorder_tasks(
    body: schemas.UpdateTaskOrder, svc: TrackerService = Depends(tracker)
) -> list[dict[str, Any]]:
    return [task_out(t) for t in await svc.reorder_tasks(body)]


# --- activity ----------------------------------------------------------------


@router.get("/audit-logs")
async def audit_logs(
    limit: int = Query(default=50, ge=1, le=200),
    svc: TrackerService = Depends(tracker),
) -> list[dict[str, Any]]:
    return [audit_out(e) for e in await svc.audit_logs(limit=limit)]


@router.get("/audit-logs/{entity_type}/{entity_id}")
async def entity_audit_logs(
    entity_type: EntityType,
    entity_id: uuid.UUID,
    svc: TrackerService = Depends(tracker),
) -> list[dict[str, Any]]:
    return [audit_out(e) for e in await svc.entity_audit_logs(entity_type, entity_id)]
