"""
cambright.api.routers.admin_tutors

Admin-only tutor registry endpoints.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from cambright.api.deps import db_session, settings_dep
from cambright.auth.deps import require_admin
from cambright.auth.models import Principal
from cambright.db.models import Tutor, TutorRole
from cambright.services.tutors import TutorFilter, TutorService
from cambright.settings import Settings

router = APIRouter(prefix="/api/admin/tutors", tags=["admin"])


class AddTutorRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId", min_length=1, max_length=128)
    role: TutorRole = TutorRole.tutor


def tutor_out(tutor: Tutor) -> dict[str, Any]:
    return {
        "id": str(tutor.id),
        "userId": tutor.user_id,
        "role": tutor.role.value,
        "isActive": tutor.is_active,
        "addedBy": tutor.added_by,
        "createdAt": tutor.created_at.isoformat(),
        "updatedAt": tutor.updated_at.isoformat(),
    }


@router.get("")
async def list_tutors(
    filter: TutorFilter = "all",
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    _: Principal = Depends(require_admin),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> dict[str, Any]:
    result = await TutorService(session=session, settings=settings).list_page(
        filter=filter, page=page, limit=limit
    )
    return {
        "tutors": [tutor_out(t) for t in result.tutors],
        "pagination": {
            "current": result.page,
            "limit": result.limit,
            "total": result.total,
            "pages": result.pages,
        },
    }


@router.post("", status_code=HTTP_201_CREATED)
async def add_tutor(
    body: AddTutorRequest,
    principal: Principal = Depends(require_admin),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> dict[str, Any]:
    tutor = await TutorService(session=session, settings=settings).add(
        user_id=body.user_id, role=body.role, added_by=principal.user_id
    )
    return {"message": "Tutor added successfully", "tutor": tutor_out(tutor)}


@router.delete("/{user_id}")
async def remove_tutor(
    user_id: str,
    principal: Principal = Depends(require_admin),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> dict[str, str]:
    await TutorService(session=session, settings=settings).remove(
        user_id=user_id, removed_by=principal.user_id
    )
    return {"message": "Tutor removed successfully"}
