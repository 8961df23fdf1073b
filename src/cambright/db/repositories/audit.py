"""
cambright.db.repositories.audit

Repository for tracker `AuditLog` entries.

Responsibilities:
- Append audit entries for sprint/list/task changes.
- Query the activity feed per organization and per entity.
"""

from __future__ import annotations

import uuid

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from cambright.db.models import AuditAction, AuditLog, EntityType


class AuditLogRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(
        self,
        *,
        org_id: str,
        user_id: str,
        action: AuditAction,
        entity_type: EntityType,
        entity_id: uuid.UUID,
        entity_title: str,
        user_name: str = "",
    ) -> AuditLog:
        # Append-only: entries are never updated or deleted by the API.
        entry = AuditLog(
            org_id=org_id,
            user_id=user_id,
            user_name=user_name,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            entity_title=entity_title,
        )
        self._session.add(entry)
        await self._session.flush()
        return entry

    async def list_for_org(self, org_id: str, *, limit: int = 50) -> list[AuditLog]:
        stmt = (
            select(AuditLog)
            .where(AuditLog.org_id == org_id)
            .order_by(desc(AuditLog.created_at))
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def list_for_entity(
        self, org_id: str, entity_type: EntityType, entity_id: uuid.UUID, *, limit: int = 3
    ) -> list[AuditLog]:
        stmt = (
            select(AuditLog)
            .where(
                AuditLog.org_id == org_id,
                AuditLog.entity_type == entity_type,
                AuditLog.entity_id == entity_id,
            )
            .order_by(desc(AuditLog.created_at))
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars().all())


# --- Module Notes -----------------------------------------------------------
# The per-entity feed defaults to the last three entries (task modal activity).
