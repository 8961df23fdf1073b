"""
cambright.services.tutors

Tutor registry: who may author notes.

Responsibilities:
- Answer "is this caller a tutor?" from token roles, admin status, the
  `open_tutoring` switch and active `Tutor` rows.
- Admin operations: list (filtered, paginated), add/reactivate, deactivate.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal

from sqlalchemy.ext.asyncio import AsyncSession

from cambright.auth.models import Principal
from cambright.db.models import Tutor, TutorRole
from cambright.db.repositories.tutors import TutorRepo
from cambright.errors import InvalidInputError, NotFoundError
from cambright.observability.logging import get_logger
from cambright.settings import Settings

log = get_logger(__name__)

TutorFilter = Literal["active", "inactive", "all"]


@dataclass(frozen=True, slots=True)
class TutorPage:
    tutors: list[Tutor]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


class TutorService:
    def __init__(self, *, session: AsyncSession, settings: Settings) -> None:
        self._session = session
        self._settings = settings
        self._tutors = TutorRepo(session)

    async def is_tutor(self, principal: Principal) -> bool:
        if self._settings.open_tutoring or principal.has_tutor_role:
            return True
        return await self._tutors.is_active(principal.user_id)

    async def list_page(self, *, filter: TutorFilter = "all", page: int = 1, limit: int = 20) -> TutorPage:
        active = {"active": True, "inactive": False}.get(filter)
        tutors = await self._tutors.list_page(active=active, offset=(page - 1) * limit, limit=limit)
        total = await self._tutors.count(active=active)
        return TutorPage(tutors=tutors, page=page, limit=limit, total=total)

    async def add(self, *, user_id: str, role: TutorRole, added_by: str) -> Tutor:
        tutor = await self._tutors.get(user_id)
        if tutor is not None:
            if tutor.is_active:
                raise InvalidInputError("User is already an active tutor")
            tutor.is_active = True
            tutor.role = role
            await self._session.commit()
            log.info("tutor_reactivated", tutor_user_id=user_id, by=added_by)
            return tutor

        tutor = await self._tutors.create(user_id=user_id, role=role, added_by=added_by)
        await self._session.commit()
        log.info("tutor_added", tutor_user_id=user_id, role=role.value, by=added_by)
        return tutor

    async def remove(self, *, user_id: str, removed_by: str) -> None:
        tutor = await self._tutors.get(user_id)
        if tutor is None:
            raise NotFoundError("Tutor not found")
        if not tutor.is_active:
            raise InvalidInputError("Tutor is already inactive")
        tutor.is_active = False
        await self._session.commit()
        log.info("tutor_removed", tutor_user_id=user_id, by=removed_by)
