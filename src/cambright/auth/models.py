"""
cambright.auth.models

Auth domain models.

Responsibilities:
- Define the authenticated identity type (`Principal`) injected into endpoints.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity.

    `org_id` is the caller's active organization (tracker workspaces); it is
    absent for personal sessions.
    """

    user_id: str
    roles: frozenset[str]
    org_id: str | None = None

    @property
    def is_admin(self) -> bool:
        return "admin" in self.roles

    @property
    def has_tutor_role(self) -> bool:
        return "tutor" in self.roles or self.is_admin
