"""
cambright.api.routers.dev_auth

Local stand-in for the identity provider.

Responsibilities:
- Mint bearer tokens for a chosen user id, role set and active organization so the API
  can be driven without the hosted sign-in flow.
- Disappear (404) when running with `env=prod`.
"""

from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from starlette.status import HTTP_404_NOT_FOUND

from cambright.api.deps import settings_dep
from cambright.auth.deps import jwt_config
from cambright.auth.jwt import issue_token
from cambright.observability.logging import get_logger
from cambright.settings import Settings

router = APIRouter(prefix="/api/dev", tags=["dev"])
log = get_logger(__name__)


class DevTokenRequest(BaseModel):
    subject: str = Field(min_length=1, max_length=128, description="User id placed in `sub`.")
    roles: list[str] = Field(default_factory=list, description="e.g. `admin`, `tutor`.")
    org_id: str | None = Field(default=None, max_length=128)
    ttl_minutes: int | None = Field(default=None, ge=1, le=24 * 60)


class DevTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    org_id: str | None = None


@router.post("/token", response_model=DevTokenResponse)
async def mint_dev_token(
    body: DevTokenRequest,
    settings: Settings = Depends(settings_dep),
) -> DevTokenResponse:
    if settings.env == "prod":
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Not found")

    ttl = timedelta(minutes=body.ttl_minutes or settings.dev_token_ttl_minutes)
    token = issue_token(
        cfg=jwt_config(settings),
        subject=body.subject,
        roles=body.roles,
        org_id=body.org_id,
        ttl=ttl,
    )
    log.info("dev_token_issued", subject=body.subject, roles=body.roles, org_id=body.org_id)
    return DevTokenResponse(access_token=token, expires_in=int(ttl.total_seconds()), org_id=body.org_id)
