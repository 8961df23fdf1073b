"""
cambright.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Convert a bearer token into a typed `Principal`.
- Enforce organization scope (tracker) and roles (admin).
"""

from __future__ import annotations

import structlog
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN

from cambright.api.deps import settings_dep
from cambright.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate
from cambright.auth.models import Principal
from cambright.settings import Settings

_bearer = HTTPBearer(auto_error=False)


def jwt_config(settings: Settings) -> JwtConfig:
    return JwtConfig(
        alg=settings.jwt_alg,
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
        secret=settings.jwt_secret,
        leeway=settings.jwt_leeway_seconds,
    )


def _principal_from_token(token: str, settings: Settings) -> Principal:
    try:
        payload = decode_and_validate(cfg=jwt_config(settings), token=token)
    except JwtValidationError as e:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail=f"Invalid token: {e}") from e

    user_id = str(payload.get("sub", ""))
    roles_raw = payload.get("roles", [])
    if not user_id:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid token subject")
    if not isinstance(roles_raw, list):
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid token roles")

    roles = {str(r) for r in roles_raw}
    if user_id in settings.admin_user_ids:
        roles.add("admin")
    org_id = payload.get("org_id") or None
    structlog.contextvars.bind_contextvars(user_id=user_id)
    return Principal(
        user_id=user_id,
        roles=frozenset(roles),
        org_id=str(org_id) if org_id else None,
    )


def get_principal(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(settings_dep),
) -> Principal:
    if creds is None or not creds.credentials:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return _principal_from_token(creds.credentials, settings)


def get_optional_principal(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(settings_dep),
) -> Principal | None:
    # Public read endpoints personalise their output when a session is present.
    if creds is None or not creds.credentials:
        return None
    return _principal_from_token(creds.credentials, settings)


def get_org_principal(principal: Principal = Depends(get_principal)) -> Principal:
    # Tracker data is owned by organizations; a personal session cannot reach it.
    if not principal.org_id:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return principal


def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="Forbidden")
    return principal


# --- Module Notes -----------------------------------------------------------
# Tutor checks need the database (active tutor rows) and live in `services.tutors`.
