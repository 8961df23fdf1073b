"""
cambright.auth.jwt

Session token helpers.

Responsibilities:
- Validate bearer tokens minted by the identity provider. `sub`, `iss`, `aud`, `iat`
  and `exp` must be present; `roles` and `org_id` are optional and default to
  "no roles" and "no active organization".
- Mint equivalent tokens for the dev token route and the test suite.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError

REQUIRED_CLAIMS = ("sub", "iss", "aud", "iat", "exp")


@dataclass(frozen=True, slots=True)
class JwtConfig:
    alg: str
    issuer: str
    audience: str
    secret: str
    leeway: int = 0


class JwtValidationError(Exception):
    """Token is malformed, expired, forged or meant for another audience."""


def issue_token(
    *,
    cfg: JwtConfig,
    subject: str,
    roles: list[str] | None = None,
    org_id: str | None = None,
    ttl: timedelta = timedelta(hours=1),
) -> str:
    issued = datetime.now(tz=UTC)
    claims: dict[str, Any] = {
        "sub": subject,
        "iss": cfg.issuer,
        "aud": cfg.audience,
        "iat": issued,
        "exp": issued + ttl,
        "roles": sorted(set(roles or [])),
    }
    if org_id:
        claims["org_id"] = org_id
    return jwt.encode(claims, cfg.secret, algorithm=cfg.alg)


def decode_and_validate(*, cfg: JwtConfig, token: str) -> dict[str, Any]:
    try:
        claims = jwt.decode(
            token,
            key=cfg.secret,
            algorithms=[cfg.alg],
            audience=cfg.audience,
            issuer=cfg.issuer,
            leeway=cfg.leeway,
            options={"require": list(REQUIRED_CLAIMS)},
        )
    except InvalidTokenError as e:
        raise JwtValidationError(str(e)) from e

    roles = claims.get("roles", [])
    if not isinstance(roles, list) or not all(isinstance(r, str) for r in roles):
        raise JwtValidationError("roles claim must be a list of strings")
    return claims
