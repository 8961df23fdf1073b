"""
cambright.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide liveness probe (`/healthz`) and readiness probe (`/readyz`) with DB check.
- Provide the public health payloads used by the web client and uptime monitors.
"""

from __future__ import annotations

import platform
import time
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from cambright.api.deps import db_session, settings_dep
from cambright.settings import Settings

router = APIRouter()


def _now_iso() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    # Liveness: process is up and serving HTTP.
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(session: AsyncSession = Depends(db_session)) -> dict[str, str]:
    # Readiness: verify critical dependency (DB) is reachable.
    await session.execute(text("SELECT 1"))
    return {"status": "ready"}


@router.get("/api/health")
async def health(request: Request, detailed: bool = False) -> dict[str, Any]:
    started = getattr(request.app.state, "started_at", time.monotonic())
    body: dict[str, Any] = {
        "status": "healthy",
        "message": "Server is running",
        "timestamp": _now_iso(),
        "uptime": round(time.monotonic() - started, 3),
        "detailed": detailed,
    }
    if detailed:
        body["python_version"] = platform.python_version()
        body["platform"] = platform.platform()
    return body


@router.get("/api/health-test")
async def health_test(settings: Settings = Depends(settings_dep)) -> dict[str, str]:
    # Static payload; never touches the database.
    return {"status": "healthy", "service": settings.service_name, "timestamp": _now_iso()}


# --- Module Notes -----------------------------------------------------------
# Kubernetes typically uses /healthz for liveness and /readyz for readiness gating.
