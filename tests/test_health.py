"""
tests.test_health

Smoke tests: the service boots and serves its probes.
"""

from __future__ import annotations

from datetime import datetime

import httpx
import pytest
from fastapi import FastAPI

from cambright.api.app import create_app
from cambright.errors import ConflictError
from cambright.settings import Settings


@pytest.mark.asyncio
async def test_health_endpoints(client: httpx.AsyncClient) -> None:
    r = await client.get("/healthz")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert "x-request-id" in r.headers

    r = await client.get("/readyz")
    assert r.status_code == 200
    assert r.json()["status"] == "ready"


@pytest.mark.asyncio
async def test_health_test_is_static_and_timestamped(client: httpx.AsyncClient) -> None:
    r = await client.get("/api/health-test")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "healthy"
    assert body["service"] == "cambright-api"
    datetime.fromisoformat(body["timestamp"])


@pytest.mark.asyncio
async def test_detailed_health(client: httpx.AsyncClient) -> None:
    r = await client.get("/api/health", params={"detailed": "true"})
    body = r.json()
    assert body["status"] == "healthy"
    assert body["uptime"] >= 0
    assert "python_version" in body

    r = await client.get("/api/health")
    assert "python_version" not in r.json()


@pytest.mark.asyncio
async def test_request_id_is_propagated(client: httpx.AsyncClient) -> None:
    r = await client.get("/healthz", headers={"x-request-id": "abc-123"})
    assert r.headers["x-request-id"] == "abc-123"


@pytest.mark.asyncio
async def test_unhandled_errors_become_generic_500(settings: Settings) -> None:
    app: FastAPI = create_app(settings=settings)

    @app.get("/boom")
    async def boom() -> None:
        raise RuntimeError("kaboom")

    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            r = await client.get("/boom")
    assert r.status_code == 500
    assert r.json() == {"error": "Internal Error"}


@pytest.mark.asyncio
async def test_dev_token_disabled_in_prod(tmp_path) -> None:
    settings = Settings(
        env="prod",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'prod.db'}",
        asset_storage_dir=str(tmp_path / "assets"),
    )
    app = create_app(settings=settings)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        r = await client.post("/api/dev/token", json={"subject": "someone"})
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_dev_token_authenticates(client: httpx.AsyncClient) -> None:
    r = await client.post("/api/dev/token", json={"subject": "user_dev"})
    assert r.status_code == 200
    token = r.json()["access_token"]

    r = await client.post(
        "/api/account", headers={"Authorization": f"Bearer {token}"}, json={"username": "dev"}
    )
    assert r.status_code == 200
    assert r.json()["userId"] == "user_dev"


@pytest.mark.asyncio
async def test_http_errors_share_the_error_shape(client: httpx.AsyncClient) -> None:
    r = await client.get("/api/accnt")
    assert r.status_code == 401
    assert r.json() == {"error": "Unauthorized"}

    r = await client.get("/api/no-such-route")
    assert r.status_code == 404
    assert r.json() == {"error": "Not Found"}


@pytest.mark.asyncio
async def test_domain_errors_use_their_status(settings: Settings) -> None:
    app: FastAPI = create_app(settings=settings)

    @app.get("/conflict")
    async def conflict() -> None:
        raise ConflictError("Already there")

    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            r = await client.get("/conflict")
    assert r.status_code == 409
    assert r.json() == {"error": "Already there"}
