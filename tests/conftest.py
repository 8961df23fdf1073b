"""
tests.conftest

Shared fixtures: a fresh app per test backed by a temporary SQLite database and
asset directory, an in-process HTTP client and a token helper.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from cambright.api.app import create_app
from cambright.auth.deps import jwt_config
from cambright.auth.jwt import issue_token
from cambright.settings import Settings

ADMIN_ID = "user_admin"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        asset_storage_dir=str(tmp_path / "assets"),
        admin_user_ids=[ADMIN_ID],
        openrouter_api_key="test-key",
        asset_max_bytes=1024,
    )


@pytest_asyncio.fixture
async def app(settings: Settings) -> AsyncIterator[FastAPI]:
    app = create_app(settings=settings)
    # httpx ASGITransport does not drive the lifespan; run it explicitly.
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth(settings: Settings) -> Callable[..., dict[str, str]]:
    def _headers(user_id: str, *, roles: list[str] | None = None, org_id: str | None = None) -> dict[str, str]:
        token = issue_token(cfg=jwt_config(settings), subject=user_id, roles=roles, org_id=org_id)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def signup(client: httpx.AsyncClient, auth: Callable[..., dict[str, str]]):
    async def _signup(user_id: str, username: str | None = None) -> dict:
        r = await client.post("/api/account", headers=auth(user_id), json={"username": username or user_id})
        assert r.status_code == 200, r.text
        return r.json()

    return _signup
