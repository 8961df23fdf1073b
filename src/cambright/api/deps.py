"""
cambright.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, DB sessions and shared clients.
- Encapsulate app.state access patterns (engine/sessionmaker/http/asset store).
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cambright.clients.openrouter import OpenRouterClient
from cambright.services.asset_store import AssetStore
from cambright.settings import Settings


def settings_dep(request: Request) -> Settings:
    # The settings instance is pinned on app.state by `create_app`.
    return request.app.state.settings  # type: ignore[attr-defined]


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Commit is explicit in services/routers.
    async with session_factory() as session:
        yield session


def http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http  # type: ignore[attr-defined]


def chat_client(
    settings: Settings = Depends(settings_dep),
    http: httpx.AsyncClient = Depends(http_client),
) -> OpenRouterClient:
    return OpenRouterClient(settings=settings, http=http)


def asset_store(request: Request) -> AssetStore:
    return request.app.state.asset_store  # type: ignore[attr-defined]
