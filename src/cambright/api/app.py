"""
cambright.api.app

FastAPI app factory for the Cambright API service.

Responsibilities:
- Build the FastAPI application and register routers/middleware/exception handlers.
- Initialize and dispose shared infrastructure (DB engine/session factory, HTTP client,
  asset store) in the lifespan.
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from cambright import __version__
from cambright.api.errors import register_exception_handlers
from cambright.api.routers.admin_tutors import router as admin_tutors_router
from cambright.api.routers.ai_chat import router as ai_chat_router
from cambright.api.routers.assets import router as assets_router
from cambright.api.routers.dev_auth import router as dev_auth_router
from cambright.api.routers.health import router as health_router
from cambright.api.routers.leaderboard import router as leaderboard_router
from cambright.api.routers.notes import router as notes_router
from cambright.api.routers.profiles import router as profiles_router
from cambright.api.routers.rooms import router as rooms_router
from cambright.api.routers.tracker import router as tracker_router
from cambright.db.session import create_engine, create_sessionmaker, init_db
from cambright.observability.logging import configure_logging, get_logger
from cambright.observability.middleware import RequestContextMiddleware
from cambright.services.asset_store import AssetStore
from cambright.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    # Configure structured logging once at process startup (before app serves requests).
    configure_logging(service_name=settings.service_name, level=settings.log_level, env=settings.env)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        # Create the async DB engine and session factory once and stash them on app.state.
        # Routers obtain sessions via dependencies (see `cambright.api.deps`).
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        app.state.http = httpx.AsyncClient()
        app.state.asset_store = AssetStore(settings.asset_storage_dir)
        app.state.started_at = time.monotonic()
        if settings.env in ("dev", "test"):
            # Dev/test convenience: create tables automatically. Prod should use Alembic migrations.
            await init_db(engine)
        try:
            yield
        finally:
            await app.state.http.aclose()
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Cambright API",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestContextMiddleware)
    register_exception_handlers(app)

    app.include_router(health_router, tags=["health"])
    app.include_router(dev_auth_router)
    app.include_router(profiles_router)
    app.include_router(leaderboard_router)
    app.include_router(admin_tutors_router)
    app.include_router(notes_router)
    app.include_router(tracker_router)
    app.include_router(rooms_router)
    app.include_router(ai_chat_router)
    app.include_router(assets_router)

    return app


# --- Module Notes -----------------------------------------------------------
# App composition stays here; business logic lives in services and repositories.
