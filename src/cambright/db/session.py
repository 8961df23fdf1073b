"""
cambright.db.session

Async SQLAlchemy engine, session factory and schema bootstrap.

Responsibilities:
- Create the async engine from settings (SQLite gets foreign-key enforcement and a
  parent directory for its file).
- Create the async sessionmaker used by request dependencies.
- Create tables in dev/test; prod runs Alembic migrations instead.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from cambright.db import models  # noqa: F401  # register tables on Base.metadata
from cambright.db.base import Base
from cambright.settings import Settings


def _is_sqlite(url: str) -> bool:
    return make_url(url).get_backend_name() == "sqlite"


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _: Any) -> None:
    # SQLite ships with FK checks off; the ondelete rules in the models rely on them.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(settings: Settings) -> AsyncEngine:
    if not _is_sqlite(settings.database_url):
        return create_async_engine(settings.database_url, pool_pre_ping=True)

    database = make_url(settings.database_url).database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)
    engine = create_async_engine(settings.database_url)
    event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Rows stay readable after commit so routers can serialize what services return.
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
