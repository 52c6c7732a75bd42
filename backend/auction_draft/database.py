import asyncio
import logging
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from .config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

SQLITE_BUSY_TIMEOUT_SECONDS = 15


def engine_options(database_url: str) -> dict[str, Any]:
    # Concurrent writers on SQLite queue on the database lock instead of failing fast.
    if database_url.startswith("sqlite"):
        return {"connect_args": {"timeout": SQLITE_BUSY_TIMEOUT_SECONDS}}
    return {"pool_pre_ping": True}


def create_engine_for(database_url: str) -> AsyncEngine:
    return create_async_engine(database_url, echo=False, future=True, **engine_options(database_url))


def session_factory_for(bind: AsyncEngine) -> sessionmaker:
    return sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine: AsyncEngine = create_engine_for(settings.database_url)
async_session_factory = session_factory_for(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        yield session


async def create_schema(bind: AsyncEngine) -> None:
    # Registers every table on SQLModel.metadata.
    from . import models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create tables, retrying while the database container is still starting."""
    bind = engine if bind is None else bind
    attempts = max(1, settings.db_init_max_retries)
    delay = max(0.5, settings.db_init_retry_interval_seconds)

    attempt = 1
    while True:
        try:
            await create_schema(bind)
        except (OSError, SQLAlchemyError) as exc:
            if attempt >= attempts:
                logger.exception("Could not prepare the database after %s attempts.", attempts)
                raise
            logger.warning("Database not ready (%s/%s): %s; retrying in %.1fs", attempt, attempts, exc, delay * attempt)
            await asyncio.sleep(delay * attempt)
            attempt += 1
            continue
        logger.info("Database schema ready.")
        return
