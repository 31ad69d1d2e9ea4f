"""Async engine and session handling for the pattern store.

The engine is module state: bound lazily from settings, or explicitly with
``configure_engine`` (tests point it at a temporary SQLite file).
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from correction_engine.core.config import get_settings

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[sessionmaker] = None


def configure_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Bind the module engine to ``database_url``, replacing any previous one."""
    global _engine, _session_factory
    _engine = create_async_engine(database_url, echo=echo, future=True)
    # Rows are read after commit by the API layer
    _session_factory = sessionmaker(bind=_engine, class_=AsyncSession, expire_on_commit=False)
    return _engine


def get_engine() -> AsyncEngine:
    if _engine is None:
        settings = get_settings()
        return configure_engine(settings.database_url, echo=settings.database_echo)
    return _engine


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """One unit of work: commit on success, rollback on any exception."""
    if _session_factory is None:
        get_engine()
    session: AsyncSession = _session_factory()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def init_db() -> None:
    """Create the ``correction_pattern`` table if it is missing."""
    from correction_engine.db import models  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def dispose_engine() -> None:
    """Close pooled connections; the next session rebinds from settings."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
