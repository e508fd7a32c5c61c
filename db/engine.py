"""Async engine, session factory and the per-request session dependency."""

import logging
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from config import config
from db.tables import Base

logger = logging.getLogger(__name__)


def _create_engine(url: str, echo: bool = False) -> AsyncEngine:
    in_memory = url.startswith("sqlite") and (":memory:" in url or url.endswith("://"))
    if in_memory:
        # One shared connection, otherwise every checkout sees an empty database
        return create_async_engine(
            url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(url, echo=echo)


engine: AsyncEngine = _create_engine(config.database.url, config.database.echo)

# Centralized session factory to avoid creating it in router modules.
Session = async_sessionmaker(
    autocommit=False,
    class_=AsyncSession,
    autoflush=True,
    expire_on_commit=False,
    bind=engine,
)


def configure_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Point the module-level engine and session factory at another database."""
    global engine
    engine = _create_engine(url, echo)
    Session.configure(bind=engine)
    logger.info("Database engine configured for %s", engine.url.render_as_string(hide_password=True))
    return engine


async def init_models() -> None:
    """Create tables if they do not exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    await engine.dispose()


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency yielding one session per request."""
    async with Session() as session:
        yield session
