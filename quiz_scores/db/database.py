from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from quiz_scores.core.config import settings


def _engine_options(database_url: str) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": settings.debug}
    # SQLite (tests, local runs) ignores connection pool sizing
    if not database_url.startswith("sqlite"):
        options.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
        )
    return options


def create_engine_for(database_url: str) -> AsyncEngine:
    """Create an async engine with the pool settings appropriate for its dialect."""
    return create_async_engine(database_url, **_engine_options(database_url))


def create_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
    )


# =============================================================================
# Shared Engine & Session
# =============================================================================
engine = create_engine_for(settings.database_url)

async_session_maker = create_session_maker(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Session factory for services that open one session per concurrent update."""
    return async_session_maker


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Initialize database tables."""
    from quiz_scores.db.models import Base

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
