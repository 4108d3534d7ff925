"""Test configuration and fixtures.

Every test gets its own SQLite database file so concurrent score updates
run against a real store with real upsert semantics.
"""

import os
from collections.abc import AsyncGenerator

import pytest

# Must be set before quiz_scores.core.config is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_quiz_scores.db"
os.environ["LEGACY_MIGRATION_ENABLED"] = "false"

from sqlalchemy import select  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker  # noqa: E402

from quiz_scores.db.database import create_engine_for, create_session_maker, init_db  # noqa: E402
from quiz_scores.services.deck_service import DeckCatalog, DeckResolver  # noqa: E402
from quiz_scores.services.score_service import ScoreStorageService  # noqa: E402

SENTINEL_DECK_ID = "shiritori"

DECKS_METADATA = {
    "JLPT1": {"uniqueId": "jlpt1_b3e1"},
    "JLPT2": {"uniqueId": "jlpt2_4c0a"},
    "Hiragana": {"uniqueId": "hiragana_2d8c"},
}


@pytest.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    test_engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'scores.db'}")
    await init_db(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_maker(engine)


@pytest.fixture
async def db_session(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


@pytest.fixture
def catalog() -> DeckCatalog:
    return DeckCatalog.from_metadata(DECKS_METADATA, SENTINEL_DECK_ID)


@pytest.fixture
def deck_resolver(catalog: DeckCatalog, session_maker) -> DeckResolver:
    return DeckResolver(catalog, session_maker)


@pytest.fixture
def score_service(session_maker) -> ScoreStorageService:
    return ScoreStorageService(session_maker, SENTINEL_DECK_ID)


@pytest.fixture
def fetch_rows(session_maker):
    """Return every row of a model, ordered by primary key."""

    async def _fetch(model) -> list:
        async with session_maker() as session:
            result = await session.execute(select(model).order_by(model.id))
            return list(result.scalars().all())

    return _fetch


@pytest.fixture
async def client(catalog, session_maker) -> AsyncGenerator:
    """Create a test client with overridden database dependencies."""
    from httpx import ASGITransport, AsyncClient

    from quiz_scores.api.app import create_app
    from quiz_scores.db import get_db, get_session_maker

    app = create_app(deck_catalog=catalog)

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_maker] = lambda: session_maker

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
