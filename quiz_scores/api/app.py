from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from quiz_scores.api.routes import router as api_router
from quiz_scores.core.config import settings
from quiz_scores.db import async_session_maker, init_db
from quiz_scores.services.deck_service import DeckCatalog
from quiz_scores.services.migration_service import (
    LegacyDataStore,
    LegacyMigrationTask,
    LegacyScoreMigrator,
)
from quiz_scores.services.score_service import ScoreStorageService

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Startup
    await init_db()
    if getattr(app.state, "deck_catalog", None) is None:
        app.state.deck_catalog = DeckCatalog.from_file(settings.deck_catalog_path)

    migration_task = None
    if settings.legacy_migration_enabled:
        score_service = ScoreStorageService(
            async_session_maker, app.state.deck_catalog.sentinel_deck_id
        )
        migration_task = LegacyMigrationTask(
            LegacyScoreMigrator(async_session_maker, score_service),
            LegacyDataStore(async_session_maker),
        )
        migration_task.start()
        logger.info(
            "Legacy score migration scheduled",
            delay_seconds=migration_task.delay_seconds,
        )
    app.state.migration_task = migration_task

    yield

    # Shutdown
    if migration_task is not None:
        migration_task.cancel()


def create_app(deck_catalog: DeckCatalog | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Quiz score totals and leaderboard API",
        lifespan=lifespan,
    )
    app.state.deck_catalog = deck_catalog

    # Include API routes
    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy", "version": settings.app_version}

    return app


app = create_app()
