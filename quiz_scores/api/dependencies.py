from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from quiz_scores.db import get_session_maker
from quiz_scores.services.deck_service import DeckCatalog, DeckResolver
from quiz_scores.services.migration_service import LegacyMigrationTask
from quiz_scores.services.score_service import ScoreStorageService


def get_deck_catalog(request: Request) -> DeckCatalog:
    return request.app.state.deck_catalog


def get_migration_task(request: Request) -> LegacyMigrationTask | None:
    return getattr(request.app.state, "migration_task", None)


def get_deck_resolver(
    catalog: DeckCatalog = Depends(get_deck_catalog),
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
) -> DeckResolver:
    return DeckResolver(catalog, session_maker)


def get_score_service(
    catalog: DeckCatalog = Depends(get_deck_catalog),
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
) -> ScoreStorageService:
    return ScoreStorageService(session_maker, catalog.sentinel_deck_id)
