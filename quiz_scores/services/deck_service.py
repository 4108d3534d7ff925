"""Resolution of user-supplied deck names to canonical deck unique ids."""

import asyncio
import json
from collections.abc import Mapping, Sequence
from pathlib import Path
from types import MappingProxyType
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from quiz_scores.core.config import settings
from quiz_scores.core.exceptions import DeckNotFoundError
from quiz_scores.db.models.deck import CustomDeck

logger = structlog.get_logger()


class DeckCatalog:
    """Immutable lowercase display name -> unique id mapping for built-in decks.

    The sentinel game mode is registered under its own name.
    """

    def __init__(self, unique_id_for_name: Mapping[str, str], sentinel_deck_id: str) -> None:
        mapping = {name.lower(): unique_id for name, unique_id in unique_id_for_name.items()}
        mapping[sentinel_deck_id] = sentinel_deck_id

        self.sentinel_deck_id = sentinel_deck_id
        self._unique_id_for_name = MappingProxyType(mapping)
        self._unique_ids = frozenset(mapping.values())

    @classmethod
    def from_metadata(
        cls,
        decks_metadata: Mapping[str, Mapping[str, Any]],
        sentinel_deck_id: str | None = None,
    ) -> "DeckCatalog":
        """Build from the generated decks metadata ({deck name: {"uniqueId": ...}})."""
        return cls(
            {name: str(meta["uniqueId"]) for name, meta in decks_metadata.items()},
            sentinel_deck_id or settings.sentinel_deck_id,
        )

    @classmethod
    def from_file(cls, path: Path, sentinel_deck_id: str | None = None) -> "DeckCatalog":
        with open(path, encoding="utf-8") as f:
            decks_metadata = json.load(f)

        catalog = cls.from_metadata(decks_metadata, sentinel_deck_id)
        logger.info("Deck catalog loaded", path=str(path), decks=len(catalog))
        return catalog

    def __len__(self) -> int:
        return len(self._unique_id_for_name)

    def __contains__(self, name: object) -> bool:
        return name in self._unique_id_for_name

    def unique_id_for_name(self, name: str) -> str | None:
        return self._unique_id_for_name.get(name)

    def is_unique_id(self, value: str) -> bool:
        return value in self._unique_ids


class DeckResolver:
    """Resolve deck names against the static catalog, then the custom deck table."""

    def __init__(
        self,
        catalog: DeckCatalog,
        session_maker: async_sessionmaker[AsyncSession],
    ) -> None:
        self.catalog = catalog
        self.session_maker = session_maker

    async def resolve(self, name: str) -> str:
        deck_name = name.lower()

        unique_id = self.catalog.unique_id_for_name(deck_name)
        if unique_id:
            return unique_id

        if self.catalog.is_unique_id(deck_name):
            return deck_name

        custom_unique_id = await self._find_custom_deck(deck_name)
        if custom_unique_id:
            return custom_unique_id

        raise DeckNotFoundError(deck_name)

    async def resolve_many(self, names: Sequence[str]) -> list[str]:
        """Resolve every name concurrently.

        Fails with the first DeckNotFoundError; no partial result is returned.
        """
        return list(await asyncio.gather(*(self.resolve(name) for name in names)))

    async def _find_custom_deck(self, short_name: str) -> str | None:
        async with self.session_maker() as session:
            result = await session.execute(
                select(CustomDeck.unique_id).where(CustomDeck.short_name == short_name)
            )
            return result.scalar_one_or_none()
