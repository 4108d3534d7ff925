#!/usr/bin/env python
"""Initialize database tables and check the deck catalog."""

import asyncio

from quiz_scores.core.config import settings
from quiz_scores.db.database import init_db
from quiz_scores.services.deck_service import DeckCatalog


async def main() -> None:
    """Main initialization function."""
    print(f"Initializing database: {settings.database_url}")

    # Create tables
    await init_db()
    print("Database tables created")

    catalog = DeckCatalog.from_file(settings.deck_catalog_path)
    print(f"Deck catalog {settings.deck_catalog_path}: {len(catalog)} decks")
    print(f"Sentinel deck: {catalog.sentinel_deck_id}")

    print("Database initialization complete!")


if __name__ == "__main__":
    asyncio.run(main())
