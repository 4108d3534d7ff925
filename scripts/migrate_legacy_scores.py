#!/usr/bin/env python3
"""
Rebuild the aggregate score tables from the legacy score log.

This script:
1. Optionally imports quizScores.json / nameForUserId.json dumps into the
   legacy persistence table
2. Deletes every row of the four aggregate score tables
3. Replays the legacy score log row by row

The rebuild is destructive. Without --execute only a summary is printed.
"""
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select

from quiz_scores.core.config import settings
from quiz_scores.db.database import async_session_maker, init_db
from quiz_scores.db.models.persistence import LegacyPersistenceEntry
from quiz_scores.services.migration_service import LegacyDataStore, LegacyScoreMigrator
from quiz_scores.services.score_service import ScoreStorageService


async def import_legacy_dump(directory: Path) -> None:
    """Copy <key>.json files from a persistence dump into the legacy table."""
    async with async_session_maker() as db:
        for key in (settings.legacy_scores_key, settings.legacy_usernames_key):
            path = directory / f"{key}.json"
            if not path.exists():
                print(f"  {path} not found, skipping")
                continue

            with open(path, encoding="utf-8") as f:
                value = json.load(f)

            result = await db.execute(
                select(LegacyPersistenceEntry).where(LegacyPersistenceEntry.key == key)
            )
            entry = result.scalar_one_or_none()
            if entry:
                entry.value = value
            else:
                db.add(LegacyPersistenceEntry(key=key, value=value))
            print(f"  Imported {key} from {path}")

        await db.commit()


async def main(execute: bool, import_dir: Path | None) -> None:
    print(f"Database: {settings.database_url}")
    await init_db()

    if import_dir:
        print(f"\nImporting legacy dump from {import_dir}...")
        await import_legacy_dump(import_dir)

    data_store = LegacyDataStore(async_session_maker)
    quiz_scores = await data_store.get_data(settings.legacy_scores_key)
    name_for_user_id = await data_store.get_data(settings.legacy_usernames_key)

    if not quiz_scores:
        print("No legacy scores found, nothing to migrate")
        return

    print(f"Legacy score rows: {len(quiz_scores)}")
    print(f"Known usernames: {len(name_for_user_id or {})}")

    if not execute:
        print("\nDRY RUN: pass --execute to wipe and rebuild the aggregate tables")
        return

    migrator = LegacyScoreMigrator(async_session_maker, ScoreStorageService(async_session_maker))
    rows_applied = await migrator.migrate(quiz_scores, name_for_user_id)
    print(f"\nMigration complete: {rows_applied} rows applied")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Rebuild aggregate scores from the legacy log")
    parser.add_argument(
        "--execute",
        action="store_true",
        help="Actually wipe and rebuild the aggregate tables (default is dry run)",
    )
    parser.add_argument(
        "--import-dir",
        type=Path,
        help="Directory holding quizScores.json and nameForUserId.json to import first",
    )
    args = parser.parse_args()

    asyncio.run(main(execute=args.execute, import_dir=args.import_dir))
