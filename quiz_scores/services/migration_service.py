"""One-time rebuild of the aggregate score tables from the legacy score log."""

import asyncio
import os
from collections.abc import Callable, Mapping, Sequence
from enum import Enum
from typing import Any

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from quiz_scores.core.config import settings
from quiz_scores.core.exceptions import MigrationFatalError
from quiz_scores.db.models.persistence import LegacyPersistenceEntry
from quiz_scores.db.models.scores import AGGREGATE_SCORE_MODELS
from quiz_scores.services.score_service import ScoreStorageService

logger = structlog.get_logger()


class MigrationStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SKIPPED = "skipped"
    COMPLETED = "completed"
    FAILED = "failed"


class LegacyDataStore:
    """Read access to the legacy key/value persistence table."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self.session_maker = session_maker

    async def get_data(self, key: str) -> Any:
        async with self.session_maker() as session:
            result = await session.execute(
                select(LegacyPersistenceEntry.value).where(LegacyPersistenceEntry.key == key)
            )
            return result.scalar_one_or_none()


class LegacyScoreMigrator:
    """Wipes the aggregate tables and replays legacy rows through the score service."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        score_service: ScoreStorageService,
    ) -> None:
        self.session_maker = session_maker
        self.score_service = score_service

    async def clear_aggregates(self) -> None:
        async with self.session_maker() as session:
            for model in AGGREGATE_SCORE_MODELS:
                await session.execute(delete(model))
            await session.commit()

        logger.info("Aggregate score tables cleared")

    async def migrate(
        self,
        quiz_scores: Sequence[Mapping[str, Any]],
        name_for_user_id: Mapping[str, str] | None,
    ) -> int:
        """Replay every row in order. Returns the number of rows applied."""
        name_for_user_id = name_for_user_id or {}
        await self.clear_aggregates()

        total_rows = len(quiz_scores)
        applied = 0
        for row_index, row in enumerate(quiz_scores):
            if row_index % settings.legacy_progress_interval == 0:
                logger.info("Migrating scores", row=row_index, total=total_rows)

            try:
                if await self.migrate_row(row, name_for_user_id):
                    applied += 1
            except MigrationFatalError as e:
                e.row_index = row_index
                raise
            except Exception as e:
                raise MigrationFatalError(
                    f"Failed to migrate row {row_index}: {e}", row_index=row_index
                ) from e

        return applied

    async def migrate_row(
        self,
        row: Mapping[str, Any],
        name_for_user_id: Mapping[str, str],
    ) -> bool:
        user_id = row.get("userId")
        server_id = row.get("serverId")
        score = row.get("score")
        deck_id = row.get("deckId", settings.legacy_unknown_deck_id)
        username = name_for_user_id.get(user_id) or settings.legacy_unknown_username

        deck_id_string = deck_id if isinstance(deck_id, str) else str(deck_id)

        if not score:
            return False

        if not user_id or not server_id or not deck_id_string or not username:
            raise MigrationFatalError(
                f"Invalid row: {user_id}, {server_id}, {score}, {deck_id_string}, {username}"
            )

        await self.score_service.apply_score(
            str(user_id),
            str(server_id),
            deck_id_string,
            score,
            username,
        )
        return True


def terminate_process(error: BaseException) -> None:
    """Exit immediately; aggregate state cannot be trusted half migrated."""
    logger.critical("Terminating after failed score migration", error=str(error))
    os._exit(1)


class LegacyMigrationTask:
    """Runs the legacy migration once, after a startup delay.

    The outcome is observable through ``status`` and ``error``, and
    ``wait()`` can be awaited to block until the run finishes.
    """

    def __init__(
        self,
        migrator: LegacyScoreMigrator,
        data_store: LegacyDataStore,
        delay_seconds: float | None = None,
        on_fatal: Callable[[BaseException], None] = terminate_process,
    ) -> None:
        self.migrator = migrator
        self.data_store = data_store
        self.delay_seconds = (
            settings.legacy_migration_delay_seconds if delay_seconds is None else delay_seconds
        )
        self.on_fatal = on_fatal
        self.status = MigrationStatus.PENDING
        self.error: BaseException | None = None
        self.rows_applied = 0
        self._task: asyncio.Task[MigrationStatus] | None = None

    def start(self) -> asyncio.Task[MigrationStatus]:
        if self._task is not None:
            raise RuntimeError("Legacy score migration has already been started")

        self._task = asyncio.create_task(self._run(), name="legacy-score-migration")
        return self._task

    async def wait(self) -> MigrationStatus:
        if self._task is None:
            raise RuntimeError("Legacy score migration has not been started")
        return await self._task

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _run(self) -> MigrationStatus:
        await asyncio.sleep(self.delay_seconds)

        try:
            quiz_scores, name_for_user_id = await asyncio.gather(
                self.data_store.get_data(settings.legacy_scores_key),
                self.data_store.get_data(settings.legacy_usernames_key),
            )

            if not quiz_scores:
                self.status = MigrationStatus.SKIPPED
                logger.info("No legacy scores to migrate")
                return self.status

            self.status = MigrationStatus.RUNNING
            logger.info("Migrating legacy scores", rows=len(quiz_scores))
            self.rows_applied = await self.migrator.migrate(quiz_scores, name_for_user_id)
        except Exception as e:
            self.status = MigrationStatus.FAILED
            self.error = e
            logger.error("Error migrating scores", error=str(e), exc_info=True)
            self.on_fatal(e)
            return self.status

        self.status = MigrationStatus.COMPLETED
        logger.info("Score migration complete", rows_applied=self.rows_applied)
        return self.status
