"""Incremental updates of the four running score totals."""

import asyncio
import math
from collections.abc import Awaitable, Mapping
from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from quiz_scores.core.config import settings
from quiz_scores.core.exceptions import AggregateError, ValidationError
from quiz_scores.db.models.scores import (
    UserGlobalDeckScore,
    UserGlobalTotalScore,
    UserGroupDeckScore,
    UserGroupTotalScore,
)

logger = structlog.get_logger()

ScoreModel = (
    type[UserGlobalTotalScore]
    | type[UserGroupTotalScore]
    | type[UserGlobalDeckScore]
    | type[UserGroupDeckScore]
)


def truncate_score(score: float) -> int:
    """Truncate a raw score toward zero."""
    if not math.isfinite(score):
        raise ValidationError(f"Bad score: {score!r}")
    return math.trunc(score)


def _validate_identifier(value: Any, field: str) -> None:
    if not isinstance(value, str) or not value:
        raise ValidationError(f"Bad {field}: {value!r}")


class ScoreStorageService:
    """Folds scoring events into the user/group/deck running totals.

    Every record update runs in its own session and they are awaited
    together. There is no transaction spanning records, so a failed call
    may have applied some of its increments.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        sentinel_deck_id: str | None = None,
    ) -> None:
        self.session_maker = session_maker
        self.sentinel_deck_id = sentinel_deck_id or settings.sentinel_deck_id

    async def apply_score(
        self,
        user_id: str,
        group_id: str | None,
        deck_unique_id: str,
        score: float,
        username: str | None,
    ) -> None:
        """Apply one scoring event to every record it contributes to."""
        delta = truncate_score(score)
        if delta == 0:
            return

        _validate_identifier(user_id, "user_id")
        if group_id is not None:
            _validate_identifier(group_id, "group_id")
        _validate_identifier(deck_unique_id, "deck_unique_id")

        updates = self._deck_updates(user_id, group_id, deck_unique_id, delta, username)
        if deck_unique_id != self.sentinel_deck_id:
            updates.extend(self._total_updates(user_id, group_id, delta, username))

        await self._gather(updates)

    async def apply_batch_scores(
        self,
        group_id: str | None,
        scores_for_user_id: Mapping[str, Mapping[str, float]],
        username_for_user_id: Mapping[str, str],
    ) -> None:
        """Apply a whole session's per-user, per-deck scores.

        Each user's total records get one increment of the summed session
        score. Sentinel deck entries are left out of that sum.
        """
        if group_id is not None:
            _validate_identifier(group_id, "group_id")
        for user_id, score_for_deck in scores_for_user_id.items():
            _validate_identifier(user_id, "user_id")
            for deck_unique_id, score in score_for_deck.items():
                _validate_identifier(deck_unique_id, "deck_unique_id")
                truncate_score(score)

        updates: list[Awaitable[None]] = []
        for user_id, score_for_deck in scores_for_user_id.items():
            username = username_for_user_id.get(user_id)
            session_total = 0.0

            for deck_unique_id, score in score_for_deck.items():
                if deck_unique_id != self.sentinel_deck_id:
                    session_total += score

                delta = truncate_score(score)
                if delta != 0:
                    updates.extend(
                        self._deck_updates(user_id, group_id, deck_unique_id, delta, username)
                    )

            total_delta = truncate_score(session_total)
            if total_delta != 0:
                updates.extend(self._total_updates(user_id, group_id, total_delta, username))

        await self._gather(updates)
        logger.info(
            "Batch scores applied",
            group_id=group_id,
            users=len(scores_for_user_id),
            updates=len(updates),
        )

    def _deck_updates(
        self,
        user_id: str,
        group_id: str | None,
        deck_unique_id: str,
        delta: int,
        username: str | None,
    ) -> list[Awaitable[None]]:
        updates = [
            self._increment(
                UserGlobalDeckScore,
                {"user_id": user_id, "deck_unique_id": deck_unique_id},
                delta,
                username,
            )
        ]
        if group_id is not None:
            updates.append(
                self._increment(
                    UserGroupDeckScore,
                    {"user_id": user_id, "group_id": group_id, "deck_unique_id": deck_unique_id},
                    delta,
                    username,
                )
            )
        return updates

    def _total_updates(
        self,
        user_id: str,
        group_id: str | None,
        delta: int,
        username: str | None,
    ) -> list[Awaitable[None]]:
        updates = [self._increment(UserGlobalTotalScore, {"user_id": user_id}, delta, username)]
        if group_id is not None:
            updates.append(
                self._increment(
                    UserGroupTotalScore,
                    {"user_id": user_id, "group_id": group_id},
                    delta,
                    username,
                )
            )
        return updates

    async def _gather(self, updates: list[Awaitable[None]]) -> None:
        results = await asyncio.gather(*updates, return_exceptions=True)
        errors = [result for result in results if isinstance(result, BaseException)]
        if errors:
            logger.error("Score update failed", failed=len(errors), total=len(results))
            raise AggregateError("One or more score updates failed") from errors[0]

    async def _increment(
        self,
        model: ScoreModel,
        key: dict[str, str],
        delta: int,
        username: str | None,
    ) -> None:
        """Atomically add delta to the keyed record, creating it if missing."""
        async with self.session_maker() as session:
            dialect = session.bind.dialect.name
            insert = sqlite_insert if dialect == "sqlite" else pg_insert

            stmt = insert(model).values(
                **key,
                score=delta,
                last_known_username=username,
                updated_at=datetime.now(UTC),
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=list(key),
                set_={
                    "score": model.score + stmt.excluded.score,
                    "last_known_username": stmt.excluded.last_known_username,
                    "updated_at": stmt.excluded.updated_at,
                },
            )

            await session.execute(stmt)
            await session.commit()
