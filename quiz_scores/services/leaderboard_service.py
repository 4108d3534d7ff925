"""Ranked leaderboard queries over the aggregated score records.

Whole-account totals are stored one row per user (and per group), so those
leaderboards are plain filtered scans. Deck-filtered leaderboards have to sum
each user's rows across the matched decks first.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy import ColumnElement, Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from quiz_scores.db.models.scores import (
    UserGlobalDeckScore,
    UserGlobalTotalScore,
    UserGroupDeckScore,
    UserGroupTotalScore,
)
from quiz_scores.services.deck_service import DeckResolver

logger = structlog.get_logger()


@dataclass(frozen=True)
class LeaderboardEntry:
    user_id: str
    last_known_username: str | None
    score: int


def _page_bounds(start_index: int, end_index: int) -> int:
    if start_index < 0:
        raise ValueError(f"start_index must not be negative, got {start_index}")
    return max(end_index - start_index, 0)


class LeaderboardQuery(ABC):
    """A leaderboard at one scope/deck-filter combination."""

    @abstractmethod
    async def count_distinct_users(self) -> int:
        """Number of users with a score in this leaderboard."""

    @abstractmethod
    async def sum_total_score(self) -> int:
        """Sum of every score in this leaderboard."""

    @abstractmethod
    async def get_ranked_page(self, start_index: int, end_index: int) -> list[LeaderboardEntry]:
        """Entries ranked start_index (inclusive) to end_index (exclusive), best first."""


class _TotalScoreQuery(LeaderboardQuery):
    """Leaderboard read straight off a table holding one row per user."""

    model: Any

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    def _filters(self) -> list[ColumnElement[bool]]:
        return []

    async def count_distinct_users(self) -> int:
        result = await self.db.execute(
            select(func.count(self.model.id)).where(*self._filters())
        )
        return result.scalar() or 0

    async def sum_total_score(self) -> int:
        result = await self.db.execute(
            select(func.coalesce(func.sum(self.model.score), 0)).where(*self._filters())
        )
        return int(result.scalar() or 0)

    async def get_ranked_page(self, start_index: int, end_index: int) -> list[LeaderboardEntry]:
        limit = _page_bounds(start_index, end_index)
        if limit == 0:
            return []

        result = await self.db.execute(
            select(self.model.user_id, self.model.last_known_username, self.model.score)
            .where(*self._filters())
            .order_by(self.model.score.desc(), self.model.user_id)
            .offset(start_index)
            .limit(limit)
        )
        return [
            LeaderboardEntry(
                user_id=row.user_id,
                last_known_username=row.last_known_username,
                score=int(row.score),
            )
            for row in result.all()
        ]


class GlobalTotalScoreQuery(_TotalScoreQuery):
    model = UserGlobalTotalScore


class GroupTotalScoreQuery(_TotalScoreQuery):
    model = UserGroupTotalScore

    def __init__(self, db: AsyncSession, group_id: str) -> None:
        super().__init__(db)
        self.group_id = group_id

    def _filters(self) -> list[ColumnElement[bool]]:
        return [UserGroupTotalScore.group_id == self.group_id]


class _DeckScoreQuery(LeaderboardQuery):
    """Leaderboard summing each user's scores across a set of decks."""

    model: Any

    def __init__(self, db: AsyncSession, deck_unique_ids: Iterable[str]) -> None:
        self.db = db
        self.deck_unique_ids = tuple(sorted(set(deck_unique_ids)))

    def _filters(self) -> list[ColumnElement[bool]]:
        return [self.model.deck_unique_id.in_(self.deck_unique_ids)]

    async def count_distinct_users(self) -> int:
        result = await self.db.execute(
            select(func.count(func.distinct(self.model.user_id))).where(*self._filters())
        )
        return result.scalar() or 0

    async def sum_total_score(self) -> int:
        result = await self.db.execute(
            select(func.coalesce(func.sum(self.model.score), 0)).where(*self._filters())
        )
        return int(result.scalar() or 0)

    def _grouped_scores(self) -> Select:
        total = func.sum(self.model.score).label("score")
        return (
            select(self.model.user_id, total)
            .where(*self._filters())
            .group_by(self.model.user_id)
            .order_by(total.desc(), self.model.user_id)
        )

    async def get_ranked_page(self, start_index: int, end_index: int) -> list[LeaderboardEntry]:
        limit = _page_bounds(start_index, end_index)
        if limit == 0:
            return []

        result = await self.db.execute(self._grouped_scores().offset(start_index).limit(limit))
        rows = result.all()
        if not rows:
            return []

        usernames = await self._latest_usernames([row.user_id for row in rows])
        return [
            LeaderboardEntry(
                user_id=row.user_id,
                last_known_username=usernames.get(row.user_id),
                score=int(row.score),
            )
            for row in rows
        ]

    async def _latest_usernames(self, user_ids: Sequence[str]) -> dict[str, str | None]:
        """Username from the most recently written matching row of each user."""
        result = await self.db.execute(
            select(self.model.user_id, self.model.last_known_username)
            .where(*self._filters(), self.model.user_id.in_(user_ids))
            .order_by(self.model.updated_at, self.model.id)
        )
        # Later rows overwrite earlier ones
        return {row.user_id: row.last_known_username for row in result.all()}


class GlobalDeckScoreQuery(_DeckScoreQuery):
    model = UserGlobalDeckScore


class GroupDeckScoreQuery(_DeckScoreQuery):
    model = UserGroupDeckScore

    def __init__(self, db: AsyncSession, group_id: str, deck_unique_ids: Iterable[str]) -> None:
        super().__init__(db, deck_unique_ids)
        self.group_id = group_id

    def _filters(self) -> list[ColumnElement[bool]]:
        return [*super()._filters(), UserGroupDeckScore.group_id == self.group_id]


def create_leaderboard_query(
    db: AsyncSession,
    group_id: str | None = None,
    deck_unique_ids: Iterable[str] = (),
) -> LeaderboardQuery:
    """Pick the query strategy for a scope and deck filter."""
    deck_unique_ids = tuple(deck_unique_ids)

    if not deck_unique_ids:
        if group_id:
            return GroupTotalScoreQuery(db, group_id)
        return GlobalTotalScoreQuery(db)

    if group_id:
        return GroupDeckScoreQuery(db, group_id, deck_unique_ids)
    return GlobalDeckScoreQuery(db, deck_unique_ids)


class LeaderboardService:
    """Resolves deck names and hands back the matching leaderboard query."""

    def __init__(self, db: AsyncSession, deck_resolver: DeckResolver) -> None:
        self.db = db
        self.deck_resolver = deck_resolver

    async def get_scores(
        self,
        group_id: str | None = None,
        deck_names: Sequence[str] = (),
    ) -> LeaderboardQuery:
        deck_unique_ids = await self.deck_resolver.resolve_many(deck_names)
        logger.debug(
            "Leaderboard query selected",
            group_id=group_id,
            deck_unique_ids=deck_unique_ids,
        )
        return create_leaderboard_query(self.db, group_id, deck_unique_ids)

    async def get_global_scores(self, deck_names: Sequence[str] = ()) -> LeaderboardQuery:
        return await self.get_scores(None, deck_names)

    async def get_group_scores(
        self,
        group_id: str,
        deck_names: Sequence[str] = (),
    ) -> LeaderboardQuery:
        return await self.get_scores(group_id, deck_names)
