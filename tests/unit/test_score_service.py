import asyncio
import math

import pytest

from quiz_scores.core.exceptions import AggregateError, ValidationError
from quiz_scores.db.database import create_engine_for, create_session_maker
from quiz_scores.db.models.scores import (
    UserGlobalDeckScore,
    UserGlobalTotalScore,
    UserGroupDeckScore,
    UserGroupTotalScore,
)
from quiz_scores.services.score_service import ScoreStorageService, truncate_score

ALL_MODELS = (UserGlobalTotalScore, UserGroupTotalScore, UserGlobalDeckScore, UserGroupDeckScore)


class TestTruncateScore:
    """Tests for raw score truncation."""

    def test_truncates_toward_zero(self) -> None:
        assert truncate_score(10.9) == 10
        assert truncate_score(-2.7) == -2
        assert truncate_score(0.4) == 0
        assert truncate_score(7) == 7

    def test_rejects_non_finite(self) -> None:
        with pytest.raises(ValidationError):
            truncate_score(math.nan)
        with pytest.raises(ValidationError):
            truncate_score(math.inf)


class TestApplyScore:
    """Tests for single scoring events."""

    @pytest.mark.asyncio
    async def test_updates_all_four_records(self, score_service, fetch_rows) -> None:
        await score_service.apply_score("u1", "g1", "deck_a", 12.8, "Alice")

        for model in ALL_MODELS:
            rows = await fetch_rows(model)
            assert len(rows) == 1, model.__tablename__
            assert rows[0].user_id == "u1"
            assert rows[0].score == 12
            assert rows[0].last_known_username == "Alice"

        [group_deck] = await fetch_rows(UserGroupDeckScore)
        assert group_deck.group_id == "g1"
        assert group_deck.deck_unique_id == "deck_a"

    @pytest.mark.asyncio
    async def test_without_group_skips_group_records(self, score_service, fetch_rows) -> None:
        await score_service.apply_score("u1", None, "deck_a", 5, "Alice")

        assert len(await fetch_rows(UserGlobalTotalScore)) == 1
        assert len(await fetch_rows(UserGlobalDeckScore)) == 1
        assert await fetch_rows(UserGroupTotalScore) == []
        assert await fetch_rows(UserGroupDeckScore) == []

    @pytest.mark.asyncio
    async def test_increments_accumulate(self, score_service, fetch_rows) -> None:
        await score_service.apply_score("u1", "g1", "deck_a", 10, "Alice")
        await score_service.apply_score("u1", "g1", "deck_a", 15, "Alice")
        await score_service.apply_score("u1", "g2", "deck_b", 7, "Alice")

        [global_total] = await fetch_rows(UserGlobalTotalScore)
        assert global_total.score == 32

        group_totals = {row.group_id: row.score for row in await fetch_rows(UserGroupTotalScore)}
        assert group_totals == {"g1": 25, "g2": 7}

        deck_scores = {
            row.deck_unique_id: row.score for row in await fetch_rows(UserGlobalDeckScore)
        }
        assert deck_scores == {"deck_a": 25, "deck_b": 7}

    @pytest.mark.asyncio
    async def test_concurrent_increments_are_not_lost(self, score_service, fetch_rows) -> None:
        deltas = [3, 11, 1, 8, 20, 5, 2, 9]

        await asyncio.gather(
            *(score_service.apply_score("u1", None, "deck_a", d, "Alice") for d in deltas)
        )

        [deck_score] = await fetch_rows(UserGlobalDeckScore)
        assert deck_score.score == sum(deltas)
        [global_total] = await fetch_rows(UserGlobalTotalScore)
        assert global_total.score == sum(deltas)

    @pytest.mark.asyncio
    async def test_zero_delta_is_noop(self, score_service, fetch_rows) -> None:
        await score_service.apply_score("u1", "g1", "deck_a", 0.4, "Alice")
        for model in ALL_MODELS:
            assert await fetch_rows(model) == []

        await score_service.apply_score("u1", "g1", "deck_a", 10, "Alice")
        await score_service.apply_score("u1", "g1", "deck_a", 0.9, "Renamed")

        for model in ALL_MODELS:
            [row] = await fetch_rows(model)
            assert row.score == 10
            assert row.last_known_username == "Alice"

    @pytest.mark.asyncio
    async def test_username_overwritten(self, score_service, fetch_rows) -> None:
        await score_service.apply_score("u1", None, "deck_a", 10, "Alice")
        await score_service.apply_score("u1", None, "deck_a", 10, "Alicia")

        [global_total] = await fetch_rows(UserGlobalTotalScore)
        assert global_total.last_known_username == "Alicia"

    @pytest.mark.asyncio
    async def test_sentinel_deck_excluded_from_totals(self, score_service, fetch_rows) -> None:
        await score_service.apply_score("u1", "g1", "deck_a", 10, "Alice")
        await score_service.apply_score("u1", "g1", "shiritori", 40, "Alice")
        await score_service.apply_score("u1", "g1", "shiritori", 40, "Alice")

        [global_total] = await fetch_rows(UserGlobalTotalScore)
        [group_total] = await fetch_rows(UserGroupTotalScore)
        assert global_total.score == 10
        assert group_total.score == 10

        deck_scores = {
            row.deck_unique_id: row.score for row in await fetch_rows(UserGroupDeckScore)
        }
        assert deck_scores == {"deck_a": 10, "shiritori": 80}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("user_id", "group_id", "deck_unique_id"),
        [
            ("", "g1", "deck_a"),
            (123, "g1", "deck_a"),
            ("u1", "", "deck_a"),
            ("u1", "g1", ""),
            ("u1", None, None),
        ],
    )
    async def test_bad_identifiers(
        self, score_service, fetch_rows, user_id, group_id, deck_unique_id
    ) -> None:
        with pytest.raises(ValidationError):
            await score_service.apply_score(user_id, group_id, deck_unique_id, 10, "Alice")

        for model in ALL_MODELS:
            assert await fetch_rows(model) == []

    @pytest.mark.asyncio
    async def test_store_failure_raises_aggregate_error(self, tmp_path) -> None:
        # Tables were never created on this engine
        engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
        service = ScoreStorageService(create_session_maker(engine), "shiritori")

        try:
            with pytest.raises(AggregateError):
                await service.apply_score("u1", "g1", "deck_a", 10, "Alice")
        finally:
            await engine.dispose()


class TestApplyBatchScores:
    """Tests for whole-session score updates."""

    @pytest.mark.asyncio
    async def test_single_total_increment_per_user(self, score_service, fetch_rows) -> None:
        await score_service.apply_batch_scores(
            "g1",
            {"u1": {"deck_a": 50, "deck_b": 30}, "u2": {"deck_a": 5}},
            {"u1": "Alice", "u2": "Bob"},
        )

        totals = {row.user_id: row.score for row in await fetch_rows(UserGlobalTotalScore)}
        assert totals == {"u1": 80, "u2": 5}
        group_totals = {row.user_id: row.score for row in await fetch_rows(UserGroupTotalScore)}
        assert group_totals == {"u1": 80, "u2": 5}

        deck_rows = await fetch_rows(UserGroupDeckScore)
        assert {(r.user_id, r.deck_unique_id): r.score for r in deck_rows} == {
            ("u1", "deck_a"): 50,
            ("u1", "deck_b"): 30,
            ("u2", "deck_a"): 5,
        }
        assert {r.last_known_username for r in deck_rows if r.user_id == "u2"} == {"Bob"}

    @pytest.mark.asyncio
    async def test_session_total_truncated_once(self, score_service, fetch_rows) -> None:
        await score_service.apply_batch_scores(None, {"u1": {"deck_a": 0.6, "deck_b": 0.6}}, {})

        # Neither deck entry reaches a whole point, their sum does
        assert await fetch_rows(UserGlobalDeckScore) == []
        [global_total] = await fetch_rows(UserGlobalTotalScore)
        assert global_total.score == 1
        assert global_total.last_known_username is None

    @pytest.mark.asyncio
    async def test_sentinel_entries_left_out_of_total(self, score_service, fetch_rows) -> None:
        await score_service.apply_batch_scores(
            "g1",
            {"u1": {"deck_a": 20, "shiritori": 100}},
            {"u1": "Alice"},
        )

        [global_total] = await fetch_rows(UserGlobalTotalScore)
        [group_total] = await fetch_rows(UserGroupTotalScore)
        assert global_total.score == 20
        assert group_total.score == 20

        deck_scores = {
            row.deck_unique_id: row.score for row in await fetch_rows(UserGlobalDeckScore)
        }
        assert deck_scores == {"deck_a": 20, "shiritori": 100}

    @pytest.mark.asyncio
    async def test_only_sentinel_touches_no_totals(self, score_service, fetch_rows) -> None:
        await score_service.apply_batch_scores(None, {"u1": {"shiritori": 100}}, {"u1": "Alice"})

        assert await fetch_rows(UserGlobalTotalScore) == []
        assert len(await fetch_rows(UserGlobalDeckScore)) == 1

    @pytest.mark.asyncio
    async def test_validation_happens_before_any_write(self, score_service, fetch_rows) -> None:
        with pytest.raises(ValidationError):
            await score_service.apply_batch_scores(
                "g1",
                {"u1": {"deck_a": 10}, "u2": {"": 10}},
                {"u1": "Alice", "u2": "Bob"},
            )

        for model in ALL_MODELS:
            assert await fetch_rows(model) == []
