from quiz_scores.api.schemas.leaderboard import LeaderboardEntryResponse, LeaderboardResponse
from quiz_scores.api.schemas.migration import MigrationStatusResponse
from quiz_scores.api.schemas.scores import BatchScoreCreate, ScoreCreate

__all__ = [
    "LeaderboardEntryResponse",
    "LeaderboardResponse",
    "MigrationStatusResponse",
    "ScoreCreate",
    "BatchScoreCreate",
]
