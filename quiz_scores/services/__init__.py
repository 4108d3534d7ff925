from quiz_scores.services.deck_service import DeckCatalog, DeckResolver
from quiz_scores.services.leaderboard_service import (
    LeaderboardEntry,
    LeaderboardQuery,
    LeaderboardService,
    create_leaderboard_query,
)
from quiz_scores.services.migration_service import (
    LegacyDataStore,
    LegacyMigrationTask,
    LegacyScoreMigrator,
    MigrationStatus,
)
from quiz_scores.services.score_service import ScoreStorageService

__all__ = [
    "DeckCatalog",
    "DeckResolver",
    "ScoreStorageService",
    "LeaderboardEntry",
    "LeaderboardQuery",
    "LeaderboardService",
    "create_leaderboard_query",
    "LegacyDataStore",
    "LegacyScoreMigrator",
    "LegacyMigrationTask",
    "MigrationStatus",
]
