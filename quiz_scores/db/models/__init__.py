from quiz_scores.db.models.base import Base
from quiz_scores.db.models.deck import CustomDeck
from quiz_scores.db.models.persistence import LegacyPersistenceEntry
from quiz_scores.db.models.scores import (
    AGGREGATE_SCORE_MODELS,
    UserGlobalDeckScore,
    UserGlobalTotalScore,
    UserGroupDeckScore,
    UserGroupTotalScore,
)

__all__ = [
    "Base",
    "UserGlobalTotalScore",
    "UserGroupTotalScore",
    "UserGlobalDeckScore",
    "UserGroupDeckScore",
    "AGGREGATE_SCORE_MODELS",
    "CustomDeck",
    "LegacyPersistenceEntry",
]
