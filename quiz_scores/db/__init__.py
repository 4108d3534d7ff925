from quiz_scores.db.database import (
    async_session_maker,
    engine,
    get_db,
    get_session_maker,
    init_db,
)

__all__ = [
    "engine",
    "async_session_maker",
    "get_db",
    "get_session_maker",
    "init_db",
]
