from fastapi import APIRouter

from quiz_scores.api.routes.leaderboard import router as leaderboard_router
from quiz_scores.api.routes.migration import router as migration_router
from quiz_scores.api.routes.scores import router as scores_router

router = APIRouter()

router.include_router(leaderboard_router, prefix="/leaderboard", tags=["leaderboard"])
router.include_router(scores_router, prefix="/scores", tags=["scores"])
router.include_router(migration_router, prefix="/migration", tags=["migration"])
