from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from quiz_scores.api.dependencies import get_deck_resolver
from quiz_scores.api.schemas.leaderboard import LeaderboardEntryResponse, LeaderboardResponse
from quiz_scores.core.config import settings
from quiz_scores.core.exceptions import DeckNotFoundError
from quiz_scores.db import get_db
from quiz_scores.services.deck_service import DeckResolver
from quiz_scores.services.leaderboard_service import LeaderboardService

router = APIRouter()


@router.get(
    "",
    response_model=LeaderboardResponse,
    summary="Get a ranked leaderboard",
)
async def get_leaderboard(
    group_id: str | None = Query(None, min_length=1),
    deck: list[str] = Query([], description="Deck names or unique ids to filter by"),
    page: int = Query(1, ge=1),
    page_size: int = Query(
        settings.api_pagination_default_limit,
        ge=1,
        le=settings.api_pagination_max_limit,
    ),
    db: AsyncSession = Depends(get_db),
    deck_resolver: DeckResolver = Depends(get_deck_resolver),
) -> LeaderboardResponse:
    """Global or group leaderboard, optionally restricted to some decks."""
    service = LeaderboardService(db, deck_resolver)
    try:
        query = await service.get_scores(group_id, deck)
    except DeckNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Deck {e.name} not found",
        ) from e

    start_index = (page - 1) * page_size
    entries = await query.get_ranked_page(start_index, start_index + page_size)
    total_users = await query.count_distinct_users()
    total_score = await query.sum_total_score()

    return LeaderboardResponse(
        entries=[
            LeaderboardEntryResponse(
                rank=start_index + offset + 1,
                user_id=entry.user_id,
                username=entry.last_known_username,
                score=entry.score,
            )
            for offset, entry in enumerate(entries)
        ],
        total_users=total_users,
        total_score=total_score,
        page=page,
        page_size=page_size,
    )
