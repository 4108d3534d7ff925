from fastapi import APIRouter, Depends, HTTPException, Response, status

from quiz_scores.api.dependencies import get_score_service
from quiz_scores.api.schemas.scores import BatchScoreCreate, ScoreCreate
from quiz_scores.core.exceptions import ValidationError
from quiz_scores.services.score_service import ScoreStorageService

router = APIRouter()


@router.post(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Record one scoring event",
)
async def add_score(
    body: ScoreCreate,
    service: ScoreStorageService = Depends(get_score_service),
) -> Response:
    """Add a score to every running total it contributes to. Not safe to retry."""
    await service.apply_score(
        body.user_id,
        body.group_id,
        body.deck_unique_id,
        body.score,
        body.username,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/batch",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Record the scores of a finished quiz session",
)
async def add_batch_scores(
    body: BatchScoreCreate,
    service: ScoreStorageService = Depends(get_score_service),
) -> Response:
    try:
        await service.apply_batch_scores(body.group_id, body.scores, body.usernames)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        ) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)
