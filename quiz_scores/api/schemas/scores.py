from pydantic import BaseModel, Field


class ScoreCreate(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=64)
    group_id: str | None = Field(None, min_length=1, max_length=64)
    deck_unique_id: str = Field(..., min_length=1, max_length=255)
    score: float = Field(..., allow_inf_nan=False)
    username: str | None = Field(None, max_length=255)


class BatchScoreCreate(BaseModel):
    group_id: str | None = Field(None, min_length=1, max_length=64)
    scores: dict[str, dict[str, float]]
    usernames: dict[str, str] = {}
