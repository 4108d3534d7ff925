from pydantic import BaseModel


class MigrationStatusResponse(BaseModel):
    status: str
    rows_applied: int
    error: str | None = None
