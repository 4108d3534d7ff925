from fastapi import APIRouter, Depends

from quiz_scores.api.dependencies import get_migration_task
from quiz_scores.api.schemas.migration import MigrationStatusResponse
from quiz_scores.services.migration_service import LegacyMigrationTask, MigrationStatus

router = APIRouter()


@router.get(
    "",
    response_model=MigrationStatusResponse,
    summary="Get legacy score migration status",
)
async def get_migration_status(
    task: LegacyMigrationTask | None = Depends(get_migration_task),
) -> MigrationStatusResponse:
    if task is None:
        return MigrationStatusResponse(status=MigrationStatus.SKIPPED.value, rows_applied=0)

    return MigrationStatusResponse(
        status=task.status.value,
        rows_applied=task.rows_applied,
        error=str(task.error) if task.error else None,
    )
