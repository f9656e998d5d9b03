"""REST endpoints for the captured dev-console log.

GET    /api/logs   - most recent entries (newest last)
DELETE /api/logs   - clear the log; subscribers receive the clear sentinel
"""

from fastapi import APIRouter, Depends, Query, status

from meal_planner.api.deps import require_dev_console
from meal_planner.log_capture import LogLevel, log_capture
from meal_planner.schemas.logs import LogEntryOut

router = APIRouter(prefix="/logs", tags=["logs"], dependencies=[Depends(require_dev_console)])


@router.get("", response_model=list[LogEntryOut])
async def get_logs(
    limit: int = Query(200, ge=1, le=2000),
    level: LogLevel | None = Query(None),
) -> list[LogEntryOut]:
    entries = log_capture.get_entries(limit=limit, level=level)
    return [LogEntryOut.model_validate(e) for e in entries]


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_logs() -> None:
    log_capture.clear()
