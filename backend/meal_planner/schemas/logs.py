from datetime import datetime

from pydantic import BaseModel

from meal_planner.log_capture import LogLevel


class LogEntryOut(BaseModel):
    id: int
    timestamp: datetime
    level: LogLevel
    message: str
    details: str | None = None

    model_config = {"from_attributes": True}
