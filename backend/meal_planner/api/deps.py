from functools import lru_cache

from fastapi import HTTPException, status

from meal_planner.config import settings
from meal_planner.providers import AIProvider, get_provider


@lru_cache
def _default_provider() -> AIProvider:
    return get_provider(settings)


def get_ai_provider() -> AIProvider:
    """FastAPI dependency; tests override it with a fake provider."""
    return _default_provider()


def require_dev_console() -> None:
    if not settings.dev_console_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
