from abc import ABC, abstractmethod
from dataclasses import dataclass

from meal_planner.schemas.meal_plan import MealPlanRequest, MealPlanResponse, RecipeRequest, RecipeResponse


class AIProviderError(Exception):
    """The AI backend failed or returned something unusable."""


@dataclass
class ProviderConfig:
    model: str
    api_key: str | None = None
    temperature: float = 0.7


class AIProvider(ABC):
    """Common interface for AI backends that build meal plans and recipes."""

    def __init__(self, config: ProviderConfig) -> None:
        self.config = config

    @abstractmethod
    async def generate_meal_plan(self, request: MealPlanRequest) -> MealPlanResponse:
        """Return a validated 7-day meal plan with a consolidated shopping list."""
        ...  # pragma: no cover

    @abstractmethod
    async def generate_recipe(self, request: RecipeRequest) -> RecipeResponse:
        """Return a validated recipe for a single meal."""
        ...  # pragma: no cover
