"""Async HTTP client for the meal-planner API.

Every request and its outcome is reported through the console channels, so a
mounted dev console shows the client's traffic next to everything else.
"""

from typing import Any

import httpx

from meal_planner.console import console
from meal_planner.schemas.meal_plan import MealPlanRequest, MealPlanResponse, RecipeRequest, RecipeResponse

DEFAULT_BASE_URL = "http://localhost:3001/api"


class MealPlanAPIError(Exception):
    def __init__(self, message: str, status_code: int, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class MealPlanClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout: float = 120,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "MealPlanClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def generate_meal_plan(self, request: MealPlanRequest) -> MealPlanResponse:
        console.info(f"[API] POST {self.base_url}/meal-plan/generate")
        console.log("[API] Request payload:", request)

        data = await self._post("/meal-plan/generate", request)
        plan = MealPlanResponse.model_validate(data)
        console.info(f"[API] Meal plan generated successfully ({len(plan.week_plan)} days)")
        return plan

    async def generate_recipe(self, request: RecipeRequest) -> RecipeResponse:
        console.info(f"[API] POST {self.base_url}/meal-plan/recipe")
        console.log("[API] Request payload:", request)

        data = await self._post("/meal-plan/recipe", request)
        recipe = RecipeResponse.model_validate(data)
        console.info(f"[API] Recipe generated successfully ({recipe.meal_name})")
        return recipe

    async def health_check(self) -> dict[str, Any]:
        console.info(f"[API] GET {self.base_url}/health")
        response = await self._client.get("/health")
        data = response.json()
        console.log("[API] Health check result:", data)
        return data

    async def _post(self, path: str, body: MealPlanRequest | RecipeRequest) -> Any:
        response = await self._client.post(path, json=body.model_dump(mode="json", by_alias=True))
        if response.is_success:
            return response.json()

        try:
            error = response.json()
        except ValueError:
            error = {"error": "Unknown error"}
        if not isinstance(error, dict):
            error = {}
        message = error.get("error") or f"Request failed with status {response.status_code}"
        details = error.get("details")
        console.error(f"[API] Error {response.status_code}:", message, details if details is not None else "")
        raise MealPlanAPIError(message, response.status_code, details)
