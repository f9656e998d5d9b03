"""Meal-plan endpoints.

POST /api/meal-plan/generate  - 7-day plan + shopping list from macro goals
POST /api/meal-plan/recipe    - full recipe for a single meal
GET  /api/meal-plan/health
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from meal_planner.api.deps import get_ai_provider
from meal_planner.console import console
from meal_planner.providers import AIProvider
from meal_planner.schemas.meal_plan import (
    ErrorResponse,
    MealPlanRequest,
    MealPlanResponse,
    RecipeRequest,
    RecipeResponse,
)

router = APIRouter(prefix="/meal-plan", tags=["meal-plan"])

_ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


def _failure(message: str) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": message})


@router.post("/generate", response_model=MealPlanResponse, responses=_ERROR_RESPONSES)
async def generate_meal_plan(
    body: MealPlanRequest,
    provider: AIProvider = Depends(get_ai_provider),
):
    try:
        return await provider.generate_meal_plan(body)
    except Exception as exc:
        console.error("Error generating meal plan:", exc)
        return _failure("Failed to generate meal plan. Please try again.")


@router.post("/recipe", response_model=RecipeResponse, responses=_ERROR_RESPONSES)
async def generate_recipe(
    body: RecipeRequest,
    provider: AIProvider = Depends(get_ai_provider),
):
    try:
        return await provider.generate_recipe(body)
    except Exception as exc:
        console.error("Error generating recipe:", exc)
        return _failure("Failed to generate recipe. Please try again.")


@router.get("/health")
async def meal_plan_health() -> dict[str, str]:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
