"""OpenAI adapter using the Responses API with strict JSON-schema output."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, TypeVar

from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError

from meal_planner.providers.base import AIProvider, AIProviderError, ProviderConfig
from meal_planner.schemas.meal_plan import MealPlanRequest, MealPlanResponse, RecipeRequest, RecipeResponse

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

GROCERY_CATEGORIES = [
    "Produce",
    "Dairy",
    "Meat & Seafood",
    "Bakery",
    "Frozen",
    "Pantry",
    "Beverages",
    "Spices & Seasonings",
    "Other",
]


def _object(properties: dict[str, Any]) -> dict[str, Any]:
    # Strict structured output: every property required, nothing extra.
    return {
        "type": "object",
        "properties": properties,
        "required": list(properties),
        "additionalProperties": False,
    }


_STRING = {"type": "string"}
_NUMBER = {"type": "number"}

MEAL_PLAN_SCHEMA: dict[str, Any] = {
    "name": "meal_plan",
    "strict": True,
    "schema": {
        **_object(
            {
                "weekPlan": {
                    "type": "array",
                    "items": _object(
                        {
                            "day": _STRING,
                            "breakfast": {"$ref": "#/$defs/meal"},
                            "morningSnack": {"$ref": "#/$defs/meal"},
                            "lunch": {"$ref": "#/$defs/meal"},
                            "afternoonSnack": {"$ref": "#/$defs/meal"},
                            "dinner": {"$ref": "#/$defs/meal"},
                            "dailyTotals": {"$ref": "#/$defs/macros"},
                        }
                    ),
                },
                "shoppingList": _object(
                    {
                        "items": {
                            "type": "array",
                            "items": _object(
                                {
                                    "name": _STRING,
                                    "totalQuantity": _STRING,
                                    "unit": _STRING,
                                    "category": {"type": "string", "enum": GROCERY_CATEGORIES},
                                }
                            ),
                        }
                    }
                ),
            }
        ),
        "$defs": {
            "macros": _object(
                {
                    "calories": _NUMBER,
                    "protein": _NUMBER,
                    "carbohydrates": _NUMBER,
                    "fats": _NUMBER,
                    "fiber": _NUMBER,
                }
            ),
            "ingredient": _object({"name": _STRING, "quantity": _STRING, "unit": _STRING, "category": _STRING}),
            "meal": _object(
                {
                    "name": _STRING,
                    "description": _STRING,
                    "ingredients": {"type": "array", "items": {"$ref": "#/$defs/ingredient"}},
                    "macros": {"$ref": "#/$defs/macros"},
                    "prepTime": _STRING,
                }
            ),
        },
    },
}

RECIPE_SCHEMA: dict[str, Any] = {
    "name": "recipe",
    "strict": True,
    "schema": _object(
        {
            "mealName": _STRING,
            "ingredients": {
                "type": "array",
                "items": _object({"name": _STRING, "quantity": _STRING, "unit": _STRING, "notes": _STRING}),
            },
            "instructions": {"type": "array", "items": _STRING},
            "tips": _STRING,
        }
    ),
}

MEAL_PLAN_INSTRUCTIONS = """\
You are a professional nutritionist and meal planner. Generate a complete 7-day meal plan \
with exact macros and a consolidated shopping list.

IMPORTANT RULES:
- Every day MUST include: breakfast, morningSnack, lunch, afternoonSnack, dinner
- Daily macros should be as close as possible to the user's targets
- The shopping list MUST aggregate identical ingredients across all meals
- Categorize shopping list items into: """ + ", ".join(GROCERY_CATEGORIES)

RECIPE_INSTRUCTIONS = """\
You are a professional chef. Write a clear, step-by-step recipe for the requested meal.
List every ingredient with quantity and unit, keep instructions concise and in order, \
and add practical tips when useful."""


def build_meal_plan_input(request: MealPlanRequest) -> str:
    goals = request.macro_goals
    parts = [
        "Daily Macro Goals:",
        f"- Protein: {goals.protein:g}g",
        f"- Carbohydrates: {goals.carbohydrates:g}g",
        f"- Fats: {goals.fats:g}g",
        f"- Fiber: {goals.fiber:g}g",
    ]
    if goals.calories:
        parts.append(f"- Calories: {goals.calories:g}")

    if request.dietary_restrictions:
        parts.append(f"\nDietary Restrictions: {', '.join(request.dietary_restrictions)}")
    if request.favorite_cuisines:
        parts.append(f"\nPreferred Cuisines: {', '.join(request.favorite_cuisines)}")
    if request.specific_meals:
        parts.append(f"\nSpecific Meals to Include: {', '.join(request.specific_meals)}")
    if request.exclude_previous_week_meals and request.previous_week_meals:
        parts.append(f"\nDo NOT include these meals from last week: {', '.join(request.previous_week_meals)}")
    if request.additional_context:
        parts.append(f"\nAdditional Context: {request.additional_context}")

    return "\n".join(parts)


def build_recipe_input(request: RecipeRequest) -> str:
    parts = [f"Meal: {request.meal_name}"]
    if request.description:
        parts.append(f"Description: {request.description}")
    parts.append(f"Servings: {request.servings}")
    if request.dietary_restrictions:
        parts.append(f"Dietary Restrictions: {', '.join(request.dietary_restrictions)}")
    return "\n".join(parts)


class OpenAIProvider(AIProvider):
    def __init__(self, config: ProviderConfig) -> None:
        if not config.api_key:
            raise AIProviderError("Missing OpenAI API key (set OPENAI_API_KEY)")
        super().__init__(config)
        self._client = AsyncOpenAI(api_key=config.api_key)

    async def generate_meal_plan(self, request: MealPlanRequest) -> MealPlanResponse:
        data = await self._complete_json(MEAL_PLAN_INSTRUCTIONS, build_meal_plan_input(request), MEAL_PLAN_SCHEMA)
        return self._validate(MealPlanResponse, data)

    async def generate_recipe(self, request: RecipeRequest) -> RecipeResponse:
        data = await self._complete_json(RECIPE_INSTRUCTIONS, build_recipe_input(request), RECIPE_SCHEMA)
        return self._validate(RecipeResponse, data)

    async def _complete_json(self, instructions: str, input_text: str, schema: dict[str, Any]) -> dict[str, Any]:
        response = await self._client.responses.create(
            model=self.config.model,
            instructions=instructions,
            input=input_text,
            temperature=self.config.temperature,
            text={"format": {"type": "json_schema", **schema}},
            store=False,
        )

        content = response.output_text
        if not content:
            raise AIProviderError("No response received from AI model")

        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise AIProviderError("AI response was not valid JSON") from exc
        if not isinstance(data, dict):
            raise AIProviderError("AI response was not a JSON object")
        return data

    def _validate(self, model: type[M], data: dict[str, Any]) -> M:
        data["generatedAt"] = datetime.now(timezone.utc).isoformat()
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            logger.warning("AI response failed %s validation: %s", model.__name__, exc)
            raise AIProviderError(f"AI response did not match the {model.__name__} schema") from exc
