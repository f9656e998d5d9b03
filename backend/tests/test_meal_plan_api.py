import pytest
from httpx import AsyncClient

from meal_planner.api import deps
from meal_planner.main import app
from meal_planner.providers import AIProviderError
from meal_planner.schemas.meal_plan import MealPlanResponse, RecipeResponse

pytestmark = pytest.mark.asyncio

GENERATE = "/api/meal-plan/generate"
RECIPE = "/api/meal-plan/recipe"

VALID_REQUEST = {
    "macroGoals": {
        "protein": 150,
        "carbohydrates": 200,
        "fats": 65,
        "fiber": 30,
        "calories": 2000,
    },
}

MACROS = {"calories": 400, "protein": 30, "carbohydrates": 40, "fats": 10, "fiber": 5}
MEAL = {
    "name": "Oatmeal",
    "description": "Hearty oats",
    "ingredients": [{"name": "Oats", "quantity": "1", "unit": "cup", "category": "Pantry"}],
    "macros": MACROS,
    "prepTime": "10 min",
}
PLAN = {
    "weekPlan": [
        {
            "day": "Monday",
            "breakfast": MEAL,
            "morningSnack": MEAL,
            "lunch": MEAL,
            "afternoonSnack": MEAL,
            "dinner": MEAL,
            "dailyTotals": MACROS,
        }
    ],
    "shoppingList": {"items": [{"name": "Oats", "totalQuantity": "7", "unit": "cup", "category": "Pantry"}]},
    "generatedAt": "2026-01-05T12:00:00+00:00",
}


# ── Health ────────────────────────────────────────────────────────────────────


async def test_health(client: AsyncClient):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert "timestamp" in resp.json()


async def test_meal_plan_health(client: AsyncClient):
    resp = await client.get("/api/meal-plan/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


# ── Generate ──────────────────────────────────────────────────────────────────


async def test_generate_returns_plan_in_wire_format(client: AsyncClient, provider):
    provider.generate_meal_plan.return_value = MealPlanResponse.model_validate(PLAN)

    resp = await client.post(GENERATE, json=VALID_REQUEST)

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["weekPlan"][0]["morningSnack"]["prepTime"] == "10 min"
    assert body["shoppingList"]["items"][0]["totalQuantity"] == "7"

    [request] = provider.generate_meal_plan.await_args.args
    assert request.macro_goals.protein == 150
    assert request.dietary_restrictions == []
    assert request.exclude_previous_week_meals is False


async def test_generate_rejects_negative_macros(client: AsyncClient, provider):
    resp = await client.post(
        GENERATE,
        json={"macroGoals": {"protein": -1, "carbohydrates": 200, "fats": 65, "fiber": 30}},
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Validation error"
    assert body["details"][0]["path"] == "macroGoals.protein"
    provider.generate_meal_plan.assert_not_awaited()


async def test_generate_rejects_missing_macro_goals(client: AsyncClient):
    resp = await client.post(GENERATE, json={})
    assert resp.status_code == 400
    assert resp.json()["details"][0]["path"] == "macroGoals"


async def test_generate_provider_failure_is_500_and_logged(client: AsyncClient, provider, global_capture):
    provider.generate_meal_plan.side_effect = RuntimeError("AI error")

    resp = await client.post(GENERATE, json=VALID_REQUEST)

    assert resp.status_code == 500
    assert "Failed to generate" in resp.json()["error"]
    [entry] = global_capture.get_entries(level="error")
    assert entry.message == "Error generating meal plan: AI error"
    assert "RuntimeError: AI error" in entry.details


# ── Recipe ────────────────────────────────────────────────────────────────────


async def test_recipe_returns_recipe(client: AsyncClient, provider):
    provider.generate_recipe.return_value = RecipeResponse(
        meal_name="Classic Oatmeal",
        ingredients=[{"name": "Rolled Oats", "quantity": "1", "unit": "cup", "notes": "old-fashioned"}],
        instructions=["Bring water to a boil.", "Add oats and reduce heat."],
        tips="Top with fresh berries.",
        generated_at="2026-01-05T12:00:00+00:00",
    )

    resp = await client.post(RECIPE, json={"mealName": "Classic Oatmeal", "servings": 2})

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["mealName"] == "Classic Oatmeal"
    assert body["instructions"][0] == "Bring water to a boil."
    [request] = provider.generate_recipe.await_args.args
    assert request.servings == 2


async def test_recipe_requires_meal_name(client: AsyncClient):
    resp = await client.post(RECIPE, json={"mealName": ""})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Validation error"


async def test_recipe_provider_failure(client: AsyncClient, provider):
    provider.generate_recipe.side_effect = AIProviderError("No response received from AI model")

    resp = await client.post(RECIPE, json={"mealName": "Salad"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to generate recipe. Please try again."}


async def test_unconfigured_provider_is_500(monkeypatch):
    from httpx import ASGITransport

    def broken():
        raise AIProviderError("Missing OpenAI API key (set OPENAI_API_KEY)")

    monkeypatch.setattr(deps, "_default_provider", broken)
    app.dependency_overrides.pop(deps.get_ai_provider, None)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        resp = await c.post(GENERATE, json=VALID_REQUEST)

    assert resp.status_code == 500
    assert "not available" in resp.json()["error"]
