"""Request / response models for the meal-plan API.

Fields are snake_case in Python and camelCase on the wire.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

GroceryCategory = Literal[
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


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Requests ──────────────────────────────────────────────────────────────────


class MacroGoals(CamelModel):
    calories: float | None = Field(None, ge=0)
    protein: float = Field(ge=0, description="grams")
    carbohydrates: float = Field(ge=0, description="grams")
    fats: float = Field(ge=0, description="grams")
    fiber: float = Field(ge=0, description="grams")


class MealPlanRequest(CamelModel):
    macro_goals: MacroGoals
    dietary_restrictions: list[str] = []
    favorite_cuisines: list[str] = []
    specific_meals: list[str] = []
    exclude_previous_week_meals: bool = False
    previous_week_meals: list[str] = []
    additional_context: str = ""


class RecipeRequest(CamelModel):
    meal_name: str = Field(min_length=1)
    description: str = ""
    servings: int = Field(1, ge=1)
    dietary_restrictions: list[str] = []


# ── Responses ─────────────────────────────────────────────────────────────────


class Ingredient(CamelModel):
    name: str
    quantity: str
    unit: str
    category: str


class Meal(CamelModel):
    name: str
    description: str
    ingredients: list[Ingredient]
    macros: MacroGoals
    prep_time: str


class DayPlan(CamelModel):
    day: str
    breakfast: Meal
    morning_snack: Meal
    lunch: Meal
    afternoon_snack: Meal
    dinner: Meal
    daily_totals: MacroGoals


class ShoppingListItem(CamelModel):
    name: str
    total_quantity: str
    unit: str
    category: GroceryCategory


class ShoppingList(CamelModel):
    items: list[ShoppingListItem]


class MealPlanResponse(CamelModel):
    week_plan: list[DayPlan]
    shopping_list: ShoppingList
    generated_at: str


class RecipeIngredient(CamelModel):
    name: str
    quantity: str
    unit: str
    notes: str = ""


class RecipeResponse(CamelModel):
    meal_name: str
    ingredients: list[RecipeIngredient]
    instructions: list[str]
    tips: str = ""
    generated_at: str


class ErrorDetail(BaseModel):
    path: str
    message: str


class ErrorResponse(BaseModel):
    error: str
    details: list[ErrorDetail] | None = None
