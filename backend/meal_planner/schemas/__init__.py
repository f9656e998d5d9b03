from meal_planner.schemas.logs import LogEntryOut
from meal_planner.schemas.meal_plan import (
    DayPlan,
    ErrorResponse,
    Ingredient,
    MacroGoals,
    Meal,
    MealPlanRequest,
    MealPlanResponse,
    RecipeIngredient,
    RecipeRequest,
    RecipeResponse,
    ShoppingList,
    ShoppingListItem,
)

__all__ = [
    "LogEntryOut",
    "MacroGoals",
    "MealPlanRequest",
    "RecipeRequest",
    "Ingredient",
    "Meal",
    "DayPlan",
    "ShoppingListItem",
    "ShoppingList",
    "MealPlanResponse",
    "RecipeIngredient",
    "RecipeResponse",
    "ErrorResponse",
]
