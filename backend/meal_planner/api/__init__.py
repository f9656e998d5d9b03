from fastapi import APIRouter

from meal_planner.api.logs import router as logs_router
from meal_planner.api.meal_plan import router as meal_plan_router

api_router = APIRouter(prefix="/api")
api_router.include_router(meal_plan_router)
api_router.include_router(logs_router)
