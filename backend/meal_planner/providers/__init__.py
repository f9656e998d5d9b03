from meal_planner.providers.base import AIProvider, AIProviderError, ProviderConfig
from meal_planner.providers.factory import get_provider

__all__ = ["AIProvider", "AIProviderError", "ProviderConfig", "get_provider"]
