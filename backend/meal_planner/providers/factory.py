import os

from meal_planner.config import Settings
from meal_planner.providers.base import AIProvider, ProviderConfig


def get_provider(settings: Settings) -> AIProvider:
    """Instantiate the AI provider adapter described by *settings*.

    The API key comes from ``settings.openai_api_key``, falling back to the
    ``OPENAI_API_KEY`` environment variable.
    """
    from meal_planner.providers.openai import OpenAIProvider

    config = ProviderConfig(
        model=settings.openai_model,
        api_key=settings.openai_api_key or os.getenv("OPENAI_API_KEY"),
        temperature=settings.openai_temperature,
    )
    return OpenAIProvider(config)
