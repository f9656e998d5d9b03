"""
Shared pytest fixtures.

LogCapture tests run against a private Console instance so nothing global is
patched; API tests use the process-wide ``log_capture`` singleton and always
uninstall it afterwards.  The AI backend is replaced by FakeProvider through
FastAPI's dependency overrides.
"""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from meal_planner.api.deps import get_ai_provider
from meal_planner.console import Console
from meal_planner.log_capture import LogCapture, log_capture
from meal_planner.main import app
from meal_planner.providers import AIProvider, ProviderConfig


class FakeProvider(AIProvider):
    def __init__(self) -> None:
        super().__init__(ProviderConfig(model="fake-model", api_key="test-key"))
        self.generate_meal_plan = AsyncMock()
        self.generate_recipe = AsyncMock()

    async def generate_meal_plan(self, request):  # replaced per instance
        raise NotImplementedError

    async def generate_recipe(self, request):  # replaced per instance
        raise NotImplementedError


# ── Log capture ───────────────────────────────────────────────────────────────


@pytest.fixture
def target() -> Console:
    """A private set of console channels to intercept."""
    return Console()


@pytest.fixture
def capture(target: Console):
    cap = LogCapture(target=target, max_entries=500)
    cap.install()
    yield cap
    cap.uninstall()


@pytest.fixture
def global_capture():
    """The process-wide singleton, installed on the global console."""
    log_capture.install()
    yield log_capture
    log_capture.clear()
    log_capture.uninstall()


# ── HTTP / WebSocket clients ──────────────────────────────────────────────────


@pytest.fixture
def provider():
    fake = FakeProvider()
    app.dependency_overrides[get_ai_provider] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_ai_provider, None)


@pytest_asyncio.fixture
async def client(provider: FakeProvider) -> AsyncClient:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
def ws_client() -> TestClient:
    # Not used as a context manager, so the lifespan (and its global install) does not run.
    return TestClient(app)
