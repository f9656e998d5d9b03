import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from meal_planner.api import api_router
from meal_planner.api.dev_console_ws import router as dev_console_ws_router
from meal_planner.api.logs_ws import router as logs_ws_router
from meal_planner.config import settings
from meal_planner.console import console
from meal_planner.log_capture import log_capture
from meal_planner.providers import AIProviderError

# ── Logging setup ────────────────────────────────────────────────────────────

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
# Quiet down noisy third-party loggers
for _name in ("httpcore", "httpx", "openai", "watchfiles", "multipart"):
    logging.getLogger(_name).setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Installed here rather than at import so tests control the capture lifecycle.
    if settings.dev_console_enabled:
        log_capture.install(capture_logging=settings.log_capture_stdlib)

    console.log(f"🍽️  {settings.app_name} server running on port {settings.port}")
    console.log(f"   Environment: {settings.environment}")
    console.log(f"   AI Model: {settings.openai_model}")
    try:
        yield
    finally:
        log_capture.uninstall()


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {
            # Drop the leading "body" / "query" location segment.
            "path": ".".join(str(part) for part in err["loc"][1:]),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Validation error", "details": details},
    )


async def provider_error_handler(request: Request, exc: AIProviderError) -> JSONResponse:
    console.error("AI provider unavailable:", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "AI provider is not available. Please try again later."},
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.cors_origins.split(",")],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(AIProviderError, provider_error_handler)

    app.include_router(api_router)
    app.include_router(logs_ws_router)  # WebSocket: /ws/logs
    app.include_router(dev_console_ws_router)  # WebSocket: /ws/dev-console

    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    return app


app = create_app()
