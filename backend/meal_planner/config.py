from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # App
    app_name: str = "Weekly Menu Planner"
    environment: str = "development"
    port: int = 3001

    # OpenAI
    openai_api_key: str = ""
    openai_model: str = "gpt-5.2"
    openai_temperature: float = 0.7

    # CORS - comma-separated list of allowed origins
    cors_origins: str = "http://localhost:3000"

    # Dev console: log capture, /api/logs and the log WebSockets
    dev_console_enabled: bool = True
    log_capture_max_entries: int = 500
    # Also capture stdlib logging records (uvicorn, httpx, app modules)
    log_capture_stdlib: bool = True


settings = Settings()
