"""Configuration and environment settings for the statement pipeline."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings for the statement pipeline."""

    groq_api_key: str = ""
    llm_model: str = "llama-3.1-8b-instant"
    llm_temperature: float = 0.3
    llm_max_completion_tokens: int = 1024
    llm_top_p: float = 1.0
    llm_stream: bool = False
    extraction_max_chars: int = 10000
    classifier_concurrency: int = 6
    database_url: str = "sqlite:///statements.db"
    log_dir: str = "logs"
    log_level: str = "INFO"
    trend_window_months: int = 6
    habit_window_months: int = 3
    previous_month_limit: int = 50
    verification_session_ttl_seconds: int = 24 * 60 * 60
    server_host: str = "127.0.0.1"
    server_port: int = 8000

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


def get_settings() -> "Settings":
    """Return an instance of the application settings."""
    return Settings()
