from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    environment: str = "dev"

    database_url: str = "sqlite:///./upi_reader.db"

    # Primary (AI) extraction path. Any OpenAI-compatible chat completions endpoint works.
    upi_ai_enabled: bool = True
    upi_ai_timeout_seconds: float = 30.0
    upi_ai_max_chars: int = 12000

    openai_api_key: str | None = None
    openai_base_url: str = "https://api.groq.com/openai/v1"
    openai_model: str = "llama-3.1-8b-instant"


settings = Settings()
