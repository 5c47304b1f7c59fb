"""Application settings loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strongly typed application configuration."""

    ollama_host: str = Field(default="http://127.0.0.1:11434", alias="OLLAMA_HOST")
    chat_model: str = Field(default="deepseek-r1:8b", alias="CHAT_MODEL")
    chat_timeout: float | None = Field(
        default=None,
        alias="CHAT_TIMEOUT",
        description="Seconds; unset leaves the backend call without a timeout.",
    )
    response_mode: Literal["accumulated", "incremental"] = Field(
        default="accumulated", alias="RESPONSE_MODE"
    )
    environment: str = Field(default="development", alias="ENVIRONMENT")
    log_level: Literal["debug", "info", "warning", "error", "critical"] = Field(
        default="info", alias="LOG_LEVEL"
    )
    port: int = Field(default=8000, alias="PORT")

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    @property
    def chat_endpoint(self) -> str:
        return f"{self.ollama_host.rstrip('/')}/api/chat"


@lru_cache
def get_settings() -> Settings:
    """Return a cached instance of settings."""

    return Settings()
