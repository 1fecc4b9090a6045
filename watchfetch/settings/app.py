"""Application settings powered by Pydantic BaseSettings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from watchfetch.features.fetch.constants import DEFAULT_TIMEOUT_SECONDS


class AppSettings(BaseSettings):
    """Centralized environment configuration.

    Values come from ``WATCHFETCH_*`` environment variables or a ``.env``
    file in the working directory.
    """

    model_config = SettingsConfigDict(
        env_prefix="WATCHFETCH_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO")
    json_logs: bool = Field(default=False)
    state_path: Path = Field(default=Path(".watchfetch/state.json"))
    default_timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0.0)


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
