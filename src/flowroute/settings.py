"""Engine settings.

All configuration is sourced from environment variables prefixed with
``FLOWROUTE_`` (and optionally `.env`).
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Typed environment-backed settings for the routing engine."""

    model_config = SettingsConfigDict(
        env_prefix="FLOWROUTE_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Any resolution/evaluation error halts the run instead of skipping the path.
    strict_mode: bool = True

    # Passed to dateutil when parsing ambiguous dates such as 01/02/2024.
    date_dayfirst: bool = False

    # Timezone assumed for dates written without one.
    default_timezone: str = Field(default="UTC")

    # Log every clause result at DEBUG level.
    log_clause_results: bool = False


@lru_cache
def get_settings() -> EngineSettings:
    """Return the process-wide settings instance."""
    return EngineSettings()
