"""
Configuration Management for RF Manager

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Allocation percentages and the 5,000 milestone are NOT configuration:
they are fixed bookkeeping rules and live next to the code that applies them.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RFManagerSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from RF_MANAGER_* environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="RF_MANAGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for the structured log"
    )

    # Persistence
    data_file: Path = Field(
        default=Path("rf_manager_state.json"),
        description="Where the persisted snapshot document lives"
    )

    # Undo
    undo_window_seconds: float = Field(
        default=5.0,
        gt=0,
        le=600,
        description="How long an undo entry stays available"
    )

    # Currency
    default_exchange_rate: Decimal = Field(
        default=Decimal("130"),
        gt=0,
        description="KES per USD used until the user sets a rate"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept any casing, store upper case."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


@lru_cache()
def get_settings() -> RFManagerSettings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return RFManagerSettings()
