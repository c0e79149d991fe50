"""Configuration package."""

from rf_manager.config.settings import (
    RFManagerSettings,
    get_settings,
)

__all__ = [
    "RFManagerSettings",
    "get_settings",
]
