"""Configuration package."""

from finassist.config.logging_config import configure_logging
from finassist.config.settings import (
    AnalysisSettings,
    AppSettings,
    GoogleSheetsSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AnalysisSettings",
    "AppSettings",
    "configure_logging",
    "GoogleSheetsSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
