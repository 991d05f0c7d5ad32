"""Configuration package for TSForecast."""

from .logging_config import (
    JsonFormatter,
    LogFormat,
    LoggingConfig,
    configure_logging,
)
from .settings import (
    ArimaSettings,
    DetectionSettings,
    ForecastSettings,
    SelectionSettings,
    SmoothingSettings,
    get_settings,
    reload_settings,
)

__all__ = [
    "ArimaSettings",
    "DetectionSettings",
    "ForecastSettings",
    "JsonFormatter",
    "LogFormat",
    "LoggingConfig",
    "SelectionSettings",
    "SmoothingSettings",
    "configure_logging",
    "get_settings",
    "reload_settings",
]
