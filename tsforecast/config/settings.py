"""
Main Settings Module for TSForecast.

This module provides centralized configuration for the forecasting engine:
detection heuristics, smoothing and ARIMA search grids, model selection and
logging options. Values can be overridden through environment variables
prefixed with ``TSFORECAST_`` (nested fields use ``__``).
"""

from functools import lru_cache
from typing import Any, Dict, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..utils.exceptions import ConfigurationError
from .logging_config import LogFormat, LoggingConfig


class DetectionSettings(BaseModel):
    """Thresholds used by trend, seasonality and stationarity heuristics."""

    trend_slope_threshold: float = Field(
        default=0.1,
        ge=0.0,
        description="Absolute regression slope above which a series is trending"
    )
    seasonality_acf_threshold: float = Field(
        default=0.3,
        gt=0.0,
        lt=1.0,
        description="Minimum ACF value for a local peak to count as seasonal"
    )
    seasonality_min_points: int = Field(
        default=12,
        ge=4,
        description="Minimum series length for seasonality detection"
    )
    seasonality_max_lag: int = Field(
        default=36,
        ge=2,
        description="Upper bound on ACF lags inspected for seasonal peaks"
    )
    default_seasonal_period: int = Field(
        default=12,
        ge=2,
        description="Seasonal period used when no ACF peak qualifies"
    )
    short_series_seasonal_period: int = Field(
        default=4,
        ge=2,
        description="Fallback seasonal period for series shorter than two default periods"
    )
    stationarity_min_points: int = Field(
        default=8,
        ge=2,
        description="Series shorter than this are treated as stationary"
    )
    stationarity_mean_tolerance: float = Field(
        default=0.2,
        gt=0.0,
        description="Maximum relative change of the half-series means"
    )
    stationarity_variance_tolerance: float = Field(
        default=0.4,
        gt=0.0,
        description="Maximum relative change of the half-series variances"
    )


class SmoothingSettings(BaseModel):
    """Exponential smoothing optimizer and interval settings."""

    validation_fraction: float = Field(
        default=0.2,
        gt=0.0,
        lt=1.0,
        description="Share of the series held out when optimizing parameters"
    )
    parameter_grid: Tuple[float, ...] = Field(
        default=(0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9),
        description="Candidate alpha/beta values for simple and Holt models"
    )
    reduced_parameter_grid: Tuple[float, ...] = Field(
        default=(0.2, 0.5, 0.8),
        description="Candidate alpha/beta/gamma values for Holt-Winters"
    )
    default_alpha: float = Field(default=0.5, gt=0.0, lt=1.0)
    default_beta: float = Field(default=0.1, gt=0.0, lt=1.0)
    default_gamma: float = Field(default=0.1, gt=0.0, lt=1.0)
    interval_growth: float = Field(
        default=0.2,
        ge=0.0,
        description="Horizon multiplier growth: 1 + growth * sqrt(h)"
    )

    @field_validator("parameter_grid", "reduced_parameter_grid")
    @classmethod
    def validate_grid(cls, v: Tuple[float, ...]) -> Tuple[float, ...]:
        """Ensure every grid value is a valid smoothing coefficient."""
        if not v:
            raise ValueError("Parameter grid must not be empty")
        for value in v:
            if not 0.0 < value < 1.0:
                raise ValueError(f"Grid value {value} is outside (0, 1)")
        return tuple(v)


class ArimaSettings(BaseModel):
    """ARIMA estimation and order search settings."""

    max_p: int = Field(default=5, ge=0, le=10, description="Maximum AR order searched")
    max_d: int = Field(default=2, ge=0, le=3, description="Maximum differencing order")
    max_q: int = Field(default=5, ge=0, le=10, description="Maximum MA order searched")
    min_points: int = Field(default=3, ge=3, description="Minimum series length")
    ma_max_iterations: int = Field(default=50, ge=1, description="MA re-estimation iterations")
    ma_tolerance: float = Field(default=1e-6, gt=0.0, description="MA convergence tolerance")
    stationarity_acf_lags: int = Field(
        default=20,
        ge=1,
        description="Number of ACF lags computed when choosing d"
    )
    stationarity_check_lags: int = Field(
        default=10,
        ge=1,
        description="Number of leading ACF lags that must lie in the 2/sqrt(n) band"
    )
    interval_growth: float = Field(
        default=0.1,
        ge=0.0,
        description="Interval multiplier growth: sqrt(1 + growth * step)"
    )

    @model_validator(mode="after")
    def check_lags(self) -> "ArimaSettings":
        """Checked lags must be a subset of computed lags."""
        if self.stationarity_check_lags > self.stationarity_acf_lags:
            raise ValueError("stationarity_check_lags cannot exceed stationarity_acf_lags")
        return self


class SelectionSettings(BaseModel):
    """Best-of-three holdout selection settings."""

    holdout_fraction: float = Field(default=0.2, gt=0.0, lt=1.0)
    max_holdout: int = Field(default=5, ge=1)


class ForecastSettings(BaseSettings):
    """
    Engine-wide settings.

    Loaded from environment variables prefixed with ``TSFORECAST_``.
    """

    model_config = SettingsConfigDict(
        env_prefix="TSFORECAST_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    detection: DetectionSettings = Field(default_factory=DetectionSettings)
    smoothing: SmoothingSettings = Field(default_factory=SmoothingSettings)
    arima: ArimaSettings = Field(default_factory=ArimaSettings)
    selection: SelectionSettings = Field(default_factory=SelectionSettings)

    default_confidence_level: float = Field(default=0.95, gt=0.0, lt=1.0)
    log_level: str = Field(default="INFO", description="Root log level")
    log_format: LogFormat = Field(default=LogFormat.DETAILED, description="Log format")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @property
    def logging(self) -> LoggingConfig:
        """Logging configuration derived from these settings."""
        return LoggingConfig(level=self.log_level, format=self.log_format)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert settings to dictionary.

        Returns:
            Dictionary representation of settings
        """
        return self.model_dump(mode="json")


@lru_cache()
def get_settings() -> ForecastSettings:
    """
    Get cached settings instance.

    Returns:
        Singleton ForecastSettings instance

    Raises:
        ConfigurationError: If environment overrides fail validation
    """
    try:
        return ForecastSettings()
    except PydanticValidationError as e:
        raise ConfigurationError(
            "Invalid TSFORECAST_ settings",
            details={"errors": [err["msg"] for err in e.errors()]},
            cause=e
        ) from e


def reload_settings() -> ForecastSettings:
    """
    Reload settings, clearing the cache.

    Returns:
        New ForecastSettings instance
    """
    get_settings.cache_clear()
    return get_settings()
