"""
TSForecast - univariate time-series forecasting engine.

Linear regression, exponential smoothing (simple, Holt, Holt-Winters) and
ARIMA forecasters behind a single :func:`forecast` entry point.
"""

from .forecasting import (
    ARIMAParams,
    ConfidenceInterval,
    DataPoint,
    ForecastMethod,
    ForecastOptions,
    ForecastResult,
    PeriodUnit,
    SmoothingModelType,
    SmoothingParams,
    TimeSeriesPoint,
    forecast,
    forecast_with_best_method,
    select_best_method,
)
from .utils.date_utils import (
    convert_back_to_dates,
    convert_to_regression_index,
    series_from_pandas,
)
from .utils.exceptions import (
    ErrorCode,
    ForecastError,
    InsufficientDataError,
    InvalidParameterError,
    ModelSelectionError,
    UnknownMethodError,
    ValidationError,
)

__version__ = "1.0.0"

__all__ = [
    "ARIMAParams",
    "ConfidenceInterval",
    "DataPoint",
    "ErrorCode",
    "ForecastError",
    "ForecastMethod",
    "ForecastOptions",
    "ForecastResult",
    "InsufficientDataError",
    "InvalidParameterError",
    "ModelSelectionError",
    "PeriodUnit",
    "SmoothingModelType",
    "SmoothingParams",
    "TimeSeriesPoint",
    "UnknownMethodError",
    "ValidationError",
    "convert_back_to_dates",
    "convert_to_regression_index",
    "forecast",
    "forecast_with_best_method",
    "select_best_method",
    "series_from_pandas",
]
