"""
Forecasting Package for TSForecast.

This package provides the univariate forecasting engine:
- Linear algebra kernel and series statistics
- Linear regression, exponential smoothing and ARIMA forecasters
- The forecast orchestrator (triage, best-of-three selection, normalization)
"""

from .contracts import (
    ARIMAParams,
    ConfidenceInterval,
    DataPoint,
    FitStatus,
    ForecastMethod,
    ForecastOptions,
    ForecastResult,
    PeriodUnit,
    RegressionResult,
    SmoothingModelType,
    SmoothingParams,
    TimeSeriesPoint,
)
from .linear_algebra import LinearSolution, solve
from .linear_regression import (
    LinearRegressionForecast,
    calculate_linear_regression,
    linear_regression_forecast,
)
from .series_statistics import (
    autocorrelation,
    check_stationarity,
    detect_seasonal_period,
    detect_seasonality,
    detect_trend,
    partial_autocorrelation,
)
from .exponential_smoothing import (
    ExponentialSmoothingResult,
    SmoothingOutput,
    exponential_smoothing_forecast,
    holt_exponential_smoothing,
    holt_winters_exponential_smoothing,
    optimize_params,
    simple_exponential_smoothing,
)
from .arima import (
    ARIMAResult,
    ARMAFit,
    arima_forecast,
    auto_select_params,
    calculate_aic,
    calculate_bic,
    difference_series,
    fit_ar,
    fit_arma,
    fit_ma,
    forecast_arma,
    integrate_series,
    log_likelihood,
)
from .orchestrator import (
    build_options,
    forecast,
    forecast_with_best_method,
    select_best_method,
)

__all__ = [
    # Contracts
    "ARIMAParams",
    "ConfidenceInterval",
    "DataPoint",
    "FitStatus",
    "ForecastMethod",
    "ForecastOptions",
    "ForecastResult",
    "PeriodUnit",
    "RegressionResult",
    "SmoothingModelType",
    "SmoothingParams",
    "TimeSeriesPoint",
    # Kernel and statistics
    "LinearSolution",
    "solve",
    "autocorrelation",
    "partial_autocorrelation",
    "check_stationarity",
    "detect_seasonal_period",
    "detect_seasonality",
    "detect_trend",
    # Linear regression
    "LinearRegressionForecast",
    "calculate_linear_regression",
    "linear_regression_forecast",
    # Exponential smoothing
    "ExponentialSmoothingResult",
    "SmoothingOutput",
    "exponential_smoothing_forecast",
    "holt_exponential_smoothing",
    "holt_winters_exponential_smoothing",
    "optimize_params",
    "simple_exponential_smoothing",
    # ARIMA
    "ARIMAResult",
    "ARMAFit",
    "arima_forecast",
    "auto_select_params",
    "calculate_aic",
    "calculate_bic",
    "difference_series",
    "fit_ar",
    "fit_arma",
    "fit_ma",
    "forecast_arma",
    "integrate_series",
    "log_likelihood",
    # Orchestrator
    "build_options",
    "forecast",
    "forecast_with_best_method",
    "select_best_method",
]
