"""
Forecast orchestrator.

Public entry point of the engine: converts a date-indexed series to
regression samples, triages or compares the three forecasters, and
normalizes their native outputs into a uniform :class:`ForecastResult`.
"""

import logging
import math
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from ..config.settings import ForecastSettings, get_settings
from ..utils.date_utils import (
    SeriesInput,
    convert_back_to_dates,
    convert_to_regression_index,
    normalize_series,
)
from ..utils.exceptions import (
    InsufficientDataError,
    InvalidParameterError,
    ModelSelectionError,
    UnknownMethodError,
)
from ..utils.math_utils import calculate_errors, clip_unit, safe_divide
from .arima import arima_forecast
from .contracts import (
    ConfidenceInterval,
    DataPoint,
    ForecastMethod,
    ForecastOptions,
    ForecastResult,
    SmoothingModelType,
    TimeSeriesPoint,
)
from .exponential_smoothing import exponential_smoothing_forecast
from .linear_regression import linear_regression_forecast
from .series_statistics import (
    check_stationarity,
    detect_seasonal_period,
    detect_seasonality,
    detect_trend,
)

logger = logging.getLogger(__name__)

MIN_POINTS = 2

CANDIDATE_METHODS = (ForecastMethod.LINEAR, ForecastMethod.EXP_SMOOTHING, ForecastMethod.ARIMA)

OptionsInput = Union[ForecastOptions, Mapping[str, Any], None]


def _by_field_name(values: Mapping[str, Any]) -> Dict[str, Any]:
    """Rename camelCase alias keys to ForecastOptions field names."""
    aliases = {to_camel(name): name for name in ForecastOptions.model_fields}
    return {aliases.get(key, key): value for key, value in values.items()}


def build_options(
    options: OptionsInput = None,
    settings: Optional[ForecastSettings] = None,
    **overrides: Any
) -> ForecastOptions:
    """
    Validate forecast options.

    Keys of ``options`` and ``overrides`` may mix snake_case and camelCase.
    A missing confidence level defaults to ``default_confidence_level``.

    Args:
        options: ForecastOptions or a mapping with snake_case/camelCase keys
        settings: Engine settings
        **overrides: Individual option values taking precedence

    Returns:
        ForecastOptions

    Raises:
        InvalidParameterError: If the options fail validation
    """
    if isinstance(options, ForecastOptions):
        values: Dict[str, Any] = options.model_dump()
    else:
        values = _by_field_name(options or {})
    values.update(_by_field_name(overrides))
    values.setdefault("confidence_level", (settings or get_settings()).default_confidence_level)

    try:
        return ForecastOptions.model_validate(values)
    except PydanticValidationError as e:
        if any(err.get("loc", ())[:1] == ("method",) for err in e.errors()):
            raise UnknownMethodError(
                f"Unknown forecasting method: {values.get('method')!r}",
                details={"allowed": [m.value for m in ForecastMethod]},
                cause=e
            ) from e
        raise InvalidParameterError(
            "Invalid forecast options",
            details={"errors": [err["msg"] for err in e.errors()]},
            cause=e
        ) from e


# =============================================================================
# TRIAGE
# =============================================================================

def select_best_method(
    points: Sequence[DataPoint],
    settings: Optional[ForecastSettings] = None,
    seasonality: Optional[bool] = None
) -> ForecastMethod:
    """
    Heuristic method triage.

    Non-stationary or seasonal series go to ARIMA, trending series to
    exponential smoothing and everything else to linear regression.

    Args:
        points: Regression samples
        settings: Engine settings
        seasonality: Treat the series as seasonal (True) or not (False);
            None detects it from the ACF

    Returns:
        Chosen ForecastMethod
    """
    values = [p.y for p in sorted(points, key=lambda p: p.x)]
    if seasonality is None:
        seasonality = detect_seasonality(points, settings)

    if not check_stationarity(values, settings) or seasonality:
        return ForecastMethod.ARIMA
    if detect_trend(points, settings):
        return ForecastMethod.EXP_SMOOTHING
    return ForecastMethod.LINEAR


def _smoothing_model(
    points: Sequence[DataPoint],
    options: ForecastOptions,
    settings: ForecastSettings
) -> Tuple[SmoothingModelType, int]:
    """Pick the smoothing variant and seasonal period for a series."""
    seasonal = options.seasonality
    if seasonal is None:
        seasonal = detect_seasonality(points, settings)

    if seasonal and options.seasonal_period is not None:
        period = options.seasonal_period
        if len(points) < 2 * period:
            raise InsufficientDataError(
                required=2 * period,
                actual=len(points),
                message=f"Seasonal period {period} needs at least two full seasons"
            )
        return SmoothingModelType.HOLT_WINTERS, period

    if seasonal:
        period = detect_seasonal_period(points, settings)
        if len(points) >= 2 * period:
            return SmoothingModelType.HOLT_WINTERS, period
        logger.debug(f"Series too short for seasonal period {period}; using non-seasonal smoothing")

    if detect_trend(points, settings):
        return SmoothingModelType.HOLT, 0
    return SmoothingModelType.SIMPLE, 0


# =============================================================================
# DISPATCH
# =============================================================================

def _run_method(
    method: ForecastMethod,
    points: Sequence[DataPoint],
    horizon: int,
    options: ForecastOptions,
    settings: ForecastSettings
) -> Tuple[List[DataPoint], float, Optional[ConfidenceInterval[DataPoint]], Dict[str, Any]]:
    """Run one forecaster and return its forecast, accuracy, band and parameters."""
    if method == ForecastMethod.LINEAR:
        result = linear_regression_forecast(
            points,
            horizon,
            include_confidence_interval=options.confidence_interval,
            confidence_level=options.confidence_level
        )
        parameters = result.regression.to_dict()
        parameters["standard_error"] = result.standard_error
        return result.forecast_data, clip_unit(result.regression.r2), result.confidence_interval, parameters

    if method == ForecastMethod.EXP_SMOOTHING:
        model_type, period = _smoothing_model(points, options, settings)
        result = exponential_smoothing_forecast(
            points,
            horizon,
            model_type=model_type,
            seasonal_period=period,
            include_confidence_interval=options.confidence_interval,
            confidence_level=options.confidence_level,
            settings=settings
        )
        values = np.array([p.y for p in result.original_data], dtype=float)
        variance = float(values.var())
        accuracy = clip_unit(1 - safe_divide(result.errors.mse, variance))
        parameters = {
            "model_type": result.model_type.value,
            **result.params.to_dict(),
            **result.errors.to_dict(),
        }
        return result.forecast_data, accuracy, result.confidence_interval, parameters

    if method == ForecastMethod.ARIMA:
        result = arima_forecast(
            points,
            horizon,
            include_confidence_interval=options.confidence_interval,
            confidence_level=options.confidence_level,
            settings=settings
        )
        parameters = {
            **result.params.to_dict(),
            "ar_coefficients": result.ar_coefficients,
            "ma_coefficients": result.ma_coefficients,
            "constant": result.constant,
            "aic": result.aic,
            "bic": result.bic,
        }
        if result.fallback:
            parameters["fallback"] = result.fallback
        return result.forecast_data, result.accuracy, result.confidence_interval, parameters

    raise UnknownMethodError(f"Unknown forecasting method: {method!r}")


def _to_result(
    series: List[TimeSeriesPoint],
    method: ForecastMethod,
    forecast_points: Sequence[DataPoint],
    accuracy: float,
    interval: Optional[ConfidenceInterval[DataPoint]],
    parameters: Dict[str, Any]
) -> ForecastResult:
    origin: date = series[0].date
    dated_interval = None
    if interval is not None:
        dated_interval = ConfidenceInterval(
            upper=convert_back_to_dates(interval.upper, origin),
            lower=convert_back_to_dates(interval.lower, origin),
            confidence=interval.confidence
        )

    return ForecastResult(
        original_data=list(series),
        forecast_data=convert_back_to_dates(forecast_points, origin),
        method=method.value,
        accuracy=clip_unit(accuracy),
        confidence_interval=dated_interval,
        parameters=parameters
    )


def _prepare(
    series: SeriesInput,
    options: OptionsInput,
    overrides: Dict[str, Any],
    settings: ForecastSettings
) -> Tuple[List[TimeSeriesPoint], List[DataPoint], ForecastOptions]:
    ordered = normalize_series(series)
    if len(ordered) < MIN_POINTS:
        raise InsufficientDataError(
            required=MIN_POINTS,
            actual=len(ordered),
            message="Forecasting requires at least 2 data points"
        )
    opts = build_options(options, settings, **overrides)
    return ordered, convert_to_regression_index(ordered), opts


def forecast(
    series: SeriesInput,
    options: OptionsInput = None,
    settings: Optional[ForecastSettings] = None,
    **overrides: Any
) -> ForecastResult:
    """
    Forecast a date-indexed series.

    Args:
        series: Observations (TimeSeriesPoints, (date, value) pairs, mappings,
            or a pandas Series/DataFrame)
        options: ForecastOptions or an equivalent mapping
        settings: Engine settings
        **overrides: Option values, e.g. ``periods=5, method="linear"``

    Returns:
        ForecastResult with dates continuing from the last observation

    Raises:
        InsufficientDataError: Fewer than two observations
        InvalidParameterError: Invalid options
    """
    settings = settings or get_settings()
    ordered, points, opts = _prepare(series, options, overrides, settings)

    method = opts.method
    if method == ForecastMethod.AUTO:
        method = select_best_method(points, settings, opts.seasonality)
        logger.info(f"Auto-selected method: {method.value}")

    forecast_points, accuracy, interval, parameters = _run_method(
        method, points, opts.horizon, opts, settings
    )
    return _to_result(ordered, method, forecast_points, accuracy, interval, parameters)


def forecast_with_best_method(
    series: SeriesInput,
    options: OptionsInput = None,
    settings: Optional[ForecastSettings] = None,
    **overrides: Any
) -> ForecastResult:
    """
    Best-of-three forecast.

    The last ``min(max_holdout, holdout_fraction * n)`` points (at least one)
    are held out; each method forecasts them from the remaining data and is
    scored by mean absolute error. Methods are then fitted on the full series
    in ascending score order and the first that succeeds is returned. The
    ``method`` option is ignored.

    Args:
        series: Observations
        options: ForecastOptions or an equivalent mapping
        settings: Engine settings
        **overrides: Option values

    Returns:
        ForecastResult; ``parameters["selection"]`` holds every candidate's
        holdout MAE and MAPE

    Raises:
        ModelSelectionError: If no method can forecast the full series
    """
    settings = settings or get_settings()
    ordered, points, opts = _prepare(series, options, overrides, settings)

    config = settings.selection
    test_size = max(1, min(config.max_holdout, int(len(points) * config.holdout_fraction)))
    training, testing = points[:-test_size], points[-test_size:]
    actual = [p.y for p in testing]

    scores: Dict[ForecastMethod, Dict[str, float]] = {}
    for method in CANDIDATE_METHODS:
        try:
            predicted, _, _, _ = _run_method(method, training, test_size, opts, settings)
            errors = calculate_errors(actual, [p.y for p in predicted])
            scores[method] = {"mae": errors.mae, "mape": errors.mape}
        except Exception as e:
            logger.warning(f"Method {method.value} failed on holdout: {e}")
            scores[method] = {"mae": math.inf, "mape": math.inf}

    ranked = sorted(CANDIDATE_METHODS, key=lambda m: scores[m]["mae"])
    selection = {m.value: scores[m] for m in CANDIDATE_METHODS}

    last_error: Optional[Exception] = None
    for method in ranked:
        try:
            forecast_points, accuracy, interval, parameters = _run_method(
                method, points, opts.horizon, opts, settings
            )
        except Exception as e:
            logger.warning(f"Method {method.value} failed on full series: {e}")
            last_error = e
            continue

        logger.info(f"Best method: {method.value} (holdout mae={scores[method]['mae']:.4f})")
        parameters["selection"] = selection
        return _to_result(ordered, method, forecast_points, accuracy, interval, parameters)

    raise ModelSelectionError(
        "No forecasting method produced a forecast",
        details={"selection": selection},
        cause=last_error
    )
