"""
Exponential smoothing forecasters.

Implements simple (SES), Holt (level + trend) and Holt-Winters (level +
trend + season) recursive smoothing, a holdout grid search for the
smoothing coefficients, and a forecast wrapper that reports error metrics
and confidence bands.

The recursions thread an immutable state through a fold: each step takes
the previous state and one observation and returns the next state plus the
in-sample smoothed value.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from ..config.settings import ForecastSettings, get_settings
from ..utils.exceptions import InsufficientDataError, InvalidParameterError, ValidationError
from ..utils.math_utils import ErrorMetrics, calculate_errors, z_score
from .contracts import (
    ConfidenceInterval,
    DataPoint,
    SmoothingModelType,
    SmoothingParams,
)

logger = logging.getLogger(__name__)

MIN_POINTS = 2
MIN_SEASONAL_DIVISOR = 0.001


class SmoothingState(NamedTuple):
    """Smoothing components after the latest observation."""
    level: float
    trend: float = 0.0
    seasonal: Tuple[float, ...] = ()


@dataclass(frozen=True)
class SmoothingOutput:
    """In-sample smoothed values, forecast and final state of one recursion."""
    smoothed: List[DataPoint]
    forecast: List[DataPoint]
    state: SmoothingState


@dataclass(frozen=True)
class ExponentialSmoothingResult:
    """Native output of :func:`exponential_smoothing_forecast`."""
    original_data: List[DataPoint]
    forecast_data: List[DataPoint]
    fitted_data: List[DataPoint]
    params: SmoothingParams
    model_type: SmoothingModelType
    errors: ErrorMetrics
    confidence_interval: Optional[ConfidenceInterval[DataPoint]] = None

    @property
    def mse(self) -> float:
        """In-sample mean squared error."""
        return self.errors.mse

    @property
    def mae(self) -> float:
        """In-sample mean absolute error."""
        return self.errors.mae


# =============================================================================
# VALIDATION
# =============================================================================

def _check_coefficient(name: str, value: float) -> None:
    if not 0.0 < value < 1.0:
        raise InvalidParameterError(
            f"Coefficient {name} must be in the range (0, 1)",
            details={name: value}
        )


def _check_input(data: Sequence[DataPoint], periods: int, required: int = MIN_POINTS) -> None:
    if len(data) < required:
        raise InsufficientDataError(required=required, actual=len(data))
    if periods < 1:
        raise InvalidParameterError(
            "Number of forecast periods must be positive",
            details={"periods": periods}
        )


def _extend(last_x: float, values: Sequence[float]) -> List[DataPoint]:
    return [DataPoint(x=last_x + h, y=float(v)) for h, v in enumerate(values, start=1)]


# =============================================================================
# RECURSIONS
# =============================================================================

def _simple_step(
    state: SmoothingState,
    observation: float,
    alpha: float
) -> Tuple[SmoothingState, float]:
    level = alpha * observation + (1 - alpha) * state.level
    return SmoothingState(level=level), level


def _holt_step(
    state: SmoothingState,
    observation: float,
    alpha: float,
    beta: float
) -> Tuple[SmoothingState, float]:
    level = alpha * observation + (1 - alpha) * (state.level + state.trend)
    trend = beta * (level - state.level) + (1 - beta) * state.trend
    return SmoothingState(level=level, trend=trend), level


def _holt_winters_step(
    state: SmoothingState,
    index: int,
    observation: float,
    alpha: float,
    beta: float,
    gamma: float,
    multiplicative: bool
) -> Tuple[SmoothingState, float]:
    period = len(state.seasonal)
    slot = index % period
    season = state.seasonal[slot]

    if multiplicative:
        level = alpha * (observation / max(season, MIN_SEASONAL_DIVISOR)) + \
            (1 - alpha) * (state.level + state.trend)
        trend = beta * (level - state.level) + (1 - beta) * state.trend
        new_season = gamma * (observation / max(level, MIN_SEASONAL_DIVISOR)) + \
            (1 - gamma) * season
        smoothed = (level + trend) * season
    else:
        level = alpha * (observation - season) + (1 - alpha) * (state.level + state.trend)
        trend = beta * (level - state.level) + (1 - beta) * state.trend
        new_season = gamma * (observation - level) + (1 - gamma) * season
        smoothed = level + trend + season

    seasonal = state.seasonal[:slot] + (new_season,) + state.seasonal[slot + 1:]
    return SmoothingState(level=level, trend=trend, seasonal=seasonal), smoothed


def _fold(
    initial: SmoothingState,
    data: Sequence[DataPoint],
    step: Callable[[SmoothingState, int, float], Tuple[SmoothingState, float]],
    start: int = 0
) -> Tuple[SmoothingState, List[DataPoint]]:
    state = initial
    smoothed: List[DataPoint] = []
    for index in range(start, len(data)):
        state, value = step(state, index, data[index].y)
        smoothed.append(DataPoint(x=data[index].x, y=value))
    return state, smoothed


def simple_exponential_smoothing(
    data: Sequence[DataPoint],
    alpha: float,
    periods: int
) -> SmoothingOutput:
    """
    Simple exponential smoothing.

    level_t = alpha * y_t + (1 - alpha) * level_{t-1}; every forecast equals
    the final level.

    Args:
        data: Regression samples
        alpha: Level smoothing coefficient in (0, 1)
        periods: Forecast horizon

    Returns:
        SmoothingOutput
    """
    _check_input(data, periods)
    _check_coefficient("alpha", alpha)

    sorted_data = sorted(data, key=lambda p: p.x)
    initial = SmoothingState(level=sorted_data[0].y)

    state, smoothed = _fold(
        initial,
        sorted_data,
        lambda s, _, y: _simple_step(s, y, alpha),
        start=1
    )
    smoothed.insert(0, DataPoint(x=sorted_data[0].x, y=initial.level))

    forecast = _extend(sorted_data[-1].x, [state.level] * periods)
    return SmoothingOutput(smoothed=smoothed, forecast=forecast, state=state)


def holt_exponential_smoothing(
    data: Sequence[DataPoint],
    alpha: float,
    beta: float,
    periods: int
) -> SmoothingOutput:
    """
    Holt's linear trend method (double exponential smoothing).

    Args:
        data: Regression samples
        alpha: Level smoothing coefficient in (0, 1)
        beta: Trend smoothing coefficient in (0, 1)
        periods: Forecast horizon

    Returns:
        SmoothingOutput with forecasts level + h * trend
    """
    _check_input(data, periods)
    _check_coefficient("alpha", alpha)
    _check_coefficient("beta", beta)

    sorted_data = sorted(data, key=lambda p: p.x)
    initial = SmoothingState(
        level=sorted_data[0].y,
        trend=sorted_data[1].y - sorted_data[0].y
    )

    state, smoothed = _fold(
        initial,
        sorted_data,
        lambda s, _, y: _holt_step(s, y, alpha, beta),
        start=1
    )
    smoothed.insert(0, DataPoint(x=sorted_data[0].x, y=initial.level))

    forecast = _extend(
        sorted_data[-1].x,
        [state.level + h * state.trend for h in range(1, periods + 1)]
    )
    return SmoothingOutput(smoothed=smoothed, forecast=forecast, state=state)


def _initial_seasonal_state(
    values: np.ndarray,
    period: int,
    multiplicative: bool
) -> SmoothingState:
    """Level, trend and seasonal indices from the first two full seasons."""
    first, second = values[:period], values[period:2 * period]

    level = float(first.mean())
    trend = float(np.sum(second - first)) / period / period

    if multiplicative:
        divisor = max(level, MIN_SEASONAL_DIVISOR)
        indices = (first / divisor + second / divisor) / 2
        indices = indices * period / indices.sum()
    else:
        indices = ((first - level) + (second - level)) / 2
        indices = indices - indices.mean()

    return SmoothingState(level=level, trend=trend, seasonal=tuple(float(s) for s in indices))


def holt_winters_exponential_smoothing(
    data: Sequence[DataPoint],
    alpha: float,
    beta: float,
    gamma: float,
    seasonal_period: int,
    periods: int,
    multiplicative: bool = False
) -> SmoothingOutput:
    """
    Holt-Winters triple exponential smoothing.

    Initial components are estimated from the first two full seasons. The
    forecast at horizon h uses the seasonal index for slot (n + h - 1) mod
    period.

    Args:
        data: Regression samples
        alpha: Level smoothing coefficient in (0, 1)
        beta: Trend smoothing coefficient in (0, 1)
        gamma: Seasonal smoothing coefficient in (0, 1)
        seasonal_period: Season length
        periods: Forecast horizon
        multiplicative: Use multiplicative instead of additive seasonality

    Returns:
        SmoothingOutput
    """
    if seasonal_period < 1:
        raise InvalidParameterError(
            "Holt-Winters requires a positive seasonal period",
            details={"seasonal_period": seasonal_period}
        )
    _check_input(data, periods, required=max(MIN_POINTS, 2 * seasonal_period))
    _check_coefficient("alpha", alpha)
    _check_coefficient("beta", beta)
    _check_coefficient("gamma", gamma)

    sorted_data = sorted(data, key=lambda p: p.x)
    values = np.array([p.y for p in sorted_data], dtype=float)

    if multiplicative and np.any(values <= 0):
        raise InvalidParameterError("Multiplicative seasonality requires positive values")

    initial = _initial_seasonal_state(values, seasonal_period, multiplicative)
    state, smoothed = _fold(
        initial,
        sorted_data,
        lambda s, i, y: _holt_winters_step(s, i, y, alpha, beta, gamma, multiplicative)
    )

    n = len(sorted_data)
    forecast_values = []
    for h in range(1, periods + 1):
        season = state.seasonal[(n + h - 1) % seasonal_period]
        base = state.level + h * state.trend
        forecast_values.append(base * season if multiplicative else base + season)

    forecast = _extend(sorted_data[-1].x, forecast_values)
    return SmoothingOutput(smoothed=smoothed, forecast=forecast, state=state)


# =============================================================================
# PARAMETER OPTIMIZATION
# =============================================================================

def _run_model(
    data: Sequence[DataPoint],
    model_type: SmoothingModelType,
    params: SmoothingParams,
    periods: int,
    multiplicative: bool = False
) -> SmoothingOutput:
    if model_type == SmoothingModelType.SIMPLE:
        return simple_exponential_smoothing(data, params.alpha, periods)
    if model_type == SmoothingModelType.HOLT:
        return holt_exponential_smoothing(data, params.alpha, params.beta, periods)
    return holt_winters_exponential_smoothing(
        data,
        params.alpha,
        params.beta,
        params.gamma,
        params.seasonal_period,
        periods,
        multiplicative
    )


def _candidates(
    model_type: SmoothingModelType,
    seasonal_period: int,
    settings: ForecastSettings
) -> List[SmoothingParams]:
    grid = settings.smoothing.parameter_grid
    reduced = settings.smoothing.reduced_parameter_grid

    if model_type == SmoothingModelType.SIMPLE:
        return [SmoothingParams(alpha=a) for a in grid]
    if model_type == SmoothingModelType.HOLT:
        return [SmoothingParams(alpha=a, beta=b) for a in grid for b in grid]
    return [
        SmoothingParams(alpha=a, beta=b, gamma=g, seasonal_period=seasonal_period)
        for a in reduced for b in reduced for g in reduced
    ]


def _default_params(
    model_type: SmoothingModelType,
    seasonal_period: int,
    settings: ForecastSettings
) -> SmoothingParams:
    config = settings.smoothing
    if model_type == SmoothingModelType.SIMPLE:
        return SmoothingParams(alpha=config.default_alpha)
    if model_type == SmoothingModelType.HOLT:
        return SmoothingParams(alpha=config.default_alpha, beta=config.default_beta)
    return SmoothingParams(
        alpha=config.default_alpha,
        beta=config.default_beta,
        gamma=config.default_gamma,
        seasonal_period=seasonal_period
    )


def optimize_params(
    data: Sequence[DataPoint],
    model_type: SmoothingModelType = SmoothingModelType.SIMPLE,
    seasonal_period: int = 0,
    settings: Optional[ForecastSettings] = None
) -> SmoothingParams:
    """
    Grid-search smoothing coefficients on a holdout split.

    The last ``validation_fraction`` of the series (at least one point) is
    held out; each candidate is fitted on the rest and scored by holdout
    MSE. Candidates that cannot be fitted on the training part are skipped,
    and the configured defaults are returned if none can.

    Args:
        data: Regression samples
        model_type: Smoothing variant
        seasonal_period: Season length (Holt-Winters only)
        settings: Engine settings

    Returns:
        Best SmoothingParams
    """
    settings = settings or get_settings()
    model_type = SmoothingModelType(model_type)

    if len(data) < MIN_POINTS:
        raise InsufficientDataError(required=MIN_POINTS, actual=len(data))
    if model_type == SmoothingModelType.HOLT_WINTERS and seasonal_period <= 0:
        raise InvalidParameterError(
            "Holt-Winters requires a seasonal period",
            details={"seasonal_period": seasonal_period}
        )

    sorted_data = sorted(data, key=lambda p: p.x)
    validation_size = max(1, int(len(sorted_data) * settings.smoothing.validation_fraction))
    training = sorted_data[:-validation_size]
    validation = [p.y for p in sorted_data[-validation_size:]]

    best_mse = float("inf")
    best_params: Optional[SmoothingParams] = None

    for candidate in _candidates(model_type, seasonal_period, settings):
        try:
            output = _run_model(training, model_type, candidate, validation_size)
        except ValidationError as e:
            logger.debug(f"Skipping smoothing candidate {candidate.to_dict()}: {e.message}")
            continue

        mse = calculate_errors(validation, [p.y for p in output.forecast]).mse
        if mse < best_mse:
            best_mse = mse
            best_params = candidate

    if best_params is None:
        logger.warning(
            f"No {model_type.value} smoothing candidate could be fitted on "
            f"{len(training)} training points; using defaults"
        )
        return _default_params(model_type, seasonal_period, settings)

    logger.debug(f"Optimized {model_type.value} params {best_params.to_dict()} (mse={best_mse:.4f})")
    return best_params


# =============================================================================
# FORECAST
# =============================================================================

def exponential_smoothing_forecast(
    data: Sequence[DataPoint],
    periods: int,
    params: Optional[SmoothingParams] = None,
    model_type: SmoothingModelType = SmoothingModelType.SIMPLE,
    seasonal_period: int = 0,
    include_confidence_interval: bool = True,
    confidence_level: float = 0.95,
    multiplicative: bool = False,
    settings: Optional[ForecastSettings] = None
) -> ExponentialSmoothingResult:
    """
    Forecast with exponential smoothing.

    Coefficients are optimized when ``params`` is omitted. Missing beta and
    gamma fall back to the configured defaults. The band half-width is
    z * sqrt(MSE) * (1 + growth * sqrt(h)).

    Args:
        data: Regression samples
        periods: Forecast horizon
        params: Smoothing coefficients, optimized if None
        model_type: Smoothing variant
        seasonal_period: Season length (Holt-Winters only)
        include_confidence_interval: Whether to compute bands
        confidence_level: Band confidence level
        multiplicative: Multiplicative seasonality (Holt-Winters only)
        settings: Engine settings

    Returns:
        ExponentialSmoothingResult
    """
    settings = settings or get_settings()
    model_type = SmoothingModelType(model_type)
    _check_input(data, periods)

    sorted_data = sorted(data, key=lambda p: p.x)
    chosen = params or optimize_params(sorted_data, model_type, seasonal_period, settings)

    config = settings.smoothing
    if model_type == SmoothingModelType.SIMPLE:
        chosen = SmoothingParams(alpha=chosen.alpha)
    elif model_type == SmoothingModelType.HOLT:
        chosen = SmoothingParams(alpha=chosen.alpha, beta=chosen.beta or config.default_beta)
    else:
        period = chosen.seasonal_period or seasonal_period
        if period <= 0:
            raise InvalidParameterError(
                "Holt-Winters requires a seasonal period",
                details={"seasonal_period": period}
            )
        chosen = SmoothingParams(
            alpha=chosen.alpha,
            beta=chosen.beta or config.default_beta,
            gamma=chosen.gamma or config.default_gamma,
            seasonal_period=period
        )

    output = _run_model(sorted_data, model_type, chosen, periods, multiplicative)
    errors = calculate_errors([p.y for p in sorted_data], [p.y for p in output.smoothed])

    confidence_interval = None
    if include_confidence_interval:
        z = z_score(confidence_level)
        std_error = math.sqrt(errors.mse)
        upper: List[DataPoint] = []
        lower: List[DataPoint] = []
        for h, point in enumerate(output.forecast, start=1):
            margin = z * std_error * (1 + config.interval_growth * math.sqrt(h))
            upper.append(DataPoint(x=point.x, y=point.y + margin))
            lower.append(DataPoint(x=point.x, y=point.y - margin))
        confidence_interval = ConfidenceInterval(upper=upper, lower=lower, confidence=confidence_level)

    logger.info(
        f"Exponential smoothing ({model_type.value}) fit: {chosen.to_dict()}, "
        f"mse={errors.mse:.4f}, mae={errors.mae:.4f}"
    )

    return ExponentialSmoothingResult(
        original_data=sorted_data,
        forecast_data=output.forecast,
        fitted_data=output.smoothed,
        params=chosen,
        model_type=model_type,
        errors=errors,
        confidence_interval=confidence_interval
    )
