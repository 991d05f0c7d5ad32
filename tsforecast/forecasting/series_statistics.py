"""
Series statistics: autocorrelation analysis and the trend, seasonality and
stationarity heuristics used for model triage.

Degenerate inputs (constant or very short series) never raise here; the
functions fall back to neutral answers instead.
"""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..config.settings import DetectionSettings, ForecastSettings, get_settings
from .contracts import DataPoint
from .linear_algebra import solve
from .linear_regression import calculate_linear_regression

logger = logging.getLogger(__name__)

VARIANCE_EPSILON = 1e-10


def autocorrelation(series: Sequence[float], max_lag: int) -> np.ndarray:
    """
    Sample autocorrelation function.

    Uses the biased estimator (autocovariances divided by n). A series with
    near-zero variance yields all zeros, including lag 0.

    Args:
        series: Observed values
        max_lag: Largest lag to compute

    Returns:
        Array of length ``max_lag + 1``
    """
    data = np.asarray(series, dtype=float)
    n = data.size
    acf = np.zeros(max_lag + 1)

    if n == 0:
        return acf

    centered = data - data.mean()
    variance = float(np.dot(centered, centered)) / n

    if abs(variance) < VARIANCE_EPSILON:
        return acf

    for lag in range(min(max_lag, n - 1) + 1):
        acf[lag] = float(np.dot(centered[lag:], centered[:n - lag])) / n / variance

    return acf


def partial_autocorrelation(series: Sequence[float], max_lag: int) -> np.ndarray:
    """
    Partial autocorrelation function from the Yule-Walker equations.

    The value at lag 0 is 1 by convention. A singular Yule-Walker system
    contributes 0 for that lag.

    Args:
        series: Observed values
        max_lag: Largest lag to compute

    Returns:
        Array of length ``max_lag + 1``
    """
    acf = autocorrelation(series, max_lag)
    pacf = np.zeros(max_lag + 1)
    pacf[0] = 1.0

    for lag in range(1, max_lag + 1):
        idx = np.arange(lag)
        toeplitz = acf[np.abs(idx[:, None] - idx[None, :])]
        phi = solve(toeplitz, acf[1:lag + 1]).values
        pacf[lag] = phi[-1]

    return pacf


def _detection(settings: Optional[ForecastSettings]) -> DetectionSettings:
    return (settings or get_settings()).detection


def _values(points: Sequence[DataPoint]) -> np.ndarray:
    ordered = sorted(points, key=lambda p: p.x)
    return np.array([p.y for p in ordered], dtype=float)


def _seasonal_peaks(
    values: np.ndarray,
    config: DetectionSettings
) -> List[Tuple[int, float]]:
    """Interior ACF local maxima above the seasonality threshold."""
    n = values.size
    if n < config.seasonality_min_points:
        return []

    max_lag = min(n // 3, config.seasonality_max_lag)
    acf = autocorrelation(values, max_lag)

    return [
        (lag, float(acf[lag]))
        for lag in range(2, max_lag)
        if acf[lag] > acf[lag - 1]
        and acf[lag] > acf[lag + 1]
        and acf[lag] > config.seasonality_acf_threshold
    ]


def detect_trend(
    points: Sequence[DataPoint],
    settings: Optional[ForecastSettings] = None
) -> bool:
    """
    Flag a linear trend.

    The threshold is an absolute slope (units of y per unit of x), so it is
    not invariant to the scale of the series.

    Args:
        points: Regression samples
        settings: Engine settings

    Returns:
        True if |slope| exceeds the configured threshold
    """
    if len(points) < 2:
        return False
    regression = calculate_linear_regression(points)
    return abs(regression.slope) > _detection(settings).trend_slope_threshold


def detect_seasonality(
    points: Sequence[DataPoint],
    settings: Optional[ForecastSettings] = None
) -> bool:
    """
    Flag seasonality from ACF peaks.

    Args:
        points: Regression samples
        settings: Engine settings

    Returns:
        True if any interior lag is a local ACF maximum above the threshold
    """
    return bool(_seasonal_peaks(_values(points), _detection(settings)))


def detect_seasonal_period(
    points: Sequence[DataPoint],
    settings: Optional[ForecastSettings] = None
) -> int:
    """
    Estimate the dominant seasonal period.

    Args:
        points: Regression samples
        settings: Engine settings

    Returns:
        Lag of the highest qualifying ACF peak, or the default period
        (the short-series default when fewer than two default periods exist)
    """
    config = _detection(settings)
    values = _values(points)
    peaks = _seasonal_peaks(values, config)

    if peaks:
        lag, value = max(peaks, key=lambda peak: peak[1])
        logger.debug(f"Seasonal period {lag} detected (acf={value:.3f})")
        return lag

    if values.size < 2 * config.default_seasonal_period:
        return config.short_series_seasonal_period
    return config.default_seasonal_period


def _relative_change(before: float, after: float) -> float:
    if abs(before) < VARIANCE_EPSILON:
        return 0.0 if abs(after - before) < VARIANCE_EPSILON else float("inf")
    return abs(after - before) / abs(before)


def check_stationarity(
    series: Sequence[float],
    settings: Optional[ForecastSettings] = None
) -> bool:
    """
    Half-split stationarity heuristic.

    Compares the mean and variance of the first and second halves of the
    series. Short series are treated as stationary.

    Args:
        series: Observed values
        settings: Engine settings

    Returns:
        True if both relative changes are within tolerance
    """
    config = _detection(settings)
    data = np.asarray(series, dtype=float)

    if data.size < config.stationarity_min_points:
        return True

    half = data.size // 2
    first, second = data[:half], data[half:]

    mean_change = _relative_change(float(first.mean()), float(second.mean()))
    variance_change = _relative_change(float(first.var()), float(second.var()))

    return (
        mean_change < config.stationarity_mean_tolerance
        and variance_change < config.stationarity_variance_tolerance
    )
