"""
Linear regression forecaster.

Fits an ordinary least squares line to (x, y) samples and extends it past
the last observed x. Confidence bands use the prediction standard error

    SE * sqrt(1 + 1/n + (x - mean_x)^2 / Sxx)

scaled by an approximate t critical value.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from ..utils.exceptions import InsufficientDataError, InvalidParameterError
from ..utils.math_utils import approximate_t_value, validate_confidence_level
from .contracts import ConfidenceInterval, DataPoint, RegressionResult

logger = logging.getLogger(__name__)

MIN_POINTS = 2


@dataclass(frozen=True)
class LinearRegressionForecast:
    """Native output of :func:`linear_regression_forecast`."""
    original_data: List[DataPoint]
    forecast_data: List[DataPoint]
    regression: RegressionResult
    standard_error: float
    confidence_interval: Optional[ConfidenceInterval[DataPoint]] = None


def calculate_linear_regression(data: Sequence[DataPoint]) -> RegressionResult:
    """
    Closed-form OLS fit of y = slope * x + intercept.

    When every x is identical the slope is 0 and the intercept is the mean of
    y; a constant y gives r2 = 1.

    Args:
        data: Regression samples

    Returns:
        RegressionResult

    Raises:
        InsufficientDataError: If fewer than two samples are given
    """
    if len(data) < MIN_POINTS:
        raise InsufficientDataError(
            required=MIN_POINTS,
            actual=len(data),
            message="Linear regression requires at least 2 data points"
        )

    x = np.array([p.x for p in data], dtype=float)
    y = np.array([p.y for p in data], dtype=float)
    n = x.size

    sum_x = float(x.sum())
    sum_y = float(y.sum())
    denominator = n * float(np.dot(x, x)) - sum_x ** 2

    if denominator == 0:
        slope = 0.0
    else:
        slope = (n * float(np.dot(x, y)) - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n

    mean_y = sum_y / n
    predicted = slope * x + intercept
    total_variation = float(np.sum((y - mean_y) ** 2))
    explained_variation = float(np.sum((predicted - mean_y) ** 2))

    r2 = explained_variation / total_variation if total_variation > 0 else 1.0

    return RegressionResult(slope=slope, intercept=intercept, r2=r2)


def linear_regression_forecast(
    data: Sequence[DataPoint],
    periods: int,
    include_confidence_interval: bool = True,
    confidence_level: float = 0.95
) -> LinearRegressionForecast:
    """
    Forecast by extending the fitted regression line.

    Args:
        data: Regression samples (sorted internally by x)
        periods: Number of unit steps to forecast past the last x
        include_confidence_interval: Whether to compute bands
        confidence_level: Band confidence level

    Returns:
        LinearRegressionForecast

    Raises:
        InsufficientDataError: If fewer than two samples are given
        InvalidParameterError: If periods is not positive
    """
    if len(data) < MIN_POINTS:
        raise InsufficientDataError(
            required=MIN_POINTS,
            actual=len(data),
            message="Forecasting requires at least 2 data points"
        )
    if periods < 1:
        raise InvalidParameterError(
            "Number of forecast periods must be positive",
            details={"periods": periods}
        )

    sorted_data = sorted(data, key=lambda p: p.x)
    regression = calculate_linear_regression(sorted_data)

    last_x = sorted_data[-1].x
    forecast_data = [
        DataPoint(x=last_x + i, y=regression.predict(last_x + i))
        for i in range(1, periods + 1)
    ]

    x = np.array([p.x for p in sorted_data], dtype=float)
    y = np.array([p.y for p in sorted_data], dtype=float)
    n = x.size

    residuals = y - (regression.slope * x + regression.intercept)
    sse = float(np.dot(residuals, residuals))
    standard_error = math.sqrt(sse / (n - 2)) if n > 2 else 0.0

    confidence_interval = None
    if include_confidence_interval:
        validate_confidence_level(confidence_level)
        t_critical = approximate_t_value(n - 2, confidence_level)

        mean_x = float(x.mean())
        sxx = float(np.sum((x - mean_x) ** 2))

        upper: List[DataPoint] = []
        lower: List[DataPoint] = []
        for point in forecast_data:
            leverage = (point.x - mean_x) ** 2 / sxx if sxx > 0 else 0.0
            margin = t_critical * standard_error * math.sqrt(1 + 1 / n + leverage)
            upper.append(DataPoint(x=point.x, y=point.y + margin))
            lower.append(DataPoint(x=point.x, y=point.y - margin))

        confidence_interval = ConfidenceInterval(
            upper=upper,
            lower=lower,
            confidence=confidence_level
        )

    logger.info(
        f"Linear regression fit: slope={regression.slope:.4f}, "
        f"intercept={regression.intercept:.4f}, r2={regression.r2:.4f}"
    )

    return LinearRegressionForecast(
        original_data=sorted_data,
        forecast_data=forecast_data,
        regression=regression,
        standard_error=standard_error,
        confidence_interval=confidence_interval
    )
