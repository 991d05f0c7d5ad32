"""
Math Utilities Module for TSForecast.

This module provides the statistical helpers shared by the forecasters:
normal quantiles, critical values for confidence bands and forecast error
metrics.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Sequence, Union
import logging

import numpy as np

from .exceptions import InvalidParameterError


logger = logging.getLogger(__name__)

Number = Union[int, float]

# Coefficients of Acklam's rational approximation of the normal quantile
_PPF_A = (
    -3.969683028665376e+01, 2.209460984245205e+02,
    -2.759285104469687e+02, 1.383577518672690e+02,
    -3.066479806614716e+01, 2.506628277459239e+00
)
_PPF_B = (
    -5.447609879822406e+01, 1.615858368580409e+02,
    -1.556989798598866e+02, 6.680131188771972e+01,
    -1.328068155288572e+01
)
_PPF_C = (
    -7.784894002430293e-03, -3.223964580411365e-01,
    -2.400758277161838e+00, -2.549732539343734e+00,
    4.374664141464968e+00, 2.938163982698783e+00
)
_PPF_D = (
    7.784695709041462e-03, 3.224671290700398e-01,
    2.445134137142996e+00, 3.754408661907416e+00
)
_PPF_LOW = 0.02425


# =============================================================================
# BASIC MATH OPERATIONS
# =============================================================================

def safe_divide(
    numerator: Number,
    denominator: Number,
    default: Number = 0.0
) -> float:
    """
    Safely divide two numbers, returning default on zero division.

    Args:
        numerator: The numerator
        denominator: The denominator
        default: Value to return if denominator is zero

    Returns:
        Result of division or default
    """
    if denominator == 0:
        return float(default)
    return float(numerator) / float(denominator)


def clip_unit(value: float) -> float:
    """Clamp a score into [0, 1], mapping NaN to 0."""
    if math.isnan(value):
        return 0.0
    return min(max(float(value), 0.0), 1.0)


# =============================================================================
# DISTRIBUTION HELPERS
# =============================================================================

def ppf_normal(p: float) -> float:
    """
    Percent point function (inverse CDF) of the standard normal distribution.

    Args:
        p: Cumulative probability

    Returns:
        Quantile z such that P(Z <= z) = p
    """
    if p <= 0:
        return -10.0
    if p >= 1:
        return 10.0

    a, b, c, d = _PPF_A, _PPF_B, _PPF_C, _PPF_D
    p_high = 1 - _PPF_LOW

    if p < _PPF_LOW:
        q = math.sqrt(-2 * math.log(p))
        return (
            (((((c[0] * q + c[1]) * q + c[2]) * q + c[3]) * q + c[4]) * q + c[5]) /
            ((((d[0] * q + d[1]) * q + d[2]) * q + d[3]) * q + 1)
        )
    elif p <= p_high:
        q = p - 0.5
        r = q * q
        return (
            (((((a[0] * r + a[1]) * r + a[2]) * r + a[3]) * r + a[4]) * r + a[5]) * q /
            (((((b[0] * r + b[1]) * r + b[2]) * r + b[3]) * r + b[4]) * r + 1)
        )
    else:
        q = math.sqrt(-2 * math.log(1 - p))
        return -(
            (((((c[0] * q + c[1]) * q + c[2]) * q + c[3]) * q + c[4]) * q + c[5]) /
            ((((d[0] * q + d[1]) * q + d[2]) * q + d[3]) * q + 1)
        )


def validate_confidence_level(confidence_level: float) -> float:
    """
    Ensure a confidence level lies strictly between 0 and 1.

    Raises:
        InvalidParameterError: If the level is out of range
    """
    if not 0.0 < confidence_level < 1.0:
        raise InvalidParameterError(
            "Confidence level must be in the range (0, 1)",
            details={"confidence_level": confidence_level}
        )
    return float(confidence_level)


def z_score(confidence_level: float) -> float:
    """
    Two-sided normal critical value for a confidence level.

    Args:
        confidence_level: Confidence level, e.g. 0.95

    Returns:
        z value (1.96 for 0.95)
    """
    validate_confidence_level(confidence_level)
    return ppf_normal((1 + confidence_level) / 2)


def approximate_t_value(degrees_of_freedom: int, confidence_level: float) -> float:
    """
    Approximate two-sided Student-t critical value.

    Uses the normal quantile for more than 30 degrees of freedom and a
    first-order Cornish-Fisher expansion below that. This is not an exact
    t table.

    Args:
        degrees_of_freedom: Residual degrees of freedom
        confidence_level: Confidence level, e.g. 0.95

    Returns:
        Critical value
    """
    z = z_score(confidence_level)
    df = max(int(degrees_of_freedom), 1)
    if df > 30:
        return z
    return z * (1 + (z * z + 1) / (4 * df))


# =============================================================================
# ERROR METRICS
# =============================================================================

@dataclass(frozen=True)
class ErrorMetrics:
    """Forecast accuracy metrics."""
    mse: float
    mae: float
    rmse: float
    mape: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "mse": self.mse,
            "mae": self.mae,
            "rmse": self.rmse,
            "mape": self.mape
        }


def calculate_errors(
    actual: Sequence[float],
    predicted: Sequence[float]
) -> ErrorMetrics:
    """
    Calculate error metrics between actual and predicted values.

    MAPE is expressed in percent and ignores zero actual values.

    Args:
        actual: Observed values
        predicted: Model values, parallel to ``actual``

    Returns:
        ErrorMetrics object

    Raises:
        InvalidParameterError: If the sequences differ in length or are empty
    """
    actual_arr = np.asarray(actual, dtype=float)
    predicted_arr = np.asarray(predicted, dtype=float)

    if actual_arr.shape != predicted_arr.shape:
        raise InvalidParameterError(
            "Actual and predicted sequences must have the same length",
            details={"actual": len(actual_arr), "predicted": len(predicted_arr)}
        )
    if actual_arr.size == 0:
        raise InvalidParameterError("Cannot compute errors for empty sequences")

    errors = actual_arr - predicted_arr
    n = actual_arr.size

    mse = float(np.mean(errors ** 2))
    mae = float(np.mean(np.abs(errors)))

    nonzero = actual_arr != 0
    mape = float(np.sum(np.abs(errors[nonzero] / actual_arr[nonzero])) * 100 / n)

    return ErrorMetrics(mse=mse, mae=mae, rmse=math.sqrt(mse), mape=mape)
