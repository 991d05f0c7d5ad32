"""
ARIMA forecaster.

The series is differenced ``d`` times, an ARMA(p, q) model is fitted to the
differenced values and the forecast is integrated back using the last value
of every differencing level.

Estimation is a two-stage approximation rather than joint maximum
likelihood: AR coefficients come from least squares on mean-centred lags,
and MA coefficients are then re-estimated iteratively from the
autocorrelation of the AR residuals.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from ..config.settings import ArimaSettings, ForecastSettings, get_settings
from ..utils.exceptions import (
    DegenerateFitError,
    ForecastError,
    InsufficientDataError,
    InvalidParameterError,
)
from ..utils.math_utils import clip_unit, validate_confidence_level, z_score
from .contracts import ARIMAParams, ConfidenceInterval, DataPoint
from .linear_algebra import solve
from .series_statistics import autocorrelation

logger = logging.getLogger(__name__)

MIN_RESIDUAL_VARIANCE = 1e-10


@dataclass(frozen=True)
class ARMAFit:
    """Estimated ARMA coefficients and in-sample residuals."""
    mean: float
    ar_coefficients: np.ndarray = field(default_factory=lambda: np.zeros(0))
    ma_coefficients: np.ndarray = field(default_factory=lambda: np.zeros(0))
    residuals: np.ndarray = field(default_factory=lambda: np.zeros(0))

    @property
    def p(self) -> int:
        return int(self.ar_coefficients.size)

    @property
    def q(self) -> int:
        return int(self.ma_coefficients.size)

    @property
    def n_params(self) -> int:
        """Number of estimated parameters (coefficients plus the mean)."""
        return self.p + self.q + (1 if self.p or self.q else 0)


@dataclass(frozen=True)
class ARIMAResult:
    """Native output of :func:`arima_forecast`."""
    original_data: List[DataPoint]
    forecast_data: List[DataPoint]
    params: ARIMAParams
    ar_coefficients: List[float]
    ma_coefficients: List[float]
    constant: float
    residuals: List[float]
    aic: float
    bic: float
    accuracy: float
    confidence_interval: Optional[ConfidenceInterval[DataPoint]] = None
    fallback: Optional[str] = None


# =============================================================================
# DIFFERENCING
# =============================================================================

def difference_series(values: Sequence[float], order: int = 1) -> np.ndarray:
    """
    Lag-``order`` difference: ``diff[t] = y[t + order] - y[t]``.

    Args:
        values: Observed values
        order: Lag of the difference

    Returns:
        Array of length ``len(values) - order``

    Raises:
        InvalidParameterError: If order is not positive
        InsufficientDataError: If the series is not longer than ``order``
    """
    if order < 1:
        raise InvalidParameterError("Difference order must be positive", details={"order": order})

    data = np.asarray(values, dtype=float)
    if data.size <= order:
        raise InsufficientDataError(required=order + 1, actual=int(data.size))

    return data[order:] - data[:-order]


def integrate_series(
    differences: Sequence[float],
    seeds: Sequence[float],
    order: int = 1
) -> np.ndarray:
    """
    Invert :func:`difference_series`.

    ``integrate_series(difference_series(y, k), y[:k], k)`` reproduces ``y``.

    Args:
        differences: Lag-``order`` differences
        seeds: The first ``order`` values of the undifferenced series
        order: Lag of the difference

    Returns:
        Array of length ``order + len(differences)``
    """
    if len(seeds) < order:
        raise InvalidParameterError(
            "Integration needs one seed value per lag",
            details={"order": order, "seeds": len(seeds)}
        )

    result = [float(s) for s in seeds[:order]]
    for i, value in enumerate(differences):
        result.append(float(value) + result[i])

    return np.array(result)


# =============================================================================
# ESTIMATION
# =============================================================================

def fit_ar(values: Sequence[float], p: int) -> ARMAFit:
    """
    Least-squares AR(p) fit on mean-centred values.

    Args:
        values: Series (usually already differenced)
        p: AR order, at least 1

    Returns:
        ARMAFit with residuals for t = p .. n-1

    Raises:
        DegenerateFitError: If there are too few lagged rows or the normal
            equations are singular
    """
    if p < 1:
        raise InvalidParameterError("AR order must be positive", details={"p": p})

    data = np.asarray(values, dtype=float)
    n = data.size
    if n - p < p:
        raise DegenerateFitError(
            f"AR({p}) needs at least {2 * p} observations",
            details={"p": p, "n": n}
        )

    mean = float(data.mean())
    centered = data - mean

    lagged = np.column_stack([centered[p - i - 1:n - i - 1] for i in range(p)])
    target = centered[p:]

    solution = solve(lagged.T @ lagged, lagged.T @ target)
    if solution.is_degenerate:
        raise DegenerateFitError(f"AR({p}) normal equations are singular", details={"p": p})

    phi = solution.values
    residuals = target - lagged @ phi

    return ARMAFit(mean=mean, ar_coefficients=phi, residuals=residuals)


def fit_ma(
    values: Sequence[float],
    q: int,
    max_iterations: int = 50,
    tolerance: float = 1e-6
) -> ARMAFit:
    """
    Iterative MA(q) fit.

    Each pass recomputes the residuals from the current coefficients and
    sets ``coef[i] = -acf(residuals)[i + 1]``; iteration stops when the
    coefficient vector moves less than ``tolerance``.

    Args:
        values: Series to model
        q: MA order, at least 1
        max_iterations: Upper bound on passes
        tolerance: Euclidean convergence threshold

    Returns:
        ARMAFit with residuals of the same length as ``values``
    """
    if q < 1:
        raise InvalidParameterError("MA order must be positive", details={"q": q})

    data = np.asarray(values, dtype=float)
    n = data.size
    if n <= q:
        raise DegenerateFitError(
            f"MA({q}) needs more than {q} observations",
            details={"q": q, "n": n}
        )

    mean = float(data.mean())
    centered = data - mean

    theta = np.zeros(q)
    residuals = centered.copy()

    for iteration in range(max_iterations):
        updated = centered.copy()
        for t in range(q, n):
            updated[t] = centered[t] - float(np.dot(theta, residuals[t - q:t][::-1]))

        new_theta = -autocorrelation(updated, q)[1:q + 1]
        change = float(np.linalg.norm(new_theta - theta))

        theta, residuals = new_theta, updated
        if change < tolerance:
            logger.debug(f"MA({q}) converged after {iteration + 1} iterations")
            break

    if not np.all(np.isfinite(residuals)):
        raise DegenerateFitError(f"MA({q}) residuals diverged", details={"q": q})

    return ARMAFit(mean=mean, ma_coefficients=theta, residuals=residuals)


def fit_arma(
    values: Sequence[float],
    p: int,
    q: int,
    settings: Optional[ArimaSettings] = None
) -> ARMAFit:
    """
    Two-stage ARMA(p, q) fit: AR first, then MA on the AR residuals.

    ARMA(0, 0) is the mean-only model.

    Args:
        values: Differenced series
        p: AR order
        q: MA order
        settings: ARIMA settings

    Returns:
        ARMAFit
    """
    config = settings or get_settings().arima
    data = np.asarray(values, dtype=float)

    if p < 0 or q < 0:
        raise InvalidParameterError("ARMA orders must be non-negative", details={"p": p, "q": q})
    if data.size == 0:
        raise DegenerateFitError("Cannot fit an ARMA model to an empty series")

    if p == 0 and q == 0:
        return mean_fit(data)

    if p > 0:
        ar = fit_ar(data, p)
        if q == 0:
            return ar
        ma = fit_ma(ar.residuals, q, config.ma_max_iterations, config.ma_tolerance)
        return ARMAFit(
            mean=ar.mean,
            ar_coefficients=ar.ar_coefficients,
            ma_coefficients=ma.ma_coefficients,
            residuals=ma.residuals
        )

    return fit_ma(data, q, config.ma_max_iterations, config.ma_tolerance)


def mean_fit(values: Sequence[float]) -> ARMAFit:
    """Mean-only model used as the fallback for degenerate fits."""
    data = np.asarray(values, dtype=float)
    mean = float(data.mean())
    return ARMAFit(mean=mean, residuals=data - mean)


def forecast_arma(values: Sequence[float], fit: ARMAFit, periods: int) -> np.ndarray:
    """
    Recursive multi-step ARMA forecast.

    Earlier forecasts serve as pseudo-observations for the AR lags and
    future innovations are taken as zero.

    Args:
        values: Series the model was fitted on
        fit: Fitted model
        periods: Forecast horizon

    Returns:
        Array of ``periods`` forecasts on the scale of ``values``
    """
    history = list(np.asarray(values, dtype=float) - fit.mean)
    shocks = list(fit.residuals)
    forecasts = []

    for _ in range(periods):
        prediction = 0.0
        for i, phi in enumerate(fit.ar_coefficients, start=1):
            if i <= len(history):
                prediction += phi * history[-i]
        for j, theta in enumerate(fit.ma_coefficients, start=1):
            if j <= len(shocks):
                prediction += theta * shocks[-j]

        history.append(prediction)
        shocks.append(0.0)
        forecasts.append(prediction + fit.mean)

    return np.array(forecasts)


# =============================================================================
# INFORMATION CRITERIA
# =============================================================================

def log_likelihood(residuals: Sequence[float]) -> float:
    """
    Gaussian log-likelihood of residuals with the ML variance estimate.

    The variance is floored so a perfect fit still yields a finite value.
    """
    res = np.asarray(residuals, dtype=float)
    n = res.size
    if n == 0:
        raise DegenerateFitError("Log-likelihood needs at least one residual")

    variance = max(float(np.mean(res ** 2)), MIN_RESIDUAL_VARIANCE)
    return -n / 2 * math.log(2 * math.pi * variance) - n / 2


def calculate_aic(log_lik: float, n_params: int) -> float:
    """Akaike information criterion."""
    return 2 * n_params - 2 * log_lik


def calculate_bic(log_lik: float, n_params: int, n_obs: int) -> float:
    """Bayesian information criterion."""
    return n_params * math.log(max(n_obs, 1)) - 2 * log_lik


# =============================================================================
# ORDER SELECTION
# =============================================================================

def _arima_settings(settings: Optional[ForecastSettings]) -> ArimaSettings:
    return (settings or get_settings()).arima


def is_acf_stationary(values: Sequence[float], settings: Optional[ForecastSettings] = None) -> bool:
    """
    True when the leading autocorrelations lie within the 2/sqrt(n) band.

    Args:
        values: Series to test
        settings: Engine settings

    Returns:
        Whether the series looks stationary
    """
    config = _arima_settings(settings)
    data = np.asarray(values, dtype=float)
    if data.size < 2:
        return True

    acf = autocorrelation(data, config.stationarity_acf_lags)
    bound = 2 / math.sqrt(data.size)
    return bool(np.all(np.abs(acf[1:config.stationarity_check_lags + 1]) <= bound))


def determine_differencing(
    values: Sequence[float],
    max_d: int,
    settings: Optional[ForecastSettings] = None
) -> int:
    """
    Smallest d (up to ``max_d``) after which the series passes the ACF test.

    Differencing stops early once another pass would leave fewer than the
    minimum number of points.
    """
    config = _arima_settings(settings)
    current = np.asarray(values, dtype=float)
    d = 0

    while (
        d < max_d
        and current.size - 1 >= config.min_points
        and not is_acf_stationary(current, settings)
    ):
        current = difference_series(current, 1)
        d += 1

    return d


def auto_select_params(
    values: Sequence[float],
    max_p: Optional[int] = None,
    max_d: Optional[int] = None,
    max_q: Optional[int] = None,
    settings: Optional[ForecastSettings] = None
) -> ARIMAParams:
    """
    Choose an ARIMA order by ACF differencing test and AIC grid search.

    ``p`` ranges over 0..max_p and ``q`` over 1..max_q (only 0 when max_q is
    0). Candidates whose fit fails are skipped. When no candidate succeeds
    the order falls back to (0, d, min(1, max_q)).

    Args:
        values: Observed values
        max_p: Largest AR order
        max_d: Largest differencing order
        max_q: Largest MA order
        settings: Engine settings

    Returns:
        ARIMAParams within the given bounds
    """
    config = _arima_settings(settings)
    max_p = config.max_p if max_p is None else max_p
    max_d = config.max_d if max_d is None else max_d
    max_q = config.max_q if max_q is None else max_q

    if min(max_p, max_d, max_q) < 0:
        raise InvalidParameterError(
            "Order bounds must be non-negative",
            details={"max_p": max_p, "max_d": max_d, "max_q": max_q}
        )

    data = np.asarray(values, dtype=float)
    d = determine_differencing(data, max_d, settings)
    differenced = data
    for _ in range(d):
        differenced = difference_series(differenced, 1)

    q_values = range(1, max_q + 1) if max_q > 0 else [0]

    best_aic = float("inf")
    best_p, best_q = 0, 0

    for p in range(max_p + 1):
        for q in q_values:
            if p == 0 and q == 0:
                continue
            try:
                fit = fit_arma(differenced, p, q, config)
                aic = calculate_aic(log_likelihood(fit.residuals), p + q + 1)
            except ForecastError as e:
                logger.debug(f"Skipping ARIMA({p},{d},{q}): {e.message}")
                continue

            if aic < best_aic:
                best_aic = aic
                best_p, best_q = p, q

    if best_q == 0:
        best_q = min(1, max_q)

    params = ARIMAParams(p=best_p, d=d, q=best_q)
    logger.debug(f"Selected ARIMA{params.to_tuple()} (aic={best_aic:.4f})")
    return params


# =============================================================================
# FORECAST
# =============================================================================

def _accuracy(differenced: np.ndarray, fit: ARMAFit) -> float:
    """AIC-penalised R² of the fit against the mean-only baseline."""
    baseline = float(np.mean((differenced - differenced.mean()) ** 2))
    if baseline < MIN_RESIDUAL_VARIANCE:
        return 1.0

    n = fit.residuals.size
    model = float(np.mean(fit.residuals ** 2))
    penalty = math.exp(2 * fit.n_params / n)
    return clip_unit(1 - model / baseline * penalty)


def arima_forecast(
    data: Sequence[DataPoint],
    periods: int,
    params: Optional[ARIMAParams] = None,
    include_confidence_interval: bool = True,
    confidence_level: float = 0.95,
    settings: Optional[ForecastSettings] = None
) -> ARIMAResult:
    """
    Forecast with an ARIMA model.

    When ``params`` is omitted the order is chosen by
    :func:`auto_select_params`. A degenerate fit falls back to the
    mean-only model of the differenced series and sets ``fallback="mean"``.

    Args:
        data: Regression samples
        periods: Forecast horizon
        params: Model order, auto-selected if None
        include_confidence_interval: Whether to compute bands
        confidence_level: Band confidence level
        settings: Engine settings

    Returns:
        ARIMAResult
    """
    config = _arima_settings(settings)

    if len(data) < config.min_points:
        raise InsufficientDataError(
            required=config.min_points,
            actual=len(data),
            message=f"ARIMA requires at least {config.min_points} data points"
        )
    if periods < 1:
        raise InvalidParameterError(
            "Number of forecast periods must be positive",
            details={"periods": periods}
        )
    if include_confidence_interval:
        validate_confidence_level(confidence_level)

    sorted_data = sorted(data, key=lambda p: p.x)
    values = np.array([p.y for p in sorted_data], dtype=float)

    if params is None:
        params = auto_select_params(values, settings=settings)
    elif min(params.p, params.d, params.q) < 0:
        raise InvalidParameterError("ARIMA orders must be non-negative", details=params.to_dict())

    if values.size - params.d < 2:
        raise InsufficientDataError(
            required=params.d + 2,
            actual=int(values.size),
            message=f"Differencing of order {params.d} leaves too few points"
        )

    levels = [values]
    for _ in range(params.d):
        levels.append(difference_series(levels[-1], 1))
    differenced = levels[-1]

    fallback = None
    try:
        fit = fit_arma(differenced, params.p, params.q, config)
    except DegenerateFitError as e:
        logger.warning(f"ARIMA{params.to_tuple()} fit failed ({e.message}); using mean model")
        fit = mean_fit(differenced)
        fallback = "mean"

    forecast_values = forecast_arma(differenced, fit, periods)
    for level in reversed(levels[:-1]):
        forecast_values = integrate_series(forecast_values, [level[-1]], 1)[1:]

    last_x = sorted_data[-1].x
    forecast_data = [
        DataPoint(x=last_x + h, y=float(v))
        for h, v in enumerate(forecast_values, start=1)
    ]

    log_lik = log_likelihood(fit.residuals)
    aic = calculate_aic(log_lik, fit.n_params)
    bic = calculate_bic(log_lik, fit.n_params, fit.residuals.size)

    confidence_interval = None
    if include_confidence_interval:
        z = z_score(confidence_level)
        sigma = math.sqrt(float(np.mean(fit.residuals ** 2)))
        upper: List[DataPoint] = []
        lower: List[DataPoint] = []
        for step, point in enumerate(forecast_data):
            margin = z * sigma * math.sqrt(1 + config.interval_growth * step)
            upper.append(DataPoint(x=point.x, y=point.y + margin))
            lower.append(DataPoint(x=point.x, y=point.y - margin))
        confidence_interval = ConfidenceInterval(upper=upper, lower=lower, confidence=confidence_level)

    logger.info(f"ARIMA{params.to_tuple()} fit complete: AIC={aic:.2f}, BIC={bic:.2f}")

    return ARIMAResult(
        original_data=sorted_data,
        forecast_data=forecast_data,
        params=params,
        ar_coefficients=[float(c) for c in fit.ar_coefficients],
        ma_coefficients=[float(c) for c in fit.ma_coefficients],
        constant=fit.mean,
        residuals=[float(r) for r in fit.residuals],
        aic=aic,
        bic=bic,
        accuracy=_accuracy(differenced, fit),
        confidence_interval=confidence_interval,
        fallback=fallback
    )
