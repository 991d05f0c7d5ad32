import pytest

from conftest import as_points, sine_values
from tsforecast.config import ForecastSettings
from tsforecast.forecasting.series_statistics import (
    autocorrelation,
    check_stationarity,
    detect_seasonal_period,
    detect_seasonality,
    detect_trend,
    partial_autocorrelation,
)


def test_autocorrelation_lag_zero_is_one():
    acf = autocorrelation([1.0, 3.0, 2.0, 5.0, 4.0], 3)
    assert len(acf) == 4
    assert acf[0] == pytest.approx(1.0)
    assert all(abs(v) <= 1.0 + 1e-12 for v in acf)


def test_autocorrelation_constant_series_is_zero():
    acf = autocorrelation([7.0] * 10, 4)
    assert list(acf) == [0.0] * 5


def test_autocorrelation_lags_beyond_series():
    acf = autocorrelation([1.0, 2.0, 4.0], 5)
    assert len(acf) == 6
    assert list(acf[3:]) == [0.0, 0.0, 0.0]


def test_partial_autocorrelation_first_lag_matches_acf(sample_points):
    values = [p.y for p in sample_points]
    pacf = partial_autocorrelation(values, 4)
    acf = autocorrelation(values, 4)
    assert pacf[0] == 1.0
    assert pacf[1] == pytest.approx(acf[1])


def test_detect_trend(linear_points):
    assert detect_trend(linear_points)
    assert not detect_trend(as_points([5.0] * 10))


def test_detect_trend_threshold_is_configurable(linear_points):
    settings = ForecastSettings(detection={'trend_slope_threshold': 5.0})
    assert not detect_trend(linear_points, settings)


def test_detect_seasonality(seasonal_points):
    assert detect_seasonality(seasonal_points)
    assert detect_seasonal_period(seasonal_points) == 12


def test_short_series_has_no_seasonality():
    points = as_points(sine_values(10, period=4))
    assert not detect_seasonality(points)
    assert detect_seasonal_period(points) == 4


def test_default_period_without_peaks():
    points = as_points([float(i) for i in range(30)])
    assert detect_seasonal_period(points) == 12


def test_check_stationarity():
    assert check_stationarity([1.0, 2.0, 3.0])
    assert check_stationarity(sine_values(48))
    assert not check_stationarity([float(i) for i in range(20)])


def test_check_stationarity_zero_mean_halves():
    assert check_stationarity([0.0] * 10)
    assert not check_stationarity([0.0] * 5 + [3.0] * 5)
