import pytest

from conftest import as_points, sine_values
from tsforecast.forecasting.contracts import DataPoint, SmoothingModelType, SmoothingParams
from tsforecast.forecasting.exponential_smoothing import (
    exponential_smoothing_forecast,
    holt_exponential_smoothing,
    holt_winters_exponential_smoothing,
    optimize_params,
    simple_exponential_smoothing,
)
from tsforecast.utils.exceptions import InsufficientDataError, InvalidParameterError


def test_simple_smoothing_levels():
    output = simple_exponential_smoothing([DataPoint(0.0, 10.0), DataPoint(1.0, 20.0)], 0.5, 2)
    assert [p.y for p in output.smoothed] == [10.0, 15.0]
    assert [p.y for p in output.forecast] == [15.0, 15.0]
    assert [p.x for p in output.forecast] == [2.0, 3.0]


def test_simple_forecast_is_flat(sample_points):
    output = simple_exponential_smoothing(sample_points, 0.3, 7)
    values = {p.y for p in output.forecast}
    assert len(values) == 1
    assert values.pop() == output.state.level


def test_holt_follows_exact_trend(linear_points):
    output = holt_exponential_smoothing(linear_points, 0.4, 0.3, 3)
    assert [p.y for p in output.forecast] == pytest.approx([23.0, 25.0, 27.0])
    assert output.state.trend == pytest.approx(2.0)


def test_holt_winters_reproduces_pure_season():
    values = sine_values(60)
    output = holt_winters_exponential_smoothing(as_points(values[:48]), 0.5, 0.1, 0.1, 12, 12)
    assert [p.y for p in output.forecast] == pytest.approx(values[48:], abs=1e-6)
    assert len(output.smoothed) == 48


def test_holt_winters_multiplicative():
    values = sine_values(60, level=100.0)
    output = holt_winters_exponential_smoothing(
        as_points(values[:48]), 0.5, 0.1, 0.1, 12, 12, multiplicative=True
    )
    assert [p.y for p in output.forecast] == pytest.approx(values[48:], abs=1e-6)


def test_multiplicative_requires_positive_values():
    points = as_points([0.0, 1.0, 2.0, 1.0] * 2)
    with pytest.raises(InvalidParameterError):
        holt_winters_exponential_smoothing(points, 0.5, 0.1, 0.1, 4, 2, multiplicative=True)


def test_holt_winters_needs_two_seasons():
    points = as_points([1.0, 2.0, 3.0, 4.0, 5.0])
    with pytest.raises(InsufficientDataError):
        holt_winters_exponential_smoothing(points, 0.5, 0.1, 0.1, 4, 2)
    with pytest.raises(InvalidParameterError):
        holt_winters_exponential_smoothing(points, 0.5, 0.1, 0.1, 0, 2)


@pytest.mark.parametrize('alpha', [0.0, 1.0, -0.2, 1.5])
def test_alpha_out_of_range(sample_points, alpha):
    with pytest.raises(InvalidParameterError):
        simple_exponential_smoothing(sample_points, alpha, 3)


def test_too_few_points():
    with pytest.raises(InsufficientDataError):
        simple_exponential_smoothing([DataPoint(0.0, 1.0)], 0.5, 3)
    with pytest.raises(InsufficientDataError):
        exponential_smoothing_forecast([DataPoint(0.0, 1.0)], 3)


def test_optimize_params_is_deterministic(sample_points):
    first = optimize_params(sample_points, SmoothingModelType.HOLT)
    second = optimize_params(sample_points, SmoothingModelType.HOLT)
    assert first == second
    assert first.alpha in (0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9)
    assert first.beta is not None


def test_optimize_holt_winters_requires_period(sample_points):
    with pytest.raises(InvalidParameterError):
        optimize_params(sample_points, SmoothingModelType.HOLT_WINTERS)


def test_optimize_falls_back_to_defaults():
    points = as_points(sine_values(24))
    params = optimize_params(points, SmoothingModelType.HOLT_WINTERS, seasonal_period=12)
    assert params == SmoothingParams(alpha=0.5, beta=0.1, gamma=0.1, seasonal_period=12)


def test_forecast_reports_errors_and_band(sample_points):
    result = exponential_smoothing_forecast(sample_points, 5)
    assert len(result.forecast_data) == 5
    assert result.mse >= 0
    assert result.errors.rmse == pytest.approx(result.mse ** 0.5)
    widths = result.confidence_interval.half_widths()
    assert widths == sorted(widths)


def test_forecast_fills_default_beta(linear_points):
    result = exponential_smoothing_forecast(
        linear_points, 2, params=SmoothingParams(alpha=0.5), model_type=SmoothingModelType.HOLT
    )
    assert result.params.beta == 0.1
    assert result.model_type == SmoothingModelType.HOLT


def test_forecast_holt_winters(seasonal_points):
    result = exponential_smoothing_forecast(
        seasonal_points, 6, model_type='holt_winters', seasonal_period=12
    )
    assert result.params.seasonal_period == 12
    assert result.params.gamma is not None
    assert len(result.fitted_data) == len(seasonal_points)
