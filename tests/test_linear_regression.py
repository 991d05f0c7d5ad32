import pytest

from tsforecast.forecasting.contracts import DataPoint
from tsforecast.forecasting.linear_regression import (
    calculate_linear_regression,
    linear_regression_forecast,
)
from tsforecast.utils.exceptions import InsufficientDataError, InvalidParameterError


def test_exact_line(linear_points):
    regression = calculate_linear_regression(linear_points)
    assert regression.slope == pytest.approx(2.0)
    assert regression.intercept == pytest.approx(3.0)
    assert regression.r2 == pytest.approx(1.0)


def test_identical_x_gives_zero_slope():
    regression = calculate_linear_regression([DataPoint(1.0, 2.0), DataPoint(1.0, 4.0)])
    assert regression.slope == 0.0
    assert regression.intercept == pytest.approx(3.0)


def test_constant_y_has_perfect_r2():
    regression = calculate_linear_regression([DataPoint(float(i), 5.0) for i in range(4)])
    assert regression.slope == 0.0
    assert regression.r2 == 1.0


def test_forecast_extends_line(linear_points):
    result = linear_regression_forecast(linear_points, 3)
    assert [p.x for p in result.forecast_data] == [10.0, 11.0, 12.0]
    assert [p.y for p in result.forecast_data] == pytest.approx([23.0, 25.0, 27.0])
    assert result.standard_error == pytest.approx(0.0, abs=1e-9)
    band = result.confidence_interval
    assert [p.y for p in band.upper] == pytest.approx([23.0, 25.0, 27.0])
    assert [p.y for p in band.lower] == pytest.approx([23.0, 25.0, 27.0])


def test_forecast_sorts_input(linear_points):
    result = linear_regression_forecast(list(reversed(linear_points)), 1)
    assert result.forecast_data[0].x == 10.0


def test_interval_widens_with_horizon(sample_points):
    result = linear_regression_forecast(sample_points, 6, confidence_level=0.9)
    widths = result.confidence_interval.half_widths()
    assert all(w > 0 for w in widths)
    assert widths == sorted(widths)
    assert result.confidence_interval.confidence == 0.9


def test_forecast_without_interval(sample_points):
    result = linear_regression_forecast(sample_points, 2, include_confidence_interval=False)
    assert result.confidence_interval is None


def test_too_few_points():
    with pytest.raises(InsufficientDataError):
        calculate_linear_regression([DataPoint(0.0, 1.0)])
    with pytest.raises(InsufficientDataError):
        linear_regression_forecast([DataPoint(0.0, 1.0)], 3)


def test_invalid_arguments(linear_points):
    with pytest.raises(InvalidParameterError):
        linear_regression_forecast(linear_points, 0)
    with pytest.raises(InvalidParameterError):
        linear_regression_forecast(linear_points, 2, confidence_level=1.5)
