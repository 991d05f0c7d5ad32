import json
from datetime import date, timedelta

import pandas as pd
import pytest

from conftest import SAMPLE_VALUES, START, as_points
from tsforecast import forecast, forecast_with_best_method
from tsforecast.forecasting.contracts import (
    DataPoint,
    ForecastMethod,
    ForecastOptions,
    PeriodUnit,
    TimeSeriesPoint,
)
from tsforecast.config import reload_settings
from tsforecast.forecasting.orchestrator import build_options, select_best_method
from tsforecast.utils.date_utils import convert_back_to_dates, convert_to_regression_index
from tsforecast.utils.exceptions import (
    InsufficientDataError,
    InvalidParameterError,
    UnknownMethodError,
)


def test_linear_end_to_end(sample_series):
    result = forecast(sample_series, {
        'method': 'linear',
        'periods': 5,
        'confidenceInterval': True,
        'confidenceLevel': 0.95,
    })
    assert result.method == 'linear'
    assert len(result.forecast_data) == 5
    dates = [p.date for p in result.forecast_data]
    assert dates[0] == sample_series[-1].date + timedelta(days=1)
    assert all(a < b for a, b in zip(dates, dates[1:]))
    interval = result.confidence_interval
    assert all(hi.value >= lo.value for hi, lo in zip(interval.upper, interval.lower))
    assert [p.date for p in interval.upper] == dates
    assert 0.0 <= result.accuracy <= 1.0
    assert set(result.parameters) >= {'slope', 'intercept', 'r2'}


def test_date_round_trip(sample_series):
    shuffled = sample_series[::2] + sample_series[1::2]
    points = convert_to_regression_index(shuffled)
    assert points[0].x == 0.0
    restored = convert_back_to_dates(points, sample_series[0].date)
    assert restored == sample_series


def test_requires_two_points():
    with pytest.raises(InsufficientDataError):
        forecast([TimeSeriesPoint(START, 1.0)], periods=3)
    with pytest.raises(InsufficientDataError):
        forecast([], periods=3)


def test_rejects_bad_options(sample_series):
    with pytest.raises(InvalidParameterError):
        forecast(sample_series, periods=0)
    with pytest.raises(InvalidParameterError):
        forecast(sample_series, {'periods': 3, 'confidence_level': 1.2})
    with pytest.raises(InvalidParameterError):
        forecast(sample_series, {'periods': 3, 'color': 'red'})
    with pytest.raises(UnknownMethodError):
        forecast(sample_series, periods=3, method='prophet')


def test_build_options_accepts_both_key_styles():
    options = build_options({'periods': 2, 'periodUnit': 'weeks'}, confidence_level=0.8)
    assert options.period_unit == PeriodUnit.WEEKS
    assert options.confidence_level == 0.8
    assert options.horizon == 14
    assert build_options(options, periods=3).horizon == 21


def test_period_unit_scales_horizon(sample_series):
    result = forecast(sample_series, ForecastOptions(method='linear', periods=2, period_unit='weeks'))
    assert len(result.forecast_data) == 14


def test_select_best_method(linear_points, seasonal_points):
    assert select_best_method(linear_points) == ForecastMethod.ARIMA
    assert select_best_method(seasonal_points) == ForecastMethod.ARIMA
    flat = as_points([10.0, 11.0] * 5)
    assert select_best_method(flat) == ForecastMethod.LINEAR


def test_auto_method(sample_series):
    result = forecast(sample_series, periods=4)
    assert result.method in {'linear', 'exp_smoothing', 'arima'}
    assert len(result.forecast_data) == 4
    assert 0.0 <= result.accuracy <= 1.0


def test_exp_smoothing_seasonality_switch(seasonal_series):
    seasonal = forecast(seasonal_series, method='exp_smoothing', periods=6, seasonality=True, seasonal_period=12)
    assert seasonal.parameters['model_type'] == 'holt_winters'
    assert seasonal.parameters['seasonal_period'] == 12

    plain = forecast(seasonal_series, method='exp_smoothing', periods=6, seasonality=False)
    assert plain.parameters['model_type'] in {'simple', 'holt'}


def test_exp_smoothing_accuracy_in_range(sample_series):
    result = forecast(sample_series, method='exp_smoothing', periods=3)
    assert 0.0 <= result.accuracy <= 1.0
    assert result.parameters['mse'] >= 0


def test_arima_method(sample_series):
    result = forecast(sample_series, method='arima', periods=3, confidence_interval=False)
    assert result.confidence_interval is None
    assert {'p', 'd', 'q', 'aic', 'bic'} <= set(result.parameters)


@pytest.mark.parametrize('method', ['linear', 'exp_smoothing', 'arima', 'auto'])
def test_forecast_is_deterministic(sample_series, method):
    first = forecast(sample_series, method=method, periods=5)
    second = forecast(sample_series, method=method, periods=5)
    assert first.to_dict() == second.to_dict()


def test_accepts_pandas_and_pairs():
    index = pd.date_range('2024-01-01', periods=len(SAMPLE_VALUES), freq='D')
    from_series = forecast(pd.Series(SAMPLE_VALUES, index=index), method='linear', periods=2)
    pairs = [(d.strftime('%Y-%m-%d'), v) for d, v in zip(index, SAMPLE_VALUES)]
    from_pairs = forecast(pairs, method='linear', periods=2)
    assert from_series.forecast_data == from_pairs.forecast_data
    assert from_series.forecast_data[0].date == date(2024, 1, 31)


def test_best_of_three(sample_series):
    result = forecast_with_best_method(sample_series, periods=3)
    selection = result.parameters['selection']
    assert set(selection) == {'linear', 'exp_smoothing', 'arima'}
    best = min(selection, key=lambda m: selection[m]['mae'])
    assert result.method == best
    assert len(result.forecast_data) == 3


def test_best_of_three_on_exact_line():
    series = [TimeSeriesPoint(START + timedelta(days=i), 2.0 * i + 3.0) for i in range(20)]
    result = forecast_with_best_method(series, periods=2)
    assert result.parameters['selection']['linear']['mae'] == pytest.approx(0.0, abs=1e-6)


def test_best_of_three_scores_failures_as_infinite():
    series = [TimeSeriesPoint(START, 1.0), TimeSeriesPoint(START + timedelta(days=1), 2.0),
              TimeSeriesPoint(START + timedelta(days=2), 4.0)]
    result = forecast_with_best_method(series, periods=1)
    assert result.parameters['selection']['arima']['mae'] == float('inf')
    assert result.method in {'linear', 'exp_smoothing'}


def test_result_exports(sample_series):
    result = forecast(sample_series, method='linear', periods=3)
    payload = json.loads(json.dumps(result.to_dict()))
    assert payload['forecast_data'][0]['date'] == '2024-01-31'
    assert len(payload['confidence_interval']['upper']) == 3

    frame = result.to_frame()
    assert len(frame) == len(sample_series) + 3
    assert list(frame['kind'].value_counts().sort_index()) == [30, 3]
    forecast_rows = frame[frame['kind'] == 'forecast']
    assert (forecast_rows['upper'] >= forecast_rows['lower']).all()


def test_regression_points_use_day_offsets():
    series = [TimeSeriesPoint(date(2024, 1, 1), 1.0), TimeSeriesPoint(date(2024, 1, 8), 2.0)]
    assert convert_to_regression_index(series) == [DataPoint(0.0, 1.0), DataPoint(7.0, 2.0)]


def test_explicit_seasonal_period_needs_two_seasons(sample_series):
    with pytest.raises(InsufficientDataError) as excinfo:
        forecast(sample_series[:10], method='exp_smoothing', periods=3, seasonality=True, seasonal_period=12)
    assert excinfo.value.required == 24
    assert excinfo.value.actual == 10


def test_build_options_merges_camel_case_overrides():
    options = build_options(ForecastOptions(method='linear', periods=3), confidenceLevel=0.8)
    assert options.confidence_level == 0.8
    assert options.method == ForecastMethod.LINEAR

    merged = build_options({'confidence_level': 0.9, 'periods': 1}, confidenceLevel=0.8, seasonalPeriod=7)
    assert merged.confidence_level == 0.8
    assert merged.seasonal_period == 7


def test_auto_method_respects_seasonality_option(seasonal_points, seasonal_series):
    assert select_best_method(seasonal_points, seasonality=False) == ForecastMethod.LINEAR
    assert select_best_method(as_points([10.0, 11.0] * 5), seasonality=True) == ForecastMethod.ARIMA
    result = forecast(seasonal_series, periods=3, seasonality=False)
    assert result.method == 'linear'


def test_default_confidence_level_from_settings(monkeypatch, sample_series):
    monkeypatch.setenv('TSFORECAST_DEFAULT_CONFIDENCE_LEVEL', '0.8')
    reload_settings()
    assert build_options({'periods': 1}).confidence_level == 0.8
    result = forecast(sample_series, method='linear', periods=2)
    assert result.confidence_interval.confidence == 0.8
    assert forecast(sample_series, method='linear', periods=2, confidence_level=0.9).confidence_interval.confidence == 0.9
