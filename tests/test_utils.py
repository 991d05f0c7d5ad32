import math
from datetime import date, datetime

import numpy as np
import pandas as pd
import pytest

from tsforecast.forecasting.contracts import TimeSeriesPoint
from tsforecast.utils.date_utils import as_date, normalize_series, series_from_pandas
from tsforecast.utils.exceptions import (
    ErrorCode,
    InsufficientDataError,
    InvalidParameterError,
    ValidationError,
)
from tsforecast.utils.math_utils import (
    approximate_t_value,
    calculate_errors,
    clip_unit,
    ppf_normal,
    safe_divide,
    z_score,
)


def test_z_scores():
    assert z_score(0.95) == pytest.approx(1.959964, abs=1e-4)
    assert z_score(0.99) == pytest.approx(2.575829, abs=1e-4)
    assert ppf_normal(0.5) == pytest.approx(0.0, abs=1e-9)
    with pytest.raises(InvalidParameterError):
        z_score(1.0)


def test_t_value_approaches_z():
    assert approximate_t_value(100, 0.95) == z_score(0.95)
    assert approximate_t_value(5, 0.95) > approximate_t_value(20, 0.95) > z_score(0.95)


def test_calculate_errors():
    errors = calculate_errors([1.0, 2.0, 0.0, 4.0], [2.0, 2.0, 1.0, 2.0])
    assert errors.mse == pytest.approx(1.5)
    assert errors.mae == pytest.approx(1.0)
    assert errors.rmse == pytest.approx(math.sqrt(1.5))
    assert errors.mape == pytest.approx((100.0 + 0.0 + 50.0) / 4)
    with pytest.raises(InvalidParameterError):
        calculate_errors([1.0], [1.0, 2.0])
    with pytest.raises(InvalidParameterError):
        calculate_errors([], [])


def test_clip_unit():
    assert clip_unit(-0.5) == 0.0
    assert clip_unit(1.7) == 1.0
    assert clip_unit(0.25) == 0.25
    assert clip_unit(float('nan')) == 0.0


def test_safe_divide():
    assert safe_divide(3, 4) == 0.75
    assert safe_divide(1.0, 0, default=-1.0) == -1.0


def test_exception_payload():
    error = InsufficientDataError(required=2, actual=1)
    assert isinstance(error, ValidationError)
    assert error.error_code == ErrorCode.INSUFFICIENT_DATA
    payload = error.to_dict()
    assert payload['details'] == {'required': 2, 'actual': 1}
    assert payload['error_name'] == 'INSUFFICIENT_DATA'
    assert '[INSUFFICIENT_DATA:2000]' in str(error)


def test_as_date():
    assert as_date('2024-03-05') == date(2024, 3, 5)
    assert as_date(datetime(2024, 3, 5, 12, 30)) == date(2024, 3, 5)
    assert as_date(pd.Timestamp('2024-03-05')) == date(2024, 3, 5)
    assert as_date(np.datetime64('2024-03-05')) == date(2024, 3, 5)
    with pytest.raises(ValidationError):
        as_date('not a date')
    with pytest.raises(ValidationError):
        as_date(42)


def test_normalize_series_sorts_mixed_inputs():
    points = normalize_series([
        {'date': '2024-01-03', 'value': 3},
        TimeSeriesPoint(date(2024, 1, 1), 1.0),
        ('2024-01-02', 2),
    ])
    assert [p.value for p in points] == [1.0, 2.0, 3.0]
    assert points[0].date == date(2024, 1, 1)


def test_series_from_pandas_frame_drops_missing():
    frame = pd.DataFrame({
        'day': ['2024-01-02', '2024-01-01', '2024-01-03'],
        'amount': [2.0, 1.0, None],
    })
    points = series_from_pandas(frame, date_column='day', value_column='amount')
    assert points == [TimeSeriesPoint(date(2024, 1, 1), 1.0), TimeSeriesPoint(date(2024, 1, 2), 2.0)]
    with pytest.raises(ValidationError):
        series_from_pandas(frame)
