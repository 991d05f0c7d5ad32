import math
import os
from datetime import date, timedelta

import pytest

from tsforecast.config import get_settings, reload_settings
from tsforecast.forecasting.contracts import DataPoint, TimeSeriesPoint

SAMPLE_VALUES = [
    15, 18, 12, 20, 22, 16, 10, 14, 19, 21,
    17, 13, 11, 16, 20, 23, 18, 14, 12, 15,
    19, 22, 20, 16, 13, 17, 21, 24, 19, 15,
]
START = date(2024, 1, 1)


def sine_values(n, period=12, level=50.0, amplitude=10.0):
    return [level + amplitude * math.sin(2 * math.pi * i / period) for i in range(n)]


def as_points(values):
    return [DataPoint(x=float(i), y=float(v)) for i, v in enumerate(values)]


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    for name in list(os.environ):
        if name.startswith('TSFORECAST_'):
            monkeypatch.delenv(name)
    reload_settings()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sample_series():
    return [TimeSeriesPoint(date=START + timedelta(days=i), value=float(v)) for i, v in enumerate(SAMPLE_VALUES)]


@pytest.fixture
def sample_points():
    return as_points(SAMPLE_VALUES)


@pytest.fixture
def linear_points():
    return [DataPoint(x=float(x), y=2.0 * x + 3.0) for x in range(10)]


@pytest.fixture
def seasonal_points():
    return as_points(sine_values(48))


@pytest.fixture
def seasonal_series():
    return [TimeSeriesPoint(date=START + timedelta(days=i), value=v) for i, v in enumerate(sine_values(48))]
