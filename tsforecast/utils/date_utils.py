"""
Date Utilities Module for TSForecast.

This module converts between date-indexed observations and the numeric
day-offset representation used by the forecasters, and adapts pandas
objects into observation sequences.
"""

from datetime import date, datetime, timedelta
from typing import Any, Iterable, List, Mapping, Sequence, Tuple, Union
import logging

import numpy as np
import pandas as pd

from ..forecasting.contracts import DataPoint, TimeSeriesPoint
from .exceptions import ValidationError


logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, pd.Timestamp, np.datetime64, str]

SeriesInput = Union[
    Sequence[TimeSeriesPoint],
    Sequence[Tuple[DateLike, float]],
    Sequence[Mapping[str, Any]],
    pd.Series,
    pd.DataFrame,
]


def as_date(value: DateLike) -> date:
    """
    Coerce a date-like value to a calendar date.

    Args:
        value: date, datetime, pandas Timestamp, numpy datetime64 or ISO string

    Returns:
        datetime.date

    Raises:
        ValidationError: If the value cannot be interpreted as a date
    """
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (np.datetime64, str)):
        try:
            return pd.Timestamp(value).date()
        except (ValueError, TypeError) as e:
            raise ValidationError(f"Unparseable date: {value!r}", cause=e) from e
    raise ValidationError(f"Unsupported date type: {type(value).__name__}")


def sort_series(series: Iterable[TimeSeriesPoint]) -> List[TimeSeriesPoint]:
    """Return the observations sorted ascending by date."""
    return sorted(series, key=lambda point: point.date)


def convert_to_regression_index(
    series: Sequence[TimeSeriesPoint]
) -> List[DataPoint]:
    """
    Convert observations to regression samples.

    ``x`` is the whole number of days since the earliest observation.

    Args:
        series: Observations in any order

    Returns:
        Regression samples sorted by x
    """
    if not series:
        return []

    ordered = sort_series(series)
    origin = ordered[0].date

    return [
        DataPoint(x=float((point.date - origin).days), y=float(point.value))
        for point in ordered
    ]


def convert_back_to_dates(
    points: Sequence[DataPoint],
    origin: date
) -> List[TimeSeriesPoint]:
    """
    Convert regression samples back to dated observations.

    Args:
        points: Regression samples with day offsets as x
        origin: Date of the earliest original observation

    Returns:
        Observations dated ``origin + round(x)`` days
    """
    return [
        TimeSeriesPoint(date=origin + timedelta(days=int(round(point.x))), value=float(point.y))
        for point in points
    ]


def series_from_pandas(
    data: Union[pd.Series, pd.DataFrame],
    date_column: str = "date",
    value_column: str = "value"
) -> List[TimeSeriesPoint]:
    """
    Build observations from a pandas object.

    A Series must carry a datetime-like index; a DataFrame must contain the
    date and value columns. Rows with missing values are dropped.

    Args:
        data: pandas Series or DataFrame
        date_column: Date column name for DataFrames
        value_column: Value column name for DataFrames

    Returns:
        Observations sorted by date
    """
    if isinstance(data, pd.Series):
        frame = pd.DataFrame({
            date_column: pd.to_datetime(data.index),
            value_column: data.to_numpy(),
        })
    else:
        missing = {date_column, value_column} - set(data.columns)
        if missing:
            raise ValidationError(
                "DataFrame is missing required columns",
                details={"missing": sorted(missing)}
            )
        frame = data[[date_column, value_column]].copy()
        frame[date_column] = pd.to_datetime(frame[date_column])

    frame[value_column] = pd.to_numeric(frame[value_column], errors="coerce")
    dropped = int(frame.isna().any(axis=1).sum())
    if dropped:
        logger.warning(f"Dropping {dropped} rows with missing dates or values")
    frame = frame.dropna().sort_values(date_column)

    return [
        TimeSeriesPoint(date=as_date(row_date), value=float(row_value))
        for row_date, row_value in zip(frame[date_column], frame[value_column])
    ]


def normalize_series(data: SeriesInput) -> List[TimeSeriesPoint]:
    """
    Accept the supported input shapes and return sorted observations.

    Args:
        data: TimeSeriesPoints, (date, value) pairs, {"date", "value"}
            mappings, or a pandas Series/DataFrame

    Returns:
        Observations sorted by date
    """
    if isinstance(data, (pd.Series, pd.DataFrame)):
        return series_from_pandas(data)

    points: List[TimeSeriesPoint] = []
    for item in data:
        if isinstance(item, TimeSeriesPoint):
            points.append(TimeSeriesPoint(date=as_date(item.date), value=float(item.value)))
        elif isinstance(item, Mapping):
            points.append(TimeSeriesPoint(date=as_date(item["date"]), value=float(item["value"])))
        else:
            item_date, item_value = item
            points.append(TimeSeriesPoint(date=as_date(item_date), value=float(item_value)))

    return sort_series(points)
