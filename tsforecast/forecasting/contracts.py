"""
Forecasting contracts: the value types exchanged between the forecasters,
the orchestrator and the callers that render or export results.

Every object here is created fresh per forecast call and never mutated
afterwards.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


@dataclass(frozen=True)
class DataPoint:
    """Unit-less regression sample; ``x`` is usually a day offset."""
    x: float
    y: float

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary."""
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class TimeSeriesPoint:
    """Caller-facing observation."""
    date: date
    value: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"date": self.date.isoformat(), "value": self.value}


PointT = TypeVar("PointT", DataPoint, TimeSeriesPoint)


@dataclass(frozen=True)
class ConfidenceInterval(Generic[PointT]):
    """Upper and lower bands, parallel-indexed to the forecast points."""
    upper: List[PointT]
    lower: List[PointT]
    confidence: float

    def half_widths(self) -> List[float]:
        """Half-width of the band at each forecast step."""
        return [
            (_point_value(hi) - _point_value(lo)) / 2
            for hi, lo in zip(self.upper, self.lower)
        ]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "upper": [p.to_dict() for p in self.upper],
            "lower": [p.to_dict() for p in self.lower],
            "confidence": self.confidence
        }


def _point_value(point: Union[DataPoint, TimeSeriesPoint]) -> float:
    return point.y if isinstance(point, DataPoint) else point.value


class FitStatus(str, Enum):
    """Outcome of a numerical estimation step."""
    SUCCESS = "success"
    DEGENERATE = "degenerate"


@dataclass(frozen=True)
class RegressionResult:
    """Ordinary least squares fit of y on x."""
    slope: float
    intercept: float
    r2: float

    def predict(self, x: float) -> float:
        """Value of the fitted line at ``x``."""
        return self.slope * x + self.intercept

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary."""
        return {"slope": self.slope, "intercept": self.intercept, "r2": self.r2}


class SmoothingModelType(str, Enum):
    """Exponential smoothing variants."""
    SIMPLE = "simple"
    HOLT = "holt"
    HOLT_WINTERS = "holt_winters"


@dataclass(frozen=True)
class SmoothingParams:
    """Smoothing coefficients chosen for a fit."""
    alpha: float
    beta: Optional[float] = None
    gamma: Optional[float] = None
    seasonal_period: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, omitting unused coefficients."""
        data: Dict[str, Any] = {"alpha": self.alpha}
        if self.beta is not None:
            data["beta"] = self.beta
        if self.gamma is not None:
            data["gamma"] = self.gamma
        if self.seasonal_period is not None:
            data["seasonal_period"] = self.seasonal_period
        return data


@dataclass(frozen=True)
class ARIMAParams:
    """ARIMA model order (p, d, q)."""
    p: int
    d: int
    q: int

    def to_tuple(self) -> tuple[int, int, int]:
        """Convert to tuple."""
        return (self.p, self.d, self.q)

    def to_dict(self) -> Dict[str, int]:
        """Convert to dictionary."""
        return {"p": self.p, "d": self.d, "q": self.q}


class ForecastMethod(str, Enum):
    """Forecasting methods accepted by the orchestrator."""
    LINEAR = "linear"
    EXP_SMOOTHING = "exp_smoothing"
    ARIMA = "arima"
    AUTO = "auto"


class PeriodUnit(str, Enum):
    """Unit of the requested horizon."""
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"

    @property
    def days(self) -> int:
        """Number of daily steps in one unit (months are approximated as 30 days)."""
        return {"days": 1, "weeks": 7, "months": 30}[self.value]


class ForecastOptions(BaseModel):
    """
    Request options for :func:`tsforecast.forecast`.

    Keys may be given in snake_case or camelCase (``confidenceLevel``).
    ``seasonality=None`` lets the engine detect seasonality itself.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    method: ForecastMethod = Field(default=ForecastMethod.AUTO, description="Forecasting method")
    periods: int = Field(gt=0, description="Number of periods to forecast")
    confidence_interval: bool = Field(default=True, description="Include confidence bands")
    confidence_level: float = Field(default=0.95, gt=0.0, lt=1.0, description="Band confidence")
    seasonality: Optional[bool] = Field(default=None, description="Force or disable seasonal models")
    seasonal_period: Optional[int] = Field(default=None, gt=0, description="Seasonal period length")
    period_unit: PeriodUnit = Field(default=PeriodUnit.DAYS, description="Unit of ``periods``")

    @property
    def horizon(self) -> int:
        """Forecast horizon in daily steps."""
        return self.periods * self.period_unit.days


@dataclass(frozen=True)
class ForecastResult:
    """
    Uniform forecast output.

    ``accuracy`` is a per-method score in [0, 1]: R² for linear regression,
    1 - MSE/variance for exponential smoothing and an AIC-penalised R²
    against a mean-only baseline for ARIMA. Scores are only loosely
    comparable across methods and are not calibrated probabilities.
    """
    original_data: List[TimeSeriesPoint]
    forecast_data: List[TimeSeriesPoint]
    method: str
    accuracy: float
    confidence_interval: Optional[ConfidenceInterval[TimeSeriesPoint]] = None
    parameters: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-ready dictionary."""
        return {
            "original_data": [p.to_dict() for p in self.original_data],
            "forecast_data": [p.to_dict() for p in self.forecast_data],
            "method": self.method,
            "accuracy": self.accuracy,
            "confidence_interval": (
                self.confidence_interval.to_dict() if self.confidence_interval else None
            ),
            "parameters": self.parameters
        }

    def to_frame(self) -> pd.DataFrame:
        """
        Flatten the result into a DataFrame for export.

        Returns:
            DataFrame with columns date, value, kind, lower, upper
        """
        rows: List[Dict[str, Any]] = [
            {"date": p.date, "value": p.value, "kind": "actual", "lower": None, "upper": None}
            for p in self.original_data
        ]
        interval = self.confidence_interval
        for i, point in enumerate(self.forecast_data):
            rows.append({
                "date": point.date,
                "value": point.value,
                "kind": "forecast",
                "lower": interval.lower[i].value if interval else None,
                "upper": interval.upper[i].value if interval else None,
            })

        frame = pd.DataFrame(rows, columns=["date", "value", "kind", "lower", "upper"])
        frame["date"] = pd.to_datetime(frame["date"])
        frame[["lower", "upper"]] = frame[["lower", "upper"]].astype(float)
        return frame
