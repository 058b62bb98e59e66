"""
Output models for the forecasting engine.

Every model serializes with camelCase aliases (``model_dump(by_alias=True)``)
so dashboard consumers keep receiving keys such as ``dateLabel`` and
``isLikelyAvailable``.
"""

import datetime as dt
from typing import Generic, Optional, TypeVar

import numpy as np
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .enums import ConversionSource, ForecastErrorKind, ProjectionMethod, ReliabilityTier, TrendLabel

T = TypeVar("T")


class EngineModel(BaseModel):
    """Immutable engine output serialized with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class ForecastResult(EngineModel, Generic[T]):
    """
    Outcome of a forecasting operation.

    ``value`` may be present even when ``error`` is set: the annual
    projection, for example, still returns a flat fallback alongside
    ``insufficient_data`` or ``fit_failure``.
    """

    value: Optional[T] = None
    error: Optional[ForecastErrorKind] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None


# =============================================================================
# Attendance
# =============================================================================


class FeatureVector(EngineModel):
    """Calendar and seasonal features for one date."""

    day_of_week: int = Field(ge=0, le=6, description="Sunday = 0")
    week_of_year: int = Field(ge=1, le=53, description="ISO week number")
    month: int = Field(ge=0, le=11, description="January = 0")
    is_weekend: int
    is_special: int
    month_sin: float
    month_cos: float
    week_sin: float
    week_cos: float


class TargetStats(EngineModel):
    """Summary statistics of the training counts."""

    mean: float
    std_dev: float
    min: float
    max: float


class TrainedModel(EngineModel):
    """
    A fitted attendance curve.

    Attributes:
        coefficients: Polynomial coefficients in ascending power order
        degree: Polynomial degree used for the fit
        stats: Training target statistics, used for clamping predictions
        samples: Number of training records; the trend index continues from here
    """

    coefficients: tuple[float, ...]
    degree: int
    stats: TargetStats
    samples: int

    def predict(self, composite: float) -> float:
        return float(np.polynomial.polynomial.polyval(composite, self.coefficients))


class AttendancePrediction(EngineModel):
    """Predicted headcount for one future service."""

    date: dt.date
    date_label: str
    count: int
    confidence: float
    is_special: bool
    week_number: int


class TrendReport(EngineModel):
    """Trend label with the figures behind it."""

    trend: TrendLabel
    samples: int
    first_half_mean: Optional[float] = None
    second_half_mean: Optional[float] = None
    percent_change: Optional[float] = None
    slope: Optional[float] = None
    p_value: Optional[float] = None


# =============================================================================
# DGroup growth
# =============================================================================


class ConversionProfile(EngineModel):
    """Seeker-to-member conversion behaviour learned from history."""

    conversion_rate: float
    avg_time_to_convert: float
    conversions: int = 0
    total_seekers: int = 0
    source: ConversionSource = ConversionSource.UNANALYZED


class GrowthSnapshot(EngineModel):
    """Simulated DGroup state at a monthly checkpoint."""

    week: int
    month: int
    seekers: int
    members: int
    total_growth: int


# =============================================================================
# Volunteers
# =============================================================================


class VolunteerPattern(EngineModel):
    """Derived attendance behaviour for one volunteer."""

    volunteer_id: str
    name: str
    attendance_rate: float
    preferred_day: Optional[int] = Field(default=None, description="Sunday = 0; None without history")
    total_services: int
    reliability: ReliabilityTier
    ministries: tuple[str, ...] = ()


class MinistryVolunteer(EngineModel):
    """A volunteer as listed under one ministry."""

    id: str
    name: str
    rate: float
    reliability: ReliabilityTier


class MinistryStats(EngineModel):
    """Aggregated reliability for one ministry."""

    name: str
    total_volunteers: int = 0
    high_reliability: int = 0
    avg_attendance_rate: float = 0.0
    volunteers: tuple[MinistryVolunteer, ...] = ()


class AvailabilityPrediction(EngineModel):
    """Likelihood that a volunteer serves on a given date."""

    volunteer_id: str
    name: str
    probability: float
    reliability: ReliabilityTier
    is_likely_available: bool
    ministries: tuple[str, ...] = ()


class MinistryAvailability(EngineModel):
    """Predicted staffing for one ministry on a given date."""

    ministry: str
    total_volunteers: int
    likely_available: int
    availability_rate: float = Field(description="Percentage of volunteers likely available")
    predictions: list[AvailabilityPrediction] = Field(default_factory=list)


class VolunteerSummary(EngineModel):
    """Branch-wide volunteer reliability overview."""

    total: int
    high_reliability: int
    average_attendance_rate: float
    most_reliable: list[VolunteerPattern] = Field(default_factory=list)
    ministries: list[MinistryStats] = Field(default_factory=list)


# =============================================================================
# Annual totals
# =============================================================================


class AnnualTotals(EngineModel):
    """Active DGroup leaders and members in one calendar year."""

    year: int
    leaders: int
    members: int


class AnnualIncrement(AnnualTotals):
    """Annual totals with year-over-year deltas."""

    leaders_inc: int = 0
    members_inc: int = 0


class AnnualProjection(EngineModel):
    """Projected annual totals and how they were produced."""

    rows: list[AnnualTotals] = Field(default_factory=list)
    method: ProjectionMethod
