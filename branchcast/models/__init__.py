"""
Pydantic v2 data models for the branch forecasting engine.

Model Organization:
    - enums: Enumeration types for trend labels, tiers and error kinds
    - records: Store documents consumed by the engine (members, events, attendance)
    - forecasts: Engine outputs (predictions, profiles, summaries, results)
    - reports: Payloads shared with the reporting exports

Usage:
    >>> from branchcast.models import MemberRecord
    >>> member = MemberRecord.model_validate(
    ...     {"id": "m1", "firstName": "Ana", "finalTags": {"isSeeker": True}}
    ... )
"""

from .enums import (
    ConversionSource,
    ForecastErrorKind,
    ProjectionMethod,
    ReliabilityTier,
    TrendLabel,
)
from .forecasts import (
    AnnualIncrement,
    AnnualProjection,
    AnnualTotals,
    AttendancePrediction,
    AvailabilityPrediction,
    ConversionProfile,
    EngineModel,
    FeatureVector,
    ForecastResult,
    GrowthSnapshot,
    MinistryAvailability,
    MinistryStats,
    MinistryVolunteer,
    TargetStats,
    TrainedModel,
    TrendReport,
    VolunteerPattern,
    VolunteerSummary,
)
from .records import (
    NO_MINISTRY,
    AttendancePoint,
    AttendanceRecord,
    EventRecord,
    FinalTags,
    MemberRecord,
    StoreRecord,
    parse_records,
)
from .reports import ComparisonCard, ComparisonPayload, EventSummary

__all__ = [
    # Enums
    "ConversionSource",
    "ForecastErrorKind",
    "ProjectionMethod",
    "ReliabilityTier",
    "TrendLabel",
    # Records
    "NO_MINISTRY",
    "AttendancePoint",
    "AttendanceRecord",
    "EventRecord",
    "FinalTags",
    "MemberRecord",
    "StoreRecord",
    "parse_records",
    # Forecasts
    "AnnualIncrement",
    "AnnualProjection",
    "AnnualTotals",
    "AttendancePrediction",
    "AvailabilityPrediction",
    "ConversionProfile",
    "EngineModel",
    "FeatureVector",
    "ForecastResult",
    "GrowthSnapshot",
    "MinistryAvailability",
    "MinistryStats",
    "MinistryVolunteer",
    "TargetStats",
    "TrainedModel",
    "TrendReport",
    "VolunteerPattern",
    "VolunteerSummary",
    # Reports
    "ComparisonCard",
    "ComparisonPayload",
    "EventSummary",
]
