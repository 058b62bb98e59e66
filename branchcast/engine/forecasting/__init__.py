"""Forecasting engine — attendance, DGroup growth, volunteer availability, annual totals."""

from .annual import DgroupAnnualForecaster, build_annual_series, compute_increments, project_annual_totals
from .attendance import (
    AttendanceForecaster,
    calculate_confidence,
    fit_attendance_model,
    forecast_attendance,
    trend_report,
)
from .features import RegressionError, composite_feature, extract_features
from .growth import DgroupGrowthForecaster, analyze_conversions, default_conversion_profile
from .volunteers import VolunteerPredictor, aggregate_ministry_stats, classify_reliability

__all__ = [
    "AttendanceForecaster",
    "fit_attendance_model",
    "forecast_attendance",
    "calculate_confidence",
    "trend_report",
    "DgroupGrowthForecaster",
    "analyze_conversions",
    "default_conversion_profile",
    "VolunteerPredictor",
    "aggregate_ministry_stats",
    "classify_reliability",
    "DgroupAnnualForecaster",
    "build_annual_series",
    "compute_increments",
    "project_annual_totals",
    "RegressionError",
    "composite_feature",
    "extract_features",
]
