"""
Branch analytics engine.

This package contains the analytical components behind the branch
dashboards:

- Attendance forecasting: polynomial attendance curve with decaying confidence
- DGroup growth: seeker conversion profile and growth simulation
- Volunteer availability: day preference and reliability mining
- Annual totals: yearly active leaders/members with projected growth
- Data preparation and the event comparison payload for reports

All components are synchronous, pure computation over record snapshots
supplied by the caller. Nothing here reads from or writes to the store.
"""

__version__ = "1.0.0"

__all__ = [
    "AttendanceForecaster",
    "DgroupGrowthForecaster",
    "VolunteerPredictor",
    "DgroupAnnualForecaster",
    "prepare_attendance_data",
    "select_volunteers",
    "build_comparison_payload",
]

from branchcast.engine.comparison import build_comparison_payload
from branchcast.engine.forecasting import (
    AttendanceForecaster,
    DgroupAnnualForecaster,
    DgroupGrowthForecaster,
    VolunteerPredictor,
)
from branchcast.engine.preparation import prepare_attendance_data, select_volunteers
