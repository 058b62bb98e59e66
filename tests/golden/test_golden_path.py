"""
Golden Path (End-to-End) Tests for the branch forecasting engine.

Each scenario uses a fixed dataset and checks the figures the dashboards
display, from raw store documents through to serialized output.
"""

import argparse
import importlib.util
import json
from datetime import date, timedelta
from pathlib import Path

import pytest

from branchcast.engine import (
    AttendanceForecaster,
    DgroupAnnualForecaster,
    DgroupGrowthForecaster,
    VolunteerPredictor,
    build_comparison_payload,
    prepare_attendance_data,
    select_volunteers,
)
from branchcast.models.enums import ConversionSource, ForecastErrorKind, ProjectionMethod, TrendLabel
from branchcast.models.forecasts import AnnualTotals
from tests.conftest import make_attendance, make_event, make_member, weekly_points

SCRIPT_PATH = Path(__file__).resolve().parents[2] / "scripts" / "run_forecasts.py"


# ============================================================================
# Scenario A: Six weekly services → one-step forecast
# ============================================================================


def test_golden_attendance_one_step_forecast(settings, scenario_a_points):
    """
    Counts 40, 42, 38, 45, 50, 48 on consecutive Saturdays.

    Training succeeds and a one-period forecast lands inside the clamp
    window [30, 60] with confidence 0.85 - 0.05 = 0.8.
    """
    forecaster = AttendanceForecaster(settings)
    assert forecaster.train(scenario_a_points) is True
    assert forecaster.last_error is None

    predictions = forecaster.forecast("2024-02-10", periods_ahead=1)

    assert len(predictions) == 1
    prediction = predictions[0]
    assert 30 <= prediction.count <= 60
    assert prediction.confidence == 0.8
    assert prediction.date == date(2024, 2, 24)
    assert prediction.is_special is False


# ============================================================================
# Scenario B: Half-over-half growth
# ============================================================================


def test_golden_trend_growing(settings):
    """First-half mean 20, second-half mean 25 → +25% → growing."""
    forecaster = AttendanceForecaster(settings)
    report = forecaster.trend_report(weekly_points([18, 22, 24, 26]))

    assert report.first_half_mean == 20.0
    assert report.second_half_mean == 25.0
    assert report.percent_change == 25.0
    assert report.trend == TrendLabel.GROWING
    assert forecaster.analyze_trend(weekly_points([18, 22, 24, 26])) == TrendLabel.GROWING


# ============================================================================
# Scenario C: Two years of history → flat projection
# ============================================================================


def test_golden_annual_short_history_is_flat(settings):
    """With only 2022 and 2023 on record the last totals carry forward."""
    members = [
        make_member("L1", is_dgroup_leader=True),
        make_member("M1", dgroup_leader="L1"),
        make_member("M2", dgroup_leader="L1"),
    ]
    attendance = [
        make_attendance("L1", "a", timestamp="2022-04-02"),
        make_attendance("M1", "a", timestamp="2022-04-02"),
        make_attendance("L1", "b", timestamp="2023-04-01"),
        make_attendance("M1", "b", timestamp="2023-04-01"),
        make_attendance("M2", "b", timestamp="2023-04-08"),
    ]

    forecaster = DgroupAnnualForecaster(settings)
    forecaster.build_annual_series(members, attendance)
    result = forecaster.project(years_ahead=2)

    assert result.error == ForecastErrorKind.INSUFFICIENT_DATA
    assert result.value.method == ProjectionMethod.FLAT
    assert forecaster.forecast_totals(2) == [
        AnnualTotals(year=2024, leaders=1, members=2),
        AnnualTotals(year=2025, leaders=1, members=2),
    ]


# ============================================================================
# Scenario D: No conversions → default profile
# ============================================================================


def test_golden_growth_defaults_without_conversions(settings):
    """Seekers exist but none has a DGroup leader: rate 0.25, 4 weeks."""
    members = [make_member(f"s{i}", is_seeker=True) for i in range(5)]

    forecaster = DgroupGrowthForecaster(settings)
    profile = forecaster.analyze_conversion_patterns(members, [])

    assert profile.conversion_rate == 0.25
    assert profile.avg_time_to_convert == 4.0
    assert profile.source == ConversionSource.DEFAULT


# ============================================================================
# Scenario E: Full branch snapshot through every component
# ============================================================================


@pytest.fixture
def branch_snapshot():
    """
    Eight Saturday services from 2024-02-03, twelve members, two volunteers,
    one seeker already placed in a DGroup and one DGroup leader.
    """
    members = [make_member(f"m{i}", age_category="Elevate" if i % 2 else "B1G") for i in range(8)]
    members += [
        make_member("v1", "Ben", "Reyes", is_volunteer=True, ministries=("Worship",)),
        make_member("v2", "Cara", "Lim", is_volunteer=True, ministries=("Worship", "Kids")),
        make_member("s1", is_seeker=True, dgroup_leader="L1"),
        make_member("L1", is_dgroup_leader=True),
    ]

    start = date(2024, 2, 3)
    events = [
        make_event(f"e{i}", (start + timedelta(weeks=i)).isoformat(), name=f"Service {i + 1}")
        for i in range(8)
    ]
    headcounts = [6, 7, 8, 7, 8, 9, 8, 9]

    attendance = []
    for i, count in enumerate(headcounts):
        timestamp = (start + timedelta(weeks=i)).isoformat()
        attendees = [f"m{j}" for j in range(count - 2)]
        attendance += [make_attendance(mid, f"e{i}", timestamp=timestamp) for mid in attendees]
        attendance.append(make_attendance("v1", f"e{i}", timestamp=timestamp, ministry="Worship"))
        if i % 2 == 0:
            attendance.append(make_attendance("v2", f"e{i}", timestamp=timestamp, ministry="Kids"))
        else:
            attendance.append(make_attendance("s1", f"e{i}", timestamp=timestamp))

    return {"events": events, "attendance": attendance, "members": members}


def test_golden_full_branch_pipeline(settings, branch_snapshot):
    events = branch_snapshot["events"]
    attendance = branch_snapshot["attendance"]
    members = branch_snapshot["members"]
    as_of = date(2024, 3, 31)

    # Attendance
    points = prepare_attendance_data(events, attendance, as_of=as_of)
    assert [int(p.count) for p in points] == [6, 7, 8, 7, 8, 9, 8, 9]

    attendance_forecaster = AttendanceForecaster(settings)
    assert attendance_forecaster.train(points)
    predictions = attendance_forecaster.forecast(points[-1].date, periods_ahead=4)
    assert [p.week_number for p in predictions] == [1, 2, 3, 4]
    assert all(5 <= p.count <= 11 for p in predictions)
    assert [p.confidence for p in predictions] == [0.8, 0.75, 0.7, 0.65]
    assert attendance_forecaster.analyze_trend(points) == TrendLabel.GROWING

    # Volunteers: v1 serves every week, v2 every other week
    predictor = VolunteerPredictor(settings)
    predictor.analyze_patterns(select_volunteers(members), attendance, events, as_of=as_of)
    summary = predictor.get_summary()
    assert summary.total == 2
    assert summary.high_reliability == 1
    assert summary.most_reliable[0].volunteer_id == "v1"

    staffing = {m.ministry: m for m in predictor.get_ministry_availability(predictions[0].date)}
    assert staffing["Worship"].likely_available == 1
    assert staffing["Kids"].likely_available == 0

    # DGroup growth: one of one seeker placed after four check-ins
    growth = DgroupGrowthForecaster(settings)
    profile = growth.analyze_conversion_patterns(members, attendance)
    assert profile.conversion_rate == 1.0
    assert profile.avg_time_to_convert == 4.0
    assert len(growth.forecast_growth(1, 1, weeks_ahead=12)) == 3

    # Annual totals: one year on record → flat projection
    annual = DgroupAnnualForecaster(settings)
    annual.build_annual_series(members, attendance)
    rows = annual.get_combined_with_increments(1)
    assert [(r.year, r.leaders, r.members) for r in rows] == [(2024, 0, 1), (2025, 0, 1)]

    # Comparison: latest service against the three before it
    payload = build_comparison_payload(events, attendance, members)
    assert payload.current.id == "e7"
    assert payload.current.total == 9
    assert payload.current.volunteers == 1
    assert [p.id for p in payload.previous] == ["e6", "e5", "e4"]
    assert payload.cards[0].attendance_rate == 75


def test_golden_cli_report(branch_snapshot):
    """The command-line report covers every forecast and serializes to JSON."""
    module_spec = importlib.util.spec_from_file_location("run_forecasts", SCRIPT_PATH)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)

    args = argparse.Namespace(periods=2, weekly=True, weeks=8, years=1, as_of="2024-03-31")
    report = module.build_report(branch_snapshot, args)

    assert set(report) == {"asOf", "attendance", "dgroupGrowth", "volunteers", "annual", "comparison"}
    assert report["asOf"] == "2024-03-31"
    assert [p["date"] for p in report["attendance"]["predictions"]] == ["2024-03-30", "2024-04-06"]
    assert report["attendance"]["error"] is None
    assert report["attendance"]["trend"]["trend"] == "growing"
    assert report["dgroupGrowth"]["profile"]["source"] == "observed"
    assert len(report["dgroupGrowth"]["snapshots"]) == 2
    assert report["comparison"]["current"]["id"] == "e7"
    json.dumps(report)
