#!/usr/bin/env python3
"""
Branch forecasts from a store snapshot.

Reads a JSON export with ``events``, ``attendance`` and ``members`` arrays
and prints every forecast (attendance, DGroup growth, volunteer
availability, annual totals) plus the event comparison payload as JSON.

Usage:
    python scripts/run_forecasts.py --input snapshot.json
    python scripts/run_forecasts.py --input snapshot.json --periods 6 --weekly
    python scripts/run_forecasts.py --input snapshot.json --years 2 --as-of 2024-06-01
"""

import argparse
import json
import sys
from datetime import date, timedelta
from pathlib import Path

import structlog

sys.path.insert(0, str(Path(__file__).parent.parent))

from branchcast.engine import (
    AttendanceForecaster,
    DgroupAnnualForecaster,
    DgroupGrowthForecaster,
    VolunteerPredictor,
    build_comparison_payload,
    prepare_attendance_data,
    select_volunteers,
)
from branchcast.models.records import MemberRecord, parse_records
from branchcast.utils.dates import to_date
from branchcast.utils.logging import configure_logging

logger = structlog.get_logger()


def build_report(snapshot: dict, args: argparse.Namespace) -> dict:
    events = snapshot.get("events", [])
    attendance = snapshot.get("attendance", [])
    members = snapshot.get("members", [])
    as_of = to_date(args.as_of) if args.as_of else date.today()

    points = prepare_attendance_data(events, attendance, as_of=as_of)
    attendance_forecaster = AttendanceForecaster()
    predictions = []
    if attendance_forecaster.train(points):
        last_date = max(p.date for p in points)
        predictions = attendance_forecaster.forecast(
            last_date,
            periods_ahead=args.periods,
            is_biweekly=not args.weekly,
        )

    growth = DgroupGrowthForecaster()
    profile = growth.analyze_conversion_patterns(members, attendance)
    parsed_members = parse_records(MemberRecord, members)
    seekers = sum(1 for m in parsed_members if m.final_tags.is_seeker)
    in_groups = sum(1 for m in parsed_members if m.has_dgroup_leader)

    volunteers = VolunteerPredictor()
    volunteers.analyze_patterns(select_volunteers(members), attendance, events, as_of=as_of)
    next_service = predictions[0].date if predictions else as_of + timedelta(days=7)

    annual = DgroupAnnualForecaster()
    annual.build_annual_series(members, attendance)

    return {
        "asOf": as_of.isoformat(),
        "attendance": {
            "trend": attendance_forecaster.trend_report(points).model_dump(mode="json", by_alias=True),
            "predictions": [p.model_dump(mode="json", by_alias=True) for p in predictions],
            "error": attendance_forecaster.last_error.value if attendance_forecaster.last_error else None,
        },
        "dgroupGrowth": {
            "profile": profile.model_dump(mode="json", by_alias=True),
            "snapshots": [
                s.model_dump(mode="json", by_alias=True)
                for s in growth.forecast_growth(seekers, in_groups, weeks_ahead=args.weeks)
            ],
        },
        "volunteers": {
            "summary": volunteers.get_summary().model_dump(mode="json", by_alias=True),
            "ministryAvailability": [
                m.model_dump(mode="json", by_alias=True)
                for m in volunteers.get_ministry_availability(next_service)
            ],
        },
        "annual": [r.model_dump(mode="json", by_alias=True) for r in annual.get_combined_with_increments(args.years)],
        "comparison": build_comparison_payload(events, attendance, members).model_dump(
            mode="json", by_alias=True, exclude_none=True
        ),
    }


def main():
    parser = argparse.ArgumentParser(description="Run branch forecasts over a JSON store snapshot")
    parser.add_argument("--input", required=True, help="Path to snapshot JSON with events, attendance, members")
    parser.add_argument("--periods", type=int, default=4, help="Services to forecast")
    parser.add_argument("--weekly", action="store_true", help="Services are weekly (default: every other week)")
    parser.add_argument("--weeks", type=int, default=12, help="Weeks of DGroup growth to simulate")
    parser.add_argument("--years", type=int, default=1, help="Years of annual totals to project")
    parser.add_argument("--as-of", default=None, help="Reference date YYYY-MM-DD (default: today)")
    args = parser.parse_args()

    configure_logging()

    path = Path(args.input)
    if not path.exists():
        logger.error("snapshot_not_found", path=str(path))
        sys.exit(1)

    snapshot = json.loads(path.read_text(encoding="utf-8"))
    report = build_report(snapshot, args)
    print(json.dumps(report, indent=2))


if __name__ == "__main__":
    main()
