"""Reshape raw store snapshots into the inputs the forecasters expect."""

from collections import Counter
from collections.abc import Iterable
from datetime import date
from typing import Any, Optional

import structlog

from branchcast.models.records import AttendancePoint, AttendanceRecord, EventRecord, MemberRecord, parse_records
from branchcast.utils.dates import to_date

logger = structlog.get_logger()


def prepare_attendance_data(
    events: Optional[Iterable[Any]],
    attendance: Optional[Iterable[Any]],
    as_of: Any = None,
) -> list[AttendancePoint]:
    """
    Headcount per past event, ready for ``AttendanceForecaster.train``.

    Only events dated on or before ``as_of`` (default: today) are kept, and
    events nobody checked into are dropped.
    """
    reference = to_date(as_of) or date.today()
    headcounts = Counter(r.event_id for r in parse_records(AttendanceRecord, attendance))

    points = []
    for event in parse_records(EventRecord, events):
        if event.date is None or event.date > reference:
            continue
        count = headcounts.get(event.id, 0)
        if count > 0:
            points.append(
                AttendancePoint(
                    date=event.date,
                    count=count,
                    event_type=event.event_type,
                    name=event.name,
                )
            )

    logger.debug("attendance_data_prepared", points=len(points), as_of=reference.isoformat())
    return points


def select_volunteers(members: Optional[Iterable[Any]]) -> list[MemberRecord]:
    """Members tagged as volunteers."""
    return [m for m in parse_records(MemberRecord, members) if m.final_tags.is_volunteer]
