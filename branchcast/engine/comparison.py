"""
Event Comparison — latest service against the services before it.

Builds the payload shared with the reporting exports: the most recent
``service`` event is the current one and up to three earlier services are
the comparison baseline. Volunteers are counted from attendance records
(the ministry served that day), not from member tags, so historical
services keep their original volunteer counts after tags change.
"""

from collections.abc import Iterable, Sequence
from typing import Any, Optional

import structlog

from branchcast.models.records import AttendanceRecord, EventRecord, MemberRecord, parse_records
from branchcast.models.reports import ComparisonCard, ComparisonPayload, EventSummary

from .forecasting.features import round_half_up

logger = structlog.get_logger()

SERVICE_EVENT_TYPE = "service"
PREVIOUS_SERVICES = 3
ELEVATE = "Elevate"
B1G = "B1G"


def _summarize(
    event: EventRecord,
    records: Sequence[AttendanceRecord],
    member_by_id: dict[str, MemberRecord],
) -> EventSummary:
    attendee_ids = {r.member_id for r in records if r.member_id}
    attendees = [member_by_id[i] for i in attendee_ids if i in member_by_id]
    regulars = [m for m in attendees if not m.final_tags.is_first_timer]

    return EventSummary(
        id=event.id,
        name=event.name,
        date=event.date.isoformat() if event.date else "",
        total=len(records),
        elevate=sum(1 for m in regulars if m.final_tags.age_category == ELEVATE),
        b1g=sum(1 for m in regulars if m.final_tags.age_category == B1G),
        first_timers=sum(1 for m in attendees if m.final_tags.is_first_timer),
        volunteers=sum(1 for r in records if r.is_volunteering),
    )


def build_comparison_payload(
    all_events: Optional[Iterable[Any]] = None,
    all_attendance: Optional[Iterable[Any]] = None,
    members: Optional[Iterable[Any]] = None,
    active_members: Optional[Iterable[Any]] = None,
) -> ComparisonPayload:
    """
    Compare the latest service with up to three previous services.

    Args:
        all_events: Every event record; only ``service`` events are compared
        all_attendance: Every attendance record
        members: Member records used for age and first-timer breakdowns
        active_members: Members counted as the attendance-rate denominator
            (default: all members)

    Returns:
        ComparisonPayload with ``current``, ``previous`` and one card per
        compared service. No services yields an empty payload.
    """
    services = [
        e for e in parse_records(EventRecord, all_events)
        if e.event_type == SERVICE_EVENT_TYPE and e.date is not None
    ]
    if not services:
        return ComparisonPayload()

    services.sort(key=lambda e: e.date, reverse=True)
    current, previous = services[0], services[1 : 1 + PREVIOUS_SERVICES]

    member_list = parse_records(MemberRecord, members)
    member_by_id = {m.id: m for m in member_list}
    denominator = len(list(active_members)) if active_members is not None else len(member_list)

    by_event: dict[str, list[AttendanceRecord]] = {}
    for record in parse_records(AttendanceRecord, all_attendance):
        if record.event_id:
            by_event.setdefault(record.event_id, []).append(record)

    summaries = [_summarize(e, by_event.get(e.id, []), member_by_id) for e in [current, *previous]]
    cards = [
        ComparisonCard(
            **summary.model_dump(),
            attendance_rate=round_half_up(summary.total / denominator * 100) if denominator else 0,
        )
        for summary in summaries
    ]

    logger.info(
        "comparison_payload_built",
        current_event=current.id,
        previous_events=len(previous),
        current_total=summaries[0].total,
    )
    return ComparisonPayload(cards=cards, current=summaries[0], previous=summaries[1:])
