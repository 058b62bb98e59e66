"""
Volunteer Availability Predictor — day preference and reliability mining.

For each volunteer, attendance records are joined to events to recover the
dates served. From those:

- attendance rate = services attended / past events (denominator floored at 1)
- preferred day = most frequent day of week; ties go to the lowest day index
  (Sunday = 0), and a volunteer with no dated attendance has no preference
- reliability = high (rate >= 0.8), medium (>= 0.5), otherwise low

Ministry statistics are folded from the finished patterns into a read-only
mapping, so a partially processed volunteer never leaks into the totals.
"""

from collections import Counter, defaultdict
from collections.abc import Iterable, Mapping
from datetime import date
from functools import reduce
from types import MappingProxyType
from typing import Any, Optional

import structlog

from branchcast.config import Settings, get_settings
from branchcast.models.enums import ReliabilityTier
from branchcast.models.forecasts import (
    AvailabilityPrediction,
    MinistryAvailability,
    MinistryStats,
    MinistryVolunteer,
    VolunteerPattern,
    VolunteerSummary,
)
from branchcast.models.records import AttendanceRecord, EventRecord, MemberRecord, parse_records
from branchcast.utils.dates import day_of_week, to_date

logger = structlog.get_logger()

MOST_RELIABLE_LIMIT = 5


def classify_reliability(rate: float, settings: Optional[Settings] = None) -> ReliabilityTier:
    settings = settings or get_settings()
    if rate >= settings.high_reliability_rate:
        return ReliabilityTier.HIGH
    if rate >= settings.medium_reliability_rate:
        return ReliabilityTier.MEDIUM
    return ReliabilityTier.LOW


def preferred_day(dates: Iterable[date]) -> Optional[int]:
    """Most frequent day of week (Sunday = 0), lowest index on ties."""
    frequency = Counter(day_of_week(d) for d in dates)
    if not frequency:
        return None
    top = max(frequency.values())
    return min(day for day, count in frequency.items() if count == top)


def _add_to_ministries(
    stats: Mapping[str, MinistryStats],
    pattern: VolunteerPattern,
) -> dict[str, MinistryStats]:
    updated = dict(stats)
    entry = MinistryVolunteer(
        id=pattern.volunteer_id,
        name=pattern.name,
        rate=pattern.attendance_rate,
        reliability=pattern.reliability,
    )
    for ministry in dict.fromkeys(m for m in pattern.ministries if m):
        current = updated.get(ministry) or MinistryStats(name=ministry)
        updated[ministry] = current.model_copy(
            update={
                "total_volunteers": current.total_volunteers + 1,
                "high_reliability": current.high_reliability
                + (1 if pattern.reliability == ReliabilityTier.HIGH else 0),
                "volunteers": (*current.volunteers, entry),
            }
        )
    return updated


def aggregate_ministry_stats(patterns: Iterable[VolunteerPattern]) -> Mapping[str, MinistryStats]:
    """Fold volunteer patterns into per-ministry statistics."""
    folded = reduce(_add_to_ministries, patterns, {})
    return MappingProxyType(
        {
            name: stats.model_copy(
                update={
                    "avg_attendance_rate": sum(v.rate for v in stats.volunteers) / len(stats.volunteers)
                }
            )
            for name, stats in folded.items()
        }
    )


class VolunteerPredictor:
    """
    Predicts which volunteers are likely to serve on a given date.

    Patterns are rebuilt wholesale by every ``analyze_patterns`` call.

    Example:
        >>> predictor = VolunteerPredictor()
        >>> predictor.analyze_patterns(select_volunteers(members), attendance, events)
        >>> staffing = predictor.get_ministry_availability("2024-06-01")
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.patterns: Mapping[str, VolunteerPattern] = MappingProxyType({})
        self.ministry_stats: Mapping[str, MinistryStats] = MappingProxyType({})
        self.logger = structlog.get_logger()

    def analyze_patterns(
        self,
        volunteers: Optional[Iterable[Any]],
        attendance: Optional[Iterable[Any]],
        events: Optional[Iterable[Any]],
        as_of: Any = None,
    ) -> Mapping[str, VolunteerPattern]:
        """
        Build per-volunteer patterns and per-ministry statistics.

        Args:
            volunteers: Member records of the volunteers to analyze
            attendance: All attendance records
            events: All events; only those dated on or before ``as_of`` count
                toward the attendance-rate denominator
            as_of: DateLike reference date (default: today)

        Returns:
            Read-only mapping of volunteer id to VolunteerPattern
        """
        reference = to_date(as_of) or date.today()
        volunteers = parse_records(MemberRecord, volunteers)
        events = parse_records(EventRecord, events)

        event_dates: dict[str, date] = {}
        for event in events:
            if event.date is not None:
                event_dates.setdefault(event.id, event.date)
        past_events = sum(1 for e in events if e.date is not None and e.date <= reference)

        served_on: dict[str, list[date]] = defaultdict(list)
        for record in parse_records(AttendanceRecord, attendance):
            served = event_dates.get(record.event_id)
            if record.member_id and served is not None:
                served_on[record.member_id].append(served)

        patterns: dict[str, VolunteerPattern] = {}
        for volunteer in volunteers:
            dates = served_on.get(volunteer.id, [])
            rate = len(dates) / max(past_events, 1)
            patterns[volunteer.id] = VolunteerPattern(
                volunteer_id=volunteer.id,
                name=volunteer.full_name,
                attendance_rate=rate,
                preferred_day=preferred_day(dates),
                total_services=len(dates),
                reliability=classify_reliability(rate, self.settings),
                ministries=volunteer.final_tags.volunteer_ministry,
            )

        self.patterns = MappingProxyType(patterns)
        self.ministry_stats = aggregate_ministry_stats(patterns.values())

        self.logger.info(
            "volunteer_patterns_analyzed",
            volunteers=len(patterns),
            ministries=len(self.ministry_stats),
            past_events=past_events,
        )
        return self.patterns

    def calculate_reliability(self, rate: float) -> ReliabilityTier:
        return classify_reliability(rate, self.settings)

    def predict_availability(
        self,
        target_date: Any,
        filter_ministry: Optional[str] = None,
    ) -> list[AvailabilityPrediction]:
        """
        Probability each volunteer serves on ``target_date``, highest first.

        The attendance rate is boosted by 1.2 on the volunteer's preferred
        day and capped at 0.95.
        """
        target = to_date(target_date)
        if target is None:
            self.logger.warning("invalid_availability_date", target_date=str(target_date))
            return []
        dow = day_of_week(target)

        predictions = []
        for volunteer_id, pattern in self.patterns.items():
            if filter_ministry and filter_ministry not in pattern.ministries:
                continue

            boost = self.settings.preferred_day_boost if pattern.preferred_day == dow else 1.0
            probability = min(self.settings.max_availability_probability, pattern.attendance_rate * boost)

            predictions.append(
                AvailabilityPrediction(
                    volunteer_id=volunteer_id,
                    name=pattern.name,
                    probability=round(probability, 4),
                    reliability=pattern.reliability,
                    is_likely_available=probability > self.settings.likely_available_threshold,
                    ministries=pattern.ministries,
                )
            )

        return sorted(predictions, key=lambda p: p.probability, reverse=True)

    def get_ministry_availability(self, target_date: Any) -> list[MinistryAvailability]:
        """Predicted staffing level for every known ministry."""
        availability = []
        for ministry, stats in self.ministry_stats.items():
            predictions = self.predict_availability(target_date, ministry)
            available = sum(1 for p in predictions if p.is_likely_available)
            availability.append(
                MinistryAvailability(
                    ministry=ministry,
                    total_volunteers=stats.total_volunteers,
                    likely_available=available,
                    availability_rate=round(available / max(stats.total_volunteers, 1) * 100, 1),
                    predictions=predictions,
                )
            )
        return availability

    def get_summary(self) -> VolunteerSummary:
        volunteers = list(self.patterns.values())
        total = len(volunteers)
        average = sum(v.attendance_rate for v in volunteers) / total if total else 0.0

        return VolunteerSummary(
            total=total,
            high_reliability=sum(1 for v in volunteers if v.reliability == ReliabilityTier.HIGH),
            average_attendance_rate=average,
            most_reliable=sorted(volunteers, key=lambda v: v.attendance_rate, reverse=True)[:MOST_RELIABLE_LIMIT],
            ministries=list(self.ministry_stats.values()),
        )
