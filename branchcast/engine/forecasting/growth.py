"""
DGroup Growth Forecaster — seeker conversion and week-by-week simulation.

A "conversion" is a member tagged as a seeker who already has a DGroup
leader assigned. That is an approximation of the real seeker → member
transition (assignment is not the same as conversion), kept until the
branch defines the lifecycle more precisely.
"""

import math
from collections import Counter
from collections.abc import Iterable
from typing import Any, Optional

import structlog

from branchcast.config import Settings, get_settings
from branchcast.models.enums import ConversionSource
from branchcast.models.forecasts import ConversionProfile, GrowthSnapshot
from branchcast.models.records import AttendanceRecord, MemberRecord, parse_records

from .features import round_half_up

logger = structlog.get_logger()

WEEKS_PER_MONTH = 4


def default_conversion_profile(settings: Optional[Settings] = None) -> ConversionProfile:
    """Cold-start profile used when the branch has no conversion history."""
    settings = settings or get_settings()
    return ConversionProfile(
        conversion_rate=settings.default_conversion_rate,
        avg_time_to_convert=settings.default_weeks_to_convert,
        source=ConversionSource.DEFAULT,
    )


def analyze_conversions(
    members: Optional[Iterable[Any]],
    attendance: Optional[Iterable[Any]],
    settings: Optional[Settings] = None,
) -> ConversionProfile:
    """
    Derive the conversion rate and latency from member tags.

    Rate is conversions over all seekers. Latency is the mean number of
    attendance records per converted member, a proxy for the weeks attended
    before joining a DGroup.
    """
    members = parse_records(MemberRecord, members)
    seekers = [m for m in members if m.final_tags.is_seeker]
    conversions = [m for m in seekers if m.has_dgroup_leader]

    if not conversions:
        profile = default_conversion_profile(settings).model_copy(update={"total_seekers": len(seekers)})
        logger.info(
            "conversion_defaults_applied",
            seekers=len(seekers),
            rate=profile.conversion_rate,
            avg_weeks=profile.avg_time_to_convert,
        )
        return profile

    attended = Counter(a.member_id for a in parse_records(AttendanceRecord, attendance))
    conversion_times = [attended.get(m.id, 0) for m in conversions]

    profile = ConversionProfile(
        conversion_rate=len(conversions) / max(len(seekers), 1),
        avg_time_to_convert=sum(conversion_times) / len(conversion_times),
        conversions=len(conversions),
        total_seekers=len(seekers),
        source=ConversionSource.OBSERVED,
    )
    logger.info(
        "dgroup_conversion_analyzed",
        rate=f"{profile.conversion_rate * 100:.1f}%",
        avg_weeks=round(profile.avg_time_to_convert, 1),
        conversions=profile.conversions,
        seekers=profile.total_seekers,
    )
    return profile


class DgroupGrowthForecaster:
    """
    Simulates DGroup growth from a learned conversion profile.

    Until ``analyze_conversion_patterns`` runs, the profile has a zero
    conversion rate, so a simulation only accumulates new seekers.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.profile = ConversionProfile(conversion_rate=0.0, avg_time_to_convert=0.0)

    @property
    def conversion_rate(self) -> float:
        return self.profile.conversion_rate

    @property
    def avg_time_to_convert(self) -> float:
        return self.profile.avg_time_to_convert

    def analyze_conversion_patterns(
        self,
        members: Optional[Iterable[Any]],
        attendance: Optional[Iterable[Any]],
    ) -> ConversionProfile:
        self.profile = analyze_conversions(members, attendance, self.settings)
        return self.profile

    def forecast_growth(
        self,
        current_seekers: float,
        current_members: float,
        weeks_ahead: int = 12,
    ) -> list[GrowthSnapshot]:
        """
        Simulate weekly seeker inflow and periodic conversions.

        Every ``ceil(avg_time_to_convert)`` weeks, ``floor(seekers x rate)``
        seekers become members. A snapshot is recorded every 4 weeks.
        """
        # A zero latency converts every week
        interval = max(1, math.ceil(self.profile.avg_time_to_convert))
        snapshot_every = self.settings.growth_snapshot_weeks

        seekers = float(current_seekers)
        members = float(current_members)
        snapshots = []

        for week in range(1, weeks_ahead + 1):
            seekers += self.settings.weekly_seeker_inflow

            if week % interval == 0:
                converting = math.floor(seekers * self.profile.conversion_rate)
                seekers -= converting
                members += converting

            if week % snapshot_every == 0:
                snapshots.append(
                    GrowthSnapshot(
                        week=week,
                        month=math.ceil(week / WEEKS_PER_MONTH),
                        seekers=round_half_up(seekers),
                        members=round_half_up(members),
                        total_growth=round_half_up(members - current_members),
                    )
                )

        return snapshots
