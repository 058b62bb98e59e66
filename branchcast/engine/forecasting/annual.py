"""
DGroup Annual Forecaster — yearly active leaders/members and projections.

A person counts toward a year if they checked in at least once during it.
Leaders are active members tagged ``isDgroupLeader``; members are active
people with a DGroup leader assigned.

Projection fits independent degree-2 polynomials for leaders and members
against the ordinal year index (0..N-1 rather than the calendar year, which
keeps the design matrix well scaled). With fewer than 3 years of history,
or when the fit fails, the last known totals are carried forward flat.
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date
from typing import Any, Optional

import structlog

from branchcast.config import Settings, get_settings
from branchcast.models.enums import ForecastErrorKind, ProjectionMethod
from branchcast.models.forecasts import AnnualIncrement, AnnualProjection, AnnualTotals, ForecastResult
from branchcast.models.records import AttendanceRecord, MemberRecord, parse_records

from .features import RegressionError, evaluate_polynomial, fit_polynomial, round_half_up

logger = structlog.get_logger()


def build_annual_series(
    members: Optional[Iterable[Any]],
    attendance: Optional[Iterable[Any]],
) -> list[AnnualTotals]:
    """Active leader/member totals per calendar year, ascending by year."""
    member_by_id = {m.id: m for m in parse_records(MemberRecord, members)}

    active_by_year: dict[int, set[str]] = defaultdict(set)
    skipped = 0
    for record in parse_records(AttendanceRecord, attendance):
        if record.timestamp is None or not record.member_id:
            skipped += 1
            continue
        active_by_year[record.timestamp.year].add(record.member_id)

    if skipped:
        logger.debug("attendance_without_timestamp_skipped", skipped=skipped)

    series = []
    for year in sorted(active_by_year):
        active = [member_by_id[i] for i in active_by_year[year] if i in member_by_id]
        series.append(
            AnnualTotals(
                year=year,
                leaders=sum(1 for m in active if m.final_tags.is_dgroup_leader),
                members=sum(1 for m in active if m.has_dgroup_leader),
            )
        )
    return series


def compute_increments(series: Sequence[AnnualTotals]) -> list[AnnualIncrement]:
    """Year-over-year deltas; the first year has no baseline and reports zero."""
    rows = []
    for idx, row in enumerate(series):
        if idx == 0:
            rows.append(AnnualIncrement(year=row.year, leaders=row.leaders, members=row.members))
            continue
        prev = series[idx - 1]
        rows.append(
            AnnualIncrement(
                year=row.year,
                leaders=row.leaders,
                members=row.members,
                leaders_inc=row.leaders - prev.leaders,
                members_inc=row.members - prev.members,
            )
        )
    return rows


def _flat_projection(series: Sequence[AnnualTotals], years_ahead: int) -> list[AnnualTotals]:
    last = series[-1] if series else AnnualTotals(year=date.today().year, leaders=0, members=0)
    return [
        AnnualTotals(year=last.year + step, leaders=last.leaders, members=last.members)
        for step in range(1, years_ahead + 1)
    ]


def project_annual_totals(
    series: Sequence[AnnualTotals],
    years_ahead: int = 1,
    settings: Optional[Settings] = None,
) -> ForecastResult[AnnualProjection]:
    """
    Project leader/member totals ``years_ahead`` years past the series.

    Returns:
        ForecastResult whose value is always populated. ``error`` is
        ``insufficient_data`` or ``fit_failure`` when the rows are a flat
        carry-forward instead of a polynomial projection.
    """
    settings = settings or get_settings()

    if len(series) < settings.annual_min_years:
        logger.warning(
            "annual_history_insufficient",
            years=len(series),
            required=settings.annual_min_years,
        )
        return ForecastResult(
            value=AnnualProjection(rows=_flat_projection(series, years_ahead), method=ProjectionMethod.FLAT),
            error=ForecastErrorKind.INSUFFICIENT_DATA,
            message=f"Need {settings.annual_min_years} years of history for a fit, got {len(series)}.",
        )

    x = list(range(len(series)))
    try:
        leaders_fit = fit_polynomial(x, [r.leaders for r in series], settings.annual_poly_degree)
        members_fit = fit_polynomial(x, [r.members for r in series], settings.annual_poly_degree)
    except RegressionError as e:
        logger.warning("annual_regression_failed", error=str(e), years=len(series))
        return ForecastResult(
            value=AnnualProjection(rows=_flat_projection(series, years_ahead), method=ProjectionMethod.FLAT),
            error=ForecastErrorKind.FIT_FAILURE,
            message=str(e),
        )

    last_index = x[-1]
    last_year = series[-1].year
    rows = []
    for step in range(1, years_ahead + 1):
        idx = last_index + step
        rows.append(
            AnnualTotals(
                year=last_year + step,
                leaders=max(0, round_half_up(evaluate_polynomial(leaders_fit, idx))),
                members=max(0, round_half_up(evaluate_polynomial(members_fit, idx))),
            )
        )

    logger.info("annual_totals_projected", history_years=len(series), years_ahead=years_ahead)
    return ForecastResult(value=AnnualProjection(rows=rows, method=ProjectionMethod.POLYNOMIAL))


class DgroupAnnualForecaster:
    """
    Year-by-year DGroup totals with projected growth.

    Example:
        >>> forecaster = DgroupAnnualForecaster()
        >>> forecaster.build_annual_series(members, attendance)
        >>> rows = forecaster.get_combined_with_increments(years_ahead=2)
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.series: list[AnnualTotals] = []

    def build_annual_series(
        self,
        members: Optional[Iterable[Any]],
        attendance: Optional[Iterable[Any]],
    ) -> list[AnnualTotals]:
        self.series = build_annual_series(members, attendance)
        return self.series

    def compute_increments(self, series: Optional[Sequence[AnnualTotals]] = None) -> list[AnnualIncrement]:
        return compute_increments(self.series if series is None else series)

    def project(self, years_ahead: int = 1) -> ForecastResult[AnnualProjection]:
        return project_annual_totals(self.series, years_ahead, self.settings)

    def forecast_totals(self, years_ahead: int = 1) -> list[AnnualTotals]:
        return self.project(years_ahead).value.rows

    def get_combined_with_increments(self, years_ahead: int = 1) -> list[AnnualIncrement]:
        """Historical rows then forecast rows, each increment relative to the row before it."""
        combined = self.compute_increments()
        prev: Optional[AnnualTotals] = combined[-1] if combined else None

        for row in self.forecast_totals(years_ahead):
            combined.append(
                AnnualIncrement(
                    year=row.year,
                    leaders=row.leaders,
                    members=row.members,
                    leaders_inc=row.leaders - prev.leaders if prev else 0,
                    members_inc=row.members - prev.members if prev else 0,
                )
            )
            prev = row
        return combined
