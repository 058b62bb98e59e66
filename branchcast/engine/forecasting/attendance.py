"""
Attendance Forecaster — polynomial attendance curve with decaying confidence.

Learns a smoothed relationship between calendar/seasonal position and the
headcount of past services, then projects headcounts for upcoming services.

Method:
    1. Keep records with a date and a count; require at least 5
    2. Sort by date and compute target statistics (mean, std, min, max)
    3. Collapse each date into one composite scalar (see features.py),
       with the record's ordinal index as a trend term
    4. Fit a degree-3 polynomial of count against the composite
    5. Predict future services at the continued trend index and clamp to
       [0.8 x min, 1.2 x max] of the training counts, since cubic fits run
       away quickly outside the training range. The reported integer count
       itself stays inside that window.

``fit_attendance_model`` and ``forecast_attendance`` are pure; the
``AttendanceForecaster`` class only remembers the last successful fit.
"""

import math
from collections.abc import Iterable, Iterator
from datetime import date, timedelta
from typing import Any, Optional

import structlog
from scipy import stats

from branchcast.config import Settings, get_settings
from branchcast.models.enums import ForecastErrorKind, TrendLabel
from branchcast.models.forecasts import (
    AttendancePrediction,
    FeatureVector,
    ForecastResult,
    TargetStats,
    TrainedModel,
    TrendReport,
)
from branchcast.models.records import AttendancePoint, parse_records
from branchcast.utils.dates import to_date

from .features import (
    SPECIAL_EVENT_TYPE,
    RegressionError,
    composite_feature,
    extract_features,
    fit_polynomial,
    round_half_up,
    target_stats,
)

logger = structlog.get_logger()


def _valid_points(records: Optional[Iterable[Any]]) -> list[AttendancePoint]:
    points = parse_records(AttendancePoint, records)
    valid = [p for p in points if p.date is not None and p.count is not None]
    return sorted(valid, key=lambda p: p.date)


def fit_attendance_model(
    records: Optional[Iterable[Any]],
    settings: Optional[Settings] = None,
) -> ForecastResult[TrainedModel]:
    """
    Fit an attendance curve to historical headcounts.

    Args:
        records: Sequence of ``{date, count, eventType}`` points
        settings: Engine settings (default: cached global settings)

    Returns:
        ForecastResult holding the TrainedModel, or an ``insufficient_data``
        / ``fit_failure`` error
    """
    settings = settings or get_settings()
    points = _valid_points(records)

    if len(points) < settings.attendance_min_records:
        logger.warning(
            "insufficient_training_data",
            valid_records=len(points),
            required=settings.attendance_min_records,
        )
        return ForecastResult(
            error=ForecastErrorKind.INSUFFICIENT_DATA,
            message=f"Need at least {settings.attendance_min_records} records with date and count, got {len(points)}.",
        )

    counts = [float(p.count) for p in points]
    composites = [
        composite_feature(extract_features(p.date, p.event_type), idx)
        for idx, p in enumerate(points)
    ]

    try:
        coefficients = fit_polynomial(composites, counts, settings.attendance_poly_degree)
    except RegressionError as e:
        logger.error("attendance_model_fit_failed", error=str(e), samples=len(points))
        return ForecastResult(error=ForecastErrorKind.FIT_FAILURE, message=str(e))

    summary = target_stats(counts)
    model = TrainedModel(
        coefficients=coefficients,
        degree=settings.attendance_poly_degree,
        stats=summary,
        samples=len(points),
    )
    logger.info(
        "attendance_model_trained",
        samples=len(points),
        avg_attendance=round(summary.mean, 1),
        range=f"{summary.min:g}-{summary.max:g}",
    )
    return ForecastResult(value=model)


def calculate_confidence(
    periods_ahead: int,
    event_type: str = "regular",
    settings: Optional[Settings] = None,
) -> float:
    """Confidence decays linearly with distance and never drops below the floor."""
    settings = settings or get_settings()
    base = (
        settings.special_base_confidence
        if event_type == SPECIAL_EVENT_TYPE
        else settings.regular_base_confidence
    )
    decayed = base - settings.confidence_decay_per_period * periods_ahead
    return round(max(settings.confidence_floor, decayed), 4)


def _iter_predictions(
    model: TrainedModel,
    start: date,
    periods_ahead: int,
    event_type: str,
    is_biweekly: bool,
    settings: Settings,
) -> Iterator[AttendancePrediction]:
    week_step = 2 if is_biweekly else 1
    lower = model.stats.min * settings.clamp_lower_factor
    upper = model.stats.max * settings.clamp_upper_factor
    # Integer counts inside [lower, upper]; empty only for fractional training counts
    count_floor, count_ceiling = math.ceil(lower), math.floor(upper)

    for period in range(1, periods_ahead + 1):
        future = start + timedelta(weeks=period * week_step)
        features = extract_features(future, event_type)
        # Trend index continues where the training records left off
        composite = composite_feature(features, model.samples - 1 + period)

        raw = model.predict(composite)
        if not math.isfinite(raw):
            raw = model.stats.mean
        count = round_half_up(max(lower, min(upper, raw)))
        if count_floor <= count_ceiling:
            count = max(count_floor, min(count_ceiling, count))

        yield AttendancePrediction(
            date=future,
            date_label=future.strftime("%b %d"),
            count=count,
            confidence=calculate_confidence(period, event_type, settings),
            is_special=features.is_special == 1,
            week_number=period,
        )


def forecast_attendance(
    model: TrainedModel,
    start_date: Any,
    periods_ahead: int = 4,
    event_type: str = "regular",
    is_biweekly: bool = True,
    settings: Optional[Settings] = None,
) -> list[AttendancePrediction]:
    """
    Predict headcounts for upcoming services.

    Args:
        model: A model returned by ``fit_attendance_model``
        start_date: DateLike the forecast counts forward from
        periods_ahead: Number of services to predict
        event_type: "regular" or "special"
        is_biweekly: Services every other week (default) or weekly

    Returns:
        One prediction per period, in date order
    """
    settings = settings or get_settings()
    start = to_date(start_date)
    if start is None:
        logger.error("invalid_forecast_start_date", start_date=str(start_date))
        return []
    return list(_iter_predictions(model, start, periods_ahead, event_type, is_biweekly, settings))


def _count_sorted(records: Optional[Iterable[Any]]) -> list[AttendancePoint]:
    points = [p for p in parse_records(AttendancePoint, records) if p.count is not None]
    # Undated points keep their relative order at the end
    return sorted(points, key=lambda p: (p.date is None, p.date or date.min))


def trend_report(
    records: Optional[Iterable[Any]],
    settings: Optional[Settings] = None,
) -> TrendReport:
    """
    Classify the attendance trend by comparing the two halves of history.

    Second-half mean more than 10% above the first → growing, more than 10%
    below → declining, otherwise stable. The least-squares slope over the
    ordered counts and its p-value are reported alongside for context.
    """
    settings = settings or get_settings()
    points = _count_sorted(records)
    n = len(points)
    if n < settings.trend_min_records:
        return TrendReport(trend=TrendLabel.INSUFFICIENT_DATA, samples=n)

    counts = [float(p.count) for p in points]
    mid = n // 2
    first_avg = sum(counts[:mid]) / mid
    second_avg = sum(counts[mid:]) / (n - mid)

    if first_avg != 0:
        percent_change: Optional[float] = (second_avg - first_avg) / abs(first_avg) * 100
    else:
        percent_change = None

    threshold = settings.trend_change_threshold_pct
    if percent_change is None:
        trend = TrendLabel.GROWING if second_avg > 0 else TrendLabel.STABLE
    elif percent_change > threshold:
        trend = TrendLabel.GROWING
    elif percent_change < -threshold:
        trend = TrendLabel.DECLINING
    else:
        trend = TrendLabel.STABLE

    slope: Optional[float] = None
    p_value: Optional[float] = None
    if len(set(counts)) > 1:
        regression = stats.linregress(list(range(n)), counts)
        slope = round(float(regression.slope), 6)
        p_value = round(float(regression.pvalue), 6)

    return TrendReport(
        trend=trend,
        samples=n,
        first_half_mean=round(first_avg, 4),
        second_half_mean=round(second_avg, 4),
        percent_change=round(percent_change, 2) if percent_change is not None else None,
        slope=slope,
        p_value=p_value,
    )


class AttendanceForecaster:
    """
    Stateful wrapper around the attendance curve.

    Keeps the last successfully trained model: a failed retrain leaves the
    previous model in place so forecasts keep working.

    Example:
        >>> forecaster = AttendanceForecaster()
        >>> if forecaster.train(prepare_attendance_data(events, attendance)):
        ...     upcoming = forecaster.forecast("2024-06-01", periods_ahead=4)
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.model: Optional[TrainedModel] = None
        self.last_error: Optional[ForecastErrorKind] = None
        self.logger = structlog.get_logger()

    @property
    def stats(self) -> Optional[TargetStats]:
        return self.model.stats if self.model else None

    @property
    def is_trained(self) -> bool:
        return self.model is not None

    def extract_features(self, date_value: Any, event_type: str = "regular") -> Optional[FeatureVector]:
        d = to_date(date_value)
        return extract_features(d, event_type) if d else None

    def train(self, records: Optional[Iterable[Any]]) -> bool:
        """Fit on historical ``{date, count, eventType}`` points; False when data is too thin or the fit fails."""
        result = fit_attendance_model(records, self.settings)
        self.last_error = result.error
        if result.ok:
            self.model = result.value
        return result.ok

    def forecast(
        self,
        start_date: Any,
        periods_ahead: int = 4,
        event_type: str = "regular",
        is_biweekly: bool = True,
    ) -> list[AttendancePrediction]:
        if self.model is None:
            self.last_error = ForecastErrorKind.PREDICT_BEFORE_TRAIN
            self.logger.error("attendance_model_not_trained")
            return []
        return forecast_attendance(
            self.model,
            start_date,
            periods_ahead=periods_ahead,
            event_type=event_type,
            is_biweekly=is_biweekly,
            settings=self.settings,
        )

    def calculate_confidence(self, periods_ahead: int, event_type: str = "regular") -> float:
        return calculate_confidence(periods_ahead, event_type, self.settings)

    def analyze_trend(self, records: Optional[Iterable[Any]]) -> TrendLabel:
        return trend_report(records, self.settings).trend

    def trend_report(self, records: Optional[Iterable[Any]]) -> TrendReport:
        return trend_report(records, self.settings)
