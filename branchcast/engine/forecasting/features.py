"""
Feature extraction and regression helpers shared by the forecasters.

The composite feature below collapses several calendar signals into a single
scalar so a one-dimensional polynomial can be fitted against it. Training
and prediction must both go through ``composite_feature``; a model fitted on
one formula and evaluated on another produces meaningless counts.
"""

import math
from collections.abc import Sequence
from datetime import date

import numpy as np
from sklearn.linear_model import LinearRegression
from sklearn.pipeline import make_pipeline
from sklearn.preprocessing import PolynomialFeatures

from branchcast.models.forecasts import FeatureVector, TargetStats
from branchcast.utils.dates import day_of_week

# Composite weights: week-of-year, day-of-week, sin(month), special flag.
# The trend index is added unscaled.
WEEK_WEIGHT = 0.3
DAY_WEIGHT = 10.0
MONTH_SIN_WEIGHT = 20.0
SPECIAL_WEIGHT = 15.0

SPECIAL_EVENT_TYPE = "special"


class RegressionError(ValueError):
    """Raised when a polynomial fit cannot produce usable coefficients."""


def extract_features(d: date, event_type: str = "regular") -> FeatureVector:
    """Calendar and seasonal features for a single date."""
    dow = day_of_week(d)
    week = d.isocalendar()[1]
    month = d.month - 1
    return FeatureVector(
        day_of_week=dow,
        week_of_year=week,
        month=month,
        is_weekend=1 if dow in (0, 6) else 0,
        is_special=1 if event_type == SPECIAL_EVENT_TYPE else 0,
        month_sin=math.sin((month / 12) * 2 * math.pi),
        month_cos=math.cos((month / 12) * 2 * math.pi),
        week_sin=math.sin((week / 52) * 2 * math.pi),
        week_cos=math.cos((week / 52) * 2 * math.pi),
    )


def composite_feature(features: FeatureVector, trend_index: int) -> float:
    """Single regression input combining seasonality and a linear trend term."""
    return (
        features.week_of_year * WEEK_WEIGHT
        + features.day_of_week * DAY_WEIGHT
        + features.month_sin * MONTH_SIN_WEIGHT
        + features.is_special * SPECIAL_WEIGHT
        + trend_index
    )


def target_stats(values: Sequence[float]) -> TargetStats:
    """Mean, population standard deviation, min and max of ``values``."""
    arr = np.asarray(values, dtype=np.float64)
    return TargetStats(
        mean=float(np.mean(arr)),
        std_dev=float(np.std(arr)),
        min=float(np.min(arr)),
        max=float(np.max(arr)),
    )


def fit_polynomial(x: Sequence[float], y: Sequence[float], degree: int) -> tuple[float, ...]:
    """
    Least-squares polynomial fit of ``y`` against scalar ``x``.

    Returns:
        Coefficients in ascending power order (constant term first)

    Raises:
        RegressionError: On empty, mismatched or non-finite input, or when the
            solver fails or yields non-finite coefficients
    """
    X = np.asarray(x, dtype=np.float64).reshape(-1, 1)
    target = np.asarray(y, dtype=np.float64)

    if X.shape[0] == 0 or X.shape[0] != target.shape[0]:
        raise RegressionError(f"need matching non-empty samples, got {X.shape[0]} x and {target.shape[0]} y")
    if not (np.isfinite(X).all() and np.isfinite(target).all()):
        raise RegressionError("inputs contain NaN or infinite values")

    pipeline = make_pipeline(
        PolynomialFeatures(degree=degree, include_bias=False),
        LinearRegression(),
    )
    try:
        pipeline.fit(X, target)
    except (ValueError, np.linalg.LinAlgError) as e:
        raise RegressionError(str(e)) from e

    regression = pipeline.named_steps["linearregression"]
    coefficients = (float(regression.intercept_), *(float(c) for c in regression.coef_))
    if not all(math.isfinite(c) for c in coefficients):
        raise RegressionError("fit produced non-finite coefficients")
    return coefficients


def evaluate_polynomial(coefficients: Sequence[float], x: float) -> float:
    return float(np.polynomial.polynomial.polyval(x, coefficients))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounding up."""
    return int(math.floor(value + 0.5))
