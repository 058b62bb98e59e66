"""
Enumeration types for the forecasting engine.

All enums inherit from str to ensure JSON serialization compatibility with
the dashboards that render engine output.
"""

from enum import Enum


class ForecastErrorKind(str, Enum):
    """
    Why a forecasting operation degraded to a sentinel result.

    None of these are fatal: every engine operation still returns a
    well-typed value, and the kind lets callers tell "not enough history
    yet" apart from a numerical failure without parsing log text.
    """

    INSUFFICIENT_DATA = "insufficient_data"
    FIT_FAILURE = "fit_failure"
    PREDICT_BEFORE_TRAIN = "predict_before_train"


class TrendLabel(str, Enum):
    """Half-over-half attendance trend classification."""

    GROWING = "growing"
    DECLINING = "declining"
    STABLE = "stable"
    INSUFFICIENT_DATA = "insufficient_data"


class ReliabilityTier(str, Enum):
    """Volunteer reliability derived from attendance rate."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ConversionSource(str, Enum):
    """Where a DGroup conversion profile came from."""

    OBSERVED = "observed"
    DEFAULT = "default"
    UNANALYZED = "unanalyzed"


class ProjectionMethod(str, Enum):
    """How annual totals were projected forward."""

    POLYNOMIAL = "polynomial"
    FLAT = "flat"
