"""
DateLike normalization.

Records exported from the document store carry dates in several shapes:
plain ``date``/``datetime`` objects, ISO strings, epoch milliseconds, store
timestamp wrappers exposing a conversion method, or ``{"seconds": ...}``
mappings from JSON exports. Everything is normalized here, once, when a
record is parsed, so the forecasting components only ever see ``datetime``.

Epoch milliseconds and ``{"seconds": ...}`` mappings carry no zone and are
read as UTC, so yearly DGroup totals assign a check-in to its UTC year.
ISO strings keep whatever offset they state; naive ones stay naive.
"""

import math
from collections.abc import Mapping
from datetime import date, datetime, time, timezone
from typing import Any, Optional

import structlog

logger = structlog.get_logger()

# Conversion hooks exposed by store timestamp wrappers, tried in order
_CONVERSION_METHODS = ("to_datetime", "ToDatetime", "toDate", "to_date")


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Convert a DateLike value to a ``datetime``.

    Returns None for missing or unparseable values instead of raising.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, (int, float)):
        return _from_epoch_millis(value)
    if isinstance(value, str):
        return _from_iso_string(value)
    if isinstance(value, Mapping):
        return _from_seconds_mapping(value)

    for method_name in _CONVERSION_METHODS:
        convert = getattr(value, method_name, None)
        if not callable(convert):
            continue
        try:
            converted = convert()
        except Exception as e:
            logger.debug("timestamp_conversion_failed", method=method_name, error=str(e))
            return None
        # Wrappers must yield a concrete calendar value, not another wrapper
        if isinstance(converted, (date, str, int, float)):
            return to_datetime(converted)
        return None
    return None


def to_date(value: Any) -> Optional[date]:
    """Convert a DateLike value to a calendar ``date``."""
    dt = to_datetime(value)
    return dt.date() if dt is not None else None


def day_of_week(d: date) -> int:
    """Day of week with Sunday = 0 through Saturday = 6."""
    return d.isoweekday() % 7


def _from_epoch_millis(value: float) -> Optional[datetime]:
    if not math.isfinite(value):
        return None
    try:
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _from_iso_string(value: str) -> Optional[datetime]:
    text = value.strip()
    if not text:
        return None
    if len(text) == 10:
        try:
            return datetime.combine(date.fromisoformat(text), time())
        except ValueError:
            return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _from_seconds_mapping(value: Mapping) -> Optional[datetime]:
    seconds = value.get("seconds", value.get("_seconds"))
    if seconds is None or isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
        return None
    nanos = value.get("nanoseconds", value.get("_nanoseconds")) or 0
    try:
        return datetime.fromtimestamp(seconds + nanos / 1e9, tz=timezone.utc)
    except (OverflowError, OSError, ValueError, TypeError):
        return None
