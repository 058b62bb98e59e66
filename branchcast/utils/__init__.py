"""Utility modules for logging and date normalization."""

from branchcast.utils.dates import day_of_week, to_date, to_datetime
from branchcast.utils.logging import configure_logging

__all__ = ["configure_logging", "to_date", "to_datetime", "day_of_week"]
