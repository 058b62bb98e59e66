"""
Reporting payload models.

The event comparison payload is consumed by existing reporting exports, so
the summary keys (``id``, ``name``, ``date``, ``total``, ``elevate``,
``b1g``, ``firstTimers``, ``volunteers``) must stay stable.
"""

from typing import Optional

from pydantic import Field

from .forecasts import EngineModel


class EventSummary(EngineModel):
    """Headline attendance figures for one service."""

    id: Optional[str] = None
    name: str = ""
    date: str = ""
    total: int = 0
    elevate: int = 0
    # to_camel would emit "b1G"; reporting consumers read "b1g"
    b1g: int = Field(default=0, alias="b1g")
    first_timers: int = 0
    volunteers: int = 0


class ComparisonCard(EventSummary):
    """Event summary with attendance as a share of the membership."""

    attendance_rate: int = 0


class ComparisonPayload(EngineModel):
    """Most recent service compared against the services before it."""

    cards: list[ComparisonCard] = Field(default_factory=list)
    current: Optional[EventSummary] = None
    previous: list[EventSummary] = Field(default_factory=list)
