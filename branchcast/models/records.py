"""
Input record models.

These mirror the documents exported from the branch's document store
(members, events, attendance check-ins). Keys arrive in camelCase; unknown
keys are ignored so store schema additions never break the engine. Dates
are normalized through ``branchcast.utils.dates`` as records are parsed.
"""

import datetime as dt
from collections.abc import Iterable, Mapping
from typing import Any, Optional, TypeVar

import structlog
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from branchcast.utils.dates import to_date, to_datetime

logger = structlog.get_logger()

NO_MINISTRY = "N/A"


class StoreRecord(BaseModel):
    """Base for records read from the document store."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
        coerce_numbers_to_str=True,
    )


class FinalTags(StoreRecord):
    """
    Tags assigned to a member after onboarding review.

    Attributes:
        is_seeker: Member is exploring faith and not yet in a DGroup
        is_dgroup_leader: Member leads a DGroup
        is_volunteer: Member serves in at least one ministry
        is_first_timer: Member attended for the first time recently
        volunteer_ministry: Ministries the member serves in, in order
        age_category: Age bracket label (e.g. "Elevate", "B1G")
    """

    is_seeker: bool = False
    is_dgroup_leader: bool = False
    is_volunteer: bool = False
    is_first_timer: bool = False
    volunteer_ministry: tuple[str, ...] = ()
    age_category: Optional[str] = None

    @field_validator("is_seeker", "is_dgroup_leader", "is_volunteer", "is_first_timer", mode="before")
    @classmethod
    def none_is_false(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("volunteer_ministry", mode="before")
    @classmethod
    def coerce_ministries(cls, v: Any) -> Any:
        if v is None:
            return ()
        if isinstance(v, str):
            return (v,) if v else ()
        return v


class MemberRecord(StoreRecord):
    """A branch member."""

    id: str
    first_name: str = ""
    last_name: str = ""
    gender: Optional[str] = None
    final_tags: FinalTags = Field(default_factory=FinalTags)
    dgroup_leader: Optional[str] = None

    @field_validator("final_tags", mode="before")
    @classmethod
    def missing_tags(cls, v: Any) -> Any:
        return FinalTags() if v is None else v

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def none_is_blank(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def has_dgroup_leader(self) -> bool:
        return bool(self.dgroup_leader)


class EventRecord(StoreRecord):
    """A scheduled service or event."""

    id: str
    date: Optional[dt.date] = None
    event_type: str = Field(
        default="regular",
        validation_alias=AliasChoices("eventType", "event_type", "type"),
    )
    name: str = ""

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, v: Any) -> Optional[dt.date]:
        return to_date(v)

    @field_validator("event_type", mode="before")
    @classmethod
    def default_event_type(cls, v: Any) -> Any:
        return v or "regular"

    @field_validator("name", mode="before")
    @classmethod
    def none_is_blank(cls, v: Any) -> Any:
        return "" if v is None else v


class AttendanceRecord(StoreRecord):
    """
    A single check-in.

    ``timestamp`` is read from ``timestamp`` or, when absent, ``date``; any
    DateLike shape is accepted and unparseable values become None.
    ``ministry`` other than "N/A" means the attendee served that day.
    """

    member_id: Optional[str] = None
    event_id: Optional[str] = None
    timestamp: Optional[dt.datetime] = None
    ministry: Optional[str] = NO_MINISTRY

    @model_validator(mode="before")
    @classmethod
    def timestamp_from_date(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and data.get("timestamp") is None and data.get("date") is not None:
            data = {**data, "timestamp": data["date"]}
        return data

    @field_validator("timestamp", mode="before")
    @classmethod
    def normalize_timestamp(cls, v: Any) -> Optional[dt.datetime]:
        return to_datetime(v)

    @property
    def is_volunteering(self) -> bool:
        return bool(self.ministry) and self.ministry != NO_MINISTRY


class AttendancePoint(StoreRecord):
    """
    One event's headcount, the training unit for the attendance forecaster.

    ``date`` and ``count`` may be None on malformed input; such points are
    filtered out before any computation.
    """

    date: Optional[dt.date] = None
    count: Optional[float] = None
    event_type: str = "regular"
    name: str = ""

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, v: Any) -> Optional[dt.date]:
        return to_date(v)

    @field_validator("event_type", mode="before")
    @classmethod
    def default_event_type(cls, v: Any) -> Any:
        return v or "regular"


RecordT = TypeVar("RecordT", bound=BaseModel)


def parse_records(model: type[RecordT], records: Optional[Iterable[Any]]) -> list[RecordT]:
    """
    Parse raw store documents into ``model`` instances.

    Instances of ``model`` pass through untouched. Documents that fail
    validation are skipped; malformed records never abort an analysis.
    """
    if records is None:
        return []

    parsed: list[RecordT] = []
    skipped = 0
    for record in records:
        if isinstance(record, model):
            parsed.append(record)
            continue
        try:
            parsed.append(model.model_validate(record))
        except ValidationError:
            skipped += 1

    if skipped:
        logger.debug("malformed_records_skipped", model=model.__name__, skipped=skipped)
    return parsed
