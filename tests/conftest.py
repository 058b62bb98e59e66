"""
Pytest configuration and shared fixtures for the branch forecasting test suite.

Factories build store-shaped documents (camelCase dicts, exactly as exported
from the document store) so every test exercises the same parsing path the
dashboards use.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional

import pytest

from branchcast.config import Settings

# Reference date for anything relative to "today"
AS_OF = date(2024, 3, 31)


# ---------------------------------------------------------------------------
# Store document factories
# ---------------------------------------------------------------------------


def make_member(
    member_id: str = "m1",
    first_name: str = "Ana",
    last_name: str = "Cruz",
    is_seeker: bool = False,
    is_dgroup_leader: bool = False,
    is_volunteer: bool = False,
    is_first_timer: bool = False,
    ministries: tuple[str, ...] = (),
    age_category: Optional[str] = "Elevate",
    dgroup_leader: Optional[str] = None,
    gender: str = "Female",
    **overrides,
) -> dict:
    """Factory for member documents."""
    doc = {
        "id": member_id,
        "firstName": first_name,
        "lastName": last_name,
        "gender": gender,
        "finalTags": {
            "isSeeker": is_seeker,
            "isDgroupLeader": is_dgroup_leader,
            "isVolunteer": is_volunteer,
            "isFirstTimer": is_first_timer,
            "volunteerMinistry": list(ministries),
            "ageCategory": age_category,
        },
        "dgroupLeader": dgroup_leader or "",
    }
    doc.update(overrides)
    return doc


def make_event(
    event_id: str = "e1",
    event_date: str = "2024-03-02",
    event_type: str = "service",
    name: str = "Saturday Service",
    **overrides,
) -> dict:
    """Factory for event documents."""
    doc = {"id": event_id, "date": event_date, "eventType": event_type, "name": name}
    doc.update(overrides)
    return doc


def make_attendance(
    member_id: str = "m1",
    event_id: str = "e1",
    timestamp=None,
    ministry: str = "N/A",
    **overrides,
) -> dict:
    """Factory for attendance check-in documents."""
    doc = {"memberId": member_id, "eventId": event_id, "ministry": ministry}
    if timestamp is not None:
        doc["timestamp"] = timestamp
    doc.update(overrides)
    return doc


def weekly_points(
    counts: list,
    start: date = date(2024, 1, 6),
    step_days: int = 7,
    event_type: str = "regular",
) -> list[dict]:
    """Attendance points spaced ``step_days`` apart starting at ``start``."""
    return [
        {
            "date": (start + timedelta(days=i * step_days)).isoformat(),
            "count": count,
            "eventType": event_type,
        }
        for i, count in enumerate(counts)
    ]


class FakeStoreTimestamp:
    """Stand-in for a document-store timestamp wrapper exposing ``toDate``."""

    def __init__(self, value: datetime):
        self._value = value

    def toDate(self) -> datetime:
        return self._value


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings():
    """Settings with library defaults, independent of the environment."""
    return Settings(_env_file=None)


@pytest.fixture
def scenario_a_points():
    """Six weekly services with counts 40, 42, 38, 45, 50, 48."""
    return weekly_points([40, 42, 38, 45, 50, 48])


@pytest.fixture
def volunteer_events():
    """Five past services (four Saturdays, one Sunday) and one upcoming."""
    return [
        make_event("e1", "2024-03-02"),
        make_event("e2", "2024-03-09"),
        make_event("e3", "2024-03-16"),
        make_event("e4", "2024-03-23"),
        make_event("e5", "2024-03-24", name="Sunday Service"),
        make_event("e6", "2024-04-06"),
    ]


@pytest.fixture
def volunteer_members():
    """Volunteers spanning every reliability tier."""
    return [
        make_member("v1", "Ben", "Reyes", is_volunteer=True, ministries=("Worship", "Media")),
        make_member("v2", "Cara", "Lim", is_volunteer=True, ministries=("Worship",)),
        make_member("v3", "Dan", "Tan", is_volunteer=True, ministries=("Media",)),
        make_member("v4", "Eli", "Go", is_volunteer=True, ministries=("Ushering",)),
        make_member("m9", "Fay", "Uy"),
    ]


@pytest.fixture
def volunteer_attendance():
    """v1 serves 4 Saturdays, v2 two Saturdays and a Sunday, v3 one Sunday, v4 never."""
    records = [make_attendance("v1", e, ministry="Worship") for e in ("e1", "e2", "e3", "e4")]
    records += [make_attendance("v2", e, ministry="Worship") for e in ("e1", "e5", "e3")]
    records.append(make_attendance("v3", "e5", ministry="Media"))
    records.append(make_attendance("m9", "e1"))
    return records


@pytest.fixture
def annual_members():
    """Two DGroup leaders, three group members and one untagged attendee."""
    return [
        make_member("L1", is_dgroup_leader=True),
        make_member("L2", is_dgroup_leader=True),
        make_member("M1", dgroup_leader="L1"),
        make_member("M2", dgroup_leader="L1"),
        make_member("M3", dgroup_leader="L2"),
        make_member("X"),
    ]


@pytest.fixture
def annual_attendance():
    """
    Three years of check-ins using every timestamp shape the store produces.

    2021: L1, M1, X        → 1 leader, 1 member
    2022: L1, L2, M1, M2   → 2 leaders, 2 members
    2023: L1, L2, M1-M3    → 2 leaders, 3 members
    """
    utc = timezone.utc
    return [
        make_attendance("L1", "a", timestamp="2021-02-06"),
        make_attendance("M1", "a", timestamp=datetime(2021, 5, 1, 10, 0)),
        make_attendance("X", "a", timestamp=FakeStoreTimestamp(datetime(2021, 9, 4, tzinfo=utc))),
        make_attendance("L1", "b", timestamp={"seconds": 1656806400, "nanoseconds": 0}),  # 2022-07-03
        make_attendance("L2", "b", timestamp="2022-07-02T09:30:00Z"),
        make_attendance("M1", "b", timestamp=1656720000000),  # 2022-07-02 epoch ms
        make_attendance("M2", "b", date="2022-08-06"),
        make_attendance("M2", "b", timestamp="2022-08-13"),
        make_attendance("L1", "c", timestamp="2023-01-07"),
        make_attendance("L2", "c", timestamp="2023-01-07"),
        make_attendance("M1", "c", timestamp="2023-01-07"),
        make_attendance("M2", "c", timestamp="2023-01-14"),
        make_attendance("M3", "c", timestamp="2023-03-04"),
        make_attendance("M3", "c", timestamp="not-a-date"),
        make_attendance("L2", "c"),
    ]
