"""
models.py
Lightweight domain helpers (record dataclasses, enum values, badge lookups).
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

MEMBER_STATUSES = ("active", "inactive", "transferred")
FINANCE_TYPES = ("tithe", "offering", "campaign", "other")
EVENT_STATUSES = ("planned", "confirmed", "completed", "cancelled")

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


@dataclass(frozen=True)
class Badge:
    label: str
    color: str  # streamlit markdown color name


# One entry per enum value; keep in sync when an enum grows
MEMBER_STATUS_BADGES = {
    "active": Badge("Active", "green"),
    "inactive": Badge("Inactive", "gray"),
    "transferred": Badge("Transferred", "blue"),
}

FINANCE_TYPE_BADGES = {
    "tithe": Badge("Tithe", "blue"),
    "offering": Badge("Offering", "green"),
    "campaign": Badge("Campaign", "orange"),
    "other": Badge("Other", "gray"),
}

EVENT_STATUS_BADGES = {
    "planned": Badge("Planned", "blue"),
    "confirmed": Badge("Confirmed", "green"),
    "completed": Badge("Completed", "gray"),
    "cancelled": Badge("Cancelled", "red"),
}


def badge_for(value: str | None, table: dict[str, Badge]) -> Badge:
    """Badge for an enum value; unknown values fall back to a neutral badge."""
    if value in table:
        return table[value]
    return Badge(str(value) if value else "-", "gray")


class Record:
    """Mixin for building frozen records from store rows."""

    @classmethod
    def from_row(cls, row: dict[str, Any]):
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in row.items() if k in names})


@dataclass(frozen=True)
class Member(Record):
    id: int | None
    name: str
    national_id: str | None = None
    phone: str | None = None
    email: str | None = None
    conversion_date: str | None = None
    address: str | None = None
    cell_id: int | None = None
    status: str = "active"  # active / inactive / transferred
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class Cell(Record):
    id: int | None
    name: str
    leader_id: int | None = None
    meeting_address: str | None = None
    meeting_day: str | None = None
    meeting_time: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class Finance(Record):
    id: int | None
    date: str
    type: str  # tithe / offering / campaign / other
    amount: float
    member_id: int | None = None
    description: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Event(Record):
    id: int | None
    name: str
    date: str
    time: str | None = None
    location: str | None = None
    expected_attendees: int = 0
    confirmed_attendees: int = 0
    description: str | None = None
    status: str = "planned"  # planned / confirmed / completed / cancelled
    created_at: str | None = None
    updated_at: str | None = None
