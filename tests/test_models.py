"""Tests for record types and badge lookups."""

from __future__ import annotations

import dataclasses

import pytest

from models import (
    EVENT_STATUS_BADGES,
    EVENT_STATUSES,
    FINANCE_TYPE_BADGES,
    FINANCE_TYPES,
    MEMBER_STATUS_BADGES,
    MEMBER_STATUSES,
    Badge,
    Cell,
    Member,
    badge_for,
)


@pytest.mark.parametrize("values, badges", [
    (MEMBER_STATUSES, MEMBER_STATUS_BADGES),
    (FINANCE_TYPES, FINANCE_TYPE_BADGES),
    (EVENT_STATUSES, EVENT_STATUS_BADGES),
])
def test_badge_lookup_is_total(values, badges):
    assert set(badges) == set(values)
    for value in values:
        badge = badge_for(value, badges)
        assert badge.label
        assert badge.color


def test_unknown_badge_value_falls_back():
    assert badge_for("archived", MEMBER_STATUS_BADGES) == Badge("archived", "gray")
    assert badge_for(None, EVENT_STATUS_BADGES) == Badge("-", "gray")


def test_from_row_ignores_unknown_columns():
    member = Member.from_row({"id": 1, "name": "Ana", "status": "active", "extra": "x"})
    assert member == Member(id=1, name="Ana", status="active")


def test_records_are_frozen():
    cell = Cell(id=1, name="North")
    with pytest.raises(dataclasses.FrozenInstanceError):
        cell.name = "South"
