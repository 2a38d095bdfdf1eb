"""
resources.py
Generic CRUD scaffold shared by the Members, Cells, Finances and Events views:
a ResourceConfig per table, the fetcher, the search/filter step, and the Draft
that backs the create/edit form.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

import db
import utils
from models import Cell, Event, Finance, Member

logger = logging.getLogger(__name__)

ALL = "all"


@dataclass(frozen=True)
class ResourceConfig:
    table: str
    record_type: type
    order_by: str
    descending: bool
    search_fields: tuple[str, ...]
    category_field: str | None
    blank: Callable[[], dict[str, Any]]
    payload: Callable[[dict[str, Any]], dict[str, Any]]
    validate: Callable[[dict[str, Any]], list[str]]
    singular: str
    empty_message: str


MEMBERS = ResourceConfig(
    table="members",
    record_type=Member,
    order_by="name",
    descending=False,
    search_fields=("name", "national_id", "email"),
    category_field="status",
    blank=lambda: {
        "name": "", "national_id": "", "phone": "", "email": "",
        "conversion_date": "", "address": "", "cell_id": "", "status": "active",
    },
    payload=utils.member_payload,
    validate=utils.validate_member_inputs,
    singular="member",
    empty_message="No members found",
)

CELLS = ResourceConfig(
    table="cells",
    record_type=Cell,
    order_by="name",
    descending=False,
    search_fields=("name", "meeting_address"),
    category_field=None,
    blank=lambda: {
        "name": "", "leader_id": "", "meeting_address": "", "meeting_day": "", "meeting_time": "",
    },
    payload=utils.cell_payload,
    validate=utils.validate_cell_inputs,
    singular="cell",
    empty_message="No cells found",
)

FINANCES = ResourceConfig(
    table="finances",
    record_type=Finance,
    order_by="date",
    descending=True,
    search_fields=("description",),
    category_field="type",
    blank=lambda: {
        "date": utils.today_iso(), "type": "tithe", "amount": "", "member_id": "", "description": "",
    },
    payload=utils.finance_payload,
    validate=utils.validate_finance_inputs,
    singular="transaction",
    empty_message="No transactions found",
)

EVENTS = ResourceConfig(
    table="events",
    record_type=Event,
    order_by="date",
    descending=True,
    search_fields=("name", "location"),
    category_field="status",
    blank=lambda: {
        "name": "", "date": "", "time": "", "location": "", "expected_attendees": "",
        "confirmed_attendees": "", "description": "", "status": "planned",
    },
    payload=utils.event_payload,
    validate=utils.validate_event_inputs,
    singular="event",
    empty_message="No events found",
)

RESOURCES = {r.table: r for r in (MEMBERS, CELLS, FINANCES, EVENTS)}


class ResourceList:
    """In-memory ordered sequence of one table's records."""

    def __init__(self, resource: ResourceConfig, filters=()):
        self.resource = resource
        self.filters = tuple(filters)
        self.records: list = []
        self.loading = True

    def fetch(self) -> list:
        self.loading = True
        try:
            rows = db.read(
                self.resource.table,
                self.resource.order_by,
                descending=self.resource.descending,
                filters=self.filters,
            )
            self.records = [self.resource.record_type.from_row(r) for r in rows]
        except db.StoreError:
            logger.exception("Error fetching %s", self.resource.table)
            self.records = []
        finally:
            self.loading = False
        return self.records


def filter_records(records: list, resource: ResourceConfig, term: str = "", category: str | None = ALL) -> list:
    """
    Case-insensitive substring search over the resource's search fields,
    combined with an equality filter on its category field.
    An empty term matches everything; category "all" (or empty) disables it.
    """
    needle = (term or "").strip().lower()
    out = []
    for record in records:
        if needle and not any(
            needle in str(getattr(record, f) or "").lower() for f in resource.search_fields
        ):
            continue
        if resource.category_field and category not in (None, "", ALL):
            if getattr(record, resource.category_field) != category:
                continue
        out.append(record)
    return out


class Draft:
    """
    Unsaved form values for one record. Editing drafts are built from a copy
    of the record; nothing reaches the store until commit().
    """

    CREATING = "creating"
    EDITING = "editing"

    def __init__(self, resource: ResourceConfig, values: dict[str, Any], record_id: int | None = None):
        self.resource = resource
        self.values = dict(values)
        self.record_id = record_id

    @classmethod
    def blank(cls, resource: ResourceConfig) -> "Draft":
        return cls(resource, resource.blank())

    @classmethod
    def from_record(cls, resource: ResourceConfig, record) -> "Draft":
        values = {}
        for key in resource.blank():
            value = getattr(record, key)
            # form fields hold text; ids and numbers are re-parsed on commit
            values[key] = "" if value is None else (str(value) if isinstance(value, (int, float)) else value)
        return cls(resource, values, record_id=record.id)

    @property
    def mode(self) -> str:
        return self.EDITING if self.record_id is not None else self.CREATING

    @property
    def editing(self) -> bool:
        return self.mode == self.EDITING

    def set(self, **changes: Any) -> None:
        self.values.update(changes)

    def errors(self) -> list[str]:
        return self.resource.validate(self.values)

    def commit(self) -> int:
        """
        Insert (creating) or update by id (editing). Returns the record id.
        Raises ValueError on invalid values and db.StoreError on store failure.
        """
        errors = self.errors()
        if errors:
            raise ValueError(" ".join(errors))

        payload = self.resource.payload(self.values)
        if self.editing:
            db.update(self.resource.table, self.record_id, payload)
            return self.record_id
        return db.insert(self.resource.table, payload)


def delete_record(resource: ResourceConfig, record_id: int, confirmed: bool) -> bool:
    """Delete by id once the user confirmed. Returns whether a delete was issued."""
    if not confirmed:
        return False
    db.delete(resource.table, record_id)
    return True
