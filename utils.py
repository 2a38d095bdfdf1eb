"""
utils.py
Validation, parsing, dates, dashboard stats, reports, sample data.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any

import pandas as pd

import config
import db
from models import EVENT_STATUSES, FINANCE_TYPES, MEMBER_STATUSES, WEEKDAYS

logger = logging.getLogger(__name__)


def today_iso() -> str:
    return date.today().isoformat()


def parse_iso(d: str) -> date:
    return date.fromisoformat(d)


def parse_float(text: Any) -> float:
    """Numeric text field -> float; anything non-numeric becomes 0."""
    try:
        value = float(str(text).strip().replace(",", "."))
    except (TypeError, ValueError):
        return 0.0
    # nan, inf and overflowing literals like "1e400" are not amounts
    return value if math.isfinite(value) else 0.0


def parse_int(text: Any) -> int:
    """Integer text field -> int (truncating "12.7" to 12); non-numeric becomes 0."""
    try:
        return int(float(str(text).strip()))
    except (TypeError, ValueError, OverflowError):
        return 0


def blank_to_none(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def format_money(amount: float) -> str:
    return f"{config.settings.currency} {amount:,.2f}"


def _is_iso_date(value: str) -> bool:
    try:
        parse_iso(value)
        return True
    except (TypeError, ValueError):
        return False


def _is_hhmm(value: str) -> bool:
    try:
        datetime.strptime(value, "%H:%M")
        return True
    except (TypeError, ValueError):
        return False


# ---------- Validation ----------

def validate_member_inputs(values: dict[str, Any]) -> list[str]:
    errors: list[str] = []
    if not str(values.get("name") or "").strip():
        errors.append("Name is required.")
    email = str(values.get("email") or "").strip()
    if email and "@" not in email:
        errors.append("E-mail must be a valid address.")
    conversion = str(values.get("conversion_date") or "").strip()
    if conversion and not _is_iso_date(conversion):
        errors.append("Conversion date must be a valid ISO date (YYYY-MM-DD).")
    if values.get("status") not in MEMBER_STATUSES:
        errors.append("Status must be one of: " + ", ".join(MEMBER_STATUSES) + ".")
    return errors


def validate_cell_inputs(values: dict[str, Any]) -> list[str]:
    errors: list[str] = []
    if not str(values.get("name") or "").strip():
        errors.append("Name is required.")
    day = str(values.get("meeting_day") or "").strip()
    if day and day not in WEEKDAYS:
        errors.append("Meeting day must be a weekday name.")
    meeting_time = str(values.get("meeting_time") or "").strip()
    if meeting_time and not _is_hhmm(meeting_time):
        errors.append("Meeting time must be HH:MM.")
    return errors


def validate_finance_inputs(values: dict[str, Any]) -> list[str]:
    errors: list[str] = []
    if not _is_iso_date(str(values.get("date") or "")):
        errors.append("Date must be a valid ISO date (YYYY-MM-DD).")
    if values.get("type") not in FINANCE_TYPES:
        errors.append("Type must be one of: " + ", ".join(FINANCE_TYPES) + ".")
    if not str(values.get("amount") or "").strip():
        errors.append("Amount is required.")
    elif parse_float(values.get("amount")) < 0:
        errors.append("Amount cannot be negative.")
    return errors


def validate_event_inputs(values: dict[str, Any]) -> list[str]:
    errors: list[str] = []
    if not str(values.get("name") or "").strip():
        errors.append("Name is required.")
    if not _is_iso_date(str(values.get("date") or "")):
        errors.append("Date must be a valid ISO date (YYYY-MM-DD).")
    event_time = str(values.get("time") or "").strip()
    if event_time and not _is_hhmm(event_time):
        errors.append("Time must be HH:MM.")
    if parse_int(values.get("expected_attendees")) < 0:
        errors.append("Expected attendees cannot be negative.")
    if parse_int(values.get("confirmed_attendees")) < 0:
        errors.append("Confirmed attendees cannot be negative.")
    if values.get("status") not in EVENT_STATUSES:
        errors.append("Status must be one of: " + ", ".join(EVENT_STATUSES) + ".")
    return errors


# ---------- Payloads (draft values -> store columns) ----------

def _optional_id(value: Any) -> int | None:
    if value in (None, ""):
        return None
    return int(value)


def member_payload(values: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": str(values.get("name") or "").strip(),
        "national_id": blank_to_none(values.get("national_id")),
        "phone": blank_to_none(values.get("phone")),
        "email": blank_to_none(values.get("email")),
        "conversion_date": blank_to_none(values.get("conversion_date")),
        "address": blank_to_none(values.get("address")),
        "cell_id": _optional_id(values.get("cell_id")),
        "status": values.get("status"),
    }


def cell_payload(values: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": str(values.get("name") or "").strip(),
        "leader_id": _optional_id(values.get("leader_id")),
        "meeting_address": blank_to_none(values.get("meeting_address")),
        "meeting_day": blank_to_none(values.get("meeting_day")),
        "meeting_time": blank_to_none(values.get("meeting_time")),
    }


def finance_payload(values: dict[str, Any]) -> dict[str, Any]:
    return {
        "date": values.get("date"),
        "type": values.get("type"),
        "amount": parse_float(values.get("amount")),
        "member_id": _optional_id(values.get("member_id")),
        "description": blank_to_none(values.get("description")),
    }


def event_payload(values: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": str(values.get("name") or "").strip(),
        "date": values.get("date"),
        "time": blank_to_none(values.get("time")),
        "location": blank_to_none(values.get("location")),
        "expected_attendees": parse_int(values.get("expected_attendees")),
        "confirmed_attendees": parse_int(values.get("confirmed_attendees")),
        "description": blank_to_none(values.get("description")),
        "status": values.get("status"),
    }


# ---------- Dashboard ----------

@dataclass(frozen=True)
class DashboardStats:
    total_members: int = 0
    active_members: int = 0
    total_revenue: float = 0.0
    upcoming_events: int = 0


def fold_dashboard_stats(members: list[dict], finances: list[dict], events: list[dict]) -> DashboardStats:
    return DashboardStats(
        total_members=len(members),
        active_members=sum(1 for m in members if m.get("status") == "active"),
        total_revenue=round(sum(float(f.get("amount") or 0) for f in finances), 2),
        upcoming_events=len(events),
    )


def load_dashboard_stats(today: str | None = None) -> DashboardStats:
    """
    Run the three dashboard reads concurrently and fold them into stats.
    Any failure leaves every statistic at zero.
    """
    today = today or today_iso()
    try:
        with ThreadPoolExecutor(max_workers=3) as pool:
            members = pool.submit(db.read, "members", "name", columns=("id", "status"))
            finances = pool.submit(db.read, "finances", "date", columns=("id", "amount"))
            events = pool.submit(db.read, "events", "date", filters=[("date", "gte", today)], columns=("id",))
            return fold_dashboard_stats(members.result(), finances.result(), events.result())
    except Exception:
        logger.exception("Error fetching dashboard stats")
        return DashboardStats()


def revenue_summary_by_month(finances: list[dict]) -> pd.DataFrame:
    df = pd.DataFrame(finances)
    if df.empty:
        return pd.DataFrame(columns=["month", "revenue"])
    df["month"] = df["date"].str[:7]
    summary = df.groupby("month", as_index=False)["amount"].sum()
    summary = summary.rename(columns={"amount": "revenue"})
    return summary.sort_values("month", ascending=False).reset_index(drop=True)


def records_to_frame(records: list, columns: list[str]) -> pd.DataFrame:
    rows = [{c: getattr(r, c) for c in columns} for r in records]
    return pd.DataFrame(rows, columns=columns)


# ---------- Sample data ----------

def insert_sample_data() -> None:
    """
    Insert 2 cells, 4 members, a few finances and events
    (safe to run multiple times: adds new rows each time).
    """
    today = date.today()

    north = db.insert("cells", {"name": "North Cell", "meeting_day": "Wednesday",
                                "meeting_time": "19:30", "meeting_address": "12 Oak Street"})
    south = db.insert("cells", {"name": "South Cell", "meeting_day": "Friday",
                                "meeting_time": "20:00", "meeting_address": "48 River Road"})

    members = [
        ("Ana Souza", "ana@example.com", "11900000001", north, "active"),
        ("Bruno Lima", "bruno@example.com", "11900000002", north, "active"),
        ("Carla Mendes", None, "11900000003", south, "inactive"),
        ("Daniel Rocha", None, None, None, "transferred"),
    ]
    ids = []
    for name, email, phone, cell_id, status in members:
        ids.append(db.insert("members", {
            "name": name, "email": email, "phone": phone, "cell_id": cell_id,
            "status": status, "conversion_date": (today - timedelta(days=365)).isoformat(),
        }))

    db.update("cells", north, {"leader_id": ids[0]})
    db.update("cells", south, {"leader_id": ids[1]})

    finances = [
        (today.isoformat(), "tithe", 250.0, ids[0], "Monthly tithe"),
        (today.isoformat(), "offering", 80.5, None, "Sunday offering"),
        ((today - timedelta(days=35)).isoformat(), "campaign", 120.0, ids[1], "Roof campaign"),
    ]
    for day, kind, amount, member_id, note in finances:
        db.insert("finances", {"date": day, "type": kind, "amount": amount,
                               "member_id": member_id, "description": note})

    events = [
        ("Youth Night", (today + timedelta(days=10)).isoformat(), "19:00", "Main hall", 60, 25, "planned"),
        ("Baptism Service", (today + timedelta(days=30)).isoformat(), "10:00", "Lakeside", 120, 80, "confirmed"),
        ("Christmas Concert", (today - timedelta(days=20)).isoformat(), "18:00", "Main hall", 200, 180, "completed"),
    ]
    for name, day, at, where, expected, confirmed, status in events:
        db.insert("events", {"name": name, "date": day, "time": at, "location": where,
                             "expected_attendees": expected, "confirmed_attendees": confirmed,
                             "status": status})
    logger.info("Inserted sample data")
