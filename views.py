"""
views.py
Streamlit pages: Dashboard, Members, Cells, Finances, Events, Settings.
The four record pages share one scaffold (search bar, form, rows, delete confirm).
"""

from __future__ import annotations

from datetime import datetime, time
from typing import Callable

import streamlit as st

import auth
import db
import utils
from models import (
    EVENT_STATUS_BADGES,
    FINANCE_TYPE_BADGES,
    MEMBER_STATUS_BADGES,
    WEEKDAYS,
    Badge,
    badge_for,
)
from resources import ALL, CELLS, EVENTS, FINANCES, MEMBERS, Draft, ResourceConfig, ResourceList, delete_record, filter_records


# ---------- Shared scaffold ----------

def _key(resource: ResourceConfig, name: str) -> str:
    return f"{resource.table}_{name}"


def current_draft(resource: ResourceConfig) -> Draft | None:
    return st.session_state.get(_key(resource, "draft"))


def open_draft(resource: ResourceConfig, draft: Draft) -> None:
    st.session_state[_key(resource, "draft")] = draft


def close_draft(resource: ResourceConfig) -> None:
    st.session_state.pop(_key(resource, "draft"), None)


def badge_markdown(value: str | None, table: dict[str, Badge]) -> str:
    b = badge_for(value, table)
    return f":{b.color}-background[{b.label}]"


def load(resource: ResourceConfig, filters=()) -> list:
    records = ResourceList(resource, filters)
    with st.spinner(f"Loading {resource.table}..."):
        records.fetch()
    return records.records


def _date_value(text: str | None):
    try:
        return utils.parse_iso(text) if text else None
    except ValueError:
        return None


def _time_value(text: str | None) -> time | None:
    try:
        return datetime.strptime(text[:5], "%H:%M").time() if text else None
    except ValueError:
        return None


def _id_options(records: list, current: str, label: Callable, none_label: str) -> tuple[list[str], Callable]:
    """Selectbox options for a nullable foreign key ("" means none)."""
    names = {str(r.id): label(r) for r in records}
    options = [""] + list(names)
    if current and current not in names:
        options.append(current)
    return options, (lambda v: none_label if v == "" else names.get(v, f"#{v}"))


def search_bar(resource: ResourceConfig, placeholder: str, categories: dict[str, Badge] | None = None):
    if categories:
        c1, c2, c3 = st.columns([4, 2, 1])
    else:
        c1, c3 = st.columns([6, 1])
    with c1:
        term = st.text_input("Search", placeholder=placeholder, key=_key(resource, "search"),
                             label_visibility="collapsed")
    category = ALL
    if categories:
        with c2:
            category = st.selectbox(
                "Filter", [ALL] + list(categories), key=_key(resource, "category"),
                format_func=lambda v: "All" if v == ALL else categories[v].label,
                label_visibility="collapsed",
            )
    with c3:
        if st.button(f"New {resource.singular}", type="primary", key=_key(resource, "new")):
            open_draft(resource, Draft.blank(resource))
            st.rerun()
    return term, category


def render_form(resource: ResourceConfig, draft: Draft, fields: Callable[[Draft, str], dict]) -> None:
    title = f"Edit {resource.singular}" if draft.editing else f"New {resource.singular}"
    prefix = _key(resource, str(draft.record_id) if draft.editing else "new")

    with st.container(border=True):
        st.subheader(title)
        with st.form(key=f"{prefix}_form"):
            values = fields(draft, prefix)
            c1, c2 = st.columns([1, 5])
            submitted = c1.form_submit_button("Update" if draft.editing else "Create", type="primary")
            cancelled = c2.form_submit_button("Cancel")

        if cancelled:
            close_draft(resource)
            st.rerun()

        if submitted:
            draft.set(**values)
            errors = draft.errors()
            if errors:
                for e in errors:
                    st.error(e)
                return
            try:
                draft.commit()
            except db.StoreError as exc:
                st.error(f"Error saving {resource.singular}: {exc}")
                return
            close_draft(resource)
            st.rerun()


def row_actions(resource: ResourceConfig, record, label: str) -> None:
    pending = _key(resource, "pending_delete")
    if st.session_state.get(pending) == record.id:
        st.warning(f"Delete {resource.singular} **{label}**?")
        c1, c2 = st.columns(2)
        if c1.button("Yes, delete", key=_key(resource, f"confirm_{record.id}"), type="primary"):
            try:
                delete_record(resource, record.id, confirmed=True)
            except db.StoreError as exc:
                st.error(f"Error deleting {resource.singular}: {exc}")
                return
            st.session_state.pop(pending, None)
            st.rerun()
        if c2.button("Cancel", key=_key(resource, f"cancel_{record.id}")):
            st.session_state.pop(pending, None)
            st.rerun()
        return

    c1, c2 = st.columns(2)
    if c1.button("Edit", key=_key(resource, f"edit_{record.id}")):
        open_draft(resource, Draft.from_record(resource, record))
        st.rerun()
    if c2.button("Delete", key=_key(resource, f"delete_{record.id}")):
        st.session_state[pending] = record.id
        st.rerun()


def _table_header(labels: list[str], widths: list[int]) -> None:
    for col, label in zip(st.columns(widths), labels):
        col.markdown(f"**{label}**")


def _card_grid(records: list, render: Callable, per_row: int = 3) -> None:
    for start in range(0, len(records), per_row):
        for col, record in zip(st.columns(per_row), records[start:start + per_row]):
            with col:
                with st.container(border=True):
                    render(record)


# ---------- Header / Dashboard ----------

def render_header(session: auth.AuthSession, title: str, subtitle: str) -> None:
    c1, c2 = st.columns([4, 1])
    with c1:
        st.header(title)
        st.caption(subtitle)
    with c2:
        if session.current_user:
            st.caption("Signed in as")
            st.markdown(f"**{session.current_user}**")


def dashboard_page() -> None:
    with st.spinner("Loading statistics..."):
        stats = utils.load_dashboard_stats()

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total members", stats.total_members)
    c2.metric("Active members", stats.active_members)
    c3.metric("Total collected", utils.format_money(stats.total_revenue))
    c4.metric("Upcoming events", stats.upcoming_events)

    st.divider()

    st.subheader("Revenue by month")
    finances = load(FINANCES)
    df = utils.revenue_summary_by_month([{"date": f.date, "amount": f.amount} for f in finances])
    if df.empty:
        st.caption("No transactions recorded yet.")
    else:
        st.dataframe(df, use_container_width=True, hide_index=True)


# ---------- Members ----------

def _member_fields(cells: list) -> Callable[[Draft, str], dict]:
    def fields(draft: Draft, prefix: str) -> dict:
        v = draft.values
        c1, c2 = st.columns(2)
        name = c1.text_input("Full name *", value=v["name"], key=f"{prefix}_name")
        national_id = c2.text_input("National ID", value=v["national_id"], key=f"{prefix}_national_id")
        phone = c1.text_input("Phone", value=v["phone"], key=f"{prefix}_phone")
        email = c2.text_input("E-mail", value=v["email"], key=f"{prefix}_email")
        conversion = c1.date_input("Conversion date", value=_date_value(v["conversion_date"]),
                                   format="YYYY-MM-DD", key=f"{prefix}_conversion_date")
        options, label = _id_options(cells, v["cell_id"], lambda c: c.name, "None")
        cell_id = c2.selectbox("Cell", options, index=options.index(v["cell_id"]) if v["cell_id"] in options else 0,
                               format_func=label, key=f"{prefix}_cell_id")
        statuses = list(MEMBER_STATUS_BADGES)
        status = c1.selectbox("Status", statuses,
                              index=statuses.index(v["status"]) if v["status"] in statuses else 0,
                              format_func=lambda s: MEMBER_STATUS_BADGES[s].label, key=f"{prefix}_status")
        address = st.text_area("Address", value=v["address"], key=f"{prefix}_address")
        return {
            "name": name, "national_id": national_id, "phone": phone, "email": email,
            "conversion_date": conversion.isoformat() if conversion else "",
            "cell_id": cell_id, "status": status, "address": address,
        }
    return fields


def members_page() -> None:
    cells = ResourceList(CELLS)
    cells.fetch()
    members = load(MEMBERS)
    cell_names = {c.id: c.name for c in cells.records}

    term, status = search_bar(MEMBERS, "Search by name, national ID or e-mail...", MEMBER_STATUS_BADGES)

    draft = current_draft(MEMBERS)
    if draft:
        render_form(MEMBERS, draft, _member_fields(cells.records))

    rows = filter_records(members, MEMBERS, term, status)
    if not rows:
        st.info(MEMBERS.empty_message)
        return

    widths = [3, 2, 2, 3, 2, 2, 2]
    _table_header(["Name", "National ID", "Phone", "E-mail", "Cell", "Status", "Actions"], widths)
    for m in rows:
        cols = st.columns(widths)
        cols[0].write(m.name)
        cols[1].write(m.national_id or "-")
        cols[2].write(m.phone or "-")
        cols[3].write(m.email or "-")
        cols[4].write(cell_names.get(m.cell_id, "-"))
        cols[5].markdown(badge_markdown(m.status, MEMBER_STATUS_BADGES))
        with cols[6]:
            row_actions(MEMBERS, m, m.name)


# ---------- Cells ----------

def _cell_fields(leaders: list) -> Callable[[Draft, str], dict]:
    def fields(draft: Draft, prefix: str) -> dict:
        v = draft.values
        name = st.text_input("Cell name *", value=v["name"], key=f"{prefix}_name")
        c1, c2, c3 = st.columns(3)
        options, label = _id_options(leaders, v["leader_id"], lambda m: m.name, "Select a leader")
        leader_id = c1.selectbox("Leader", options,
                                 index=options.index(v["leader_id"]) if v["leader_id"] in options else 0,
                                 format_func=label, key=f"{prefix}_leader_id")
        days = [""] + list(WEEKDAYS)
        meeting_day = c2.selectbox("Meeting day", days,
                                   index=days.index(v["meeting_day"]) if v["meeting_day"] in days else 0,
                                   format_func=lambda d: d or "Select", key=f"{prefix}_meeting_day")
        meeting_time = c3.time_input("Meeting time", value=_time_value(v["meeting_time"]),
                                     key=f"{prefix}_meeting_time")
        address = st.text_area("Meeting address", value=v["meeting_address"], key=f"{prefix}_meeting_address")
        return {
            "name": name, "leader_id": leader_id, "meeting_day": meeting_day,
            "meeting_time": meeting_time.strftime("%H:%M") if meeting_time else "",
            "meeting_address": address,
        }
    return fields


def leader_name(leader_id: int | None, members_by_id: dict) -> str:
    if leader_id is None:
        return "No leader"
    leader = members_by_id.get(leader_id)
    return leader.name if leader else "Unknown"


def cells_page() -> None:
    members = ResourceList(MEMBERS)
    members.fetch()
    cells = load(CELLS)
    members_by_id = {m.id: m for m in members.records}
    active = [m for m in members.records if m.status == "active"]

    term, _ = search_bar(CELLS, "Search by name or address...")

    draft = current_draft(CELLS)
    if draft:
        render_form(CELLS, draft, _cell_fields(active))

    rows = filter_records(cells, CELLS, term)
    if not rows:
        st.info(CELLS.empty_message)
        return

    def card(cell) -> None:
        cell_members = [m for m in active if m.cell_id == cell.id]
        st.subheader(cell.name)
        st.markdown(f":blue-background[{len(cell_members)} members]")
        st.markdown(f"**Leader:** {leader_name(cell.leader_id, members_by_id)}")
        if cell.meeting_day:
            when = cell.meeting_day + (f" at {cell.meeting_time}" if cell.meeting_time else "")
            st.markdown(f"**Day:** {when}")
        if cell.meeting_address:
            st.markdown(f"**Place:** {cell.meeting_address}")
        if cell_members:
            st.caption(", ".join(m.name for m in cell_members))
        row_actions(CELLS, cell, cell.name)

    _card_grid(rows, card)


# ---------- Finances ----------

def _finance_fields(contributors: list) -> Callable[[Draft, str], dict]:
    def fields(draft: Draft, prefix: str) -> dict:
        v = draft.values
        c1, c2 = st.columns(2)
        day = c1.date_input("Date *", value=_date_value(v["date"]), format="YYYY-MM-DD", key=f"{prefix}_date")
        types = list(FINANCE_TYPE_BADGES)
        kind = c2.selectbox("Type *", types, index=types.index(v["type"]) if v["type"] in types else 0,
                            format_func=lambda t: FINANCE_TYPE_BADGES[t].label, key=f"{prefix}_type")
        amount = c1.text_input("Amount *", value=v["amount"], key=f"{prefix}_amount")
        options, label = _id_options(contributors, v["member_id"], lambda m: m.name, "Anonymous")
        member_id = c2.selectbox("Member", options,
                                 index=options.index(v["member_id"]) if v["member_id"] in options else 0,
                                 format_func=label, key=f"{prefix}_member_id")
        description = st.text_area("Description", value=v["description"], key=f"{prefix}_description")
        return {
            "date": day.isoformat() if day else "", "type": kind, "amount": amount,
            "member_id": member_id, "description": description,
        }
    return fields


def contributor_name(member_id: int | None, members_by_id: dict) -> str:
    if member_id is None:
        return "Anonymous"
    member = members_by_id.get(member_id)
    return member.name if member else "Unknown"


def finances_page() -> None:
    members = ResourceList(MEMBERS)
    members.fetch()
    finances = load(FINANCES)
    members_by_id = {m.id: m for m in members.records}
    active = [m for m in members.records if m.status == "active"]

    term, kind = search_bar(FINANCES, "Search by description...", FINANCE_TYPE_BADGES)
    rows = filter_records(finances, FINANCES, term, kind)

    total = sum(float(f.amount) for f in rows)
    st.metric("Total collected", utils.format_money(total))
    st.caption(f"{len(rows)} transactions recorded")

    draft = current_draft(FINANCES)
    if draft:
        render_form(FINANCES, draft, _finance_fields(active))

    if not rows:
        st.info(FINANCES.empty_message)
        return

    widths = [2, 2, 2, 3, 4, 2]
    _table_header(["Date", "Type", "Amount", "Member", "Description", "Actions"], widths)
    for f in rows:
        cols = st.columns(widths)
        cols[0].write(f.date)
        cols[1].markdown(badge_markdown(f.type, FINANCE_TYPE_BADGES))
        cols[2].write(utils.format_money(float(f.amount)))
        cols[3].write(contributor_name(f.member_id, members_by_id))
        cols[4].write(f.description or "-")
        with cols[5]:
            row_actions(FINANCES, f, f"{f.date} {utils.format_money(float(f.amount))}")


# ---------- Events ----------

def _event_fields(draft: Draft, prefix: str) -> dict:
    v = draft.values
    name = st.text_input("Event name *", value=v["name"], key=f"{prefix}_name")
    c1, c2, c3 = st.columns(3)
    day = c1.date_input("Date *", value=_date_value(v["date"]), format="YYYY-MM-DD", key=f"{prefix}_date")
    at = c2.time_input("Time", value=_time_value(v["time"]), key=f"{prefix}_time")
    statuses = list(EVENT_STATUS_BADGES)
    status = c3.selectbox("Status", statuses, index=statuses.index(v["status"]) if v["status"] in statuses else 0,
                          format_func=lambda s: EVENT_STATUS_BADGES[s].label, key=f"{prefix}_status")
    location = st.text_input("Location", value=v["location"], key=f"{prefix}_location")
    c4, c5 = st.columns(2)
    expected = c4.text_input("Expected attendees", value=v["expected_attendees"], key=f"{prefix}_expected")
    confirmed = c5.text_input("Confirmed attendees", value=v["confirmed_attendees"], key=f"{prefix}_confirmed")
    description = st.text_area("Description", value=v["description"], key=f"{prefix}_description")
    return {
        "name": name, "date": day.isoformat() if day else "",
        "time": at.strftime("%H:%M") if at else "", "status": status, "location": location,
        "expected_attendees": expected, "confirmed_attendees": confirmed, "description": description,
    }


def events_page() -> None:
    events = load(EVENTS)

    term, status = search_bar(EVENTS, "Search by name or location...", EVENT_STATUS_BADGES)

    draft = current_draft(EVENTS)
    if draft:
        render_form(EVENTS, draft, _event_fields)

    rows = filter_records(events, EVENTS, term, status)
    if not rows:
        st.info(EVENTS.empty_message)
        return

    def card(event) -> None:
        st.subheader(event.name)
        st.markdown(badge_markdown(event.status, EVENT_STATUS_BADGES))
        when = event.date + (f" at {event.time}" if event.time else "")
        st.markdown(f"**Date:** {when}")
        if event.location:
            st.markdown(f"**Location:** {event.location}")
        st.markdown(f"**Expected:** {event.expected_attendees} | **Confirmed:** {event.confirmed_attendees}")
        if event.description:
            st.caption(event.description)
        row_actions(EVENTS, event, event.name)

    _card_grid(rows, card)


# ---------- Settings ----------

def settings_page(session: auth.AuthSession) -> None:
    st.subheader("Change password")
    p1 = st.text_input("New password", type="password")
    p2 = st.text_input("Confirm new password", type="password")
    if st.button("Update password", type="primary"):
        errors = auth.validate_new_password(p1, p2)
        if errors:
            for e in errors:
                st.error(e)
        else:
            auth.change_password(session.current_user, p1)
            st.success("Password updated.")

    st.divider()

    st.subheader("Sample data")
    st.caption("Insert sample cells, members, transactions and events (adds new rows each run).")
    if st.button("Insert sample data"):
        try:
            utils.insert_sample_data()
        except db.StoreError as exc:
            st.error(f"Error inserting sample data: {exc}")
        else:
            st.success("Sample data inserted.")
