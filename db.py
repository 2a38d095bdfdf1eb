"""
db.py
SQLite helpers + initialization (creates DB/tables, inserts default admin)
and the table API used by every view: read / insert / update / delete.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterable

import config

logger = logging.getLogger(__name__)

DB_FILE = config.settings.db_file

# Column whitelist per table (identifiers can't be bound as SQL parameters)
TABLES: dict[str, tuple[str, ...]] = {
    "members": (
        "id", "name", "national_id", "phone", "email", "conversion_date",
        "address", "cell_id", "status", "created_at", "updated_at",
    ),
    "cells": (
        "id", "name", "leader_id", "meeting_address", "meeting_day",
        "meeting_time", "created_at", "updated_at",
    ),
    "finances": (
        "id", "date", "type", "amount", "member_id", "description", "created_at",
    ),
    "events": (
        "id", "name", "date", "time", "location", "expected_attendees",
        "confirmed_attendees", "description", "status", "created_at", "updated_at",
    ),
}

# Assigned by the store, never by callers
STORE_COLUMNS = ("id", "created_at", "updated_at")

OPERATORS = {"eq": "=", "gte": ">="}


class StoreError(Exception):
    """A failed store call. The message is the raw backend error text."""


@contextmanager
def get_conn():
    conn = sqlite3.connect(DB_FILE, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def execute(sql: str, params: tuple = ()) -> int:
    with get_conn() as conn:
        cur = conn.execute(sql, params)
        return cur.lastrowid


def fetch_one(sql: str, params: tuple = ()):
    with get_conn() as conn:
        cur = conn.execute(sql, params)
        return cur.fetchone()


def fetch_all(sql: str, params: tuple = ()) -> list[sqlite3.Row]:
    with get_conn() as conn:
        cur = conn.execute(sql, params)
        return cur.fetchall()


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


# ---------- Table API ----------

def _check_table(table: str) -> tuple[str, ...]:
    if table not in TABLES:
        raise ValueError(f"Unknown table: {table}")
    return TABLES[table]


def _check_columns(table: str, columns: Iterable[str]) -> list[str]:
    known = _check_table(table)
    columns = list(columns)
    unknown = [c for c in columns if c not in known]
    if unknown:
        raise ValueError(f"Unknown column(s) for {table}: {', '.join(unknown)}")
    return columns


def _writable(table: str, record: dict[str, Any]) -> dict[str, Any]:
    values = {k: v for k, v in record.items() if k not in STORE_COLUMNS}
    _check_columns(table, values)
    return values


def read(
    table: str,
    order_by: str,
    descending: bool = False,
    filters: Iterable[tuple[str, str, Any]] = (),
    columns: Iterable[str] | None = None,
) -> list[dict[str, Any]]:
    """
    Ordered read of one table. Ties on the sort key are broken by id so
    repeated reads return the same sequence.
    filters: (column, op, value) with op in OPERATORS.
    """
    known = _check_table(table)
    cols = _check_columns(table, columns if columns is not None else known)
    _check_columns(table, [order_by])

    sql = f"SELECT {', '.join(cols)} FROM {table} WHERE 1=1"
    params: list[Any] = []
    for column, op, value in filters:
        _check_columns(table, [column])
        if op not in OPERATORS:
            raise ValueError(f"Unsupported filter operator: {op}")
        sql += f" AND {column} {OPERATORS[op]} ?"
        params.append(value)

    direction = "DESC" if descending else "ASC"
    # case-insensitive for text keys; NOCASE leaves numbers and ISO dates in order
    sql += f" ORDER BY {order_by} COLLATE NOCASE {direction}, id {direction}"

    try:
        rows = fetch_all(sql, tuple(params))
    except sqlite3.Error as exc:
        raise StoreError(str(exc)) from exc
    return [dict(r) for r in rows]


def insert(table: str, record: dict[str, Any]) -> int:
    values = _writable(table, record)
    now = now_iso()
    values["created_at"] = now
    if "updated_at" in TABLES[table]:
        values["updated_at"] = now

    cols = ", ".join(values)
    marks = ", ".join("?" for _ in values)
    try:
        new_id = execute(f"INSERT INTO {table}({cols}) VALUES({marks})", tuple(values.values()))
    except sqlite3.Error as exc:
        raise StoreError(str(exc)) from exc
    logger.info("Inserted %s id=%s", table, new_id)
    return new_id


def update(table: str, record_id: int, changes: dict[str, Any]) -> None:
    values = _writable(table, changes)
    if "updated_at" in TABLES[table]:
        values["updated_at"] = now_iso()
    if not values:
        return

    assignments = ", ".join(f"{c}=?" for c in values)
    try:
        execute(f"UPDATE {table} SET {assignments} WHERE id=?", (*values.values(), record_id))
    except sqlite3.Error as exc:
        raise StoreError(str(exc)) from exc
    logger.info("Updated %s id=%s", table, record_id)


def delete(table: str, record_id: int) -> None:
    _check_table(table)
    try:
        execute(f"DELETE FROM {table} WHERE id=?", (record_id,))
    except sqlite3.Error as exc:
        raise StoreError(str(exc)) from exc
    logger.info("Deleted %s id=%s", table, record_id)


# ---------- Schema ----------

def _create_tables() -> None:
    execute(
        """
        CREATE TABLE IF NOT EXISTS admin_users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            created_at TEXT NOT NULL
        )
        """
    )

    # Foreign keys are cascade-null: deleting a referenced row clears the link
    execute(
        """
        CREATE TABLE IF NOT EXISTS cells (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            leader_id INTEGER,
            meeting_address TEXT,
            meeting_day TEXT,
            meeting_time TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY(leader_id) REFERENCES members(id) ON DELETE SET NULL
        )
        """
    )

    execute(
        """
        CREATE TABLE IF NOT EXISTS members (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            national_id TEXT,
            phone TEXT,
            email TEXT,
            conversion_date TEXT,
            address TEXT,
            cell_id INTEGER,
            status TEXT NOT NULL CHECK(status IN ('active','inactive','transferred')),
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY(cell_id) REFERENCES cells(id) ON DELETE SET NULL
        )
        """
    )

    execute(
        """
        CREATE TABLE IF NOT EXISTS finances (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            date TEXT NOT NULL,
            type TEXT NOT NULL CHECK(type IN ('tithe','offering','campaign','other')),
            amount REAL NOT NULL CHECK(amount >= 0),
            member_id INTEGER,
            description TEXT,
            created_at TEXT NOT NULL,
            FOREIGN KEY(member_id) REFERENCES members(id) ON DELETE SET NULL
        )
        """
    )

    execute(
        """
        CREATE TABLE IF NOT EXISTS events (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            date TEXT NOT NULL,
            time TEXT,
            location TEXT,
            expected_attendees INTEGER NOT NULL DEFAULT 0 CHECK(expected_attendees >= 0),
            confirmed_attendees INTEGER NOT NULL DEFAULT 0 CHECK(confirmed_attendees >= 0),
            description TEXT,
            status TEXT NOT NULL CHECK(status IN ('planned','confirmed','completed','cancelled')),
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )


def init_db(default_admin_hash: str, admin_email: str | None = None) -> None:
    """
    Initialize the database.
    - Create tables
    - Insert the default admin if no admin exists
    """
    _create_tables()

    admin = fetch_one("SELECT id FROM admin_users LIMIT 1")
    if not admin:
        execute(
            "INSERT INTO admin_users(email, password_hash, created_at) VALUES(?,?,?)",
            ((admin_email or config.settings.admin_email).strip().lower(), default_admin_hash, now_iso()),
        )
        logger.info("Seeded default admin %s", admin_email or config.settings.admin_email)
