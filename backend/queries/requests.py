"""
Feature / support request queries and admin counters — DB I/O only.
"""
from __future__ import annotations

import sqlite3

from db import fetch_row, insert_row, row_to_dict, rows_to_dicts, update_row

REQUEST_TABLES = {"feature": "feature_requests", "support": "support_requests"}


def fetch_user_requests(conn: sqlite3.Connection, kind: str, user_id: str) -> list[dict]:
    rows = conn.execute(
        f"SELECT * FROM {REQUEST_TABLES[kind]} WHERE user_id = ? ORDER BY created_at DESC, rowid DESC",
        (user_id,),
    ).fetchall()
    return rows_to_dicts(rows)


def create_request(conn: sqlite3.Connection, kind: str, user_id: str, values: dict) -> dict:
    row = insert_row(conn, REQUEST_TABLES[kind], {**values, "user_id": user_id})
    conn.commit()
    return fetch_row(conn, REQUEST_TABLES[kind], row["id"])


def fetch_request(conn: sqlite3.Connection, kind: str, request_id: str) -> dict | None:
    row = conn.execute(
        f"""
        SELECT r.*, u.email AS user_email, u.name AS user_name
        FROM {REQUEST_TABLES[kind]} r JOIN users u ON u.id = r.user_id
        WHERE r.id = ?
        """,
        (request_id,),
    ).fetchone()
    return row_to_dict(row) if row else None


def update_request(conn: sqlite3.Connection, kind: str, request_id: str, values: dict) -> dict:
    update_row(conn, REQUEST_TABLES[kind], request_id, values)
    conn.commit()
    return fetch_request(conn, kind, request_id)


def fetch_recent_requests(conn: sqlite3.Connection, kind: str, limit: int = 20) -> list[dict]:
    rows = conn.execute(
        f"""
        SELECT r.*, u.email AS user_email
        FROM {REQUEST_TABLES[kind]} r JOIN users u ON u.id = r.user_id
        ORDER BY r.created_at DESC, r.rowid DESC LIMIT ?
        """,
        (limit,),
    ).fetchall()
    return rows_to_dicts(rows)


def fetch_admin_counts(conn: sqlite3.Connection) -> dict:
    def _count(sql: str) -> int:
        return conn.execute(sql).fetchone()[0]

    return {
        "total_users":     _count("SELECT COUNT(*) FROM users"),
        "onboarded_users": _count("SELECT COUNT(*) FROM users WHERE onboarded_at IS NOT NULL"),
        "organizations":   _count("SELECT COUNT(*) FROM organizations"),
        "teams":           _count("SELECT COUNT(*) FROM teams"),
        "initiatives":     _count("SELECT COUNT(*) FROM initiatives"),
        "stakeholders":    _count("SELECT COUNT(*) FROM stakeholders"),
        "kpis":            _count("SELECT COUNT(*) FROM kpis"),
    }


def fetch_recent_signups(conn: sqlite3.Connection, limit: int = 10) -> list[dict]:
    rows = conn.execute(
        """
        SELECT id, email, name, company_name, onboarded_at, created_at
        FROM users ORDER BY created_at DESC, rowid DESC LIMIT ?
        """,
        (limit,),
    ).fetchall()
    return rows_to_dicts(rows)
