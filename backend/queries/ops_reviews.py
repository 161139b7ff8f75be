"""
Operations review and review item queries — DB I/O only.
"""
from __future__ import annotations

import sqlite3

from db import delete_row, insert_row, row_to_dict, update_row

_REVIEW_SELECT = """
    SELECT r.*, t.name AS team_name, m.name AS owner_name,
           (SELECT COUNT(*) FROM ops_review_items i WHERE i.ops_review_id = r.id) AS item_count
    FROM ops_reviews r
    JOIN teams t ON t.id = r.team_id
    LEFT JOIN team_members m ON m.id = r.owner_id
"""

_ITEM_SELECT = """
    SELECT i.*, m.name AS owner_name, t.name AS team_name, r.title AS ops_review_title
    FROM ops_review_items i
    JOIN ops_reviews r ON r.id = i.ops_review_id
    JOIN teams t ON t.id = i.team_id
    LEFT JOIN team_members m ON m.id = i.owner_id
"""


def fetch_reviews(conn: sqlite3.Connection, org_ids: list[str], filters: dict) -> list[dict]:
    marks = ",".join("?" for _ in org_ids) or "NULL"
    sql = _REVIEW_SELECT + f" WHERE t.organization_id IN ({marks})"
    params: list = list(org_ids)
    for col in ("team_id", "quarter", "year"):
        if filters.get(col) is not None:
            sql += f" AND r.{col} = ?"
            params.append(filters[col])
    sql += " ORDER BY r.year DESC, r.quarter ASC, r.month ASC"
    return [row_to_dict(r) for r in conn.execute(sql, params).fetchall()]


def fetch_review(conn: sqlite3.Connection, review_id: str) -> dict | None:
    row = conn.execute(_REVIEW_SELECT + " WHERE r.id = ?", (review_id,)).fetchone()
    return row_to_dict(row) if row else None


def create_review(conn: sqlite3.Connection, values: dict) -> dict:
    row = insert_row(conn, "ops_reviews", values)
    conn.commit()
    return fetch_review(conn, row["id"])


def update_review(conn: sqlite3.Connection, review_id: str, values: dict) -> dict:
    update_row(conn, "ops_reviews", review_id, values)
    conn.commit()
    return fetch_review(conn, review_id)


def delete_review(conn: sqlite3.Connection, review_id: str) -> None:
    delete_row(conn, "ops_reviews", review_id)
    conn.commit()


# ── Items ────────────────────────────────────────────────────────────────────

def fetch_items(conn: sqlite3.Connection, review_id: str) -> list[dict]:
    rows = conn.execute(
        _ITEM_SELECT + " WHERE i.ops_review_id = ? ORDER BY i.created_at DESC, i.rowid DESC",
        (review_id,),
    ).fetchall()
    return [row_to_dict(r) for r in rows]


def fetch_item(conn: sqlite3.Connection, item_id: str) -> dict | None:
    row = conn.execute(_ITEM_SELECT + " WHERE i.id = ?", (item_id,)).fetchone()
    return row_to_dict(row) if row else None


def create_item(conn: sqlite3.Connection, review_id: str, values: dict) -> dict:
    row = insert_row(conn, "ops_review_items", {**values, "ops_review_id": review_id})
    conn.commit()
    return fetch_item(conn, row["id"])


def update_item(conn: sqlite3.Connection, item_id: str, values: dict) -> dict:
    update_row(conn, "ops_review_items", item_id, values)
    conn.commit()
    return fetch_item(conn, item_id)


def delete_item(conn: sqlite3.Connection, item_id: str) -> None:
    delete_row(conn, "ops_review_items", item_id)
    conn.commit()
