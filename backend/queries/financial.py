"""
Cost and headcount queries — DB I/O only.

Both tables are scoped through their own organization_id, falling back to
the organization of the owning team for rows written without one.
"""
from __future__ import annotations

import sqlite3

from db import delete_row, insert_row, row_to_dict, update_row

_ORDER = {
    "costs":     "c.team_id, c.year, c.type",
    "headcount": "c.team_id, c.role, c.level",
}


def _fetch(conn: sqlite3.Connection, table: str, org_ids: list[str], filters: dict) -> list[dict]:
    marks = ",".join("?" for _ in org_ids) or "NULL"
    sql = f"""
        SELECT c.*, t.name AS team_name
        FROM {table} c JOIN teams t ON t.id = c.team_id
        WHERE COALESCE(c.organization_id, t.organization_id) IN ({marks})
    """
    params: list = list(org_ids)
    if filters.get("team_id"):
        sql += " AND c.team_id = ?"
        params.append(filters["team_id"])
    if filters.get("organization_id"):
        sql += " AND (c.organization_id = ? OR t.organization_id = ?)"
        params += [filters["organization_id"], filters["organization_id"]]
    if filters.get("year") is not None:
        sql += " AND c.year = ?"
        params.append(filters["year"])
    sql += f" ORDER BY {_ORDER[table]}"
    return [row_to_dict(r) for r in conn.execute(sql, params).fetchall()]


def _fetch_one(conn: sqlite3.Connection, table: str, row_id: str) -> dict | None:
    row = conn.execute(
        f"SELECT c.*, t.name AS team_name FROM {table} c JOIN teams t ON t.id = c.team_id WHERE c.id = ?",
        (row_id,),
    ).fetchone()
    return row_to_dict(row) if row else None


# ── Costs ────────────────────────────────────────────────────────────────────

def fetch_costs(conn: sqlite3.Connection, org_ids: list[str], filters: dict) -> list[dict]:
    return _fetch(conn, "costs", org_ids, filters)


def fetch_cost(conn: sqlite3.Connection, cost_id: str) -> dict | None:
    return _fetch_one(conn, "costs", cost_id)


def create_cost(conn: sqlite3.Connection, values: dict) -> dict:
    row = insert_row(conn, "costs", values)
    conn.commit()
    return fetch_cost(conn, row["id"])


def update_cost(conn: sqlite3.Connection, cost_id: str, values: dict) -> dict:
    update_row(conn, "costs", cost_id, values)
    conn.commit()
    return fetch_cost(conn, cost_id)


def delete_cost(conn: sqlite3.Connection, cost_id: str) -> None:
    delete_row(conn, "costs", cost_id)
    conn.commit()


# ── Headcount ────────────────────────────────────────────────────────────────

def fetch_headcount(conn: sqlite3.Connection, org_ids: list[str], filters: dict) -> list[dict]:
    return _fetch(conn, "headcount", org_ids, filters)


def fetch_headcount_row(conn: sqlite3.Connection, row_id: str) -> dict | None:
    return _fetch_one(conn, "headcount", row_id)


def create_headcount(conn: sqlite3.Connection, values: dict) -> dict:
    row = insert_row(conn, "headcount", values)
    conn.commit()
    return fetch_headcount_row(conn, row["id"])


def update_headcount(conn: sqlite3.Connection, row_id: str, values: dict) -> dict:
    update_row(conn, "headcount", row_id, values)
    conn.commit()
    return fetch_headcount_row(conn, row_id)


def delete_headcount(conn: sqlite3.Connection, row_id: str) -> None:
    delete_row(conn, "headcount", row_id)
    conn.commit()
