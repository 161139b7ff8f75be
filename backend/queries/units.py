"""
Business unit, metric, stakeholder and goal queries — DB I/O only.
"""
from __future__ import annotations

import sqlite3

from db import delete_row, fetch_row, insert_row, row_to_dict, rows_to_dicts, update_row


def _in_clause(ids: list[str]) -> str:
    return ",".join("?" for _ in ids) or "NULL"


# ── Business units ───────────────────────────────────────────────────────────

def fetch_business_units(conn: sqlite3.Connection, org_ids: list[str]) -> list[dict]:
    """Units in scope, newest first, with organization, stakeholders, metrics, goals."""
    rows = conn.execute(
        f"""
        SELECT bu.*, o.name AS organization_name
        FROM business_units bu JOIN organizations o ON o.id = bu.organization_id
        WHERE bu.organization_id IN ({_in_clause(org_ids)})
        ORDER BY bu.created_at DESC, bu.rowid DESC
        """,
        org_ids,
    ).fetchall()
    return [_with_children(conn, row_to_dict(r)) for r in rows]


def fetch_org_business_units(conn: sqlite3.Connection, org_id: str) -> list[dict]:
    rows = conn.execute(
        "SELECT * FROM business_units WHERE organization_id = ? ORDER BY name",
        (org_id,),
    ).fetchall()
    units = []
    for r in rows:
        unit = row_to_dict(r)
        unit["stakeholders"] = fetch_unit_stakeholders(conn, unit["id"])
        unit["metrics"] = fetch_metrics(conn, unit["id"])
        units.append(unit)
    return units


def _with_children(conn: sqlite3.Connection, unit: dict) -> dict:
    unit["organization"] = {"id": unit["organization_id"], "name": unit.pop("organization_name", None)}
    unit["stakeholders"] = fetch_unit_stakeholders(conn, unit["id"])
    unit["metrics"] = fetch_metrics(conn, unit["id"])
    unit["goals"] = fetch_unit_goals(conn, unit["id"])
    return unit


def fetch_business_unit(conn: sqlite3.Connection, unit_id: str) -> dict | None:
    row = conn.execute(
        """
        SELECT bu.*, o.name AS organization_name
        FROM business_units bu JOIN organizations o ON o.id = bu.organization_id
        WHERE bu.id = ?
        """,
        (unit_id,),
    ).fetchone()
    return _with_children(conn, row_to_dict(row)) if row else None


def create_business_unit(conn: sqlite3.Connection, org_id: str, name: str, description: str | None) -> dict:
    row = insert_row(conn, "business_units", {
        "name":            name,
        "description":     description,
        "organization_id": org_id,
    })
    conn.commit()
    return row


def update_business_unit(conn: sqlite3.Connection, unit_id: str, values: dict) -> dict:
    update_row(conn, "business_units", unit_id, values)
    conn.commit()
    return fetch_business_unit(conn, unit_id)


def delete_business_unit(conn: sqlite3.Connection, unit_id: str) -> None:
    delete_row(conn, "business_units", unit_id)
    conn.commit()


# ── Metrics ──────────────────────────────────────────────────────────────────

def fetch_metrics(conn: sqlite3.Connection, unit_id: str) -> list[dict]:
    rows = conn.execute(
        "SELECT * FROM metrics WHERE business_unit_id = ? ORDER BY created_at, rowid",
        (unit_id,),
    ).fetchall()
    return rows_to_dicts(rows)


def create_metric(conn: sqlite3.Connection, unit_id: str, values: dict) -> dict:
    row = insert_row(conn, "metrics", {**values, "business_unit_id": unit_id})
    conn.commit()
    return row


# ── Stakeholders ─────────────────────────────────────────────────────────────

_STAKEHOLDER_SCOPE = """
    FROM stakeholders s
    LEFT JOIN business_units bu ON bu.id = s.business_unit_id
    WHERE COALESCE(bu.organization_id, s.organization_id) IN ({ids})
"""


def fetch_stakeholders(
    conn: sqlite3.Connection,
    org_ids: list[str],
    unassigned: bool = False,
    exclude_unit_id: str | None = None,
) -> list[dict]:
    sql = "SELECT s.*, bu.name AS business_unit_name" + _STAKEHOLDER_SCOPE.format(ids=_in_clause(org_ids))
    params: list = list(org_ids)
    if unassigned:
        sql += " AND s.business_unit_id IS NULL"
    elif exclude_unit_id:
        sql += " AND (s.business_unit_id IS NULL OR s.business_unit_id != ?)"
        params.append(exclude_unit_id)
    sql += " ORDER BY s.name"
    return rows_to_dicts(conn.execute(sql, params).fetchall())


def fetch_unit_stakeholders(conn: sqlite3.Connection, unit_id: str) -> list[dict]:
    rows = conn.execute(
        "SELECT * FROM stakeholders WHERE business_unit_id = ? ORDER BY name",
        (unit_id,),
    ).fetchall()
    return rows_to_dicts(rows)


def fetch_stakeholder(conn: sqlite3.Connection, stakeholder_id: str) -> dict | None:
    return fetch_row(conn, "stakeholders", stakeholder_id)


def create_stakeholder(conn: sqlite3.Connection, values: dict) -> dict:
    row = insert_row(conn, "stakeholders", values)
    conn.commit()
    return row


def update_stakeholder(conn: sqlite3.Connection, stakeholder_id: str, values: dict) -> dict:
    update_row(conn, "stakeholders", stakeholder_id, values)
    conn.commit()
    return fetch_stakeholder(conn, stakeholder_id)


def delete_stakeholder(conn: sqlite3.Connection, stakeholder_id: str) -> None:
    delete_row(conn, "stakeholders", stakeholder_id)
    conn.commit()


# ── Goals ────────────────────────────────────────────────────────────────────

def _goal_with_stakeholder(row) -> dict:
    goal = row_to_dict(row)
    name = goal.pop("stakeholder_name_")
    role = goal.pop("stakeholder_role_")
    goal["stakeholder"] = (
        {"id": goal["stakeholder_id"], "name": name, "role": role}
        if goal["stakeholder_id"] else None
    )
    return goal


_GOAL_SELECT = """
    SELECT g.*, s.name AS stakeholder_name_, s.role AS stakeholder_role_
    FROM goals g LEFT JOIN stakeholders s ON s.id = g.stakeholder_id
"""


def fetch_unit_goals(conn: sqlite3.Connection, unit_id: str) -> list[dict]:
    rows = conn.execute(
        _GOAL_SELECT + " WHERE g.business_unit_id = ? ORDER BY g.created_at DESC, g.rowid DESC",
        (unit_id,),
    ).fetchall()
    return [_goal_with_stakeholder(r) for r in rows]


def fetch_stakeholder_goals(conn: sqlite3.Connection, stakeholder_id: str) -> list[dict]:
    rows = conn.execute(
        _GOAL_SELECT + " WHERE g.stakeholder_id = ? ORDER BY g.created_at DESC, g.rowid DESC",
        (stakeholder_id,),
    ).fetchall()
    return [_goal_with_stakeholder(r) for r in rows]


def fetch_goal(conn: sqlite3.Connection, goal_id: str) -> dict | None:
    row = conn.execute(_GOAL_SELECT + " WHERE g.id = ?", (goal_id,)).fetchone()
    return _goal_with_stakeholder(row) if row else None


def fetch_goal_detail(conn: sqlite3.Connection, goal_id: str) -> dict | None:
    goal = fetch_goal(conn, goal_id)
    if goal is None:
        return None
    unit = conn.execute(
        "SELECT id, name, organization_id FROM business_units WHERE id = ?",
        (goal["business_unit_id"],),
    ).fetchone()
    goal["business_unit"] = row_to_dict(unit) if unit else None
    if goal["stakeholder_id"]:
        goal["stakeholder"] = fetch_stakeholder(conn, goal["stakeholder_id"])
    return goal


def _like_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_goals(
    conn: sqlite3.Connection,
    org_ids: list[str],
    q: str | None,
    since: str | None,
    limit: int,
) -> list[dict]:
    """Goals in scope matching q, touched since `since` (None = any time), latest first."""
    sql = _GOAL_SELECT + f"""
        JOIN business_units bu ON bu.id = g.business_unit_id
        WHERE bu.organization_id IN ({_in_clause(org_ids)})
    """
    params: list = list(org_ids)
    if q:
        sql += (
            " AND (lower(g.title) LIKE ? ESCAPE '\\'"
            " OR lower(COALESCE(g.description, '')) LIKE ? ESCAPE '\\')"
        )
        needle = f"%{_like_escape(q.lower())}%"
        params += [needle, needle]
    if since:
        sql += " AND (g.updated_at >= ? OR g.created_at >= ?)"
        params += [since, since]
    sql += " ORDER BY g.updated_at DESC, g.rowid DESC LIMIT ?"
    params.append(limit)
    return [_goal_with_stakeholder(r) for r in conn.execute(sql, params).fetchall()]


def create_goals(conn: sqlite3.Connection, values: dict, quarters: list[str]) -> list[dict]:
    """One goal per quarter, written in a single transaction."""
    with conn:
        ids = [insert_row(conn, "goals", {**values, "quarter": q})["id"] for q in quarters]
    return [fetch_goal(conn, i) for i in ids]


def update_goal(conn: sqlite3.Connection, goal_id: str, values: dict) -> dict:
    update_row(conn, "goals", goal_id, values)
    conn.commit()
    return fetch_goal(conn, goal_id)


def delete_goal(conn: sqlite3.Connection, goal_id: str) -> None:
    delete_row(conn, "goals", goal_id)
    conn.commit()
