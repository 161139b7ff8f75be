"""
Team and team member queries — DB I/O only.
"""
from __future__ import annotations

import sqlite3

from db import delete_row, fetch_row, insert_row, row_to_dict, rows_to_dicts, update_row

_MEMBER_FIELDS = (
    "id, name, email, role, team_id, company_account_id, reports_to_id, is_active, "
    "one_on_one_notes, last_one_on_one_at, goals_notes, personal_notes, created_at, updated_at"
)


def _member(row) -> dict:
    m = row_to_dict(row)
    m["is_active"] = bool(m["is_active"])
    return m


# ── Teams ────────────────────────────────────────────────────────────────────

def fetch_teams(conn: sqlite3.Connection, org_ids: list[str]) -> list[dict]:
    marks = ",".join("?" for _ in org_ids) or "NULL"
    rows = conn.execute(
        f"SELECT * FROM teams WHERE organization_id IN ({marks}) ORDER BY name",
        org_ids,
    ).fetchall()
    return rows_to_dicts(rows)


def fetch_org_teams(conn: sqlite3.Connection, org_id: str) -> list[dict]:
    return fetch_teams(conn, [org_id])


def fetch_team(conn: sqlite3.Connection, team_id: str) -> dict | None:
    return fetch_row(conn, "teams", team_id)


def fetch_team_detail(conn: sqlite3.Connection, team_id: str) -> dict | None:
    team = fetch_team(conn, team_id)
    if team is None:
        return None
    org = conn.execute(
        "SELECT id, name FROM organizations WHERE id = ?", (team["organization_id"],)
    ).fetchone()
    team["organization"] = row_to_dict(org) if org else None
    team["members"] = fetch_team_members(conn, team_id)
    return team


def create_team(conn: sqlite3.Connection, org_id: str, name: str, description: str | None) -> dict:
    row = insert_row(conn, "teams", {
        "name":            name,
        "description":     description,
        "organization_id": org_id,
    })
    conn.commit()
    return row


def update_team(conn: sqlite3.Connection, team_id: str, values: dict) -> dict:
    update_row(conn, "teams", team_id, values)
    conn.commit()
    return fetch_team(conn, team_id)


def delete_team(conn: sqlite3.Connection, team_id: str) -> None:
    delete_row(conn, "teams", team_id)
    conn.commit()


# ── Members ──────────────────────────────────────────────────────────────────

def fetch_team_members(conn: sqlite3.Connection, team_id: str) -> list[dict]:
    rows = conn.execute(
        f"SELECT {_MEMBER_FIELDS} FROM team_members WHERE team_id = ? ORDER BY name",
        (team_id,),
    ).fetchall()
    return [_member(r) for r in rows]


def fetch_account_members(conn: sqlite3.Connection, account_id: str, active_only: bool = True) -> list[dict]:
    """Members of a company account, whether linked directly or through their team."""
    sql = f"""
        SELECT {", ".join("m." + c.strip() for c in _MEMBER_FIELDS.split(","))},
               t.name AS team_name
        FROM team_members m
        LEFT JOIN teams t ON t.id = m.team_id
        LEFT JOIN organizations o ON o.id = t.organization_id
        WHERE COALESCE(m.company_account_id, o.company_account_id) = ?
    """
    if active_only:
        sql += " AND m.is_active = 1"
    sql += " ORDER BY m.name"
    return [_member(r) for r in conn.execute(sql, (account_id,)).fetchall()]


def fetch_member(conn: sqlite3.Connection, member_id: str) -> dict | None:
    row = conn.execute(
        f"SELECT {_MEMBER_FIELDS} FROM team_members WHERE id = ?", (member_id,)
    ).fetchone()
    return _member(row) if row else None


def fetch_member_by_email(conn: sqlite3.Connection, account_id: str, email: str) -> dict | None:
    row = conn.execute(
        f"SELECT {_MEMBER_FIELDS} FROM team_members WHERE company_account_id = ? AND lower(email) = lower(?)",
        (account_id, email),
    ).fetchone()
    return _member(row) if row else None


def fetch_direct_reports(conn: sqlite3.Connection, manager_id: str) -> list[dict]:
    rows = conn.execute(
        """
        SELECT id, name, role, last_one_on_one_at FROM team_members
        WHERE reports_to_id = ? AND is_active = 1
        ORDER BY name
        """,
        (manager_id,),
    ).fetchall()
    return rows_to_dicts(rows)


def create_member(conn: sqlite3.Connection, values: dict) -> dict:
    row = insert_row(conn, "team_members", values)
    conn.commit()
    return fetch_member(conn, row["id"])


def update_member(conn: sqlite3.Connection, member_id: str, values: dict) -> dict:
    update_row(conn, "team_members", member_id, values)
    conn.commit()
    return fetch_member(conn, member_id)


def delete_member(conn: sqlite3.Connection, member_id: str) -> None:
    conn.execute("UPDATE company_accounts SET founder_id = NULL WHERE founder_id = ?", (member_id,))
    delete_row(conn, "team_members", member_id)
    conn.commit()
