"""
Company account, organization and CEO goal queries — DB I/O only.
"""
from __future__ import annotations

import sqlite3

from db import delete_row, fetch_row, insert_row, new_id, now_iso, row_to_dict, rows_to_dicts, update_row


def _account(row) -> dict:
    d = row_to_dict(row)
    d["is_private"] = bool(d["is_private"])
    return d


# ── Company accounts ─────────────────────────────────────────────────────────

def fetch_account(conn: sqlite3.Connection, account_id: str) -> dict | None:
    row = conn.execute("SELECT * FROM company_accounts WHERE id = ?", (account_id,)).fetchone()
    return _account(row) if row else None


def fetch_account_for_user(conn: sqlite3.Connection, user_id: str) -> dict | None:
    row = conn.execute("SELECT * FROM company_accounts WHERE user_id = ?", (user_id,)).fetchone()
    return _account(row) if row else None


def fetch_account_detail(conn: sqlite3.Connection, account_id: str) -> dict | None:
    """Account with its organizations (each with business units) and founder."""
    account = fetch_account(conn, account_id)
    if account is None:
        return None
    orgs = fetch_organizations(conn, account_id)
    units = rows_to_dicts(conn.execute(
        """
        SELECT bu.* FROM business_units bu
        JOIN organizations o ON o.id = bu.organization_id
        WHERE o.company_account_id = ?
        ORDER BY bu.name
        """,
        (account_id,),
    ).fetchall())
    for org in orgs:
        org["business_units"] = [u for u in units if u["organization_id"] == org["id"]]
    account["organizations"] = orgs
    account["founder"] = None
    if account["founder_id"]:
        founder = conn.execute(
            "SELECT id, name, email, role FROM team_members WHERE id = ?", (account["founder_id"],)
        ).fetchone()
        account["founder"] = row_to_dict(founder) if founder else None
    return account


def create_account(conn: sqlite3.Connection, user_id: str, values: dict) -> dict:
    row = insert_row(conn, "company_accounts", {"user_id": user_id, **values})
    conn.commit()
    return fetch_account(conn, row["id"])


def update_account(conn: sqlite3.Connection, account_id: str, values: dict) -> dict:
    update_row(conn, "company_accounts", account_id, values)
    conn.commit()
    return fetch_account(conn, account_id)


# ── Organizations ────────────────────────────────────────────────────────────

def fetch_organizations(conn: sqlite3.Connection, account_id: str) -> list[dict]:
    rows = conn.execute(
        """
        SELECT * FROM organizations WHERE company_account_id = ?
        ORDER BY created_at DESC, rowid DESC
        """,
        (account_id,),
    ).fetchall()
    return rows_to_dicts(rows)


def fetch_organization(conn: sqlite3.Connection, org_id: str) -> dict | None:
    return fetch_row(conn, "organizations", org_id)


def fetch_organization_by_name(conn: sqlite3.Connection, account_id: str, name: str) -> dict | None:
    row = conn.execute(
        "SELECT * FROM organizations WHERE company_account_id = ? AND name = ?",
        (account_id, name),
    ).fetchone()
    return row_to_dict(row) if row else None


def create_organization(conn: sqlite3.Connection, account_id: str, name: str, description: str | None) -> dict:
    row = insert_row(conn, "organizations", {
        "name":               name,
        "description":        description,
        "company_account_id": account_id,
    })
    conn.commit()
    return row


def update_organization(conn: sqlite3.Connection, org_id: str, values: dict) -> dict:
    update_row(conn, "organizations", org_id, values)
    conn.commit()
    return fetch_organization(conn, org_id)


def delete_organization(conn: sqlite3.Connection, org_id: str) -> None:
    delete_row(conn, "organizations", org_id)
    conn.commit()


# ── CEO goals ────────────────────────────────────────────────────────────────

def fetch_ceo_goals(conn: sqlite3.Connection, org_id: str) -> list[dict]:
    rows = conn.execute(
        "SELECT * FROM ceo_goals WHERE organization_id = ? ORDER BY position",
        (org_id,),
    ).fetchall()
    return rows_to_dicts(rows)


def replace_ceo_goals(conn: sqlite3.Connection, org_id: str, descriptions: list[str]) -> list[dict]:
    """Drop every goal of the organization and write the new list in order."""
    ts = now_iso()
    with conn:
        conn.execute("DELETE FROM ceo_goals WHERE organization_id = ?", (org_id,))
        conn.executemany(
            """
            INSERT INTO ceo_goals (id, organization_id, description, position, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            [(new_id(), org_id, d, i, ts, ts) for i, d in enumerate(descriptions)],
        )
    return fetch_ceo_goals(conn, org_id)
