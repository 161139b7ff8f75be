"""
User and session queries — DB I/O only.
"""
from __future__ import annotations

import json
import sqlite3

from db import insert_row, now_iso, row_to_dict, update_row

_PUBLIC_COLUMNS = (
    "id, email, name, first_name, last_name, company_name, level, industry, "
    "leadership_styles, onboarded_at, created_at, updated_at"
)


def _public(row) -> dict:
    user = row_to_dict(row)
    user["leadership_styles"] = json.loads(user["leadership_styles"] or "[]")
    return user


def fetch_user(conn: sqlite3.Connection, user_id: str) -> dict | None:
    row = conn.execute(f"SELECT {_PUBLIC_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
    return _public(row) if row else None


def fetch_credentials(conn: sqlite3.Connection, email: str) -> dict | None:
    row = conn.execute(
        "SELECT id, email, password_hash, password_salt FROM users WHERE lower(email) = lower(?)",
        (email,),
    ).fetchone()
    return row_to_dict(row) if row else None


def create_user(
    conn: sqlite3.Connection, email: str, name: str | None, password_hash: str, password_salt: str
) -> dict:
    row = insert_row(conn, "users", {
        "email":         email.strip().lower(),
        "name":          name,
        "password_hash": password_hash,
        "password_salt": password_salt,
    })
    conn.commit()
    return fetch_user(conn, row["id"])


def update_user_profile(conn: sqlite3.Connection, user_id: str, values: dict) -> dict:
    if "leadership_styles" in values:
        values = {**values, "leadership_styles": json.dumps(values["leadership_styles"])}
    update_row(conn, "users", user_id, values)
    conn.commit()
    return fetch_user(conn, user_id)


def delete_user(conn: sqlite3.Connection, user_id: str) -> None:
    # Founder links point back into the account being removed.
    conn.execute("UPDATE company_accounts SET founder_id = NULL WHERE user_id = ?", (user_id,))
    conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
    conn.commit()


# ── Sessions ─────────────────────────────────────────────────────────────────

def create_session(conn: sqlite3.Connection, user_id: str, token_hash: str, expires_at: str) -> dict:
    row = insert_row(conn, "sessions", {
        "user_id":    user_id,
        "token_hash": token_hash,
        "expires_at": expires_at,
    })
    conn.commit()
    return row


def fetch_session_user(conn: sqlite3.Connection, token_hash: str) -> dict | None:
    row = conn.execute(
        f"""
        SELECT {", ".join("u." + c.strip() for c in _PUBLIC_COLUMNS.split(","))}
        FROM sessions s
        JOIN users u ON u.id = s.user_id
        WHERE s.token_hash = ? AND s.revoked_at IS NULL AND s.expires_at > ?
        """,
        (token_hash, now_iso()),
    ).fetchone()
    return _public(row) if row else None


def revoke_session(conn: sqlite3.Connection, token_hash: str) -> None:
    conn.execute(
        "UPDATE sessions SET revoked_at = ?, updated_at = ? WHERE token_hash = ?",
        (now_iso(), now_iso(), token_hash),
    )
    conn.commit()


def count_active_sessions(conn: sqlite3.Connection) -> int:
    return conn.execute(
        "SELECT COUNT(*) FROM sessions WHERE revoked_at IS NULL AND expires_at > ?",
        (now_iso(),),
    ).fetchone()[0]

