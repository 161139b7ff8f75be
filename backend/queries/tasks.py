"""
Task and note queries — DB I/O only.
"""
from __future__ import annotations

import sqlite3

from db import delete_row, fetch_row, insert_row, rows_to_dicts, update_row


def fetch_notes(conn: sqlite3.Connection, task_id: str) -> list[dict]:
    rows = conn.execute(
        "SELECT * FROM notes WHERE task_id = ? ORDER BY created_at DESC, rowid DESC",
        (task_id,),
    ).fetchall()
    return rows_to_dicts(rows)


def fetch_tasks(conn: sqlite3.Connection, user_id: str) -> list[dict]:
    rows = conn.execute(
        "SELECT * FROM tasks WHERE user_id = ? ORDER BY created_at DESC, rowid DESC",
        (user_id,),
    ).fetchall()
    tasks = rows_to_dicts(rows)
    for t in tasks:
        t["notes"] = fetch_notes(conn, t["id"])
    return tasks


def fetch_task(conn: sqlite3.Connection, task_id: str) -> dict | None:
    task = fetch_row(conn, "tasks", task_id)
    if task is not None:
        task["notes"] = fetch_notes(conn, task_id)
    return task


def create_task(conn: sqlite3.Connection, user_id: str, values: dict) -> dict:
    row = insert_row(conn, "tasks", {**values, "user_id": user_id})
    conn.commit()
    return fetch_task(conn, row["id"])


def update_task(conn: sqlite3.Connection, task_id: str, values: dict) -> dict:
    update_row(conn, "tasks", task_id, values)
    conn.commit()
    return fetch_task(conn, task_id)


def delete_task(conn: sqlite3.Connection, task_id: str) -> None:
    delete_row(conn, "tasks", task_id)
    conn.commit()


def create_note(conn: sqlite3.Connection, task_id: str, content: str) -> dict:
    row = insert_row(conn, "notes", {"task_id": task_id, "content": content})
    conn.commit()
    return row
