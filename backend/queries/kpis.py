"""
KPI and KPI status queries — DB I/O only.
"""
from __future__ import annotations

import sqlite3

from db import delete_row, fetch_row, insert_row, row_to_dict, rows_to_dicts, update_row


def _kpi(row) -> dict:
    k = row_to_dict(row)
    k["met_target"] = None if k["met_target"] is None else bool(k["met_target"])
    return k


def _attach_units(conn: sqlite3.Connection, kpis: list[dict]) -> list[dict]:
    ids = [k["id"] for k in kpis]
    links: dict[str, list[str]] = {i: [] for i in ids}
    if ids:
        marks = ",".join("?" for _ in ids)
        for r in conn.execute(
            f"SELECT kpi_id, business_unit_id FROM kpi_business_units WHERE kpi_id IN ({marks})",
            ids,
        ).fetchall():
            links[r["kpi_id"]].append(r["business_unit_id"])
    for k in kpis:
        k["business_unit_ids"] = sorted(links[k["id"]])
    return kpis


def fetch_kpis(
    conn: sqlite3.Connection,
    org_ids: list[str],
    filters: dict,
) -> list[dict]:
    """
    filters may carry organization_id, team_id, initiative_id, business_unit_id,
    quarter and year; None values are ignored.
    """
    marks = ",".join("?" for _ in org_ids) or "NULL"
    sql = f"SELECT k.* FROM kpis k WHERE k.organization_id IN ({marks})"
    params: list = list(org_ids)
    for col in ("organization_id", "team_id", "initiative_id", "quarter", "year"):
        if filters.get(col) is not None:
            sql += f" AND k.{col} = ?"
            params.append(filters[col])
    if filters.get("business_unit_id"):
        sql += " AND k.id IN (SELECT kpi_id FROM kpi_business_units WHERE business_unit_id = ?)"
        params.append(filters["business_unit_id"])
    sql += " ORDER BY k.year DESC, k.quarter ASC, k.name"
    return _attach_units(conn, [_kpi(r) for r in conn.execute(sql, params).fetchall()])


def fetch_kpi(conn: sqlite3.Connection, kpi_id: str) -> dict | None:
    row = conn.execute("SELECT * FROM kpis WHERE id = ?", (kpi_id,)).fetchone()
    return _attach_units(conn, [_kpi(row)])[0] if row else None


def _set_units(conn: sqlite3.Connection, kpi_id: str, unit_ids: list[str]) -> None:
    conn.execute("DELETE FROM kpi_business_units WHERE kpi_id = ?", (kpi_id,))
    conn.executemany(
        "INSERT INTO kpi_business_units (kpi_id, business_unit_id) VALUES (?, ?)",
        [(kpi_id, u) for u in dict.fromkeys(unit_ids)],
    )


def create_kpi(conn: sqlite3.Connection, values: dict, unit_ids: list[str]) -> dict:
    with conn:
        row = insert_row(conn, "kpis", values)
        _set_units(conn, row["id"], unit_ids)
    return fetch_kpi(conn, row["id"])


def update_kpi(conn: sqlite3.Connection, kpi_id: str, values: dict, unit_ids: list[str] | None = None) -> dict:
    with conn:
        update_row(conn, "kpis", kpi_id, values)
        if unit_ids is not None:
            _set_units(conn, kpi_id, unit_ids)
    return fetch_kpi(conn, kpi_id)


def delete_kpi(conn: sqlite3.Connection, kpi_id: str) -> None:
    delete_row(conn, "kpis", kpi_id)
    conn.commit()


# ── Statuses ─────────────────────────────────────────────────────────────────

def fetch_statuses(conn: sqlite3.Connection, kpi_id: str) -> list[dict]:
    rows = conn.execute(
        "SELECT * FROM kpi_statuses WHERE kpi_id = ? ORDER BY year DESC, quarter ASC, created_at",
        (kpi_id,),
    ).fetchall()
    return rows_to_dicts(rows)


def fetch_status(conn: sqlite3.Connection, status_id: str) -> dict | None:
    return fetch_row(conn, "kpi_statuses", status_id)


def fetch_status_amounts(conn: sqlite3.Connection, kpi_id: str) -> list[float]:
    return [r[0] for r in conn.execute(
        "SELECT amount FROM kpi_statuses WHERE kpi_id = ?", (kpi_id,)
    ).fetchall()]


def create_status(conn: sqlite3.Connection, kpi_id: str, values: dict) -> dict:
    row = insert_row(conn, "kpi_statuses", {**values, "kpi_id": kpi_id})
    conn.commit()
    return row


def update_status(conn: sqlite3.Connection, status_id: str, values: dict) -> dict:
    update_row(conn, "kpi_statuses", status_id, values)
    conn.commit()
    return fetch_status(conn, status_id)


def delete_status(conn: sqlite3.Connection, status_id: str) -> None:
    delete_row(conn, "kpi_statuses", status_id)
    conn.commit()
