"""
Initiative queries — DB I/O only.
"""
from __future__ import annotations

import sqlite3

from db import delete_row, insert_row, row_to_dict, update_row


def _initiative(row) -> dict:
    d = row_to_dict(row)
    d["at_risk"] = bool(d["at_risk"])
    d["organization"] = {"id": d["organization_id"], "name": d.pop("organization_name")}
    owner_name = d.pop("owner_name")
    d["owner"] = {"id": d["owner_id"], "name": owner_name} if d["owner_id"] else None
    return d


_SELECT = """
    SELECT i.*, o.name AS organization_name, m.name AS owner_name
    FROM initiatives i
    JOIN organizations o ON o.id = i.organization_id
    LEFT JOIN team_members m ON m.id = i.owner_id
"""


def fetch_initiatives(
    conn: sqlite3.Connection,
    org_ids: list[str],
    owner_id: str | None = None,
    business_unit_id: str | None = None,
) -> list[dict]:
    marks = ",".join("?" for _ in org_ids) or "NULL"
    sql = _SELECT + f" WHERE i.organization_id IN ({marks})"
    params: list = list(org_ids)
    if owner_id:
        sql += " AND i.owner_id = ?"
        params.append(owner_id)
    if business_unit_id:
        sql += " AND i.business_unit_id = ?"
        params.append(business_unit_id)
    sql += " ORDER BY i.created_at DESC, i.rowid DESC"
    items = [_initiative(r) for r in conn.execute(sql, params).fetchall()]
    _attach_kpis(conn, items)
    return items


def _attach_kpis(conn: sqlite3.Connection, items: list[dict]) -> None:
    ids = [i["id"] for i in items]
    if not ids:
        return
    marks = ",".join("?" for _ in ids)
    rows = conn.execute(
        f"""
        SELECT id, name, initiative_id, quarter, year, target_metric, actual_metric,
               met_target, met_target_percent
        FROM kpis WHERE initiative_id IN ({marks})
        ORDER BY year DESC, quarter
        """,
        ids,
    ).fetchall()
    by_initiative: dict[str, list[dict]] = {i: [] for i in ids}
    for r in rows:
        k = row_to_dict(r)
        k["met_target"] = None if k["met_target"] is None else bool(k["met_target"])
        by_initiative[k["initiative_id"]].append(k)
    for item in items:
        item["kpis"] = by_initiative[item["id"]]


def fetch_initiative(conn: sqlite3.Connection, initiative_id: str) -> dict | None:
    row = conn.execute(_SELECT + " WHERE i.id = ?", (initiative_id,)).fetchone()
    if row is None:
        return None
    item = _initiative(row)
    _attach_kpis(conn, [item])
    return item


def create_initiative(conn: sqlite3.Connection, values: dict) -> dict:
    row = insert_row(conn, "initiatives", values)
    conn.commit()
    return fetch_initiative(conn, row["id"])


def update_initiative(conn: sqlite3.Connection, initiative_id: str, values: dict) -> dict:
    update_row(conn, "initiatives", initiative_id, values)
    conn.commit()
    return fetch_initiative(conn, initiative_id)


def delete_initiative(conn: sqlite3.Connection, initiative_id: str) -> None:
    delete_row(conn, "initiatives", initiative_id)
    conn.commit()
