"""
Flat report extracts — DB I/O only.
"""
from __future__ import annotations

import sqlite3

from db import rows_to_dicts


def fetch_business_unit_report(conn: sqlite3.Connection, org_ids: list[str]) -> list[dict]:
    marks = ",".join("?" for _ in org_ids) or "NULL"
    rows = conn.execute(
        f"""
        SELECT bu.id, bu.name, bu.description, bu.organization_id,
               o.name AS organization_name,
               (SELECT COUNT(*) FROM stakeholders s WHERE s.business_unit_id = bu.id) AS stakeholders_count,
               (SELECT COUNT(*) FROM goals g WHERE g.business_unit_id = bu.id)        AS goals_count,
               (SELECT COUNT(*) FROM metrics m WHERE m.business_unit_id = bu.id)      AS metrics_count,
               bu.created_at, bu.updated_at
        FROM business_units bu JOIN organizations o ON o.id = bu.organization_id
        WHERE bu.organization_id IN ({marks})
        ORDER BY bu.name
        """,
        org_ids,
    ).fetchall()
    return rows_to_dicts(rows)


def fetch_initiative_report(
    conn: sqlite3.Connection,
    org_ids: list[str],
    owner_id: str | None = None,
    business_unit_id: str | None = None,
) -> list[dict]:
    marks = ",".join("?" for _ in org_ids) or "NULL"
    sql = f"SELECT * FROM initiatives WHERE organization_id IN ({marks})"
    params: list = list(org_ids)
    if owner_id:
        sql += " AND owner_id = ?"
        params.append(owner_id)
    if business_unit_id:
        sql += " AND business_unit_id = ?"
        params.append(business_unit_id)
    sql += " ORDER BY created_at DESC, rowid DESC"
    rows = rows_to_dicts(conn.execute(sql, params).fetchall())
    for r in rows:
        r["at_risk"] = bool(r["at_risk"])
    return rows
