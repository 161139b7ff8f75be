"""
Report row shaping and CSV encoding — pure functions only.
"""
from __future__ import annotations

import csv
import io

BUSINESS_UNIT_COLUMNS = [
    "id", "name", "description", "organization_id", "organization_name",
    "stakeholders_count", "goals_count", "metrics_count", "created_at", "updated_at",
]

INITIATIVE_COLUMNS = [
    "id", "name", "organization_id", "owner_id", "business_unit_id", "release_date",
    "status", "at_risk", "summary", "type", "created_at", "updated_at",
]

COST_COLUMNS = [
    "id", "team_id", "team_name", "organization_id", "year", "type",
    "q1_forecast", "q1_actual", "q2_forecast", "q2_actual",
    "q3_forecast", "q3_actual", "q4_forecast", "q4_actual",
    "forecast", "actual", "variance", "band", "notes",
]


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def to_csv(columns: list[str], rows: list[dict]) -> str:
    """Header line, then one line per row; quoting only where a value needs it."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow(columns)
    for row in rows:
        writer.writerow([_cell(row.get(c)) for c in columns])
    return buf.getvalue()


def project(columns: list[str], rows: list[dict]) -> list[dict]:
    return [{c: row.get(c) for c in columns} for row in rows]
