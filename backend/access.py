"""
Tenant scoping.

A viewer sees exactly the organizations owned by their company account.
Every tenant row resolves to one organization (or, for team members, to a
company account); lookups here raise NotFound when the row is missing and
Forbidden when it lives in someone else's tenant.
"""
from __future__ import annotations

import logging
import sqlite3

from db import row_to_dict

logger = logging.getLogger(__name__)


class NotFound(LookupError):
    def __init__(self, what: str = "Not found"):
        super().__init__(what)
        self.detail = what


class Forbidden(PermissionError):
    def __init__(self, what: str = "Forbidden"):
        super().__init__(what)
        self.detail = what


# table → SQL resolving a row id to (row, organization_id)
_ORG_OF = {
    "organizations":    "SELECT t.*, t.id AS _org_id FROM organizations t WHERE t.id = ?",
    "business_units":   "SELECT t.*, t.organization_id AS _org_id FROM business_units t WHERE t.id = ?",
    "teams":            "SELECT t.*, t.organization_id AS _org_id FROM teams t WHERE t.id = ?",
    "initiatives":      "SELECT t.*, t.organization_id AS _org_id FROM initiatives t WHERE t.id = ?",
    "kpis":             "SELECT t.*, t.organization_id AS _org_id FROM kpis t WHERE t.id = ?",
    "stakeholders":     """SELECT t.*, COALESCE(bu.organization_id, t.organization_id) AS _org_id
                           FROM stakeholders t
                           LEFT JOIN business_units bu ON bu.id = t.business_unit_id
                           WHERE t.id = ?""",
    "goals":            """SELECT t.*, bu.organization_id AS _org_id
                           FROM goals t JOIN business_units bu ON bu.id = t.business_unit_id
                           WHERE t.id = ?""",
    "metrics":          """SELECT t.*, bu.organization_id AS _org_id
                           FROM metrics t JOIN business_units bu ON bu.id = t.business_unit_id
                           WHERE t.id = ?""",
    "ops_reviews":      """SELECT t.*, tm.organization_id AS _org_id
                           FROM ops_reviews t JOIN teams tm ON tm.id = t.team_id
                           WHERE t.id = ?""",
    "costs":            """SELECT t.*, COALESCE(t.organization_id, tm.organization_id) AS _org_id
                           FROM costs t JOIN teams tm ON tm.id = t.team_id
                           WHERE t.id = ?""",
    "headcount":        """SELECT t.*, COALESCE(t.organization_id, tm.organization_id) AS _org_id
                           FROM headcount t JOIN teams tm ON tm.id = t.team_id
                           WHERE t.id = ?""",
}

_LABELS = {
    "organizations":  "Organization",
    "business_units": "Business Unit",
    "teams":          "Team",
    "initiatives":    "Initiative",
    "kpis":           "KPI",
    "stakeholders":   "Stakeholder",
    "goals":          "Goal",
    "metrics":        "Metric",
    "ops_reviews":    "Ops review",
    "costs":          "Cost",
    "headcount":      "Headcount",
    "team_members":   "Team member",
}


def viewer_account(conn: sqlite3.Connection, user: dict) -> dict | None:
    row = conn.execute(
        "SELECT * FROM company_accounts WHERE user_id = ?", (user["id"],)
    ).fetchone()
    return row_to_dict(row) if row else None


def viewer_org_ids(conn: sqlite3.Connection, user: dict) -> list[str]:
    rows = conn.execute(
        """
        SELECT o.id FROM organizations o
        JOIN company_accounts ca ON ca.id = o.company_account_id
        WHERE ca.user_id = ?
        """,
        (user["id"],),
    ).fetchall()
    return [r["id"] for r in rows]


def require_account(conn: sqlite3.Connection, user: dict) -> dict:
    account = viewer_account(conn, user)
    if account is None:
        raise Forbidden("Company account required")
    return account


def require(conn: sqlite3.Connection, user: dict, table: str, row_id: str) -> dict:
    """Fetch a tenant row by id, enforcing that it is inside the viewer's scope."""
    if table == "team_members":
        return require_member(conn, user, row_id)
    row = conn.execute(_ORG_OF[table], (row_id,)).fetchone()
    if row is None:
        raise NotFound(f"{_LABELS[table]} not found")
    record = row_to_dict(row)
    org_id = record.pop("_org_id")
    if org_id not in viewer_org_ids(conn, user):
        logger.warning("User %s denied access to %s %s", user["id"], table, row_id)
        raise Forbidden()
    return record


def require_member(conn: sqlite3.Connection, user: dict, member_id: str) -> dict:
    row = conn.execute(
        """
        SELECT m.*, COALESCE(m.company_account_id, o.company_account_id) AS _account_id
        FROM team_members m
        LEFT JOIN teams t ON t.id = m.team_id
        LEFT JOIN organizations o ON o.id = t.organization_id
        WHERE m.id = ?
        """,
        (member_id,),
    ).fetchone()
    if row is None:
        raise NotFound("Team member not found")
    record = row_to_dict(row)
    account = viewer_account(conn, user)
    if account is None or record.pop("_account_id") != account["id"]:
        logger.warning("User %s denied access to team member %s", user["id"], member_id)
        raise Forbidden()
    return record
