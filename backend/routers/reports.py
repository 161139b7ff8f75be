import sqlite3
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from access import require, viewer_org_ids
from auth import get_current_user
from db import get_db
from queries.financial import fetch_costs
from queries.reports import fetch_business_unit_report, fetch_initiative_report
from analytics.financial import annotate_cost_rows
from analytics.reports import (
    BUSINESS_UNIT_COLUMNS,
    COST_COLUMNS,
    INITIATIVE_COLUMNS,
    project,
    to_csv,
)

router = APIRouter()

ReportFormat = Literal["csv", "json"]


def _render(name: str, columns: list[str], rows: list[dict], fmt: str):
    if fmt == "json":
        return project(columns, rows)
    return Response(
        content=to_csv(columns, rows),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{name}.csv"',
            "Cache-Control":       "no-store",
        },
    )


@router.get("/api/reports/business-units")
def business_unit_report(
    format: ReportFormat = Query("csv"),
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    rows = fetch_business_unit_report(conn, viewer_org_ids(conn, user))
    return _render("business-units", BUSINESS_UNIT_COLUMNS, rows, format)


@router.get("/api/reports/initiatives")
def initiative_report(
    format:           ReportFormat = Query("csv"),
    org_id:           Optional[str] = Query(None),
    owner_id:         Optional[str] = Query(None),
    business_unit_id: Optional[str] = Query(None),
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    org_ids = viewer_org_ids(conn, user)
    if org_id:
        require(conn, user, "organizations", org_id)
        org_ids = [org_id]
    rows = fetch_initiative_report(conn, org_ids, owner_id=owner_id, business_unit_id=business_unit_id)
    return _render("initiatives", INITIATIVE_COLUMNS, rows, format)


@router.get("/api/reports/costs")
def cost_report(
    format: ReportFormat = Query("csv"),
    year:   Optional[int] = Query(None),
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    rows = annotate_cost_rows(fetch_costs(conn, viewer_org_ids(conn, user), {"year": year}))
    return _render("costs", COST_COLUMNS, rows, format)
