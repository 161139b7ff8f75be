import logging
import sqlite3
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from access import NotFound, require, viewer_org_ids
from auth import get_current_user
from db import get_db
from queries.kpis import (
    create_kpi,
    create_status,
    delete_kpi,
    delete_status,
    fetch_kpi,
    fetch_kpis,
    fetch_status,
    fetch_status_amounts,
    fetch_statuses,
    update_kpi,
    update_status,
)
from analytics.kpi import compute_kpi_progress, rollup_kpi_statuses, summarize_kpi_progress
from validation import Quarter

logger = logging.getLogger(__name__)

router = APIRouter()


class KpiRequest(BaseModel):
    name:               str = Field(min_length=1)
    target_metric:      Optional[float] = None
    actual_metric:      Optional[float] = None
    forecasted_revenue: Optional[float] = None
    actual_revenue:     Optional[float] = None
    quarter:            Quarter
    year:               int
    organization_id:    Optional[str] = None
    team_id:            str = Field(min_length=1)
    initiative_id:      Optional[str] = None
    business_unit_ids:  list[str] = []


class KpiUpdate(BaseModel):
    name:               Optional[str] = Field(None, min_length=1)
    target_metric:      Optional[float] = None
    actual_metric:      Optional[float] = None
    forecasted_revenue: Optional[float] = None
    actual_revenue:     Optional[float] = None
    quarter:            Optional[Quarter] = None
    year:               Optional[int] = None
    team_id:            Optional[str] = None
    initiative_id:      Optional[str] = None
    business_unit_ids:  Optional[list[str]] = None


class KpiStatusRequest(BaseModel):
    year:    Optional[int] = None
    quarter: Optional[Quarter] = None
    amount:  Optional[float] = None


class KpiStatusUpdate(BaseModel):
    year:    Optional[int] = None
    quarter: Optional[Quarter] = None
    amount:  Optional[float] = None


def _check_links(conn: sqlite3.Connection, user: dict, values: dict, unit_ids: list[str]) -> None:
    if values.get("team_id"):
        require(conn, user, "teams", values["team_id"])
    if values.get("initiative_id"):
        require(conn, user, "initiatives", values["initiative_id"])
    for unit_id in unit_ids:
        require(conn, user, "business_units", unit_id)


def _recompute(conn: sqlite3.Connection, kpi_id: str) -> dict:
    """Re-derive actual / met_target / met_target_percent from the status rows."""
    kpi = fetch_kpi(conn, kpi_id)
    derived = rollup_kpi_statuses(kpi["target_metric"], fetch_status_amounts(conn, kpi_id))
    return update_kpi(conn, kpi_id, derived)


@router.get("/api/kpis")
def list_kpis(
    org_id:           Optional[str] = Query(None),
    team_id:          Optional[str] = Query(None),
    initiative_id:    Optional[str] = Query(None),
    business_unit_id: Optional[str] = Query(None),
    quarter:          Optional[Quarter] = Query(None),
    year:             Optional[int] = Query(None),
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    return fetch_kpis(conn, viewer_org_ids(conn, user), {
        "organization_id":  org_id,
        "team_id":          team_id,
        "initiative_id":    initiative_id,
        "business_unit_id": business_unit_id,
        "quarter":          quarter,
        "year":             year,
    })


@router.get("/api/kpis/progress")
def kpi_progress(
    year: Optional[int] = Query(None),
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    return summarize_kpi_progress(fetch_kpis(conn, viewer_org_ids(conn, user), {"year": year}))


@router.post("/api/kpis", status_code=201)
def add_kpi(
    req: KpiRequest,
    org_id: Optional[str] = Query(None),
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    organization_id = req.organization_id or org_id
    if not organization_id:
        raise HTTPException(status_code=400, detail="organization_id is required")
    try:
        require(conn, user, "organizations", organization_id)
    except NotFound:
        raise HTTPException(status_code=400, detail="Organization not found")

    values = req.model_dump(exclude={"business_unit_ids", "organization_id"})
    values["organization_id"] = organization_id
    values["initiative_id"] = values["initiative_id"] or None
    _check_links(conn, user, values, req.business_unit_ids)
    values.update(compute_kpi_progress(req.target_metric, req.actual_metric))
    kpi = create_kpi(conn, values, req.business_unit_ids)
    logger.info("KPI %s created in organization %s", kpi["id"], organization_id)
    return kpi


@router.get("/api/kpis/{kpi_id}")
def get_kpi(kpi_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "kpis", kpi_id)
    return fetch_kpi(conn, kpi_id)


@router.put("/api/kpis/{kpi_id}")
def put_kpi(
    kpi_id: str,
    req: KpiUpdate,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    current = require(conn, user, "kpis", kpi_id)
    values = req.model_dump(exclude_unset=True)
    unit_ids = values.pop("business_unit_ids", None)
    for key in ("name", "quarter", "year", "team_id"):
        if key in values and values[key] is None:
            values.pop(key)
    if "initiative_id" in values:
        values["initiative_id"] = values["initiative_id"] or None
    _check_links(conn, user, values, unit_ids or [])

    target = values.get("target_metric", current["target_metric"])
    actual = values.get("actual_metric", current["actual_metric"])
    values.update(compute_kpi_progress(target, actual))
    return update_kpi(conn, kpi_id, values, unit_ids)


@router.delete("/api/kpis/{kpi_id}")
def remove_kpi(kpi_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "kpis", kpi_id)
    delete_kpi(conn, kpi_id)
    return {"success": True}


# ── Statuses ─────────────────────────────────────────────────────────────────

def _kpi_status(conn: sqlite3.Connection, kpi_id: str, status_id: str) -> dict:
    status = fetch_status(conn, status_id)
    if status is None or status["kpi_id"] != kpi_id:
        raise HTTPException(status_code=404, detail="Status not found")
    return status


@router.get("/api/kpis/{kpi_id}/statuses")
def kpi_statuses(kpi_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "kpis", kpi_id)
    return fetch_statuses(conn, kpi_id)


@router.post("/api/kpis/{kpi_id}/statuses", status_code=201)
def add_kpi_status(
    kpi_id: str,
    req: KpiStatusRequest,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    require(conn, user, "kpis", kpi_id)
    if not req.year or not req.quarter or req.amount is None:
        raise HTTPException(status_code=400, detail="year, quarter, and amount are required")
    status = create_status(conn, kpi_id, req.model_dump())
    _recompute(conn, kpi_id)
    return status


@router.put("/api/kpis/{kpi_id}/statuses/{status_id}")
def put_kpi_status(
    kpi_id: str,
    status_id: str,
    req: KpiStatusUpdate,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    require(conn, user, "kpis", kpi_id)
    _kpi_status(conn, kpi_id, status_id)
    values = {k: v for k, v in req.model_dump(exclude_unset=True).items() if v is not None}
    status = update_status(conn, status_id, values)
    _recompute(conn, kpi_id)
    return status


@router.delete("/api/kpis/{kpi_id}/statuses/{status_id}")
def remove_kpi_status(
    kpi_id: str,
    status_id: str,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    require(conn, user, "kpis", kpi_id)
    _kpi_status(conn, kpi_id, status_id)
    delete_status(conn, status_id)
    _recompute(conn, kpi_id)
    return {"success": True}
