import logging
import sqlite3
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from access import require, viewer_org_ids
from auth import get_current_user
from db import get_db
from queries.financial import (
    create_cost,
    create_headcount,
    delete_cost,
    delete_headcount,
    fetch_cost,
    fetch_costs,
    fetch_headcount,
    fetch_headcount_row,
    update_cost,
    update_headcount,
)
from analytics.financial import annotate_cost_rows, summarize_costs, summarize_headcount
from validation import Amount, CostType, HeadCount

logger = logging.getLogger(__name__)

router = APIRouter()


class CostRequest(BaseModel):
    team_id:         str = Field(min_length=1)
    organization_id: Optional[str] = None
    year:            int = Field(ge=1900, le=3000)
    type:            CostType
    q1_forecast:     Amount = 0
    q1_actual:       Amount = 0
    q2_forecast:     Amount = 0
    q2_actual:       Amount = 0
    q3_forecast:     Amount = 0
    q3_actual:       Amount = 0
    q4_forecast:     Amount = 0
    q4_actual:       Amount = 0
    notes:           Optional[str] = None


class CostUpdate(BaseModel):
    team_id:         Optional[str] = None
    organization_id: Optional[str] = None
    year:            Optional[int] = Field(None, ge=1900, le=3000)
    type:            Optional[CostType] = None
    q1_forecast:     Optional[Amount] = None
    q1_actual:       Optional[Amount] = None
    q2_forecast:     Optional[Amount] = None
    q2_actual:       Optional[Amount] = None
    q3_forecast:     Optional[Amount] = None
    q3_actual:       Optional[Amount] = None
    q4_forecast:     Optional[Amount] = None
    q4_actual:       Optional[Amount] = None
    notes:           Optional[str] = None


class HeadcountRequest(BaseModel):
    team_id:         str = Field(min_length=1)
    organization_id: Optional[str] = None
    year:            int = Field(ge=2000, le=2100)
    role:            str = Field(min_length=1)
    level:           str = Field(min_length=1)
    salary:          Amount
    q1_forecast:     HeadCount = 0
    q1_actual:       HeadCount = 0
    q2_forecast:     HeadCount = 0
    q2_actual:       HeadCount = 0
    q3_forecast:     HeadCount = 0
    q3_actual:       HeadCount = 0
    q4_forecast:     HeadCount = 0
    q4_actual:       HeadCount = 0
    notes:           Optional[str] = None


class HeadcountUpdate(BaseModel):
    team_id:         Optional[str] = None
    organization_id: Optional[str] = None
    year:            Optional[int] = Field(None, ge=2000, le=2100)
    role:            Optional[str] = Field(None, min_length=1)
    level:           Optional[str] = Field(None, min_length=1)
    salary:          Optional[Amount] = None
    q1_forecast:     Optional[HeadCount] = None
    q1_actual:       Optional[HeadCount] = None
    q2_forecast:     Optional[HeadCount] = None
    q2_actual:       Optional[HeadCount] = None
    q3_forecast:     Optional[HeadCount] = None
    q3_actual:       Optional[HeadCount] = None
    q4_forecast:     Optional[HeadCount] = None
    q4_actual:       Optional[HeadCount] = None
    notes:           Optional[str] = None


def _resolve_org(conn: sqlite3.Connection, user: dict, values: dict) -> dict:
    """Check team / organization scope, deriving the organization from the team."""
    if values.get("team_id"):
        team = require(conn, user, "teams", values["team_id"])
        if not values.get("organization_id"):
            values["organization_id"] = team["organization_id"]
    if values.get("organization_id"):
        require(conn, user, "organizations", values["organization_id"])
    return values


def _update_values(req: BaseModel) -> dict:
    values = req.model_dump(exclude_unset=True)
    return {k: v for k, v in values.items() if v is not None or k == "notes"}


def _filters(team_id, organization_id, year) -> dict:
    return {"team_id": team_id, "organization_id": organization_id, "year": year}


# ── Costs ────────────────────────────────────────────────────────────────────

@router.get("/api/costs")
def list_costs(
    team_id:         Optional[str] = Query(None),
    organization_id: Optional[str] = Query(None),
    year:            Optional[int] = Query(None),
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    rows = fetch_costs(conn, viewer_org_ids(conn, user), _filters(team_id, organization_id, year))
    return annotate_cost_rows(rows)


@router.get("/api/costs/summary")
def costs_summary(
    team_id:         Optional[str] = Query(None),
    organization_id: Optional[str] = Query(None),
    year:            Optional[int] = Query(None),
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    rows = fetch_costs(conn, viewer_org_ids(conn, user), _filters(team_id, organization_id, year))
    return summarize_costs(rows)


@router.post("/api/costs", status_code=201)
def add_cost(req: CostRequest, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    values = _resolve_org(conn, user, req.model_dump())
    cost = create_cost(conn, values)
    logger.info("Cost %s created for team %s", cost["id"], cost["team_id"])
    return cost


@router.get("/api/costs/{cost_id}")
def get_cost(cost_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "costs", cost_id)
    return annotate_cost_rows([fetch_cost(conn, cost_id)])[0]


@router.put("/api/costs/{cost_id}")
def put_cost(
    cost_id: str,
    req: CostUpdate,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    require(conn, user, "costs", cost_id)
    values = _resolve_org(conn, user, _update_values(req))
    return update_cost(conn, cost_id, values)


@router.delete("/api/costs/{cost_id}")
def remove_cost(cost_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "costs", cost_id)
    delete_cost(conn, cost_id)
    return {"ok": True}


# ── Headcount ────────────────────────────────────────────────────────────────

@router.get("/api/headcount")
def list_headcount(
    team_id:         Optional[str] = Query(None),
    organization_id: Optional[str] = Query(None),
    year:            Optional[int] = Query(None),
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    return fetch_headcount(conn, viewer_org_ids(conn, user), _filters(team_id, organization_id, year))


@router.get("/api/headcount/summary")
def headcount_summary(
    team_id:         Optional[str] = Query(None),
    organization_id: Optional[str] = Query(None),
    year:            Optional[int] = Query(None),
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    rows = fetch_headcount(conn, viewer_org_ids(conn, user), _filters(team_id, organization_id, year))
    return summarize_headcount(rows)


@router.post("/api/headcount", status_code=201)
def add_headcount(req: HeadcountRequest, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    values = _resolve_org(conn, user, req.model_dump())
    return create_headcount(conn, values)


@router.get("/api/headcount/{row_id}")
def get_headcount(row_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "headcount", row_id)
    return fetch_headcount_row(conn, row_id)


@router.put("/api/headcount/{row_id}")
def put_headcount(
    row_id: str,
    req: HeadcountUpdate,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    require(conn, user, "headcount", row_id)
    values = _resolve_org(conn, user, _update_values(req))
    return update_headcount(conn, row_id, values)


@router.delete("/api/headcount/{row_id}")
def remove_headcount(row_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "headcount", row_id)
    delete_headcount(conn, row_id)
    return {"success": True}
