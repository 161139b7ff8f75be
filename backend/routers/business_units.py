import logging
import sqlite3
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, model_validator

from access import NotFound, require, viewer_org_ids
from auth import get_current_user
from db import get_db
from queries.units import (
    create_goals,
    create_metric,
    create_stakeholder,
    delete_business_unit,
    delete_goal,
    fetch_business_unit,
    fetch_business_units,
    fetch_goal,
    fetch_metrics,
    fetch_stakeholder,
    fetch_unit_goals,
    fetch_unit_stakeholders,
    update_business_unit,
    update_goal,
)
from validation import Email, Quarter

logger = logging.getLogger(__name__)

router = APIRouter()


class BusinessUnitUpdate(BaseModel):
    name:        str = Field(min_length=1)
    description: Optional[str] = None


class UnitStakeholderRequest(BaseModel):
    name:  str = Field(min_length=1)
    email: Email
    role:  str = Field(min_length=1)


class MetricRequest(BaseModel):
    name:    str = Field(min_length=1)
    target:  float = Field(ge=0)
    current: float = Field(ge=0)
    unit:    str = Field(min_length=1)


class GoalCreateRequest(BaseModel):
    title:            str = Field(min_length=1)
    description:      Optional[str] = None
    quarter:          Optional[Quarter] = None
    quarters:         Optional[list[Quarter]] = None
    year:             int = Field(ge=2020, le=2030)
    progress_notes:   Optional[str] = None
    stakeholder_id:   Optional[str] = Field(None, min_length=1)
    business_unit_id: Optional[str] = Field(None, min_length=1)

    @model_validator(mode="after")
    def _needs_quarter(self):
        if not self.quarter and not self.quarters:
            raise ValueError("At least one quarter is required")
        return self

    def target_quarters(self) -> list[str]:
        return list(self.quarters) if self.quarters else [self.quarter]


class GoalUpdateRequest(BaseModel):
    title:          Optional[str] = Field(None, min_length=1)
    description:    Optional[str] = None
    progress_notes: Optional[str] = None
    quarter:        Optional[Quarter] = None
    year:           Optional[int] = Field(None, ge=2020, le=2030)
    stakeholder_id: Optional[str] = None


def _metric_with_progress(metric: dict) -> dict:
    target = metric["target"]
    pct = (metric["current"] / target) * 100 if target else None
    return {**metric, "progress_percent": pct}


@router.get("/api/business-units")
def list_business_units(user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    return fetch_business_units(conn, viewer_org_ids(conn, user))


@router.get("/api/business-units/{business_unit_id}")
def get_business_unit(business_unit_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "business_units", business_unit_id)
    return fetch_business_unit(conn, business_unit_id)


@router.put("/api/business-units/{business_unit_id}")
def put_business_unit(
    business_unit_id: str,
    req: BusinessUnitUpdate,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    require(conn, user, "business_units", business_unit_id)
    return update_business_unit(conn, business_unit_id, req.model_dump())


@router.delete("/api/business-units/{business_unit_id}")
def remove_business_unit(business_unit_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "business_units", business_unit_id)
    delete_business_unit(conn, business_unit_id)
    logger.info("Business unit %s deleted", business_unit_id)
    return {"success": True}


# ── Stakeholders & metrics ───────────────────────────────────────────────────

@router.get("/api/business-units/{business_unit_id}/stakeholders")
def unit_stakeholders(business_unit_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "business_units", business_unit_id)
    return fetch_unit_stakeholders(conn, business_unit_id)


@router.post("/api/business-units/{business_unit_id}/stakeholders", status_code=201)
def add_unit_stakeholder(
    business_unit_id: str,
    req: UnitStakeholderRequest,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    unit = require(conn, user, "business_units", business_unit_id)
    return create_stakeholder(conn, {
        **req.model_dump(),
        "business_unit_id": business_unit_id,
        "organization_id":  unit["organization_id"],
    })


@router.get("/api/business-units/{business_unit_id}/metrics")
def unit_metrics(business_unit_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "business_units", business_unit_id)
    return [_metric_with_progress(m) for m in fetch_metrics(conn, business_unit_id)]


@router.post("/api/business-units/{business_unit_id}/metrics", status_code=201)
def add_unit_metric(
    business_unit_id: str,
    req: MetricRequest,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    require(conn, user, "business_units", business_unit_id)
    return _metric_with_progress(create_metric(conn, business_unit_id, req.model_dump()))


# ── Goals ────────────────────────────────────────────────────────────────────

@router.get("/api/business-units/{business_unit_id}/goals")
def unit_goals(business_unit_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "business_units", business_unit_id)
    return fetch_unit_goals(conn, business_unit_id)


@router.post("/api/business-units/{business_unit_id}/goals")
def add_unit_goals(
    business_unit_id: str,
    req: GoalCreateRequest,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    unit_id = req.business_unit_id or business_unit_id
    try:
        require(conn, user, "business_units", unit_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Business unit not found")

    if req.stakeholder_id:
        stakeholder = fetch_stakeholder(conn, req.stakeholder_id)
        if stakeholder is None:
            raise HTTPException(status_code=400, detail="Stakeholder not found")
        if stakeholder["business_unit_id"] != unit_id:
            raise HTTPException(status_code=400, detail="Stakeholder must belong to this Business Unit")

    goals = create_goals(conn, {
        "title":            req.title,
        "description":      req.description,
        "year":             req.year,
        "progress_notes":   req.progress_notes,
        "stakeholder_id":   req.stakeholder_id,
        "business_unit_id": unit_id,
    }, req.target_quarters())
    logger.info("Created %d goal(s) in business unit %s", len(goals), unit_id)
    return goals[0] if len(goals) == 1 else goals


def _unit_goal(conn: sqlite3.Connection, user: dict, business_unit_id: str, goal_id: str) -> dict:
    require(conn, user, "business_units", business_unit_id)
    goal = fetch_goal(conn, goal_id)
    if goal is None or goal["business_unit_id"] != business_unit_id:
        raise HTTPException(status_code=404, detail="Goal not found")
    return goal


def apply_goal_update(conn: sqlite3.Connection, goal: dict, req: GoalUpdateRequest) -> dict:
    values = req.model_dump(exclude_unset=True)
    for key in ("title", "quarter", "year"):
        if values.get(key) is None:
            values.pop(key, None)
    if "stakeholder_id" in values:
        sid = values["stakeholder_id"] or None
        if sid:
            stakeholder = fetch_stakeholder(conn, sid)
            if stakeholder is None:
                raise HTTPException(status_code=400, detail="Stakeholder not found")
            if stakeholder["business_unit_id"] != goal["business_unit_id"]:
                raise HTTPException(status_code=400, detail="Stakeholder must belong to this Business Unit")
        values["stakeholder_id"] = sid
    return update_goal(conn, goal["id"], values)


@router.get("/api/business-units/{business_unit_id}/goals/{goal_id}")
def get_unit_goal(business_unit_id: str, goal_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    return _unit_goal(conn, user, business_unit_id, goal_id)


@router.put("/api/business-units/{business_unit_id}/goals/{goal_id}")
def put_unit_goal(
    business_unit_id: str,
    goal_id: str,
    req: GoalUpdateRequest,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    goal = _unit_goal(conn, user, business_unit_id, goal_id)
    return apply_goal_update(conn, goal, req)


@router.delete("/api/business-units/{business_unit_id}/goals/{goal_id}")
def remove_unit_goal(business_unit_id: str, goal_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    _unit_goal(conn, user, business_unit_id, goal_id)
    delete_goal(conn, goal_id)
    return {"message": "Goal deleted successfully"}
