import logging
import sqlite3
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from access import Forbidden, require, viewer_org_ids
from auth import get_current_user
from db import get_db
from queries.units import (
    create_stakeholder,
    delete_stakeholder,
    fetch_stakeholder_goals,
    fetch_stakeholders,
    update_stakeholder,
)
from validation import parse_bool

logger = logging.getLogger(__name__)

router = APIRouter()


class StakeholderCreateRequest(BaseModel):
    # legacy shape
    name:             Optional[str] = Field(None, min_length=1)
    role:             Optional[str] = None
    email:            Optional[str] = None
    # link shape
    team_member_id:   Optional[str] = None
    business_unit_id: Optional[str] = None


class StakeholderUpdateRequest(BaseModel):
    name:          Optional[str] = Field(None, min_length=1)
    role:          Optional[str] = None
    email:         Optional[str] = None
    reports_to_id: Optional[str] = None


def _default_org(conn: sqlite3.Connection, user: dict) -> str:
    org_ids = viewer_org_ids(conn, user)
    if not org_ids:
        raise Forbidden("Company account required")
    return org_ids[0]


@router.get("/api/stakeholders")
def list_stakeholders(
    unassigned:       Optional[str] = Query(None),
    include_assigned: Optional[str] = Query(None),
    business_unit_id: Optional[str] = Query(None),
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    org_ids = viewer_org_ids(conn, user)
    if parse_bool(include_assigned) and business_unit_id:
        return fetch_stakeholders(conn, org_ids, exclude_unit_id=business_unit_id)
    return fetch_stakeholders(conn, org_ids, unassigned=parse_bool(unassigned))


@router.post("/api/stakeholders", status_code=201)
def add_stakeholder(
    req: StakeholderCreateRequest,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    if "name" in req.model_fields_set:
        if not req.name:
            raise HTTPException(status_code=400, detail="name is required")
        return create_stakeholder(conn, {
            "name":            req.name,
            "role":            req.role or "",
            "email":           req.email or "",
            "organization_id": _default_org(conn, user),
        })

    if not req.team_member_id:
        raise HTTPException(status_code=400, detail="team_member_id is required")
    member = require(conn, user, "team_members", req.team_member_id)

    if req.business_unit_id:
        org_id = require(conn, user, "business_units", req.business_unit_id)["organization_id"]
    elif member["team_id"]:
        org_id = require(conn, user, "teams", member["team_id"])["organization_id"]
    else:
        org_id = _default_org(conn, user)

    stakeholder = create_stakeholder(conn, {
        "name":             member["name"],
        "email":            member["email"] or "",
        "role":             member["role"] or "",
        "team_member_id":   member["id"],
        "business_unit_id": req.business_unit_id or None,
        "organization_id":  org_id,
    })
    logger.info("Stakeholder %s linked to team member %s", stakeholder["id"], member["id"])
    return stakeholder


@router.get("/api/stakeholders/{stakeholder_id}")
def get_stakeholder(stakeholder_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    return require(conn, user, "stakeholders", stakeholder_id)


@router.put("/api/stakeholders/{stakeholder_id}")
def put_stakeholder(
    stakeholder_id: str,
    req: StakeholderUpdateRequest,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    require(conn, user, "stakeholders", stakeholder_id)
    values = req.model_dump(exclude_unset=True)
    if values.get("name") is None:
        values.pop("name", None)
    if "reports_to_id" in values:
        boss = values["reports_to_id"] or None
        if boss == stakeholder_id:
            raise HTTPException(status_code=400, detail="A stakeholder cannot report to themselves")
        if boss:
            require(conn, user, "stakeholders", boss)
        values["reports_to_id"] = boss
    return update_stakeholder(conn, stakeholder_id, values)


@router.delete("/api/stakeholders/{stakeholder_id}")
def remove_stakeholder(stakeholder_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "stakeholders", stakeholder_id)
    delete_stakeholder(conn, stakeholder_id)
    return {"success": True}


@router.get("/api/stakeholders/{stakeholder_id}/goals")
def stakeholder_goals(stakeholder_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "stakeholders", stakeholder_id)
    return fetch_stakeholder_goals(conn, stakeholder_id)
