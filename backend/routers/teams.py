import logging
import sqlite3
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from access import require, require_account, viewer_account, viewer_org_ids
from auth import get_current_user
from db import get_db
from queries.financial import fetch_costs, fetch_headcount
from queries.teams import (
    create_member,
    delete_member,
    delete_team,
    fetch_account_members,
    fetch_direct_reports,
    fetch_member,
    fetch_team_detail,
    fetch_team_members,
    fetch_teams,
    update_member,
    update_team,
)
from analytics.financial import summarize_costs, summarize_headcount
from analytics.org_chart import build_org_chart
from validation import blank_to_none

logger = logging.getLogger(__name__)

router = APIRouter()


class TeamUpdateRequest(BaseModel):
    name:            str = Field(min_length=1)
    description:     Optional[str] = None
    organization_id: str = Field(min_length=1)


class TeamMemberCreateRequest(BaseModel):
    name:  str = Field(min_length=1)
    email: Optional[str] = None
    role:  Optional[str] = None


class TeamMemberUpdateRequest(BaseModel):
    name:               Optional[str] = None
    email:              Optional[str] = None
    role:               Optional[str] = None
    team_id:            Optional[str] = None
    reports_to_id:      Optional[str] = None
    one_on_one_notes:   Optional[str] = None
    last_one_on_one_at: Optional[str] = None
    goals_notes:        Optional[str] = None
    personal_notes:     Optional[str] = None


# ── Teams ────────────────────────────────────────────────────────────────────

@router.get("/api/teams")
def list_teams(user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    return fetch_teams(conn, viewer_org_ids(conn, user))


@router.get("/api/teams/{team_id}")
def get_team(team_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "teams", team_id)
    return fetch_team_detail(conn, team_id)


@router.put("/api/teams/{team_id}")
def put_team(
    team_id: str,
    req: TeamUpdateRequest,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    require(conn, user, "teams", team_id)
    require(conn, user, "organizations", req.organization_id)
    return update_team(conn, team_id, req.model_dump())


@router.delete("/api/teams/{team_id}")
def remove_team(team_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "teams", team_id)
    delete_team(conn, team_id)
    logger.info("Team %s deleted", team_id)
    return {"success": True}


@router.get("/api/teams/{team_id}/members")
def team_members(team_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "teams", team_id)
    return fetch_team_members(conn, team_id)


@router.post("/api/teams/{team_id}/members", status_code=201)
def add_team_member(
    team_id: str,
    req: TeamMemberCreateRequest,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    require(conn, user, "teams", team_id)
    account = require_account(conn, user)
    return create_member(conn, {
        "name":               req.name,
        "email":              blank_to_none(req.email),
        "role":               blank_to_none(req.role),
        "team_id":            team_id,
        "company_account_id": account["id"],
    })


@router.get("/api/teams/{team_id}/summary")
def team_summary(
    team_id: str,
    year: Optional[int] = Query(None),
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    require(conn, user, "teams", team_id)
    org_ids = viewer_org_ids(conn, user)
    filters = {"team_id": team_id, "year": year}
    return {
        "team_id":   team_id,
        "year":      year,
        "costs":     summarize_costs(fetch_costs(conn, org_ids, filters)),
        "headcount": summarize_headcount(fetch_headcount(conn, org_ids, filters)),
    }


# ── Team members ─────────────────────────────────────────────────────────────

@router.get("/api/team-members")
def list_team_members(user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    account = viewer_account(conn, user)
    if account is None:
        return []
    return fetch_account_members(conn, account["id"])


@router.get("/api/team-members/{member_id}")
def get_team_member(member_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "team_members", member_id)
    return fetch_member(conn, member_id)


@router.put("/api/team-members/{member_id}")
def put_team_member(
    member_id: str,
    req: TeamMemberUpdateRequest,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    require(conn, user, "team_members", member_id)
    values = {k: blank_to_none(v) for k, v in req.model_dump(exclude_unset=True).items()}
    if "name" in values and values["name"] is None:
        values.pop("name")
    if values.get("reports_to_id") == member_id:
        values["reports_to_id"] = None
    if values.get("reports_to_id"):
        require(conn, user, "team_members", values["reports_to_id"])
    if values.get("team_id"):
        require(conn, user, "teams", values["team_id"])
    return update_member(conn, member_id, values)


@router.delete("/api/team-members/{member_id}")
def remove_team_member(member_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "team_members", member_id)
    delete_member(conn, member_id)
    return {"success": True}


@router.get("/api/my-team")
def my_team(user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    account = viewer_account(conn, user)
    if account is None or not account["founder_id"]:
        return []
    return fetch_direct_reports(conn, account["founder_id"])


@router.get("/api/org-chart")
def org_chart(
    q: Optional[str] = Query(None),
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    account = viewer_account(conn, user)
    if account is None:
        return {"roots": [], "total": 0}
    members = fetch_account_members(conn, account["id"])
    roots = build_org_chart(members, q)
    return {"roots": roots, "total": len(members)}
