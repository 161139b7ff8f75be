import logging
import sqlite3
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from access import Forbidden, require, viewer_account
from auth import get_current_user
from db import get_db
from queries.accounts import (
    create_account,
    create_organization,
    delete_organization,
    fetch_account_detail,
    fetch_account_for_user,
    fetch_ceo_goals,
    fetch_organizations,
    replace_ceo_goals,
    update_account,
    update_organization,
)
from queries.teams import create_team, fetch_org_teams
from queries.units import create_business_unit, fetch_org_business_units
from validation import UrlOrEmpty

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Company account ──────────────────────────────────────────────────────────

class CompanyAccountRequest(BaseModel):
    name:               str = Field(min_length=1)
    description:        Optional[str] = None
    employees:          Optional[str] = None
    headquarters:       Optional[str] = None
    launched_date:      Optional[str] = None
    is_private:         bool = True
    traded_as:          Optional[str] = None
    corporate_intranet: UrlOrEmpty = None
    glassdoor_link:     UrlOrEmpty = None
    linkedin_link:      UrlOrEmpty = None


class CompanyAccountUpdate(BaseModel):
    name:               Optional[str] = Field(None, min_length=1)
    description:        Optional[str] = None
    founder_id:         Optional[str] = None
    employees:          Optional[str] = None
    headquarters:       Optional[str] = None
    launched_date:      Optional[str] = None
    is_private:         Optional[bool] = None
    traded_as:          Optional[str] = None
    corporate_intranet: UrlOrEmpty = None
    glassdoor_link:     UrlOrEmpty = None
    linkedin_link:      UrlOrEmpty = None


def _check_founder(conn: sqlite3.Connection, user: dict, founder_id: Optional[str]) -> None:
    if founder_id:
        require(conn, user, "team_members", founder_id)


@router.get("/api/company-account")
def get_my_account(user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    account = fetch_account_for_user(conn, user["id"])
    if account is None:
        raise HTTPException(status_code=404, detail="Company account not found")
    return fetch_account_detail(conn, account["id"])


@router.post("/api/company-account", status_code=201)
def create_company_account(
    req: CompanyAccountRequest,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    if fetch_account_for_user(conn, user["id"]):
        raise HTTPException(status_code=400, detail="User already has a company account")
    account = create_account(conn, user["id"], req.model_dump())
    logger.info("Company account %s created for user %s", account["id"], user["id"])
    return account


def _own_account(conn: sqlite3.Connection, user: dict, account_id: str) -> dict:
    account = viewer_account(conn, user)
    if account is None or account["id"] != account_id:
        exists = conn.execute("SELECT 1 FROM company_accounts WHERE id = ?", (account_id,)).fetchone()
        if not exists:
            raise HTTPException(status_code=404, detail="Company account not found")
        raise Forbidden()
    return account


@router.get("/api/company-account/{account_id}")
def get_company_account(account_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    _own_account(conn, user, account_id)
    return fetch_account_detail(conn, account_id)


@router.put("/api/company-account/{account_id}")
def update_company_account(
    account_id: str,
    req: CompanyAccountUpdate,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    _own_account(conn, user, account_id)
    values = req.model_dump(exclude_unset=True)
    # NOT NULL columns: an explicit null leaves the stored value alone
    for key in ("name", "is_private"):
        if key in values and values[key] is None:
            values.pop(key)
    _check_founder(conn, user, values.get("founder_id"))
    update_account(conn, account_id, values)
    return fetch_account_detail(conn, account_id)


# ── Organizations ────────────────────────────────────────────────────────────

class NamedRequest(BaseModel):
    name:        str = Field(min_length=1)
    description: Optional[str] = None


class CeoGoal(BaseModel):
    description: str = Field(min_length=1)


class CeoGoalsRequest(BaseModel):
    goals: list[CeoGoal]


@router.get("/api/organizations")
def list_organizations(user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    account = viewer_account(conn, user)
    if account is None:
        return []
    return fetch_organizations(conn, account["id"])


@router.post("/api/organizations", status_code=201)
def create_org(req: NamedRequest, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    account = viewer_account(conn, user)
    if account is None:
        raise HTTPException(status_code=400, detail="Company account required")
    org = create_organization(conn, account["id"], req.name, req.description)
    logger.info("Organization %s created", org["id"])
    return org


@router.get("/api/organizations/{organization_id}")
def get_org(organization_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    return require(conn, user, "organizations", organization_id)


@router.put("/api/organizations/{organization_id}")
def update_org(
    organization_id: str,
    req: NamedRequest,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    require(conn, user, "organizations", organization_id)
    return update_organization(conn, organization_id, req.model_dump())


@router.delete("/api/organizations/{organization_id}")
def delete_org(organization_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "organizations", organization_id)
    delete_organization(conn, organization_id)
    logger.info("Organization %s deleted", organization_id)
    return {"success": True}


@router.get("/api/organizations/{organization_id}/teams")
def org_teams(organization_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "organizations", organization_id)
    return fetch_org_teams(conn, organization_id)


@router.post("/api/organizations/{organization_id}/teams", status_code=201)
def create_org_team(
    organization_id: str,
    req: NamedRequest,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    require(conn, user, "organizations", organization_id)
    return create_team(conn, organization_id, req.name, req.description)


@router.get("/api/organizations/{organization_id}/business-units")
def org_business_units(organization_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "organizations", organization_id)
    return fetch_org_business_units(conn, organization_id)


@router.post("/api/organizations/{organization_id}/business-units", status_code=201)
def create_org_business_unit(
    organization_id: str,
    req: NamedRequest,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    require(conn, user, "organizations", organization_id)
    return create_business_unit(conn, organization_id, req.name, req.description)


@router.get("/api/organizations/{organization_id}/ceo-goals")
def ceo_goals(organization_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "organizations", organization_id)
    return fetch_ceo_goals(conn, organization_id)


@router.post("/api/organizations/{organization_id}/ceo-goals")
def save_ceo_goals(
    organization_id: str,
    req: CeoGoalsRequest,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    require(conn, user, "organizations", organization_id)
    return replace_ceo_goals(conn, organization_id, [g.description for g in req.goals])
