import logging
import sqlite3
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from access import require, viewer_org_ids
from auth import get_current_user
from db import get_db
from queries.initiatives import (
    create_initiative,
    delete_initiative,
    fetch_initiative,
    fetch_initiatives,
    update_initiative,
)
from validation import InitiativeStatus, InitiativeType

logger = logging.getLogger(__name__)

router = APIRouter()


class InitiativeRequest(BaseModel):
    name:                   str = Field(min_length=1)
    type:                   Optional[InitiativeType] = None
    status:                 InitiativeStatus = "NOT_STARTED"
    at_risk:                bool = False
    summary:                Optional[str] = None
    value_proposition:      Optional[str] = None
    implementation_details: Optional[str] = None
    release_date:           Optional[str] = None
    organization_id:        str = Field(min_length=1)
    owner_id:               Optional[str] = None
    business_unit_id:       Optional[str] = None


class InitiativeUpdate(BaseModel):
    name:                   Optional[str] = Field(None, min_length=1)
    type:                   Optional[InitiativeType] = None
    status:                 Optional[InitiativeStatus] = None
    at_risk:                Optional[bool] = None
    summary:                Optional[str] = None
    value_proposition:      Optional[str] = None
    implementation_details: Optional[str] = None
    release_date:           Optional[str] = None
    organization_id:        Optional[str] = None
    owner_id:               Optional[str] = None
    business_unit_id:       Optional[str] = None


def _check_links(conn: sqlite3.Connection, user: dict, values: dict) -> None:
    if values.get("organization_id"):
        require(conn, user, "organizations", values["organization_id"])
    if values.get("owner_id"):
        require(conn, user, "team_members", values["owner_id"])
    if values.get("business_unit_id"):
        require(conn, user, "business_units", values["business_unit_id"])


@router.get("/api/initiatives")
def list_initiatives(
    org_id:   Optional[str] = Query(None),
    owner_id: Optional[str] = Query(None),
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    org_ids = viewer_org_ids(conn, user)
    if org_id:
        require(conn, user, "organizations", org_id)
        org_ids = [org_id]
    return fetch_initiatives(conn, org_ids, owner_id=owner_id)


@router.post("/api/initiatives", status_code=201)
def add_initiative(req: InitiativeRequest, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    values = req.model_dump()
    _check_links(conn, user, values)
    values["owner_id"] = values["owner_id"] or None
    values["business_unit_id"] = values["business_unit_id"] or None
    initiative = create_initiative(conn, values)
    logger.info("Initiative %s created", initiative["id"])
    return initiative


@router.get("/api/initiatives/{initiative_id}")
def get_initiative(initiative_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "initiatives", initiative_id)
    return fetch_initiative(conn, initiative_id)


@router.put("/api/initiatives/{initiative_id}")
def put_initiative(
    initiative_id: str,
    req: InitiativeUpdate,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    require(conn, user, "initiatives", initiative_id)
    values = req.model_dump(exclude_unset=True)
    # explicit null disconnects owner / business unit; other nulls are ignored
    for key in ("name", "status", "at_risk", "organization_id"):
        if key in values and values[key] is None:
            values.pop(key)
    for key in ("owner_id", "business_unit_id"):
        if key in values:
            values[key] = values[key] or None
    _check_links(conn, user, values)
    return update_initiative(conn, initiative_id, values)


@router.delete("/api/initiatives/{initiative_id}")
def remove_initiative(initiative_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "initiatives", initiative_id)
    delete_initiative(conn, initiative_id)
    return {"success": True}
