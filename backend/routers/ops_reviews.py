import logging
import sqlite3
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from access import NotFound, require, viewer_org_ids
from auth import get_current_user
from db import get_db
from queries.ops_reviews import (
    create_item,
    create_review,
    delete_item,
    delete_review,
    fetch_item,
    fetch_items,
    fetch_review,
    fetch_reviews,
    update_item,
    update_review,
)
from validation import Quarter, Title

logger = logging.getLogger(__name__)

router = APIRouter()


class OpsReviewRequest(BaseModel):
    title:       Title
    description: Optional[str] = None
    quarter:     Quarter
    month:       Optional[int] = Field(None, ge=1, le=12)
    year:        int = Field(ge=2000, le=3000)
    team_id:     str = Field(min_length=1)
    owner_id:    Optional[str] = None


class OpsReviewUpdate(BaseModel):
    title:       Optional[Title] = None
    description: Optional[str] = None
    quarter:     Optional[Quarter] = None
    month:       Optional[int] = Field(None, ge=1, le=12)
    year:        Optional[int] = Field(None, ge=2000, le=3000)
    team_id:     Optional[str] = None
    owner_id:    Optional[str] = None


class OpsReviewItemRequest(BaseModel):
    title:         Title
    description:   Optional[str] = None
    target_metric: Optional[float] = None
    actual_metric: Optional[float] = None
    quarter:       Optional[Quarter] = None
    year:          Optional[int] = Field(None, ge=2000, le=3000)
    team_id:       str = Field(min_length=1)
    owner_id:      Optional[str] = None


class OpsReviewItemUpdate(BaseModel):
    title:         Optional[Title] = None
    description:   Optional[str] = None
    target_metric: Optional[float] = None
    actual_metric: Optional[float] = None
    quarter:       Optional[Quarter] = None
    year:          Optional[int] = Field(None, ge=2000, le=3000)
    team_id:       Optional[str] = None
    owner_id:      Optional[str] = None
    ops_review_id: Optional[str] = None


# fields where an explicit null clears the stored value
_REVIEW_NULLABLE = {"description", "month", "owner_id"}
_ITEM_NULLABLE = {"description", "target_metric", "actual_metric", "owner_id"}


def _partial(values: dict, nullable: set[str]) -> dict:
    return {k: v for k, v in values.items() if v is not None or k in nullable}


def _check_links(conn: sqlite3.Connection, user: dict, values: dict) -> None:
    if values.get("team_id"):
        require(conn, user, "teams", values["team_id"])
    if values.get("owner_id"):
        require(conn, user, "team_members", values["owner_id"])


def _review(conn: sqlite3.Connection, user: dict, review_id: str) -> dict:
    try:
        require(conn, user, "ops_reviews", review_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Not found")
    return fetch_review(conn, review_id)


def _review_item(conn: sqlite3.Connection, review_id: str, item_id: str) -> dict:
    item = fetch_item(conn, item_id)
    if item is None or item["ops_review_id"] != review_id:
        raise HTTPException(status_code=404, detail="Item not found")
    return item


@router.get("/api/ops-reviews")
def list_reviews(
    team_id: Optional[str] = Query(None),
    quarter: Optional[Quarter] = Query(None),
    year:    Optional[int] = Query(None),
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    filters = {"team_id": team_id, "quarter": quarter, "year": year}
    return fetch_reviews(conn, viewer_org_ids(conn, user), filters)


@router.post("/api/ops-reviews", status_code=201)
def add_review(req: OpsReviewRequest, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    values = req.model_dump()
    values["owner_id"] = values["owner_id"] or None
    _check_links(conn, user, values)
    review = create_review(conn, values)
    logger.info("Ops review %s created for team %s", review["id"], review["team_id"])
    return review


@router.get("/api/ops-reviews/{review_id}")
def get_review(review_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    return _review(conn, user, review_id)


@router.put("/api/ops-reviews/{review_id}")
def put_review(
    review_id: str,
    req: OpsReviewUpdate,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    _review(conn, user, review_id)
    values = _partial(req.model_dump(exclude_unset=True), _REVIEW_NULLABLE)
    _check_links(conn, user, values)
    return update_review(conn, review_id, values)


@router.delete("/api/ops-reviews/{review_id}")
def remove_review(review_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    _review(conn, user, review_id)
    delete_review(conn, review_id)
    logger.info("Ops review %s deleted", review_id)
    return {"success": True}


# ── Items ────────────────────────────────────────────────────────────────────

@router.get("/api/ops-reviews/{review_id}/items")
def list_items(review_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    _review(conn, user, review_id)
    return fetch_items(conn, review_id)


@router.post("/api/ops-reviews/{review_id}/items", status_code=201)
def add_item(
    review_id: str,
    req: OpsReviewItemRequest,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    review = _review(conn, user, review_id)
    values = req.model_dump()
    values["quarter"] = values["quarter"] or review["quarter"]
    values["year"] = values["year"] or review["year"]
    values["owner_id"] = values["owner_id"] or None
    _check_links(conn, user, values)
    return create_item(conn, review_id, values)


@router.get("/api/ops-reviews/{review_id}/items/{item_id}")
def get_item(review_id: str, item_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    _review(conn, user, review_id)
    return _review_item(conn, review_id, item_id)


@router.put("/api/ops-reviews/{review_id}/items/{item_id}")
def put_item(
    review_id: str,
    item_id: str,
    req: OpsReviewItemUpdate,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    _review(conn, user, review_id)
    _review_item(conn, review_id, item_id)
    values = _partial(req.model_dump(exclude_unset=True), _ITEM_NULLABLE)
    moved_to = values.pop("ops_review_id", None)
    if moved_to and moved_to != review_id:
        raise HTTPException(status_code=400, detail="Cannot move item to a different review")
    _check_links(conn, user, values)
    return update_item(conn, item_id, values)


@router.delete("/api/ops-reviews/{review_id}/items/{item_id}")
def remove_item(review_id: str, item_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    _review(conn, user, review_id)
    _review_item(conn, review_id, item_id)
    delete_item(conn, item_id)
    return {"success": True}
