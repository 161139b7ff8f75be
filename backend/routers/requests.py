import logging
import sqlite3
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from auth import get_current_user, is_admin, require_admin
from db import get_db
from queries.requests import (
    create_request,
    fetch_admin_counts,
    fetch_recent_requests,
    fetch_recent_signups,
    fetch_request,
    fetch_user_requests,
    update_request,
)
from queries.users import count_active_sessions

logger = logging.getLogger(__name__)

router = APIRouter()


class FeatureRequestBody(BaseModel):
    title:       Optional[str] = None
    description: Optional[str] = None
    category:    Optional[str] = None
    priority:    Optional[str] = None
    use_case:    Optional[str] = None


class SupportRequestBody(BaseModel):
    subject:     Optional[str] = None
    category:    Optional[str] = None
    description: Optional[str] = None
    priority:    Optional[str] = None
    steps:       Optional[str] = None


class AdminRequestUpdate(BaseModel):
    status:      Optional[str] = None
    priority:    Optional[str] = None
    admin_notes: Optional[str] = None


def _require_fields(body: BaseModel, names: tuple[str, ...]) -> None:
    missing = [n for n in names if not (getattr(body, n) or "").strip()]
    if missing:
        raise HTTPException(status_code=400, detail=f"Missing required fields: {', '.join(missing)}")


# ── User-facing ──────────────────────────────────────────────────────────────

@router.get("/api/feature-requests")
def my_feature_requests(user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    return fetch_user_requests(conn, "feature", user["id"])


@router.post("/api/feature-requests", status_code=201)
def submit_feature_request(
    body: FeatureRequestBody,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    _require_fields(body, ("title", "description", "category"))
    created = create_request(conn, "feature", user["id"], {
        "title":       body.title.strip(),
        "description": body.description.strip(),
        "category":    body.category,
        "priority":    body.priority or "medium",
        "use_case":    body.use_case,
    })
    logger.info("Feature request %s submitted by %s", created["id"], user["id"])
    return created


@router.get("/api/support-requests")
def my_support_requests(user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    return fetch_user_requests(conn, "support", user["id"])


@router.post("/api/support-requests", status_code=201)
def submit_support_request(
    body: SupportRequestBody,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    _require_fields(body, ("subject", "category", "description"))
    created = create_request(conn, "support", user["id"], {
        "subject":     body.subject.strip(),
        "category":    body.category,
        "description": body.description.strip(),
        "priority":    body.priority or "medium",
        "steps":       body.steps,
    })
    logger.info("Support request %s submitted by %s", created["id"], user["id"])
    return created


# ── Admin ────────────────────────────────────────────────────────────────────

@router.get("/api/admin/whoami")
def admin_whoami(user: dict = Depends(get_current_user)):
    return {"email": user["email"], "is_admin": is_admin(user)}


@router.get("/api/admin/metrics")
def admin_metrics(admin: dict = Depends(require_admin), conn: sqlite3.Connection = Depends(get_db)):
    return {
        **fetch_admin_counts(conn),
        "active_sessions":  count_active_sessions(conn),
        "recent_users":     fetch_recent_signups(conn),
        "feature_requests": fetch_recent_requests(conn, "feature"),
        "support_requests": fetch_recent_requests(conn, "support"),
    }


def _admin_request(conn: sqlite3.Connection, kind: str, request_id: str) -> dict:
    found = fetch_request(conn, kind, request_id)
    if found is None:
        raise HTTPException(status_code=404, detail="Request not found")
    return found


@router.get("/api/admin/feature-requests/{request_id}")
def admin_get_feature_request(request_id: str, admin: dict = Depends(require_admin), conn: sqlite3.Connection = Depends(get_db)):
    return _admin_request(conn, "feature", request_id)


@router.put("/api/admin/feature-requests/{request_id}")
def admin_update_feature_request(
    request_id: str,
    body: AdminRequestUpdate,
    admin: dict = Depends(require_admin),
    conn: sqlite3.Connection = Depends(get_db),
):
    _admin_request(conn, "feature", request_id)
    return update_request(conn, "feature", request_id, body.model_dump(exclude_none=True))


@router.get("/api/admin/support-requests/{request_id}")
def admin_get_support_request(request_id: str, admin: dict = Depends(require_admin), conn: sqlite3.Connection = Depends(get_db)):
    return _admin_request(conn, "support", request_id)


@router.put("/api/admin/support-requests/{request_id}")
def admin_update_support_request(
    request_id: str,
    body: AdminRequestUpdate,
    admin: dict = Depends(require_admin),
    conn: sqlite3.Connection = Depends(get_db),
):
    _admin_request(conn, "support", request_id)
    return update_request(conn, "support", request_id, body.model_dump(exclude_none=True))
