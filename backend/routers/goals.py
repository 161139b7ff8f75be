import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query

from access import require, viewer_org_ids
from auth import get_current_user
from db import get_db
from queries.units import delete_goal, fetch_goal, fetch_goal_detail, search_goals
from routers.business_units import GoalUpdateRequest, apply_goal_update

router = APIRouter()


@router.get("/api/goals")
def recent_goals(
    q:           Optional[str] = Query(None),
    recent_days: int = Query(30, ge=0),
    limit:       int = Query(5, ge=1, le=100),
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    org_ids = viewer_org_ids(conn, user)
    since = (datetime.now(timezone.utc) - timedelta(days=recent_days)).isoformat(timespec="milliseconds")
    recent = search_goals(conn, org_ids, q, since, limit)
    if recent:
        return recent
    return search_goals(conn, org_ids, q, None, limit)


@router.get("/api/goals/{goal_id}")
def get_goal(goal_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "goals", goal_id)
    return fetch_goal_detail(conn, goal_id)


@router.put("/api/goals/{goal_id}")
def put_goal(
    goal_id: str,
    req: GoalUpdateRequest,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    require(conn, user, "goals", goal_id)
    return apply_goal_update(conn, fetch_goal(conn, goal_id), req)


@router.delete("/api/goals/{goal_id}")
def remove_goal(goal_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    require(conn, user, "goals", goal_id)
    delete_goal(conn, goal_id)
    return {"message": "Goal deleted successfully"}
