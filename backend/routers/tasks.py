import sqlite3
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field

from auth import get_current_user
from db import get_db
from queries.tasks import create_note, create_task, delete_task, fetch_notes, fetch_task, fetch_tasks, update_task
from validation import TaskStatus, Title

router = APIRouter()


class TaskRequest(BaseModel):
    title:       Title
    description: Optional[str] = None
    due_date:    Optional[str] = None
    status:      TaskStatus = "TODO"


class TaskUpdate(BaseModel):
    title:       Optional[Title] = None
    description: Optional[str] = None
    due_date:    Optional[str] = None
    status:      Optional[TaskStatus] = None


class NoteRequest(BaseModel):
    content: str = Field(min_length=1)


def _own_task(conn: sqlite3.Connection, user: dict, task_id: str) -> dict:
    task = fetch_task(conn, task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    if task["user_id"] != user["id"]:
        raise HTTPException(status_code=403, detail="Forbidden")
    return task


@router.get("/api/tasks")
def list_tasks(user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    return fetch_tasks(conn, user["id"])


@router.post("/api/tasks", status_code=201)
def add_task(req: TaskRequest, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    values = req.model_dump()
    values["due_date"] = values["due_date"] or None
    return create_task(conn, user["id"], values)


@router.get("/api/tasks/{task_id}")
def get_task(task_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    return _own_task(conn, user, task_id)


@router.put("/api/tasks/{task_id}")
def put_task(
    task_id: str,
    req: TaskUpdate,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    _own_task(conn, user, task_id)
    values = req.model_dump(exclude_unset=True)
    for key in ("title", "status"):
        if key in values and values[key] is None:
            values.pop(key)
    if "due_date" in values:
        values["due_date"] = values["due_date"] or None
    return update_task(conn, task_id, values)


@router.delete("/api/tasks/{task_id}", status_code=204)
def remove_task(task_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    _own_task(conn, user, task_id)
    delete_task(conn, task_id)
    return Response(status_code=204)


@router.get("/api/tasks/{task_id}/notes")
def task_notes(task_id: str, user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    _own_task(conn, user, task_id)
    return fetch_notes(conn, task_id)


@router.post("/api/tasks/{task_id}/notes", status_code=201)
def add_task_note(
    task_id: str,
    req: NoteRequest,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    _own_task(conn, user, task_id)
    if not req.content.strip():
        raise HTTPException(status_code=400, detail="Content is required")
    return create_note(conn, task_id, req.content)
