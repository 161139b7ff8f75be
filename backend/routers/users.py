import logging
import sqlite3
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel, Field

from auth import get_current_user, hash_password, issue_session, security, token_hash, verify_password
from db import get_db, now_iso
from queries.users import (
    create_user,
    delete_user,
    fetch_credentials,
    fetch_user,
    revoke_session,
    update_user_profile,
)
from queries.accounts import (
    create_account,
    create_organization,
    fetch_account_for_user,
    fetch_organization_by_name,
    update_account,
)
from queries.teams import create_member, fetch_member_by_email, update_member
from analytics.onboarding import default_organization_name, display_name, role_for_level
from validation import Email

logger = logging.getLogger(__name__)

router = APIRouter()


class SignupRequest(BaseModel):
    email:    Optional[str] = None
    password: Optional[str] = None
    name:     Optional[str] = None


class LoginRequest(BaseModel):
    email:    str
    password: str


class OnboardingRequest(BaseModel):
    first_name:        str = Field(min_length=1)
    last_name:         str = Field(min_length=1)
    email:             Email
    company:           str = Field(min_length=1)
    level:             str = Field(min_length=1)
    industry:          str = Field(min_length=1)
    leadership_styles: list[str] = Field(min_length=1)


@router.post("/api/auth/signup", status_code=201)
def signup(req: SignupRequest, conn: sqlite3.Connection = Depends(get_db)):
    if not req.email or not req.password:
        raise HTTPException(status_code=400, detail="Email and password are required")
    if fetch_credentials(conn, req.email):
        raise HTTPException(status_code=400, detail="User already exists")
    pw_hash, salt = hash_password(req.password)
    user = create_user(conn, req.email, req.name, pw_hash, salt)
    logger.info("User %s signed up", user["id"])
    return {"message": "User created successfully", "user_id": user["id"]}


@router.post("/api/auth/login")
def login(req: LoginRequest, conn: sqlite3.Connection = Depends(get_db)):
    creds = fetch_credentials(conn, req.email)
    if creds is None or not verify_password(req.password, creds["password_hash"], creds["password_salt"]):
        logger.warning("Failed login for %s", req.email)
        raise HTTPException(status_code=401, detail="Invalid email or password")
    session = issue_session(conn, creds["id"])
    return {**session, "user": fetch_user(conn, creds["id"])}


@router.post("/api/auth/logout")
def logout(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    revoke_session(conn, token_hash(credentials.credentials))
    return {"success": True}


@router.get("/api/me")
def me(user: dict = Depends(get_current_user)):
    return {"data": user}


@router.post("/api/onboarding")
def onboarding(
    req: OnboardingRequest,
    user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    email = req.email.strip().lower()
    owner = fetch_credentials(conn, email)
    if owner is not None and owner["id"] != user["id"]:
        raise HTTPException(status_code=400, detail="Email already in use")
    updated = update_user_profile(conn, user["id"], {
        "first_name":        req.first_name,
        "last_name":         req.last_name,
        "email":             email,
        "company_name":      req.company,
        "level":             req.level,
        "industry":          req.industry,
        "leadership_styles": req.leadership_styles,
        "onboarded_at":      now_iso(),
    })

    account = fetch_account_for_user(conn, user["id"])
    if account is None:
        account = create_account(conn, user["id"], {"name": req.company})
    elif not (account["name"] or "").strip():
        account = update_account(conn, account["id"], {"name": req.company})

    org_name = default_organization_name(account["name"])
    org = fetch_organization_by_name(conn, account["id"], org_name)
    if org is None:
        org = create_organization(conn, account["id"], org_name, None)

    role = role_for_level(req.level)
    name = display_name(req.first_name, req.last_name)
    member = fetch_member_by_email(conn, account["id"], email)
    if member is None:
        member = create_member(conn, {
            "name":               name,
            "email":              email,
            "role":               role,
            "company_account_id": account["id"],
        })
    else:
        member = update_member(conn, member["id"], {"name": name, "role": role})
    if role == "CEO" and not account["founder_id"]:
        account = update_account(conn, account["id"], {"founder_id": member["id"]})

    logger.info("User %s onboarded into account %s", user["id"], account["id"])
    return {
        "success":         True,
        "user":            updated,
        "company_account": {"id": account["id"], "name": account["name"]},
        "organization":    {"id": org["id"], "name": org["name"]},
        "team_member":     member,
    }


@router.delete("/api/user/delete-account")
def delete_account(user: dict = Depends(get_current_user), conn: sqlite3.Connection = Depends(get_db)):
    delete_user(conn, user["id"])
    logger.info("User %s deleted their account", user["id"])
    return {"success": True}
