"""
Authentication: password hashing, bearer sessions and the current-user
dependency used by every protected router.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import secrets
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

import config
from db import get_db
from queries.users import create_session, fetch_session_user

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def hash_password(password: str, salt_b64: Optional[str] = None) -> tuple[str, str]:
    salt = base64.b64decode(salt_b64) if salt_b64 else secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, config.PASSWORD_ITERATIONS)
    return base64.b64encode(digest).decode("ascii"), base64.b64encode(salt).decode("ascii")


def verify_password(password: str, expected_hash: str, salt_b64: str) -> bool:
    computed, _ = hash_password(password, salt_b64)
    return hmac.compare_digest(computed, expected_hash)


def token_hash(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def issue_session(conn: sqlite3.Connection, user_id: str) -> dict:
    """Create a session row and return the raw token (only ever shown once)."""
    raw_token = secrets.token_urlsafe(32)
    expires = datetime.now(timezone.utc) + timedelta(days=config.SESSION_DAYS)
    expires_at = expires.isoformat(timespec="milliseconds")
    create_session(conn, user_id, token_hash(raw_token), expires_at)
    return {"token": raw_token, "token_type": "bearer", "expires_at": expires_at}


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    conn: sqlite3.Connection = Depends(get_db),
) -> dict:
    if credentials is None:
        raise HTTPException(
            status_code=401,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user = fetch_session_user(conn, token_hash(credentials.credentials))
    if user is None:
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def is_admin(user: dict) -> bool:
    return (user.get("email") or "").lower() in config.ADMIN_EMAILS


def require_admin(user: dict = Depends(get_current_user)) -> dict:
    if not is_admin(user):
        logger.warning("Admin access denied for %s", user.get("email"))
        raise HTTPException(status_code=403, detail="Forbidden")
    return user
