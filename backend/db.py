"""
Database helpers shared across queries and routers.
No business logic lives here — only I/O primitives and the schema.
"""
from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Iterator

import config

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id                TEXT PRIMARY KEY,
    email             TEXT NOT NULL UNIQUE,
    name              TEXT,
    password_hash     TEXT NOT NULL,
    password_salt     TEXT NOT NULL,
    first_name        TEXT,
    last_name         TEXT,
    company_name      TEXT,
    level             TEXT,
    industry          TEXT,
    leadership_styles TEXT,
    onboarded_at      TEXT,
    created_at        TEXT NOT NULL,
    updated_at        TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS sessions (
    id         TEXT PRIMARY KEY,
    user_id    TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    token_hash TEXT NOT NULL UNIQUE,
    expires_at TEXT NOT NULL,
    revoked_at TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS company_accounts (
    id                 TEXT PRIMARY KEY,
    user_id            TEXT NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
    founder_id         TEXT REFERENCES team_members(id) ON DELETE SET NULL,
    name               TEXT NOT NULL,
    description        TEXT,
    employees          TEXT,
    headquarters       TEXT,
    launched_date      TEXT,
    is_private         INTEGER NOT NULL DEFAULT 1,
    traded_as          TEXT,
    corporate_intranet TEXT,
    glassdoor_link     TEXT,
    linkedin_link      TEXT,
    created_at         TEXT NOT NULL,
    updated_at         TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS organizations (
    id                 TEXT PRIMARY KEY,
    name               TEXT NOT NULL,
    description        TEXT,
    company_account_id TEXT REFERENCES company_accounts(id) ON DELETE CASCADE,
    created_at         TEXT NOT NULL,
    updated_at         TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS ceo_goals (
    id              TEXT PRIMARY KEY,
    organization_id TEXT NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
    description     TEXT NOT NULL,
    position        INTEGER NOT NULL DEFAULT 0,
    created_at      TEXT NOT NULL,
    updated_at      TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS business_units (
    id              TEXT PRIMARY KEY,
    name            TEXT NOT NULL,
    description     TEXT,
    organization_id TEXT NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
    created_at      TEXT NOT NULL,
    updated_at      TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS metrics (
    id               TEXT PRIMARY KEY,
    name             TEXT NOT NULL,
    target           REAL NOT NULL,
    current          REAL NOT NULL,
    unit             TEXT NOT NULL,
    business_unit_id TEXT NOT NULL REFERENCES business_units(id) ON DELETE CASCADE,
    created_at       TEXT NOT NULL,
    updated_at       TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS teams (
    id               TEXT PRIMARY KEY,
    name             TEXT NOT NULL,
    description      TEXT,
    organization_id  TEXT NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
    business_unit_id TEXT REFERENCES business_units(id) ON DELETE SET NULL,
    created_at       TEXT NOT NULL,
    updated_at       TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS team_members (
    id                 TEXT PRIMARY KEY,
    name               TEXT NOT NULL,
    email              TEXT,
    role               TEXT,
    team_id            TEXT REFERENCES teams(id) ON DELETE CASCADE,
    company_account_id TEXT REFERENCES company_accounts(id) ON DELETE CASCADE,
    reports_to_id      TEXT REFERENCES team_members(id) ON DELETE SET NULL,
    is_active          INTEGER NOT NULL DEFAULT 1,
    one_on_one_notes   TEXT,
    last_one_on_one_at TEXT,
    goals_notes        TEXT,
    personal_notes     TEXT,
    created_at         TEXT NOT NULL,
    updated_at         TEXT NOT NULL,
    UNIQUE (company_account_id, email)
);

CREATE TABLE IF NOT EXISTS stakeholders (
    id               TEXT PRIMARY KEY,
    name             TEXT NOT NULL,
    email            TEXT,
    role             TEXT,
    business_unit_id TEXT REFERENCES business_units(id) ON DELETE CASCADE,
    team_member_id   TEXT REFERENCES team_members(id) ON DELETE SET NULL,
    reports_to_id    TEXT REFERENCES stakeholders(id) ON DELETE SET NULL,
    organization_id  TEXT REFERENCES organizations(id) ON DELETE CASCADE,
    created_at       TEXT NOT NULL,
    updated_at       TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS goals (
    id               TEXT PRIMARY KEY,
    title            TEXT NOT NULL,
    description      TEXT,
    quarter          TEXT NOT NULL,
    year             INTEGER NOT NULL,
    progress_notes   TEXT,
    business_unit_id TEXT NOT NULL REFERENCES business_units(id) ON DELETE CASCADE,
    stakeholder_id   TEXT REFERENCES stakeholders(id) ON DELETE SET NULL,
    created_at       TEXT NOT NULL,
    updated_at       TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS initiatives (
    id                     TEXT PRIMARY KEY,
    name                   TEXT NOT NULL,
    type                   TEXT,
    status                 TEXT NOT NULL DEFAULT 'NOT_STARTED',
    at_risk                INTEGER NOT NULL DEFAULT 0,
    summary                TEXT,
    value_proposition      TEXT,
    implementation_details TEXT,
    release_date           TEXT,
    organization_id        TEXT NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
    owner_id               TEXT REFERENCES team_members(id) ON DELETE SET NULL,
    business_unit_id       TEXT REFERENCES business_units(id) ON DELETE SET NULL,
    created_at             TEXT NOT NULL,
    updated_at             TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS kpis (
    id                 TEXT PRIMARY KEY,
    name               TEXT NOT NULL,
    target_metric      REAL,
    actual_metric      REAL,
    met_target         INTEGER,
    met_target_percent REAL,
    forecasted_revenue REAL,
    actual_revenue     REAL,
    quarter            TEXT NOT NULL,
    year               INTEGER NOT NULL,
    organization_id    TEXT NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
    team_id            TEXT NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
    initiative_id      TEXT REFERENCES initiatives(id) ON DELETE SET NULL,
    created_at         TEXT NOT NULL,
    updated_at         TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS kpi_business_units (
    kpi_id           TEXT NOT NULL REFERENCES kpis(id) ON DELETE CASCADE,
    business_unit_id TEXT NOT NULL REFERENCES business_units(id) ON DELETE CASCADE,
    PRIMARY KEY (kpi_id, business_unit_id)
);

CREATE TABLE IF NOT EXISTS kpi_statuses (
    id         TEXT PRIMARY KEY,
    kpi_id     TEXT NOT NULL REFERENCES kpis(id) ON DELETE CASCADE,
    quarter    TEXT NOT NULL,
    year       INTEGER NOT NULL,
    amount     REAL NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS ops_reviews (
    id          TEXT PRIMARY KEY,
    title       TEXT NOT NULL,
    description TEXT,
    quarter     TEXT NOT NULL,
    month       INTEGER,
    year        INTEGER NOT NULL,
    team_id     TEXT NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
    owner_id    TEXT REFERENCES team_members(id) ON DELETE SET NULL,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS ops_review_items (
    id            TEXT PRIMARY KEY,
    title         TEXT NOT NULL,
    description   TEXT,
    target_metric REAL,
    actual_metric REAL,
    quarter       TEXT NOT NULL,
    year          INTEGER NOT NULL,
    ops_review_id TEXT NOT NULL REFERENCES ops_reviews(id) ON DELETE CASCADE,
    team_id       TEXT NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
    owner_id      TEXT REFERENCES team_members(id) ON DELETE SET NULL,
    created_at    TEXT NOT NULL,
    updated_at    TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS costs (
    id              TEXT PRIMARY KEY,
    team_id         TEXT NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
    organization_id TEXT REFERENCES organizations(id) ON DELETE CASCADE,
    year            INTEGER NOT NULL,
    type            TEXT NOT NULL,
    q1_forecast     REAL NOT NULL DEFAULT 0,
    q1_actual       REAL NOT NULL DEFAULT 0,
    q2_forecast     REAL NOT NULL DEFAULT 0,
    q2_actual       REAL NOT NULL DEFAULT 0,
    q3_forecast     REAL NOT NULL DEFAULT 0,
    q3_actual       REAL NOT NULL DEFAULT 0,
    q4_forecast     REAL NOT NULL DEFAULT 0,
    q4_actual       REAL NOT NULL DEFAULT 0,
    notes           TEXT,
    created_at      TEXT NOT NULL,
    updated_at      TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS headcount (
    id              TEXT PRIMARY KEY,
    team_id         TEXT NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
    organization_id TEXT REFERENCES organizations(id) ON DELETE CASCADE,
    year            INTEGER NOT NULL,
    role            TEXT NOT NULL,
    level           TEXT NOT NULL,
    salary          REAL NOT NULL,
    q1_forecast     INTEGER NOT NULL DEFAULT 0,
    q1_actual       INTEGER NOT NULL DEFAULT 0,
    q2_forecast     INTEGER NOT NULL DEFAULT 0,
    q2_actual       INTEGER NOT NULL DEFAULT 0,
    q3_forecast     INTEGER NOT NULL DEFAULT 0,
    q3_actual       INTEGER NOT NULL DEFAULT 0,
    q4_forecast     INTEGER NOT NULL DEFAULT 0,
    q4_actual       INTEGER NOT NULL DEFAULT 0,
    notes           TEXT,
    created_at      TEXT NOT NULL,
    updated_at      TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS tasks (
    id          TEXT PRIMARY KEY,
    title       TEXT NOT NULL,
    description TEXT,
    due_date    TEXT,
    status      TEXT NOT NULL DEFAULT 'TODO',
    user_id     TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS notes (
    id         TEXT PRIMARY KEY,
    task_id    TEXT NOT NULL REFERENCES tasks(id) ON DELETE CASCADE,
    content    TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS feature_requests (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    title       TEXT NOT NULL,
    description TEXT NOT NULL,
    category    TEXT NOT NULL,
    priority    TEXT NOT NULL DEFAULT 'medium',
    use_case    TEXT,
    status      TEXT NOT NULL DEFAULT 'submitted',
    admin_notes TEXT,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS support_requests (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    subject     TEXT NOT NULL,
    category    TEXT NOT NULL,
    priority    TEXT NOT NULL DEFAULT 'medium',
    description TEXT NOT NULL,
    steps       TEXT,
    status      TEXT NOT NULL DEFAULT 'open',
    admin_notes TEXT,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_orgs_account      ON organizations(company_account_id);
CREATE INDEX IF NOT EXISTS idx_bu_org            ON business_units(organization_id);
CREATE INDEX IF NOT EXISTS idx_teams_org         ON teams(organization_id);
CREATE INDEX IF NOT EXISTS idx_members_team      ON team_members(team_id);
CREATE INDEX IF NOT EXISTS idx_members_reports   ON team_members(reports_to_id);
CREATE INDEX IF NOT EXISTS idx_goals_bu          ON goals(business_unit_id);
CREATE INDEX IF NOT EXISTS idx_kpis_org          ON kpis(organization_id);
CREATE INDEX IF NOT EXISTS idx_kpi_statuses_kpi  ON kpi_statuses(kpi_id);
CREATE INDEX IF NOT EXISTS idx_ops_items_review  ON ops_review_items(ops_review_id);
CREATE INDEX IF NOT EXISTS idx_costs_team_year   ON costs(team_id, year);
CREATE INDEX IF NOT EXISTS idx_headcount_team    ON headcount(team_id, year);
"""


def row_to_dict(row) -> dict:
    return dict(row)


def rows_to_dicts(rows) -> list[dict]:
    return [row_to_dict(r) for r in rows]


def new_id() -> str:
    return uuid.uuid4().hex


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


def connect() -> sqlite3.Connection:
    config.DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(config.DB_PATH, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute(f"PRAGMA busy_timeout = {config.DB_BUSY_TIMEOUT_MS}")
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db() -> None:
    conn = connect()
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()
    logger.info("Database ready at %s", config.DB_PATH)


def get_db() -> Iterator[sqlite3.Connection]:
    """FastAPI dependency: one connection per request, closed afterwards."""
    conn = connect()
    try:
        yield conn
    finally:
        conn.close()


# ── Generic writes ───────────────────────────────────────────────────────────
# Table and column names come from code, never from request bodies.

def insert_row(conn: sqlite3.Connection, table: str, values: dict) -> dict:
    ts = now_iso()
    row = {"id": new_id(), "created_at": ts, "updated_at": ts, **values}
    cols = ", ".join(row)
    marks = ", ".join("?" for _ in row)
    conn.execute(f"INSERT INTO {table} ({cols}) VALUES ({marks})", tuple(row.values()))
    return row


def update_row(conn: sqlite3.Connection, table: str, row_id: str, values: dict) -> None:
    if not values:
        return
    values = {**values, "updated_at": now_iso()}
    assignments = ", ".join(f"{c} = ?" for c in values)
    conn.execute(
        f"UPDATE {table} SET {assignments} WHERE id = ?",
        (*values.values(), row_id),
    )


def delete_row(conn: sqlite3.Connection, table: str, row_id: str) -> None:
    conn.execute(f"DELETE FROM {table} WHERE id = ?", (row_id,))


def fetch_row(conn: sqlite3.Connection, table: str, row_id: str) -> dict | None:
    row = conn.execute(f"SELECT * FROM {table} WHERE id = ?", (row_id,)).fetchone()
    return row_to_dict(row) if row else None
