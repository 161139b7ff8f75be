"""
TrueNorth demo data.

Creates a demo user with a small but complete tenant: company account,
organization, two teams, three members, a business unit with stakeholders,
a metric, a goal, an initiative, a KPI with quarterly status rows, an ops
review with one item, headcount and cost rows, and a task with a note.

Usage:
    python3 seed.py                    # seed the configured database
    python3 seed.py --reset            # drop the demo user first
    python3 seed.py --email me@x.com   # different demo login
"""
from __future__ import annotations

import argparse
import sqlite3
import sys
from pathlib import Path

BACKEND = Path(__file__).parent
sys.path.insert(0, str(BACKEND))

import config  # noqa: E402
from auth import hash_password  # noqa: E402
from db import connect, init_db  # noqa: E402
from queries.accounts import create_account, create_organization, update_account  # noqa: E402
from queries.financial import create_cost, create_headcount  # noqa: E402
from queries.initiatives import create_initiative  # noqa: E402
from queries.kpis import create_kpi, create_status, fetch_status_amounts, update_kpi  # noqa: E402
from queries.ops_reviews import create_item, create_review  # noqa: E402
from queries.tasks import create_note, create_task  # noqa: E402
from queries.teams import create_member, create_team, update_member  # noqa: E402
from queries.units import create_business_unit, create_goals, create_metric, create_stakeholder, update_stakeholder  # noqa: E402
from queries.users import create_user, delete_user, fetch_credentials  # noqa: E402
from analytics.kpi import rollup_kpi_statuses  # noqa: E402

DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "demo123"
YEAR = 2025


def seed(conn: sqlite3.Connection, email: str = DEMO_EMAIL, password: str = DEMO_PASSWORD) -> dict:
    """Write the demo tenant and return the ids of the main records."""
    if fetch_credentials(conn, email):
        raise ValueError(f"{email} already exists; rerun with --reset")

    pw_hash, salt = hash_password(password)
    user = create_user(conn, email, "Demo User", pw_hash, salt)
    account = create_account(conn, user["id"], {
        "name":         "Acme Corp",
        "description":  "Demo company",
        "headquarters": "Remote",
    })
    org = create_organization(conn, account["id"], "E-Commerce Division", "Online retail operations")

    engineering = create_team(conn, org["id"], "Engineering", "Builds the storefront")
    operations = create_team(conn, org["id"], "Operations", "Keeps orders moving")

    def _member(name: str, email_: str, role: str, team: dict) -> dict:
        return create_member(conn, {
            "name":               name,
            "email":              email_,
            "role":               role,
            "team_id":            team["id"],
            "company_account_id": account["id"],
        })

    alice = _member("Alice Anders", "alice@acme.test", "CEO", engineering)
    bob = _member("Bob Brown", "bob@acme.test", "Engineering Manager", engineering)
    carol = _member("Carol Chen", "carol@acme.test", "Operations Lead", operations)
    update_member(conn, bob["id"], {"reports_to_id": alice["id"]})
    update_member(conn, carol["id"], {"reports_to_id": alice["id"]})
    update_account(conn, account["id"], {"founder_id": alice["id"]})

    unit = create_business_unit(conn, org["id"], "E-Commerce", "Direct-to-consumer sales")
    dana = create_stakeholder(conn, {
        "name": "Dana Diaz", "email": "dana@acme.test", "role": "VP Sales",
        "business_unit_id": unit["id"], "organization_id": org["id"],
    })
    evan = create_stakeholder(conn, {
        "name": "Evan Eliot", "email": "evan@acme.test", "role": "Sales Manager",
        "business_unit_id": unit["id"], "organization_id": org["id"],
    })
    update_stakeholder(conn, evan["id"], {"reports_to_id": dana["id"]})
    create_metric(conn, unit["id"], {"name": "Conversion Rate", "target": 3.5, "current": 2.8, "unit": "%"})
    create_goals(conn, {
        "title":            "Lift checkout conversion",
        "description":      "Reduce drop-off between cart and payment",
        "year":             YEAR,
        "business_unit_id": unit["id"],
        "stakeholder_id":   dana["id"],
    }, ["Q3"])

    initiative = create_initiative(conn, {
        "name":             "Checkout Revamp",
        "type":             "CAPITALIZABLE",
        "status":           "IN_PROGRESS",
        "summary":          "Single-page checkout with saved payment methods",
        "organization_id":  org["id"],
        "owner_id":         bob["id"],
        "business_unit_id": unit["id"],
    })

    kpi = create_kpi(conn, {
        "name":               "Revenue Impact",
        "target_metric":      200.0,
        "forecasted_revenue": 250000.0,
        "quarter":            "Q3",
        "year":               YEAR,
        "organization_id":    org["id"],
        "team_id":            engineering["id"],
        "initiative_id":      initiative["id"],
    }, [unit["id"]])
    create_status(conn, kpi["id"], {"year": YEAR, "quarter": "Q2", "amount": 60.0})
    create_status(conn, kpi["id"], {"year": YEAR, "quarter": "Q3", "amount": 90.0})
    update_kpi(conn, kpi["id"], rollup_kpi_statuses(200.0, fetch_status_amounts(conn, kpi["id"])))

    review = create_review(conn, {
        "title":    f"Q3 {YEAR} Engineering Review",
        "quarter":  "Q3",
        "month":    8,
        "year":     YEAR,
        "team_id":  engineering["id"],
        "owner_id": bob["id"],
    })
    create_item(conn, review["id"], {
        "title":         "Checkout latency",
        "target_metric": 800.0,
        "actual_metric": 950.0,
        "quarter":       "Q3",
        "year":          YEAR,
        "team_id":       engineering["id"],
        "owner_id":      bob["id"],
    })

    create_headcount(conn, {
        "team_id": engineering["id"], "organization_id": org["id"], "year": YEAR,
        "role": "Software Engineer", "level": "Senior", "salary": 160000.0,
        "q1_forecast": 4, "q1_actual": 4, "q2_forecast": 5, "q2_actual": 4,
        "q3_forecast": 5, "q3_actual": 5, "q4_forecast": 6, "q4_actual": 0,
    })
    create_headcount(conn, {
        "team_id": operations["id"], "organization_id": org["id"], "year": YEAR,
        "role": "Operations Analyst", "level": "Mid", "salary": 90000.0,
        "q1_forecast": 2, "q1_actual": 2, "q2_forecast": 2, "q2_actual": 2,
        "q3_forecast": 3, "q3_actual": 2, "q4_forecast": 3, "q4_actual": 0,
    })
    create_cost(conn, {
        "team_id": engineering["id"], "organization_id": org["id"], "year": YEAR, "type": "SOFTWARE",
        "q1_forecast": 12000, "q1_actual": 11500, "q2_forecast": 12000, "q2_actual": 12800,
        "q3_forecast": 13000, "q3_actual": 12100, "q4_forecast": 13000, "q4_actual": 0,
    })
    create_cost(conn, {
        "team_id": operations["id"], "organization_id": org["id"], "year": YEAR, "type": "TRAINING",
        "q1_forecast": 3000, "q1_actual": 2000, "q2_forecast": 3000, "q2_actual": 3900,
        "q3_forecast": 3000, "q3_actual": 2500, "q4_forecast": 3000, "q4_actual": 0,
    })

    task = create_task(conn, user["id"], {
        "title":       "Prepare Q3 ops review deck",
        "description": "Pull KPI and cost numbers for the engineering review",
        "status":      "IN_PROGRESS",
    })
    create_note(conn, task["id"], "Latency numbers are still above target.")

    return {
        "user_id":         user["id"],
        "account_id":      account["id"],
        "organization_id": org["id"],
        "kpi_id":          kpi["id"],
        "ops_review_id":   review["id"],
    }


# ── CLI ───────────────────────────────────────────────────────────────────────

def main() -> None:
    parser = argparse.ArgumentParser(description="Seed TrueNorth demo data.")
    parser.add_argument("--email",    default=DEMO_EMAIL, help="Demo login email")
    parser.add_argument("--password", default=DEMO_PASSWORD, help="Demo login password")
    parser.add_argument("--reset",    action="store_true", help="Delete the demo user before seeding")
    args = parser.parse_args()

    init_db()
    conn = connect()
    if args.reset:
        existing = fetch_credentials(conn, args.email)
        if existing:
            delete_user(conn, existing["id"])
    try:
        ids = seed(conn, args.email, args.password)
    except ValueError as exc:
        print(exc)
        sys.exit(1)
    finally:
        conn.close()

    print(f"Seeded {config.DB_PATH}")
    for key, value in ids.items():
        print(f"  {key:<16} {value}")
    print(f"Login: {args.email} / {args.password}")


if __name__ == "__main__":
    main()
