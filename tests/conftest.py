"""
Shared fixtures for TrueNorth tests.

Pure analytics tests import straight from backend/. API tests run the real
FastAPI app through TestClient against a throwaway SQLite file per test.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import config  # noqa: E402


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "DB_PATH", tmp_path / "truenorth-test.db")
    monkeypatch.setattr(config, "PASSWORD_ITERATIONS", 1000)
    monkeypatch.setattr(config, "ADMIN_EMAILS", {"admin@example.com"})

    from fastapi.testclient import TestClient
    from main import app

    with TestClient(app) as c:
        yield c


# --------------------------------------------------------------------------
# Helpers
# --------------------------------------------------------------------------

def register(client, email: str, password: str = "s3cret-pass") -> dict:
    """Sign up + log in; return Authorization headers."""
    r = client.post("/api/auth/signup", json={"email": email, "password": password})
    assert r.status_code == 201, r.text
    r = client.post("/api/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['token']}"}


def onboard(client, headers: dict, email: str, company: str = "Acme", level: str = "Founder / owner") -> dict:
    r = client.post("/api/onboarding", headers=headers, json={
        "first_name":        "Pat",
        "last_name":         "Lee",
        "email":             email,
        "company":           company,
        "level":             level,
        "industry":          "Retail",
        "leadership_styles": ["Coaching"],
    })
    assert r.status_code == 200, r.text
    return r.json()


@pytest.fixture
def tenant(client):
    """An onboarded user with one organization, team and business unit."""
    headers = register(client, "owner@example.com")
    data = onboard(client, headers, "owner@example.com")
    org_id = data["organization"]["id"]

    team = client.post(f"/api/organizations/{org_id}/teams", headers=headers,
                       json={"name": "Engineering"}).json()
    unit = client.post(f"/api/organizations/{org_id}/business-units", headers=headers,
                       json={"name": "E-Commerce"}).json()
    return {
        "headers":   headers,
        "org_id":    org_id,
        "team_id":   team["id"],
        "unit_id":   unit["id"],
        "member_id": data["team_member"]["id"],
        "account_id": data["company_account"]["id"],
    }


@pytest.fixture
def outsider(client):
    """A second, unrelated tenant."""
    headers = register(client, "rival@example.com")
    data = onboard(client, headers, "rival@example.com", company="Rival")
    return {"headers": headers, "org_id": data["organization"]["id"]}
