"""
The demo seed writes a complete tenant the API can read back.
"""
import pytest

from db import connect
from seed import DEMO_EMAIL, DEMO_PASSWORD, seed


@pytest.fixture
def seeded(client):
    conn = connect()
    try:
        ids = seed(conn)
    finally:
        conn.close()
    r = client.post("/api/auth/login", json={"email": DEMO_EMAIL, "password": DEMO_PASSWORD})
    assert r.status_code == 200, r.text
    return ids, {"Authorization": f"Bearer {r.json()['token']}"}


def test_kpi_rolled_up_from_statuses(client, seeded):
    ids, h = seeded
    kpi = client.get(f"/api/kpis/{ids['kpi_id']}", headers=h).json()
    assert kpi["actual_metric"] == pytest.approx(150.0)
    assert kpi["met_target"] is False
    assert kpi["met_target_percent"] == pytest.approx(75.0)


def test_org_chart_has_founder_root(client, seeded):
    _, h = seeded
    body = client.get("/api/org-chart", headers=h).json()
    assert body["total"] == 3
    assert [r["name"] for r in body["roots"]] == ["Alice Anders"]
    assert len(body["roots"][0]["children"]) == 2


def test_ops_review_has_item(client, seeded):
    ids, h = seeded
    review = client.get(f"/api/ops-reviews/{ids['ops_review_id']}", headers=h).json()
    assert review["item_count"] == 1


def test_financials_present(client, seeded):
    _, h = seeded
    assert len(client.get("/api/costs", headers=h).json()) == 2
    assert client.get("/api/headcount/summary", headers=h).json()["row_count"] == 2


def test_seed_twice_refused(client, seeded):
    conn = connect()
    try:
        with pytest.raises(ValueError):
            seed(conn)
    finally:
        conn.close()
