"""
API tests for the cost and headcount ledgers.
"""
import pytest


def add_cost(client, tenant, **fields):
    body = {"team_id": tenant["team_id"], "year": 2025, "type": "SOFTWARE", **fields}
    return client.post("/api/costs", headers=tenant["headers"], json=body)


def add_headcount(client, tenant, **fields):
    body = {"team_id": tenant["team_id"], "year": 2025, "role": "Engineer",
            "level": "Senior", "salary": 100000, **fields}
    return client.post("/api/headcount", headers=tenant["headers"], json=body)


# ── costs ──────────────────────────────────────────────────────────────────────

class TestCosts:
    def test_organization_derived_from_team(self, client, tenant):
        r = add_cost(client, tenant, q1_forecast=1000)
        assert r.status_code == 201
        assert r.json()["organization_id"] == tenant["org_id"]

    def test_numeric_strings_accepted(self, client, tenant):
        r = add_cost(client, tenant, q1_forecast="1,500.50", q1_actual="", q2_actual="200")
        assert r.status_code == 201, r.text
        cost = r.json()
        assert cost["q1_forecast"] == pytest.approx(1500.5)
        assert cost["q1_actual"] == 0
        assert cost["q2_actual"] == pytest.approx(200)

    def test_non_numeric_rejected(self, client, tenant):
        assert add_cost(client, tenant, q1_forecast="lots").status_code == 400

    def test_unknown_type_rejected(self, client, tenant):
        assert add_cost(client, tenant, type="SNACKS").status_code == 400

    def test_list_annotates_variance(self, client, tenant):
        add_cost(client, tenant, q1_forecast=1000, q1_actual=1200)
        rows = client.get("/api/costs", headers=tenant["headers"]).json()
        assert len(rows) == 1
        assert rows[0]["variance"] == pytest.approx(200)
        assert rows[0]["band"] == "red"
        assert rows[0]["team_name"] == "Engineering"

    def test_summary(self, client, tenant):
        add_cost(client, tenant, q1_forecast=1000, q1_actual=800)
        add_cost(client, tenant, type="TRAINING", q2_forecast=500, q2_actual=500)
        body = client.get("/api/costs/summary", headers=tenant["headers"], params={"year": 2025}).json()
        assert body["forecast"] == pytest.approx(1500)
        assert body["actual"] == pytest.approx(1300)
        assert body["row_count"] == 2
        assert set(body["by_type"]) == {"SOFTWARE", "TRAINING"}
        assert body["by_quarter"]["Q1"]["band"] == "green"

    def test_update_and_delete(self, client, tenant):
        cost = add_cost(client, tenant).json()
        r = client.put(f"/api/costs/{cost['id']}", headers=tenant["headers"], json={"q3_actual": "42"})
        assert r.json()["q3_actual"] == pytest.approx(42)
        r = client.delete(f"/api/costs/{cost['id']}", headers=tenant["headers"])
        assert r.json() == {"ok": True}
        assert client.get(f"/api/costs/{cost['id']}", headers=tenant["headers"]).status_code == 404


# ── headcount ──────────────────────────────────────────────────────────────────

class TestHeadcount:
    def test_negative_heads_rejected(self, client, tenant):
        assert add_headcount(client, tenant, q1_forecast=-1).status_code == 400

    def test_role_required(self, client, tenant):
        assert add_headcount(client, tenant, role="").status_code == 400

    def test_summary_costs_quarter_salary(self, client, tenant):
        add_headcount(client, tenant, q1_forecast=2, q1_actual=1)
        body = client.get("/api/headcount/summary", headers=tenant["headers"]).json()
        q1 = body["by_quarter"]["Q1"]
        assert q1["forecast_heads"] == 2
        assert q1["forecast_cost"] == pytest.approx(50000)
        assert q1["actual_cost"] == pytest.approx(25000)
        assert body["roles"] == ["Engineer"]

    def test_team_summary_combines_both(self, client, tenant):
        add_cost(client, tenant, q1_forecast=1000)
        add_headcount(client, tenant, q1_forecast=1)
        body = client.get(f"/api/teams/{tenant['team_id']}/summary", headers=tenant["headers"]).json()
        assert body["costs"]["forecast"] == pytest.approx(1000)
        assert body["headcount"]["row_count"] == 1

    def test_delete(self, client, tenant):
        row = add_headcount(client, tenant).json()
        r = client.delete(f"/api/headcount/{row['id']}", headers=tenant["headers"])
        assert r.json() == {"success": True}
