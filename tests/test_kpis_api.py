"""
API tests for KPIs and their quarterly status rows.

Tests cover:
  - creation with the organization taken from the body or ?org_id
  - actual / met_target / met_target_percent rolled up from status rows
  - business-unit links and the progress summary
"""
import pytest


def create_kpi(client, tenant, via_query=True, **fields):
    body = {
        "name":          "Revenue Impact",
        "quarter":       "Q3",
        "year":          2025,
        "team_id":       tenant["team_id"],
        "target_metric": 200,
        **fields,
    }
    params = {}
    if via_query:
        params["org_id"] = tenant["org_id"]
    else:
        body["organization_id"] = tenant["org_id"]
    r = client.post("/api/kpis", headers=tenant["headers"], params=params, json=body)
    assert r.status_code == 201, r.text
    return r.json()


def add_status(client, tenant, kpi_id, amount, quarter="Q3", year=2025):
    return client.post(f"/api/kpis/{kpi_id}/statuses", headers=tenant["headers"],
                       json={"year": year, "quarter": quarter, "amount": amount})


# ── create ─────────────────────────────────────────────────────────────────────

class TestCreateKpi:
    def test_org_from_query(self, client, tenant):
        kpi = create_kpi(client, tenant)
        assert kpi["organization_id"] == tenant["org_id"]

    def test_org_from_body(self, client, tenant):
        kpi = create_kpi(client, tenant, via_query=False)
        assert kpi["organization_id"] == tenant["org_id"]

    def test_org_required(self, client, tenant):
        r = client.post("/api/kpis", headers=tenant["headers"], json={
            "name": "X", "quarter": "Q1", "year": 2025, "team_id": tenant["team_id"],
        })
        assert r.status_code == 400
        assert r.json()["error"] == "organization_id is required"

    def test_unknown_org(self, client, tenant):
        r = client.post("/api/kpis", headers=tenant["headers"], params={"org_id": "nope"}, json={
            "name": "X", "quarter": "Q1", "year": 2025, "team_id": tenant["team_id"],
        })
        assert r.status_code == 400
        assert r.json()["error"] == "Organization not found"

    def test_bad_quarter_rejected(self, client, tenant):
        r = client.post("/api/kpis", headers=tenant["headers"], params={"org_id": tenant["org_id"]}, json={
            "name": "X", "quarter": "Q5", "year": 2025, "team_id": tenant["team_id"],
        })
        assert r.status_code == 400

    def test_derived_fields_from_body(self, client, tenant):
        kpi = create_kpi(client, tenant, actual_metric=250)
        assert kpi["met_target"] is True
        assert kpi["met_target_percent"] == pytest.approx(125.0)

    def test_no_target_leaves_derived_null(self, client, tenant):
        kpi = create_kpi(client, tenant, target_metric=None, actual_metric=10)
        assert kpi["met_target"] is None
        assert kpi["met_target_percent"] is None

    def test_business_unit_links(self, client, tenant):
        kpi = create_kpi(client, tenant, business_unit_ids=[tenant["unit_id"]])
        assert kpi["business_unit_ids"] == [tenant["unit_id"]]
        listed = client.get("/api/kpis", headers=tenant["headers"],
                            params={"business_unit_id": tenant["unit_id"]}).json()
        assert [k["id"] for k in listed] == [kpi["id"]]


# ── statuses ───────────────────────────────────────────────────────────────────

class TestStatusRollup:
    def test_statuses_sum_into_actual(self, client, tenant):
        kpi = create_kpi(client, tenant)
        assert add_status(client, tenant, kpi["id"], 60, quarter="Q2").status_code == 201
        assert add_status(client, tenant, kpi["id"], 90).status_code == 201

        kpi = client.get(f"/api/kpis/{kpi['id']}", headers=tenant["headers"]).json()
        assert kpi["actual_metric"] == pytest.approx(150.0)
        assert kpi["met_target"] is False
        assert kpi["met_target_percent"] == pytest.approx(75.0)

    def test_delete_status_recomputes(self, client, tenant):
        kpi = create_kpi(client, tenant)
        add_status(client, tenant, kpi["id"], 60)
        status = add_status(client, tenant, kpi["id"], 150).json()
        client.delete(f"/api/kpis/{kpi['id']}/statuses/{status['id']}", headers=tenant["headers"])

        kpi = client.get(f"/api/kpis/{kpi['id']}", headers=tenant["headers"]).json()
        assert kpi["actual_metric"] == pytest.approx(60.0)
        assert kpi["met_target_percent"] == pytest.approx(30.0)

    def test_update_status_recomputes(self, client, tenant):
        kpi = create_kpi(client, tenant)
        status = add_status(client, tenant, kpi["id"], 60).json()
        r = client.put(f"/api/kpis/{kpi['id']}/statuses/{status['id']}", headers=tenant["headers"],
                       json={"amount": 220})
        assert r.status_code == 200
        kpi = client.get(f"/api/kpis/{kpi['id']}", headers=tenant["headers"]).json()
        assert kpi["met_target"] is True

    def test_amount_required(self, client, tenant):
        kpi = create_kpi(client, tenant)
        r = client.post(f"/api/kpis/{kpi['id']}/statuses", headers=tenant["headers"],
                        json={"year": 2025, "quarter": "Q1"})
        assert r.status_code == 400
        assert r.json()["error"] == "year, quarter, and amount are required"

    def test_status_of_other_kpi_is_404(self, client, tenant):
        a = create_kpi(client, tenant)
        b = create_kpi(client, tenant, name="Other")
        status = add_status(client, tenant, a["id"], 10).json()
        r = client.delete(f"/api/kpis/{b['id']}/statuses/{status['id']}", headers=tenant["headers"])
        assert r.status_code == 404

    def test_statuses_listed(self, client, tenant):
        kpi = create_kpi(client, tenant)
        add_status(client, tenant, kpi["id"], 10, quarter="Q1")
        add_status(client, tenant, kpi["id"], 20, quarter="Q2")
        rows = client.get(f"/api/kpis/{kpi['id']}/statuses", headers=tenant["headers"]).json()
        assert sorted(r["amount"] for r in rows) == [10, 20]


# ── update / progress ──────────────────────────────────────────────────────────

def test_update_target_recomputes_percent(client, tenant):
    kpi = create_kpi(client, tenant, actual_metric=50)
    r = client.put(f"/api/kpis/{kpi['id']}", headers=tenant["headers"], json={"target_metric": 100})
    assert r.status_code == 200
    assert r.json()["met_target_percent"] == pytest.approx(50.0)


def test_progress_summary_counts_bands(client, tenant):
    create_kpi(client, tenant, name="Met", actual_metric=300)
    create_kpi(client, tenant, name="Behind", actual_metric=20)
    create_kpi(client, tenant, name="Untargeted", target_metric=None)
    body = client.get("/api/kpis/progress", headers=tenant["headers"]).json()
    assert body["total"] == 3
    assert body["counts"]["met"] == 1
    assert body["counts"]["off_track"] == 1
    assert body["counts"]["no_target"] == 1


def test_delete_kpi(client, tenant):
    kpi = create_kpi(client, tenant)
    assert client.delete(f"/api/kpis/{kpi['id']}", headers=tenant["headers"]).status_code == 200
    assert client.get(f"/api/kpis/{kpi['id']}", headers=tenant["headers"]).status_code == 404
