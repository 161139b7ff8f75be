"""
Cross-tenant isolation: every tenant-owned resource answers 403 to another
tenant and 404 when it does not exist at all.
"""
import pytest


@pytest.fixture
def owned(client, tenant):
    """A handful of rows inside the first tenant."""
    h = tenant["headers"]
    initiative = client.post("/api/initiatives", headers=h, json={
        "name": "Checkout Revamp", "organization_id": tenant["org_id"],
    }).json()
    kpi = client.post("/api/kpis", headers=h, params={"org_id": tenant["org_id"]}, json={
        "name": "Revenue", "quarter": "Q1", "year": 2025, "team_id": tenant["team_id"],
    }).json()
    cost = client.post("/api/costs", headers=h, json={
        "team_id": tenant["team_id"], "year": 2025, "type": "OTHER",
    }).json()
    return {
        "organizations":  tenant["org_id"],
        "teams":          tenant["team_id"],
        "business-units": tenant["unit_id"],
        "team-members":   tenant["member_id"],
        "initiatives":    initiative["id"],
        "kpis":           kpi["id"],
        "costs":          cost["id"],
    }


RESOURCES = ["organizations", "teams", "business-units", "team-members", "initiatives", "kpis", "costs"]


@pytest.mark.parametrize("resource", RESOURCES)
def test_other_tenant_is_forbidden(client, owned, outsider, resource):
    r = client.get(f"/api/{resource}/{owned[resource]}", headers=outsider["headers"])
    assert r.status_code == 403
    assert r.json() == {"error": "Forbidden"}


@pytest.mark.parametrize("resource", RESOURCES)
def test_owner_can_read(client, tenant, owned, resource):
    r = client.get(f"/api/{resource}/{owned[resource]}", headers=tenant["headers"])
    assert r.status_code == 200


@pytest.mark.parametrize("resource", RESOURCES)
def test_missing_is_not_found(client, tenant, resource):
    r = client.get(f"/api/{resource}/does-not-exist", headers=tenant["headers"])
    assert r.status_code == 404


def test_other_tenant_cannot_delete(client, owned, outsider, tenant):
    r = client.delete(f"/api/teams/{owned['teams']}", headers=outsider["headers"])
    assert r.status_code == 403
    assert client.get(f"/api/teams/{owned['teams']}", headers=tenant["headers"]).status_code == 200


def test_lists_are_scoped(client, owned, outsider):
    h = outsider["headers"]
    assert client.get("/api/initiatives", headers=h).json() == []
    assert client.get("/api/kpis", headers=h).json() == []
    assert client.get("/api/costs", headers=h).json() == []
    assert client.get("/api/business-units", headers=h).json() == []
    org_ids = [o["id"] for o in client.get("/api/organizations", headers=h).json()]
    assert org_ids == [outsider["org_id"]]


def test_cannot_attach_foreign_team(client, tenant, outsider):
    r = client.post("/api/kpis", headers=outsider["headers"], params={"org_id": outsider["org_id"]}, json={
        "name": "Sneaky", "quarter": "Q1", "year": 2025, "team_id": tenant["team_id"],
    })
    assert r.status_code == 403


def test_cannot_create_in_foreign_org(client, tenant, outsider):
    r = client.post(f"/api/organizations/{tenant['org_id']}/teams", headers=outsider["headers"],
                    json={"name": "Trojan"})
    assert r.status_code == 403


def test_unonboarded_user_sees_nothing(client, tenant):
    from conftest import register
    h = register(client, "fresh@example.com")
    assert client.get("/api/organizations", headers=h).json() == []
    assert client.get("/api/team-members", headers=h).json() == []
    assert client.get("/api/org-chart", headers=h).json() == {"roots": [], "total": 0}
    assert client.get(f"/api/teams/{tenant['team_id']}", headers=h).status_code == 403
