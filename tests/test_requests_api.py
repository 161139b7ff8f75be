"""
API tests for feature / support requests and the admin console.
"""
from conftest import register


class TestFeatureRequests:
    def test_required_fields(self, client):
        h = register(client, "a@example.com")
        r = client.post("/api/feature-requests", headers=h, json={"title": "Dark mode"})
        assert r.status_code == 400
        assert r.json()["error"] == "Missing required fields: description, category"

    def test_submit_defaults_priority(self, client):
        h = register(client, "a@example.com")
        r = client.post("/api/feature-requests", headers=h, json={
            "title": " Dark mode ", "description": "Easier on the eyes", "category": "ui",
        })
        assert r.status_code == 201
        assert r.json()["title"] == "Dark mode"
        assert r.json()["priority"] == "medium"
        assert len(client.get("/api/feature-requests", headers=h).json()) == 1

    def test_only_own_requests_listed(self, client):
        a = register(client, "a@example.com")
        b = register(client, "b@example.com")
        client.post("/api/feature-requests", headers=a, json={
            "title": "x", "description": "y", "category": "z",
        })
        assert client.get("/api/feature-requests", headers=b).json() == []


def test_support_request_required_fields(client):
    h = register(client, "a@example.com")
    r = client.post("/api/support-requests", headers=h, json={"subject": "Broken", "category": "bug"})
    assert r.status_code == 400
    ok = client.post("/api/support-requests", headers=h, json={
        "subject": "Broken", "category": "bug", "description": "Export fails", "steps": "Click export",
    })
    assert ok.status_code == 201


class TestAdmin:
    def test_non_admin_forbidden(self, client):
        h = register(client, "a@example.com")
        assert client.get("/api/admin/metrics", headers=h).status_code == 403
        assert client.get("/api/admin/whoami", headers=h).json()["is_admin"] is False

    def test_admin_metrics(self, client):
        register(client, "a@example.com")
        admin = register(client, "admin@example.com")
        body = client.get("/api/admin/metrics", headers=admin).json()
        assert body["total_users"] == 2
        assert body["active_sessions"] == 2
        assert len(body["recent_users"]) == 2

    def test_admin_updates_request(self, client):
        user = register(client, "a@example.com")
        admin = register(client, "admin@example.com")
        created = client.post("/api/support-requests", headers=user, json={
            "subject": "Broken", "category": "bug", "description": "Export fails",
        }).json()
        r = client.put(f"/api/admin/support-requests/{created['id']}", headers=admin,
                       json={"status": "resolved", "admin_notes": "Fixed in 1.2"})
        assert r.status_code == 200
        assert r.json()["status"] == "resolved"

    def test_admin_missing_request(self, client):
        admin = register(client, "admin@example.com")
        assert client.get("/api/admin/feature-requests/nope", headers=admin).status_code == 404
