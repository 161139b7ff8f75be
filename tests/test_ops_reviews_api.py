"""
API tests for operations reviews and their items.
"""


def add_review(client, tenant, **fields):
    body = {"title": "Q3 Engineering Review", "quarter": "Q3", "year": 2025,
            "team_id": tenant["team_id"], **fields}
    r = client.post("/api/ops-reviews", headers=tenant["headers"], json=body)
    assert r.status_code == 201, r.text
    return r.json()


def add_item(client, tenant, review_id, **fields):
    body = {"title": "Checkout latency", "team_id": tenant["team_id"], **fields}
    return client.post(f"/api/ops-reviews/{review_id}/items", headers=tenant["headers"], json=body)


class TestReviews:
    def test_create_includes_team_and_owner_names(self, client, tenant):
        review = add_review(client, tenant, owner_id=tenant["member_id"], month=8)
        assert review["team_name"] == "Engineering"
        assert review["owner_name"] == "Pat Lee"
        assert review["item_count"] == 0

    def test_month_range(self, client, tenant):
        r = client.post("/api/ops-reviews", headers=tenant["headers"], json={
            "title": "Bad", "quarter": "Q1", "year": 2025, "team_id": tenant["team_id"], "month": 13,
        })
        assert r.status_code == 400

    def test_missing_review_is_not_found(self, client, tenant):
        r = client.get("/api/ops-reviews/missing", headers=tenant["headers"])
        assert r.status_code == 404
        assert r.json() == {"error": "Not found"}

    def test_filter_by_quarter(self, client, tenant):
        add_review(client, tenant)
        add_review(client, tenant, title="Q1 Review", quarter="Q1")
        rows = client.get("/api/ops-reviews", headers=tenant["headers"], params={"quarter": "Q1"}).json()
        assert [r["title"] for r in rows] == ["Q1 Review"]

    def test_update_clears_owner(self, client, tenant):
        review = add_review(client, tenant, owner_id=tenant["member_id"])
        r = client.put(f"/api/ops-reviews/{review['id']}", headers=tenant["headers"], json={"owner_id": None})
        assert r.status_code == 200
        assert r.json()["owner_id"] is None

    def test_delete_cascades_items(self, client, tenant):
        review = add_review(client, tenant)
        add_item(client, tenant, review["id"])
        assert client.delete(f"/api/ops-reviews/{review['id']}", headers=tenant["headers"]).status_code == 200
        assert client.get(f"/api/ops-reviews/{review['id']}/items", headers=tenant["headers"]).status_code == 404


class TestItems:
    def test_item_inherits_quarter_and_year(self, client, tenant):
        review = add_review(client, tenant)
        r = add_item(client, tenant, review["id"], target_metric=800, actual_metric=950)
        assert r.status_code == 201
        item = r.json()
        assert item["quarter"] == "Q3"
        assert item["year"] == 2025
        assert item["ops_review_title"] == "Q3 Engineering Review"

        review = client.get(f"/api/ops-reviews/{review['id']}", headers=tenant["headers"]).json()
        assert review["item_count"] == 1

    def test_item_of_other_review_is_404(self, client, tenant):
        a = add_review(client, tenant)
        b = add_review(client, tenant, title="Other")
        item = add_item(client, tenant, a["id"]).json()
        r = client.get(f"/api/ops-reviews/{b['id']}/items/{item['id']}", headers=tenant["headers"])
        assert r.status_code == 404

    def test_item_cannot_move_between_reviews(self, client, tenant):
        a = add_review(client, tenant)
        b = add_review(client, tenant, title="Other")
        item = add_item(client, tenant, a["id"]).json()
        r = client.put(f"/api/ops-reviews/{a['id']}/items/{item['id']}", headers=tenant["headers"],
                       json={"ops_review_id": b["id"]})
        assert r.status_code == 400

    def test_update_actual(self, client, tenant):
        review = add_review(client, tenant)
        item = add_item(client, tenant, review["id"]).json()
        r = client.put(f"/api/ops-reviews/{review['id']}/items/{item['id']}", headers=tenant["headers"],
                       json={"actual_metric": 700})
        assert r.json()["actual_metric"] == 700

    def test_item_team_must_be_in_scope(self, client, tenant, outsider):
        rival_team = client.post(f"/api/organizations/{outsider['org_id']}/teams", headers=outsider["headers"],
                                  json={"name": "Rival Eng"}).json()
        review = add_review(client, tenant)
        r = add_item(client, tenant, review["id"], team_id=rival_team["id"])
        assert r.status_code == 403
