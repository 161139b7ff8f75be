"""
API tests for the CSV / JSON report exports.
"""
import csv
import io


def parse(text: str) -> list[list[str]]:
    return list(csv.reader(io.StringIO(text)))


class TestBusinessUnitReport:
    def test_csv_headers_and_counts(self, client, tenant):
        h = tenant["headers"]
        client.post(f"/api/business-units/{tenant['unit_id']}/goals", headers=h,
                    json={"title": "Grow", "year": 2025, "quarters": ["Q1", "Q2"]})
        r = client.get("/api/reports/business-units", headers=h)
        assert r.status_code == 200
        assert r.headers["content-type"].startswith("text/csv")
        assert 'filename="business-units.csv"' in r.headers["content-disposition"]

        header, row = parse(r.text)
        assert header[:3] == ["id", "name", "description"]
        record = dict(zip(header, row))
        assert record["name"] == "E-Commerce"
        assert record["organization_name"] == "Acme - All"
        assert record["goals_count"] == "2"
        assert record["description"] == ""

    def test_json_format(self, client, tenant):
        r = client.get("/api/reports/business-units", headers=tenant["headers"], params={"format": "json"})
        assert r.json()[0]["stakeholders_count"] == 0

    def test_unknown_format_rejected(self, client, tenant):
        r = client.get("/api/reports/business-units", headers=tenant["headers"], params={"format": "xml"})
        assert r.status_code == 400


class TestInitiativeReport:
    def test_booleans_and_quoting(self, client, tenant):
        client.post("/api/initiatives", headers=tenant["headers"], json={
            "name": "Checkout, revamped", "organization_id": tenant["org_id"], "at_risk": True,
        })
        r = client.get("/api/reports/initiatives", headers=tenant["headers"])
        assert '"Checkout, revamped"' in r.text
        header, row = parse(r.text)
        record = dict(zip(header, row))
        assert record["at_risk"] == "true"
        assert record["status"] == "NOT_STARTED"

    def test_empty_report_is_header_only(self, client, tenant):
        r = client.get("/api/reports/initiatives", headers=tenant["headers"])
        assert r.text.count("\n") == 1

    def test_foreign_org_filter_forbidden(self, client, tenant, outsider):
        r = client.get("/api/reports/initiatives", headers=outsider["headers"],
                       params={"org_id": tenant["org_id"]})
        assert r.status_code == 403


def test_cost_report_carries_variance(client, tenant):
    client.post("/api/costs", headers=tenant["headers"], json={
        "team_id": tenant["team_id"], "year": 2025, "type": "SOFTWARE",
        "q1_forecast": 100, "q1_actual": 150,
    })
    rows = client.get("/api/reports/costs", headers=tenant["headers"], params={"format": "json"}).json()
    assert rows[0]["variance"] == 50
    assert rows[0]["band"] == "red"
    assert rows[0]["team_name"] == "Engineering"
