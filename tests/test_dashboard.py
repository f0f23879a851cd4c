"""
Tests: dashboard overview and the demo seeder.
"""

from datetime import date

from command_center.models import db
from command_center.models.tenant import Tenant
from command_center.services import dashboard_service
from command_center.services.demo_seed import DEMO_SLUG, seed_demo


def test_overview_empty_tenant(tenant):
    data = dashboard_service.overview(tenant.id, month="2025-01")
    assert data["projects"] == {"On Track": 0, "At Risk": 0, "Underperform": 0, "total": 0}
    assert data["financials"]["months"] == 0
    assert data["latest_survey"] is None
    assert data["pipeline"]["total_leads"] == 0
    assert data["capacity"]["month"] == "2025-01"
    assert data["capacity"]["members"] == []


def test_overview_endpoint(client, headers, project, member):
    client.post("/api/v1/surveys/data", headers=headers, json={"date": "2025-01-31", "csat": 90, "esat": 70})
    client.post("/api/v1/surveys/data", headers=headers, json={"date": "2025-02-28", "csat": 88, "esat": 72})

    res = client.get("/api/v1/dashboard?month=2025-02", headers=headers)
    assert res.status_code == 200
    body = res.get_json()
    assert body["projects"]["On Track"] == 1
    assert body["latest_survey"]["date"] == "2025-02-28"
    assert body["capacity"]["counts"]["idle"] == 1


def test_overview_requires_tenant(client):
    assert client.get("/api/v1/dashboard").status_code == 400


class TestDemoSeed:
    def test_seed_fills_every_panel(self):
        result = seed_demo()
        assert result["created"] is True

        data = dashboard_service.overview(result["tenant_id"], year=date.today().year)
        assert data["projects"]["total"] == 3
        assert data["financials"]["months"] == 12
        assert data["latest_survey"]["csat"] == 86.5
        assert data["pipeline"]["won_count"] == 1
        assert data["pipeline"]["win_rate"] == 50.0
        assert data["capacity"]["counts"] == {"overload": 0, "optimal": 2, "available": 1, "idle": 1}

    def test_seed_is_idempotent(self):
        first = seed_demo()
        second = seed_demo()
        assert second == {"tenant_id": first["tenant_id"], "created": False}
        assert db.session.query(Tenant).filter_by(slug=DEMO_SLUG).count() == 1

    def test_seeded_public_document_is_reachable(self, client):
        seed_demo()
        from command_center.models.knowledge import Document

        doc = db.session.query(Document).filter(Document.public_slug.isnot(None)).one()
        res = client.get(f"/api/v1/public/documents/{doc.public_slug}")
        assert res.status_code == 200
        assert res.get_json()["faqs"][0]["answer"] == "The project manager."
