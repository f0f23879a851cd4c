"""
Tests: request-level tenant resolution, error response shape and middleware.

Categories:
    1. Tenant resolution (header / query / body, missing, unknown, inactive)
    2. Cross-tenant isolation over HTTP
    3. Error envelope ({"error", "code", "details"?})
    4. Middleware headers & health checks
    5. Endpoint smoke checks (status codes per route family)
"""

import io

from command_center.models import db
from command_center.models.project import Project
from command_center.models.tenant import Tenant


# ═════════════════════════════════════════════════════════════════════════════
# 1. Tenant resolution
# ═════════════════════════════════════════════════════════════════════════════


class TestTenantResolution:
    def test_missing_tenant_is_400(self, client):
        res = client.get("/api/v1/projects")
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_REQUIRED"

    def test_unknown_tenant_is_404(self, client):
        res = client.get("/api/v1/projects", headers={"X-Tenant-ID": "99999"})
        assert res.status_code == 404
        assert res.get_json()["error"] == "Tenant not found"

    def test_non_numeric_tenant_is_404(self, client):
        res = client.get("/api/v1/projects", headers={"X-Tenant-ID": "abc"})
        assert res.status_code == 404

    def test_inactive_tenant_is_403(self, client):
        t = Tenant(name="Closed BU", slug="closed-bu", is_active=False)
        db.session.add(t)
        db.session.commit()
        res = client.get("/api/v1/projects", headers={"X-Tenant-ID": str(t.id)})
        assert res.status_code == 403
        assert res.get_json()["code"] == "ERR_FORBIDDEN"

    def test_query_parameter(self, client, tenant):
        res = client.get(f"/api/v1/projects?tenant_id={tenant.id}")
        assert res.status_code == 200

    def test_json_body(self, client, tenant):
        res = client.post("/api/v1/projects", json={"tenant_id": tenant.id, "name": "Alpha"})
        assert res.status_code == 201
        assert res.get_json()["tenant_id"] == tenant.id

    def test_header_wins_over_body(self, client, tenant, other_tenant):
        res = client.post(
            "/api/v1/projects",
            json={"tenant_id": other_tenant.id, "name": "Alpha"},
            headers={"X-Tenant-ID": str(tenant.id)},
        )
        assert res.get_json()["tenant_id"] == tenant.id

    def test_tenant_endpoints_need_no_tenant(self, client):
        res = client.post("/api/v1/tenants", json={"name": "Digital Banking"})
        assert res.status_code == 201
        assert res.get_json()["slug"] == "digital-banking"
        assert client.get("/api/v1/tenants").status_code == 200

    def test_non_text_tenant_name_is_400(self, client):
        res = client.post("/api/v1/tenants", json={"name": {"en": "BU"}})
        assert res.status_code == 400
        assert "name" in res.get_json()["details"]

    def test_duplicate_tenant_slug_is_409(self, client, tenant):
        res = client.post("/api/v1/tenants", json={"name": "Again", "slug": tenant.slug})
        assert res.status_code == 409


# ═════════════════════════════════════════════════════════════════════════════
# 2. Cross-tenant isolation
# ═════════════════════════════════════════════════════════════════════════════


class TestIsolation:
    def test_foreign_project_is_404(self, client, project, other_headers):
        res = client.get(f"/api/v1/projects/{project.id}", headers=other_headers)
        assert res.status_code == 404
        assert res.get_json() == {"error": "Project not found", "code": "ERR_NOT_FOUND"}

    def test_foreign_project_cannot_be_updated_or_deleted(self, client, project, other_headers):
        assert client.put(
            f"/api/v1/projects/{project.id}", json={"name": "Hijack"}, headers=other_headers,
        ).status_code == 404
        assert client.delete(f"/api/v1/projects/{project.id}", headers=other_headers).status_code == 404
        assert db.session.get(Project, project.id).name == "Core Banking Revamp"

    def test_lists_only_show_own_rows(self, client, project, headers, other_headers):
        assert client.get("/api/v1/projects", headers=headers).get_json()["total"] == 1
        assert client.get("/api/v1/projects", headers=other_headers).get_json()["total"] == 0

    def test_allocation_with_foreign_member_is_404(self, client, member, other_headers, other_tenant):
        p = Project(tenant_id=other_tenant.id, name="Theirs")
        db.session.add(p)
        db.session.commit()
        res = client.post("/api/v1/allocations", headers=other_headers, json={
            "team_member_id": member.id, "project_id": p.id,
            "month": "2025-01", "allocation_percentage": 50,
        })
        assert res.status_code == 404


# ═════════════════════════════════════════════════════════════════════════════
# 3. Error envelope
# ═════════════════════════════════════════════════════════════════════════════


class TestErrorShape:
    def test_validation_error_has_details(self, client, headers):
        res = client.post("/api/v1/projects", json={"name": "", "budget": -5}, headers=headers)
        assert res.status_code == 400
        body = res.get_json()
        assert body["code"] == "ERR_VALIDATION_INVALID"
        assert set(body["details"]) == {"name", "budget"}

    def test_non_object_body_rejected(self, client, headers):
        res = client.post("/api/v1/projects", json=["not", "an", "object"], headers=headers)
        assert res.status_code == 400

    def test_unknown_route_is_json_404(self, client):
        res = client.get("/api/v1/does-not-exist")
        assert res.status_code == 404
        assert res.get_json()["code"] == "ERR_NOT_FOUND"

    def test_method_not_allowed(self, client, headers):
        res = client.patch("/api/v1/projects", headers=headers)
        assert res.status_code == 405

    def test_squad_conflict_is_409(self, client, headers):
        client.post("/api/v1/team/squads", json={"name": "Cards"}, headers=headers)
        res = client.post("/api/v1/team/squads", json={"name": "Cards"}, headers=headers)
        assert res.status_code == 409
        assert res.get_json()["code"] == "ERR_CONFLICT_DUPLICATE"


# ═════════════════════════════════════════════════════════════════════════════
# 4. Middleware & health
# ═════════════════════════════════════════════════════════════════════════════


class TestMiddleware:
    def test_request_id_echoed(self, client, headers):
        res = client.get("/api/v1/projects", headers={**headers, "X-Request-ID": "abc123"})
        assert res.headers["X-Request-ID"] == "abc123"
        assert "X-Request-Duration-Ms" in res.headers

    def test_request_id_generated(self, client):
        res = client.get("/api/v1/health/ready")
        assert len(res.headers["X-Request-ID"]) == 12

    def test_rate_limit_storage_from_config(self, app):
        from command_center.config import TestingConfig

        assert app.config["RATELIMIT_STORAGE_URI"] == TestingConfig.RATELIMIT_STORAGE_URI == "memory://"

    def test_health_live(self, client):
        res = client.get("/api/v1/health/live")
        assert res.status_code == 200
        body = res.get_json()
        assert body["status"] == "ok"
        assert body["checks"]["database"]["status"] == "ok"


# ═════════════════════════════════════════════════════════════════════════════
# 5. Endpoint smoke checks
# ═════════════════════════════════════════════════════════════════════════════


class TestEndpoints:
    def test_project_revenue_and_financials(self, client, headers, project):
        res = client.post(
            f"/api/v1/projects/{project.id}/revenues",
            json={"amount": 1500, "date": "2025-01-31"},
            headers=headers,
        )
        assert res.status_code == 201
        fin = client.get(f"/api/v1/projects/{project.id}/financials", headers=headers).get_json()
        assert fin["revenue_total"] == 1500
        assert fin["gross_margin"] == 1200
        assert fin["budget_variance"] == 600

    def test_project_list_pagination(self, client, headers):
        for i in range(3):
            client.post("/api/v1/projects", json={"name": f"P{i}"}, headers=headers)
        body = client.get("/api/v1/projects?limit=2&offset=0", headers=headers).get_json()
        assert body["total"] == 3
        assert len(body["items"]) == 2

    def test_allocation_upsert_status_codes(self, client, headers, member, project):
        payload = {
            "team_member_id": member.id, "project_id": project.id,
            "month": "2025-01", "allocation_percentage": 50,
        }
        first = client.post("/api/v1/allocations", json=payload, headers=headers)
        assert first.status_code == 201
        assert first.get_json()["created"] is True
        second = client.post("/api/v1/allocations", json={**payload, "allocation_percentage": 70}, headers=headers)
        assert second.status_code == 200
        assert second.get_json()["created"] is False
        assert second.get_json()["allocation_percentage"] == 70

    def test_member_csv_upload(self, client, headers):
        data = {"file": (io.BytesIO(b"name,squad\nAlya,Delivery\nBima,Delivery\n"), "team.csv")}
        res = client.post(
            "/api/v1/team/members/import",
            data=data, headers=headers, content_type="multipart/form-data",
        )
        assert res.status_code == 201
        assert res.get_json()["imported"] == 2

    def test_member_csv_upload_not_utf8(self, client, headers):
        data = {"file": (io.BytesIO("name,email\nJosé,\n".encode("latin-1")), "team.csv")}
        res = client.post(
            "/api/v1/team/members/import",
            data=data, headers=headers, content_type="multipart/form-data",
        )
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"

    def test_member_csv_json_content_with_bom(self, client, headers):
        res = client.post(
            "/api/v1/team/members/import",
            json={"csv_content": "\ufeffname\nAlya\n"}, headers=headers,
        )
        assert res.get_json()["imported"] == 1

    def test_member_csv_json_content(self, client, headers):
        res = client.post(
            "/api/v1/team/members/import",
            json={"csv_content": "name\n\n"}, headers=headers,
        )
        assert res.status_code == 200
        assert res.get_json()["imported"] == 0

    def test_member_template_download(self, client, headers):
        res = client.get("/api/v1/team/members/template", headers=headers)
        assert res.status_code == 200
        assert res.data.decode().startswith("name,email")

    def test_lead_pipeline_stats(self, client, headers):
        client.post("/api/v1/leads", json={
            "company_name": "Acme", "project_name": "Portal", "stage": "won", "estimated_value": 100,
        }, headers=headers)
        stats = client.get("/api/v1/leads/pipeline-stats", headers=headers).get_json()
        assert stats["won_count"] == 1
        assert stats["win_rate"] == 100.0

    def test_opex_utilisation_endpoint(self, client, headers):
        client.post("/api/v1/finance/opex-budgets", json={
            "description": "Licences", "year": 2025, "jan": 100,
        }, headers=headers)
        body = client.get("/api/v1/finance/opex-utilisation?year=2025", headers=headers).get_json()
        assert body["year"] == 2025
        assert body["yearly"]["budget"] == 100

    def test_capacity_endpoint(self, client, headers, member):
        body = client.get("/api/v1/team/capacity?month=2025-01", headers=headers).get_json()
        assert body["members"][0]["status"] == "idle"

    def test_workload_endpoints(self, client, headers, member):
        body = client.get("/api/v1/team/workload?month=2025-01", headers=headers).get_json()
        assert body["working_days"] == 23
        assert body["members"][0]["idle_days"] == 23
        yearly = client.get("/api/v1/team/workload/yearly?year=2025", headers=headers).get_json()
        assert yearly["year"] == 2025
        assert yearly["total_hpp_members"] == 0

    def test_workload_bad_month_is_400(self, client, headers):
        res = client.get("/api/v1/team/workload?month=someday", headers=headers)
        assert res.status_code == 400

    def test_esat_questions(self, client, headers):
        body = client.get("/api/v1/esat/questions", headers=headers).get_json()
        assert body["likert_question_count"] == 20
