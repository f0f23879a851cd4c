"""Dashboard service: one read-only summary per tenant."""

from __future__ import annotations

from command_center.services import finance_service, lead_service, project_service, survey_service, team_service


def overview(tenant_id: int, year: int | None = None, month: str | None = None) -> dict:
    """Project status counts, financial totals, latest survey point,
    lead pipeline stats and team capacity (current month unless given)."""
    return {
        "projects": project_service.status_counts(tenant_id),
        "financials": finance_service.financial_summary(tenant_id, year),
        "latest_survey": survey_service.latest_survey_data(tenant_id),
        "pipeline": lead_service.pipeline_stats(tenant_id),
        "capacity": team_service.capacity_overview(tenant_id, month),
    }
