"""
Tests: monthly P&L summary and the OPEX utilisation report.
"""

import pytest

from command_center.core.exceptions import NotFoundError, ValidationError
from command_center.services import finance_service as svc


def _budget(tenant_id, **months):
    return svc.create_budget(tenant_id, {"description": "Cloud hosting", "year": 2025, **months})


def _consume(tenant_id, quarter, amount, budget_id=None, year=2025):
    return svc.create_consumption(tenant_id, {
        "opex_budget_id": budget_id, "year": year, "quarter": quarter,
        "allocation_description": "Invoice", "amount": amount,
    })


# ── Monthly summary ──────────────────────────────────────────────────────


def test_summarize_margins():
    rows = [
        {"revenue": 1000, "opex": 200, "cogs": 300},
        {"revenue": 1000, "opex": 100, "cogs": 400},
    ]
    result = svc.summarize(rows)
    assert result == {
        "months": 2,
        "total_revenue": 2000,
        "total_opex": 300,
        "total_cogs": 700,
        "gross_profit": 1300,
        "net_profit": 1000,
        "margin_pct": 50.0,
        "gross_margin_pct": 65.0,
    }


def test_summarize_without_revenue():
    result = svc.summarize([{"revenue": 0, "opex": 10, "cogs": 0}])
    assert result["margin_pct"] == 0
    assert result["net_profit"] == -10


def test_monthly_crud_and_year_filter(tenant):
    svc.create_monthly(tenant.id, {"month": "Jan 2024", "year": 2024, "revenue": 5})
    row = svc.create_monthly(tenant.id, {"month": "Jan 2025", "year": 2025, "revenue": 10})
    assert [r["year"] for r in svc.list_monthly(tenant.id, 2025)] == [2025]

    updated = svc.update_monthly(tenant.id, row["id"], {"opex": 4})
    assert updated["opex"] == 4
    assert updated["revenue"] == 10

    svc.delete_monthly(tenant.id, row["id"])
    assert svc.financial_summary(tenant.id)["total_revenue"] == 5


def test_monthly_scoped_to_tenant(tenant, other_tenant):
    row = svc.create_monthly(tenant.id, {"month": "Jan", "year": 2025})
    with pytest.raises(NotFoundError):
        svc.update_monthly(other_tenant.id, row["id"], {"revenue": 1})


# ── Budget lines & consumption ───────────────────────────────────────────


def test_budget_defaults_months_to_zero(tenant):
    budget = _budget(tenant.id, jan=100)
    assert budget["jan"] == 100
    assert budget["dec"] == 0


def test_consumption_requires_valid_quarter(tenant):
    with pytest.raises(ValidationError):
        _consume(tenant.id, "Q9", 10)


def test_consumption_against_foreign_budget(tenant, other_tenant):
    budget = _budget(other_tenant.id, jan=100)
    with pytest.raises(NotFoundError):
        _consume(tenant.id, "Q1", 10, budget_id=budget["id"])


# ── Utilisation ──────────────────────────────────────────────────────────


def test_utilisation_per_line_and_alerts(tenant):
    budget = _budget(tenant.id, jan=100, feb=100, mar=100, apr=50, may=50, jun=0)
    _consume(tenant.id, "Q1", 250, budget_id=budget["id"])
    _consume(tenant.id, "Q2", 120, budget_id=budget["id"])

    report = svc.opex_utilisation(tenant.id, 2025)
    assert report["year"] == 2025

    item = report["items"][0]
    q1, q2, q3, _ = item["quarters"]
    assert q1 == {"quarter": "Q1", "budget": 300, "consumption": 250, "remaining": 50, "percentage": 83}
    assert q2["percentage"] == 120
    assert q3["percentage"] == 0
    assert item["total_budget"] == 400
    assert item["total_consumption"] == 370

    alerts = {(a["quarter"], a["type"]) for a in report["alerts"]}
    assert alerts == {("Q1", "warning"), ("Q2", "critical")}


def test_no_alert_for_zero_budget_quarter(tenant):
    budget = _budget(tenant.id)
    _consume(tenant.id, "Q3", 500, budget_id=budget["id"])
    report = svc.opex_utilisation(tenant.id, 2025)
    assert report["alerts"] == []
    assert report["items"][0]["quarters"][2]["percentage"] == 0


def test_overall_includes_unlinked_consumption(tenant):
    budget = _budget(tenant.id, jan=100, feb=100, mar=100)
    _consume(tenant.id, "Q1", 150, budget_id=budget["id"])
    _consume(tenant.id, "Q1", 75)

    report = svc.opex_utilisation(tenant.id, 2025)
    assert report["items"][0]["quarters"][0]["consumption"] == 150
    assert report["quarters"][0]["consumption"] == 225
    assert report["quarters"][0]["percentage"] == 75
    assert report["yearly"] == {"budget": 300, "consumption": 225, "remaining": 75, "percentage": 75}


def test_utilisation_ignores_other_years(tenant):
    budget = _budget(tenant.id, jan=100)
    _consume(tenant.id, "Q1", 100, budget_id=budget["id"], year=2024)
    report = svc.opex_utilisation(tenant.id, 2025)
    assert report["yearly"]["consumption"] == 0


@pytest.mark.parametrize("part,whole,expected", [
    (1, 200, 1),   # 0.5 rounds up
    (1, 3, 33),
    (2, 3, 67),
    (5, 0, 0),
])
def test_percent_rounding(part, whole, expected):
    assert svc._percent(part, whole) == expected
