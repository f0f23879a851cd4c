"""
Finance service — monthly P&L records and the OPEX budget.

Monthly records:
    CRUD for revenue / OPEX / COGS per (month, year) plus a summary with
    gross profit, net profit and margin.

OPEX budget:
    Each budget line carries twelve monthly amounts; a quarter's budget is
    the sum of its three months. Consumption entries are booked per quarter,
    optionally against a budget line. The utilisation report compares the
    two per line and overall, and raises alerts:
        percentage >= 100  -> critical
        percentage >= 80   -> warning
    Alerts are only raised for quarters with a budget above zero.
"""

from __future__ import annotations

import logging

from sqlalchemy import select

from command_center.models import db
from command_center.models.finance import MonthlyFinancial, OpexBudget, OpexConsumption
from command_center.services.validation import QUARTERS, validate
from command_center.utils.helpers import commit_or_raise, get_for_tenant, round_half_up

logger = logging.getLogger(__name__)

WARNING_THRESHOLD = 80
CRITICAL_THRESHOLD = 100


def _percent(part: int, whole: int) -> int:
    """Whole-number percentage, halves rounded up; 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return int(round_half_up(part / whole * 100))


# ═════════════════════════════════════════════════════════════════════════
# Monthly financials
# ═════════════════════════════════════════════════════════════════════════


def list_monthly(tenant_id: int, year: int | None = None) -> list[dict]:
    stmt = select(MonthlyFinancial).where(MonthlyFinancial.tenant_id == tenant_id)
    if year is not None:
        stmt = stmt.where(MonthlyFinancial.year == year)
    rows = db.session.execute(
        stmt.order_by(MonthlyFinancial.year, MonthlyFinancial.id)
    ).scalars().all()
    return [r.to_dict() for r in rows]


def create_monthly(tenant_id: int, data: dict) -> dict:
    fields = validate("monthly_financial", data)
    row = MonthlyFinancial(tenant_id=tenant_id, **fields)
    db.session.add(row)
    commit_or_raise("MonthlyFinancial")
    logger.info("Monthly financial created", extra={"tenant_id": tenant_id})
    return row.to_dict()


def update_monthly(tenant_id: int, record_id: int, data: dict) -> dict:
    row = get_for_tenant(MonthlyFinancial, record_id, tenant_id, label="Monthly financial")
    for key, value in validate("monthly_financial", data, partial=True).items():
        setattr(row, key, value)
    commit_or_raise("MonthlyFinancial")
    logger.info("Monthly financial updated", extra={"tenant_id": tenant_id})
    return row.to_dict()


def delete_monthly(tenant_id: int, record_id: int) -> None:
    row = get_for_tenant(MonthlyFinancial, record_id, tenant_id, label="Monthly financial")
    db.session.delete(row)
    commit_or_raise("MonthlyFinancial")
    logger.info("Monthly financial deleted", extra={"tenant_id": tenant_id})


def summarize(rows: list[dict]) -> dict:
    """Totals and margins over serialized monthly rows."""
    revenue = sum(r["revenue"] for r in rows)
    opex = sum(r["opex"] for r in rows)
    cogs = sum(r["cogs"] for r in rows)
    gross = revenue - cogs
    net = revenue - cogs - opex
    return {
        "months": len(rows),
        "total_revenue": revenue,
        "total_opex": opex,
        "total_cogs": cogs,
        "gross_profit": gross,
        "net_profit": net,
        "margin_pct": round_half_up(net / revenue * 100, 1) if revenue else 0,
        "gross_margin_pct": round_half_up(gross / revenue * 100, 1) if revenue else 0,
    }


def financial_summary(tenant_id: int, year: int | None = None) -> dict:
    return summarize(list_monthly(tenant_id, year))


# ═════════════════════════════════════════════════════════════════════════
# OPEX budget lines
# ═════════════════════════════════════════════════════════════════════════


def list_budgets(tenant_id: int, year: int | None = None) -> list[dict]:
    return [b.to_dict() for b in _budgets(tenant_id, year)]


def _budgets(tenant_id: int, year: int | None) -> list[OpexBudget]:
    stmt = select(OpexBudget).where(OpexBudget.tenant_id == tenant_id)
    if year is not None:
        stmt = stmt.where(OpexBudget.year == year)
    return db.session.execute(stmt.order_by(OpexBudget.id)).scalars().all()


def create_budget(tenant_id: int, data: dict) -> dict:
    fields = validate("opex_budget", data)
    budget = OpexBudget(tenant_id=tenant_id, **fields)
    db.session.add(budget)
    commit_or_raise("OpexBudget")
    logger.info("OPEX budget line created", extra={"tenant_id": tenant_id})
    return budget.to_dict()


def update_budget(tenant_id: int, budget_id: int, data: dict) -> dict:
    budget = get_for_tenant(OpexBudget, budget_id, tenant_id, label="OPEX budget")
    for key, value in validate("opex_budget", data, partial=True).items():
        setattr(budget, key, value)
    commit_or_raise("OpexBudget")
    logger.info("OPEX budget line updated", extra={"tenant_id": tenant_id})
    return budget.to_dict()


def delete_budget(tenant_id: int, budget_id: int) -> None:
    budget = get_for_tenant(OpexBudget, budget_id, tenant_id, label="OPEX budget")
    db.session.delete(budget)
    commit_or_raise("OpexBudget")
    logger.info("OPEX budget line deleted", extra={"tenant_id": tenant_id})


# ═════════════════════════════════════════════════════════════════════════
# OPEX consumption
# ═════════════════════════════════════════════════════════════════════════


def list_consumptions(tenant_id: int, year: int | None = None) -> list[dict]:
    return [c.to_dict() for c in _consumptions(tenant_id, year)]


def _consumptions(tenant_id: int, year: int | None) -> list[OpexConsumption]:
    stmt = select(OpexConsumption).where(OpexConsumption.tenant_id == tenant_id)
    if year is not None:
        stmt = stmt.where(OpexConsumption.year == year)
    return db.session.execute(stmt.order_by(OpexConsumption.id)).scalars().all()


def create_consumption(tenant_id: int, data: dict) -> dict:
    fields = validate("opex_consumption", data)
    if fields.get("opex_budget_id") is not None:
        get_for_tenant(OpexBudget, fields["opex_budget_id"], tenant_id, label="OPEX budget")
    entry = OpexConsumption(tenant_id=tenant_id, **fields)
    db.session.add(entry)
    commit_or_raise("OpexConsumption")
    logger.info("OPEX consumption recorded", extra={"tenant_id": tenant_id})
    return entry.to_dict()


def update_consumption(tenant_id: int, consumption_id: int, data: dict) -> dict:
    entry = get_for_tenant(OpexConsumption, consumption_id, tenant_id, label="OPEX consumption")
    fields = validate("opex_consumption", data, partial=True)
    if fields.get("opex_budget_id") is not None:
        get_for_tenant(OpexBudget, fields["opex_budget_id"], tenant_id, label="OPEX budget")
    for key, value in fields.items():
        setattr(entry, key, value)
    commit_or_raise("OpexConsumption")
    logger.info("OPEX consumption updated", extra={"tenant_id": tenant_id})
    return entry.to_dict()


def delete_consumption(tenant_id: int, consumption_id: int) -> None:
    entry = get_for_tenant(OpexConsumption, consumption_id, tenant_id, label="OPEX consumption")
    db.session.delete(entry)
    commit_or_raise("OpexConsumption")
    logger.info("OPEX consumption deleted", extra={"tenant_id": tenant_id})


# ═════════════════════════════════════════════════════════════════════════
# Utilisation report
# ═════════════════════════════════════════════════════════════════════════


def _quarter_row(quarter: str, budget: int, consumption: int) -> dict:
    return {
        "quarter": quarter,
        "budget": budget,
        "consumption": consumption,
        "remaining": budget - consumption,
        "percentage": _percent(consumption, budget),
    }


def build_utilisation(budgets: list[OpexBudget], consumptions: list[OpexConsumption]) -> dict:
    """Per-line and overall quarterly utilisation plus alerts.

    Overall consumption includes entries not linked to any budget line;
    per-line consumption only counts entries booked against that line.
    """
    spent_by_line: dict[tuple, int] = {}
    spent_by_quarter = {q: 0 for q in QUARTERS}
    for c in consumptions:
        spent_by_quarter[c.quarter] = spent_by_quarter.get(c.quarter, 0) + (c.amount or 0)
        if c.opex_budget_id is not None:
            key = (c.opex_budget_id, c.quarter)
            spent_by_line[key] = spent_by_line.get(key, 0) + (c.amount or 0)

    items = []
    alerts = []
    for b in budgets:
        quarters = [
            _quarter_row(q, b.quarter_budget(q), spent_by_line.get((b.id, q), 0))
            for q in QUARTERS
        ]
        total_budget = sum(q["budget"] for q in quarters)
        total_consumption = sum(q["consumption"] for q in quarters)
        items.append({
            "budget": b.to_dict(),
            "quarters": quarters,
            "total_budget": total_budget,
            "total_consumption": total_consumption,
            "total_percentage": _percent(total_consumption, total_budget),
        })
        for q in quarters:
            if q["budget"] <= 0:
                continue
            if q["percentage"] >= CRITICAL_THRESHOLD:
                alerts.append({
                    "type": "critical",
                    "budget_id": b.id,
                    "quarter": q["quarter"],
                    "percentage": q["percentage"],
                    "message": f"{b.description} has exceeded its {q['quarter']} budget ({q['percentage']}%)",
                })
            elif q["percentage"] >= WARNING_THRESHOLD:
                alerts.append({
                    "type": "warning",
                    "budget_id": b.id,
                    "quarter": q["quarter"],
                    "percentage": q["percentage"],
                    "message": f"{b.description} is approaching its {q['quarter']} budget ({q['percentage']}%)",
                })

    overall = [
        _quarter_row(q, sum(b.quarter_budget(q) for b in budgets), spent_by_quarter.get(q, 0))
        for q in QUARTERS
    ]
    yearly_budget = sum(q["budget"] for q in overall)
    yearly_consumption = sum(q["consumption"] for q in overall)
    return {
        "items": items,
        "quarters": overall,
        "yearly": {
            "budget": yearly_budget,
            "consumption": yearly_consumption,
            "remaining": yearly_budget - yearly_consumption,
            "percentage": _percent(yearly_consumption, yearly_budget),
        },
        "alerts": alerts,
    }


def opex_utilisation(tenant_id: int, year: int) -> dict:
    report = build_utilisation(_budgets(tenant_id, year), _consumptions(tenant_id, year))
    report["year"] = year
    return report
