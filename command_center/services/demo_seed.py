"""
Demo data for a fresh install (``flask seed-demo``).

Creates one tenant and fills every dashboard panel through the regular
services, so the seeded rows go through the same validation as API writes:
projects with revenue, a year of monthly financials, OPEX budget and
consumption, a lead pipeline, squads and team members with allocations,
aggregate survey points, a CSAT survey round, an active ESAT survey and a
published knowledge-base document.
"""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select

from command_center.models import db
from command_center.models.finance import MONTH_COLUMNS
from command_center.models.tenant import Tenant
from command_center.services import (
    allocation_service,
    esat_service,
    finance_service,
    knowledge_service,
    lead_service,
    project_service,
    survey_service,
    team_service,
    tenant_service,
)

logger = logging.getLogger(__name__)

DEMO_SLUG = "demo-bu"

_PROJECTS = (
    {"name": "Core Banking Revamp", "budget": 1_200_000_000, "actual_cost": 850_000_000,
     "cogs": 700_000_000, "status": "On Track"},
    {"name": "Retail Mobile App", "budget": 450_000_000, "actual_cost": 480_000_000,
     "cogs": 390_000_000, "status": "At Risk"},
    {"name": "Data Warehouse Migration", "budget": 300_000_000, "actual_cost": 120_000_000,
     "cogs": 95_000_000, "status": "Underperform"},
)

_MEMBERS = (
    {"name": "Alya Putri", "email": "alya@demo-bu.co.id", "position": "Project Manager",
     "squad": "Delivery", "employment_status": "Permanent"},
    {"name": "Bima Santoso", "email": "bima@demo-bu.co.id", "position": "Backend Engineer",
     "squad": "Platform", "employment_status": "Permanent"},
    {"name": "Citra Lestari", "email": "citra@demo-bu.co.id", "position": "QA Engineer",
     "squad": "Platform", "employment_status": "Contract"},
    {"name": "Dimas Pratama", "email": "dimas@demo-bu.co.id", "position": "UI Designer",
     "squad": "Delivery", "employment_status": "Freelance"},
)

_LEADS = (
    {"company_name": "PT Nusantara Retail", "project_name": "Loyalty Platform",
     "estimated_value": 800_000_000, "probability": 60, "stage": "proposal", "source": "referral"},
    {"company_name": "Bank Sejahtera", "project_name": "Onboarding Revamp",
     "estimated_value": 1_500_000_000, "probability": 30, "stage": "prototype", "source": "event"},
    {"company_name": "Logistik Cepat", "project_name": "Fleet Tracking",
     "estimated_value": 400_000_000, "probability": 100, "stage": "won", "source": "website"},
    {"company_name": "Agro Makmur", "project_name": "Farm ERP",
     "estimated_value": 250_000_000, "probability": 0, "stage": "lost", "source": "cold_call",
     "loss_reason": "Budget constraints"},
)


def seed_demo() -> dict:
    """Create the demo tenant and its data. Returns ``{"tenant_id", "created"}``.

    Idempotent: an existing demo tenant is left untouched.
    """
    existing = db.session.execute(select(Tenant).where(Tenant.slug == DEMO_SLUG)).scalar_one_or_none()
    if existing is not None:
        logger.info("Demo tenant already present", extra={"tenant_id": existing.id})
        return {"tenant_id": existing.id, "created": False}

    tenant_id = tenant_service.create_tenant({"name": "Demo Business Unit", "slug": DEMO_SLUG})["id"]
    today = date.today()
    month = today.strftime("%Y-%m")

    projects = [project_service.create_project(tenant_id, p) for p in _PROJECTS]
    for project in projects:
        project_service.add_revenue(tenant_id, {
            "project_id": project["id"],
            "amount": project["budget"] // 2,
            "date": today.isoformat(),
            "note": "Milestone 1",
        })

    for m in range(1, 13):
        finance_service.create_monthly(tenant_id, {
            "month": date(today.year, m, 1).strftime("%b %Y"),
            "year": today.year,
            "revenue": 500_000_000 + m * 10_000_000,
            "opex": 120_000_000,
            "cogs": 260_000_000,
        })

    budget = finance_service.create_budget(tenant_id, {
        "description": "Cloud infrastructure",
        "year": today.year,
        "squad": "Platform",
        "account": "6100",
        **{col: 25_000_000 for col in MONTH_COLUMNS},
    })
    finance_service.create_consumption(tenant_id, {
        "opex_budget_id": budget["id"],
        "year": today.year,
        "quarter": "Q1",
        "allocation_description": "Cloud infrastructure",
        "usage_description": "Compute and storage",
        "amount": 64_000_000,
    })

    for lead in _LEADS:
        lead_service.create_lead(tenant_id, {**lead, "changed_by": "Demo Seeder"})

    for squad in ("Delivery", "Platform"):
        team_service.create_squad(tenant_id, {"name": squad})
    members = [team_service.create_member(tenant_id, m) for m in _MEMBERS]
    shares = (60, 100, 50, 0)
    for member, share in zip(members, shares):
        if share:
            allocation_service.add_allocation(tenant_id, {
                "team_member_id": member["id"],
                "project_id": projects[0]["id"],
                "month": month,
                "allocation_percentage": share,
            })
        team_service.create_member_esat(tenant_id, {
            "team_member_id": member["id"], "month": month, "esat_score": 80,
        })
    allocation_service.add_allocation(tenant_id, {
        "team_member_id": members[0]["id"],
        "month": month,
        "allocation_percentage": 30,
        "cost_type": "opex",
        "role_in_project": "Presales support",
    })

    survey_service.create_survey_data(tenant_id, {"date": today.isoformat(), "csat": 86.5, "esat": 78})
    survey_service.create_csat_surveys(tenant_id, {
        "project_id": projects[0]["id"],
        "reviewers": [{"name": "Rina Wijaya", "role": "Product Owner"}],
    })

    esat_service.create_survey(tenant_id, {
        "title": f"ESAT {today.strftime('%B %Y')}",
        "period": month,
        "status": "active",
    })

    knowledge_service.create_document(tenant_id, {
        "title": "Project kickoff SOP",
        "content": "# Kickoff\n\n1. Confirm scope\n2. Staff the squad\n3. Book the kickoff",
        "category": "sop",
        "status": "published",
        "is_public": True,
        "edited_by": "Demo Seeder",
        "faqs": [{"question": "Who runs the kickoff?", "answer": "The project manager."}],
    })

    logger.info("Demo data seeded", extra={"tenant_id": tenant_id})
    return {"tenant_id": tenant_id, "created": True}
