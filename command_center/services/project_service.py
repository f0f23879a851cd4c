"""
Project service — projects, revenue entries and per-project financials.

All functions take ``tenant_id`` first and only ever touch that tenant's
rows; a project id belonging to another tenant is a NotFoundError.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select

from command_center.models import db
from command_center.models.base import amount_value
from command_center.models.project import Project, ProjectRevenue
from command_center.services.validation import validate
from command_center.utils.helpers import commit_or_raise, get_for_tenant, round_half_up

logger = logging.getLogger(__name__)


# ── Projects ────────────────────────────────────────────────────────────


def list_projects(tenant_id: int, status: str | None = None) -> list[dict]:
    stmt = select(Project).where(Project.tenant_id == tenant_id)
    if status:
        stmt = stmt.where(Project.status == status)
    rows = db.session.execute(stmt.order_by(Project.created_at.desc(), Project.id.desc())).scalars().all()
    return [p.to_dict() for p in rows]


def get_project(tenant_id: int, project_id: int) -> dict:
    return get_for_tenant(Project, project_id, tenant_id).to_dict()


def create_project(tenant_id: int, data: dict) -> dict:
    fields = validate("project", data)
    project = Project(tenant_id=tenant_id, **fields)
    db.session.add(project)
    commit_or_raise("Project")
    logger.info("Project created", extra={"tenant_id": tenant_id, "project_id": project.id})
    return project.to_dict()


def update_project(tenant_id: int, project_id: int, data: dict) -> dict:
    project = get_for_tenant(Project, project_id, tenant_id)
    for key, value in validate("project", data, partial=True).items():
        setattr(project, key, value)
    commit_or_raise("Project")
    logger.info("Project updated", extra={"tenant_id": tenant_id, "project_id": project_id})
    return project.to_dict()


def delete_project(tenant_id: int, project_id: int) -> None:
    project = get_for_tenant(Project, project_id, tenant_id)
    db.session.delete(project)
    commit_or_raise("Project")
    logger.info("Project deleted", extra={"tenant_id": tenant_id, "project_id": project_id})


# ── Revenue entries ─────────────────────────────────────────────────────


def list_revenues(tenant_id: int, project_id: int | None = None) -> list[dict]:
    stmt = select(ProjectRevenue).where(ProjectRevenue.tenant_id == tenant_id)
    if project_id is not None:
        stmt = stmt.where(ProjectRevenue.project_id == project_id)
    rows = db.session.execute(stmt.order_by(ProjectRevenue.date.desc(), ProjectRevenue.id.desc())).scalars().all()
    return [r.to_dict() for r in rows]


def add_revenue(tenant_id: int, data: dict) -> dict:
    fields = validate("project_revenue", data)
    get_for_tenant(Project, fields["project_id"], tenant_id)
    entry = ProjectRevenue(tenant_id=tenant_id, **fields)
    db.session.add(entry)
    commit_or_raise("ProjectRevenue")
    logger.info(
        "Project revenue recorded",
        extra={"tenant_id": tenant_id, "project_id": entry.project_id},
    )
    return entry.to_dict()


def delete_revenue(tenant_id: int, revenue_id: int) -> None:
    entry = get_for_tenant(ProjectRevenue, revenue_id, tenant_id, label="Revenue entry")
    db.session.delete(entry)
    commit_or_raise("ProjectRevenue")
    logger.info("Project revenue deleted", extra={"tenant_id": tenant_id})


# ── Financial summary ───────────────────────────────────────────────────


def project_financials(tenant_id: int, project_id: int) -> dict:
    """Revenue total, gross margin (revenue - cogs) and budget variance (budget - actual_cost)."""
    project = get_for_tenant(Project, project_id, tenant_id)
    revenue = db.session.execute(
        select(func.coalesce(func.sum(ProjectRevenue.amount), 0)).where(
            ProjectRevenue.tenant_id == tenant_id,
            ProjectRevenue.project_id == project_id,
        )
    ).scalar_one()
    revenue = amount_value(revenue or 0)
    gross_margin = revenue - project.cogs
    return {
        "project": project.to_dict(),
        "revenue_total": revenue,
        "gross_margin": gross_margin,
        "gross_margin_pct": round_half_up(gross_margin / revenue * 100, 1) if revenue else 0,
        "budget_variance": project.budget - project.actual_cost,
    }


def status_counts(tenant_id: int) -> dict:
    rows = db.session.execute(
        select(Project.status, func.count(Project.id))
        .where(Project.tenant_id == tenant_id)
        .group_by(Project.status)
    ).all()
    counts = {"On Track": 0, "At Risk": 0, "Underperform": 0}
    for status, count in rows:
        counts[status] = count
    counts["total"] = sum(c for s, c in rows)
    return counts
