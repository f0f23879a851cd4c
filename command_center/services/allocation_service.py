"""
Allocation service — staffing of team members onto projects per month.

Key rule: at most one allocation row per (tenant, team_member_id, month,
cost_type). ``add_allocation`` is therefore an upsert: a second add for the
same key updates the existing row in place. The UniqueConstraint on the
table backs this up if two writers race (the loser gets a 409).

Cost types:
    hpp  — cost of goods sold; project_id is required
    opex — overhead; project_id is always cleared
"""

from __future__ import annotations

import logging

from sqlalchemy import select

from command_center.core.exceptions import ConflictError, ValidationError
from command_center.models import db
from command_center.models.project import Project
from command_center.models.team import ProjectTeamAllocation, TeamMember
from command_center.services.validation import clean, month_param, reference, validate
from command_center.utils.helpers import commit_or_raise, get_for_tenant

logger = logging.getLogger(__name__)

_member_ref = reference("Team member ID")
_UPSERT_FIELDS = ("project_id", "allocation_percentage", "role_in_project", "notes")


def _apply_cost_type_rules(fields: dict) -> dict:
    if fields.get("cost_type") == "opex":
        fields["project_id"] = None
    elif fields.get("project_id") is None:
        raise ValidationError(
            "Project is required for HPP allocations",
            details={"project_id": "Project is required for HPP allocations"},
        )
    return fields


def _check_refs(tenant_id: int, fields: dict) -> None:
    get_for_tenant(TeamMember, fields["team_member_id"], tenant_id, label="Team member")
    if fields.get("project_id") is not None:
        get_for_tenant(Project, fields["project_id"], tenant_id)


def _find_by_key(tenant_id: int, team_member_id: int, month: str, cost_type: str):
    return db.session.execute(
        select(ProjectTeamAllocation).where(
            ProjectTeamAllocation.tenant_id == tenant_id,
            ProjectTeamAllocation.team_member_id == team_member_id,
            ProjectTeamAllocation.month == month,
            ProjectTeamAllocation.cost_type == cost_type,
        )
    ).scalar_one_or_none()


def _upsert(tenant_id: int, fields: dict) -> tuple[ProjectTeamAllocation, bool]:
    """Stage an insert or in-place update (no commit). Returns (row, created)."""
    existing = _find_by_key(tenant_id, fields["team_member_id"], fields["month"], fields["cost_type"])
    if existing is not None:
        for key in _UPSERT_FIELDS:
            setattr(existing, key, fields.get(key))
        return existing, False
    row = ProjectTeamAllocation(tenant_id=tenant_id, **fields)
    db.session.add(row)
    return row, True


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def add_allocation(tenant_id: int, data: dict) -> tuple[dict, bool]:
    """Insert an allocation, or update the row already holding its key.

    Returns:
        (serialized allocation, created) where ``created`` is False when an
        existing row was updated.
    """
    fields = _apply_cost_type_rules(validate("allocation", data))
    _check_refs(tenant_id, fields)
    row, created = _upsert(tenant_id, fields)
    commit_or_raise("ProjectTeamAllocation", "team_member_id/month/cost_type", fields["month"])
    logger.info(
        "Allocation %s", "created" if created else "updated in place",
        extra={"tenant_id": tenant_id, "project_id": row.project_id},
    )
    return row.to_dict(), created


def bulk_add_allocations(tenant_id: int, data: dict) -> list[dict]:
    """Apply the same project/month/percentage to several team members.

    Body: { team_member_ids: [..], project_id?, month, allocation_percentage,
            role_in_project?, cost_type?, notes? }

    Every member is validated before anything is written; the whole batch
    commits together.
    """
    member_ids = data.get("team_member_ids")
    if not isinstance(member_ids, list) or not member_ids:
        raise ValidationError(
            "team_member_ids must be a non-empty list",
            details={"team_member_ids": "At least one team member is required"},
        )

    member_ids = [
        clean(_member_ref, value, f"team_member_ids[{idx}]") for idx, value in enumerate(member_ids)
    ]
    staged = []
    for member_id in dict.fromkeys(member_ids):
        payload = {**data, "team_member_id": member_id}
        fields = _apply_cost_type_rules(validate("allocation", payload))
        _check_refs(tenant_id, fields)
        staged.append(fields)

    rows = [_upsert(tenant_id, fields)[0] for fields in staged]
    commit_or_raise("ProjectTeamAllocation", "team_member_id/month/cost_type")
    logger.info(
        "Bulk allocation applied",
        extra={"tenant_id": tenant_id, "project_id": data.get("project_id"), "count": len(rows)},
    )
    return [r.to_dict() for r in rows]


def update_allocation(tenant_id: int, allocation_id: int, data: dict) -> dict:
    row = get_for_tenant(ProjectTeamAllocation, allocation_id, tenant_id, label="Allocation")
    fields = validate("allocation", data, partial=True)

    merged = {
        "team_member_id": row.team_member_id,
        "project_id": row.project_id,
        "month": row.month,
        "cost_type": row.cost_type,
        **fields,
    }
    _apply_cost_type_rules(merged)
    _check_refs(tenant_id, merged)

    key_changed = (
        merged["team_member_id"] != row.team_member_id
        or merged["month"] != row.month
        or merged["cost_type"] != row.cost_type
    )
    if key_changed:
        clash = _find_by_key(tenant_id, merged["team_member_id"], merged["month"], merged["cost_type"])
        if clash is not None and clash.id != row.id:
            raise ConflictError(
                "ProjectTeamAllocation",
                "team_member_id/month/cost_type",
                f"{merged['team_member_id']}/{merged['month']}/{merged['cost_type']}",
            )

    for key, value in fields.items():
        setattr(row, key, value)
    row.project_id = merged["project_id"]
    commit_or_raise("ProjectTeamAllocation", "team_member_id/month/cost_type")
    logger.info("Allocation updated", extra={"tenant_id": tenant_id, "project_id": row.project_id})
    return row.to_dict()


def delete_allocation(tenant_id: int, allocation_id: int) -> None:
    row = get_for_tenant(ProjectTeamAllocation, allocation_id, tenant_id, label="Allocation")
    db.session.delete(row)
    commit_or_raise("ProjectTeamAllocation")
    logger.info("Allocation deleted", extra={"tenant_id": tenant_id})


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def list_allocations(
    tenant_id: int,
    month: str | None = None,
    project_id: int | None = None,
    team_member_id: int | None = None,
) -> list[dict]:
    stmt = select(ProjectTeamAllocation).where(ProjectTeamAllocation.tenant_id == tenant_id)
    if month:
        stmt = stmt.where(ProjectTeamAllocation.month == month_param(month))
    if project_id is not None:
        stmt = stmt.where(ProjectTeamAllocation.project_id == project_id)
    if team_member_id is not None:
        stmt = stmt.where(ProjectTeamAllocation.team_member_id == team_member_id)
    rows = db.session.execute(
        stmt.order_by(ProjectTeamAllocation.month.desc(), ProjectTeamAllocation.id)
    ).scalars().all()
    return [r.to_dict() for r in rows]


def monthly_totals(allocations: list[dict]) -> list[dict]:
    """Sum HPP and OPEX percentages per month, newest month first."""
    totals: dict[str, dict] = {}
    for a in allocations:
        bucket = totals.setdefault(a["month"], {"month": a["month"], "hpp": 0, "opex": 0, "count": 0})
        bucket[a["cost_type"]] += a["allocation_percentage"] or 0
        bucket["count"] += 1
    return sorted(totals.values(), key=lambda t: t["month"], reverse=True)


def group_by_project(allocations: list[dict]) -> list[dict]:
    """Group HPP allocations under their project; OPEX rows under project None."""
    groups: dict = {}
    for a in allocations:
        group = groups.setdefault(a["project_id"], {
            "project_id": a["project_id"],
            "project_name": a["project_name"] or ("OPEX" if a["cost_type"] == "opex" else None),
            "total_percentage": 0,
            "allocations": [],
        })
        group["total_percentage"] += a["allocation_percentage"] or 0
        group["allocations"].append(a)
    return list(groups.values())


def allocation_summary(tenant_id: int, month: str | None = None) -> dict:
    allocations = list_allocations(tenant_id, month=month)
    return {
        "month": month_param(month) if month else None,
        "totals": monthly_totals(allocations),
        "by_project": group_by_project(allocations),
    }
