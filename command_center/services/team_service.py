"""
Team service — squads, roster, daily tasks, per-member ESAT, capacity and workload.

CSV imports:
    import_members_csv   — columns name*, email, position, squad, supervisor
    import_member_esat_csv — columns name*, month*, score*, notes; members
                             matched by case-insensitive name, unknown names
                             skipped with a warning.

Capacity (``compute_capacity``):
    For each active member, sum every allocation row for the month and
    classify: > 100 overload, >= 80 optimal, > 0 available, else idle.

Workload (``compute_workload`` / ``compute_allocation_load``):
    Monthly task load per member against an 8h working day, idle runs of
    working days, and the yearly member-month load split by cost type.
"""

from __future__ import annotations

import calendar
import logging
from datetime import date

from sqlalchemy import select

from command_center.core.exceptions import ConflictError, ValidationError
from command_center.models import db
from command_center.models.finance import MONTH_COLUMNS
from command_center.models.team import DailyTask, ProjectTeamAllocation, Squad, TeamMember, TeamMemberEsat
from command_center.models.project import Project
from command_center.services import csv_import
from command_center.services.validation import month_param, validate
from command_center.utils.helpers import commit_or_raise, get_for_tenant, parse_date, round_half_up

logger = logging.getLogger(__name__)

CAPACITY_STATUSES = ("overload", "optimal", "available", "idle")


# ═════════════════════════════════════════════════════════════════════════
# Squads
# ═════════════════════════════════════════════════════════════════════════


def list_squads(tenant_id: int) -> list[dict]:
    rows = db.session.execute(
        select(Squad).where(Squad.tenant_id == tenant_id).order_by(Squad.name)
    ).scalars().all()
    return [s.to_dict() for s in rows]


def _ensure_squad_name_free(tenant_id: int, name: str, exclude_id: int | None = None) -> None:
    stmt = select(Squad.id).where(Squad.tenant_id == tenant_id, Squad.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Squad.id != exclude_id)
    if db.session.execute(stmt).first():
        raise ConflictError("Squad", "name", name)


def create_squad(tenant_id: int, data: dict) -> dict:
    fields = validate("squad", data)
    _ensure_squad_name_free(tenant_id, fields["name"])
    squad = Squad(tenant_id=tenant_id, **fields)
    db.session.add(squad)
    commit_or_raise("Squad", "name", fields["name"])
    logger.info("Squad created", extra={"tenant_id": tenant_id})
    return squad.to_dict()


def update_squad(tenant_id: int, squad_id: int, data: dict) -> dict:
    squad = get_for_tenant(Squad, squad_id, tenant_id)
    fields = validate("squad", data, partial=True)
    if "name" in fields:
        _ensure_squad_name_free(tenant_id, fields["name"], exclude_id=squad_id)
    for key, value in fields.items():
        setattr(squad, key, value)
    commit_or_raise("Squad", "name", squad.name)
    logger.info("Squad updated", extra={"tenant_id": tenant_id})
    return squad.to_dict()


def delete_squad(tenant_id: int, squad_id: int) -> None:
    squad = get_for_tenant(Squad, squad_id, tenant_id)
    db.session.delete(squad)
    commit_or_raise("Squad")
    logger.info("Squad deleted", extra={"tenant_id": tenant_id})


# ═════════════════════════════════════════════════════════════════════════
# Team members
# ═════════════════════════════════════════════════════════════════════════


def list_members(tenant_id: int, active: bool | None = None, squad: str | None = None) -> list[dict]:
    stmt = select(TeamMember).where(TeamMember.tenant_id == tenant_id)
    if active is not None:
        stmt = stmt.where(TeamMember.is_active.is_(active))
    if squad:
        stmt = stmt.where(TeamMember.squad == squad)
    rows = db.session.execute(stmt.order_by(TeamMember.name)).scalars().all()
    return [m.to_dict() for m in rows]


def get_member(tenant_id: int, member_id: int) -> dict:
    return get_for_tenant(TeamMember, member_id, tenant_id, label="Team member").to_dict()


def create_member(tenant_id: int, data: dict) -> dict:
    fields = validate("team_member", data)
    member = TeamMember(tenant_id=tenant_id, **fields)
    db.session.add(member)
    commit_or_raise("TeamMember")
    logger.info("Team member created", extra={"tenant_id": tenant_id})
    return member.to_dict()


def update_member(tenant_id: int, member_id: int, data: dict) -> dict:
    member = get_for_tenant(TeamMember, member_id, tenant_id, label="Team member")
    for key, value in validate("team_member", data, partial=True).items():
        setattr(member, key, value)
    commit_or_raise("TeamMember")
    logger.info("Team member updated", extra={"tenant_id": tenant_id})
    return member.to_dict()


def delete_member(tenant_id: int, member_id: int) -> None:
    member = get_for_tenant(TeamMember, member_id, tenant_id, label="Team member")
    db.session.delete(member)
    commit_or_raise("TeamMember")
    logger.info("Team member deleted", extra={"tenant_id": tenant_id})


def import_members_csv(tenant_id: int, file_content: str | bytes) -> dict:
    """Create one TeamMember per valid CSV row.

    Rows failing field validation (e.g. bad email) are reported alongside
    the empty-column errors and skipped; valid rows are committed together.
    """
    parsed = csv_import.parse_csv(file_content, csv_import.TEAM_COLUMNS)
    errors = list(parsed["errors"])
    created = []
    for row in parsed["rows"]:
        payload = {k: v for k, v in row.items() if k != "row_num"}
        try:
            fields = validate("team_member", payload)
        except ValidationError as exc:
            errors.append(f"Row {row['row_num']}: {exc}")
            continue
        member = TeamMember(tenant_id=tenant_id, **fields)
        db.session.add(member)
        created.append(member)
    commit_or_raise("TeamMember")
    logger.info(
        "Team members imported from CSV",
        extra={"tenant_id": tenant_id, "imported": len(created), "errors": len(errors)},
    )
    return {
        "imported": len(created),
        "members": [m.to_dict() for m in created],
        "errors": errors,
    }


def member_template() -> str:
    return csv_import.generate_template(csv_import.TEAM_COLUMNS)


# ═════════════════════════════════════════════════════════════════════════
# Daily tasks
# ═════════════════════════════════════════════════════════════════════════


def list_tasks(
    tenant_id: int,
    team_member_id: int | None = None,
    date_from=None,
    date_to=None,
) -> list[dict]:
    stmt = select(DailyTask).where(DailyTask.tenant_id == tenant_id)
    if team_member_id is not None:
        stmt = stmt.where(DailyTask.team_member_id == team_member_id)
    start = parse_date(date_from)
    end = parse_date(date_to)
    if start:
        stmt = stmt.where(DailyTask.task_date >= start)
    if end:
        stmt = stmt.where(DailyTask.task_date <= end)
    rows = db.session.execute(
        stmt.order_by(DailyTask.task_date.desc(), DailyTask.id.desc())
    ).scalars().all()
    return [t.to_dict() for t in rows]


def _check_task_refs(tenant_id: int, fields: dict) -> None:
    if fields.get("team_member_id") is not None:
        get_for_tenant(TeamMember, fields["team_member_id"], tenant_id, label="Team member")
    if fields.get("project_id") is not None:
        get_for_tenant(Project, fields["project_id"], tenant_id)


def create_task(tenant_id: int, data: dict) -> dict:
    fields = validate("daily_task", data)
    _check_task_refs(tenant_id, fields)
    task = DailyTask(tenant_id=tenant_id, **fields)
    db.session.add(task)
    commit_or_raise("DailyTask")
    logger.info("Daily task logged", extra={"tenant_id": tenant_id})
    return task.to_dict()


def update_task(tenant_id: int, task_id: int, data: dict) -> dict:
    task = get_for_tenant(DailyTask, task_id, tenant_id, label="Daily task")
    fields = validate("daily_task", data, partial=True)
    _check_task_refs(tenant_id, fields)
    for key, value in fields.items():
        setattr(task, key, value)
    commit_or_raise("DailyTask")
    logger.info("Daily task updated", extra={"tenant_id": tenant_id})
    return task.to_dict()


def delete_task(tenant_id: int, task_id: int) -> None:
    task = get_for_tenant(DailyTask, task_id, tenant_id, label="Daily task")
    db.session.delete(task)
    commit_or_raise("DailyTask")
    logger.info("Daily task deleted", extra={"tenant_id": tenant_id})


# ═════════════════════════════════════════════════════════════════════════
# Team member ESAT
# ═════════════════════════════════════════════════════════════════════════


def list_member_esat(tenant_id: int, team_member_id: int | None = None, month: str | None = None) -> list[dict]:
    stmt = select(TeamMemberEsat).where(TeamMemberEsat.tenant_id == tenant_id)
    if team_member_id is not None:
        stmt = stmt.where(TeamMemberEsat.team_member_id == team_member_id)
    if month:
        stmt = stmt.where(TeamMemberEsat.month == month_param(month))
    rows = db.session.execute(
        stmt.order_by(TeamMemberEsat.month.desc(), TeamMemberEsat.id)
    ).scalars().all()
    return [r.to_dict() for r in rows]


def create_member_esat(tenant_id: int, data: dict) -> dict:
    fields = validate("team_member_esat", data)
    get_for_tenant(TeamMember, fields["team_member_id"], tenant_id, label="Team member")
    row = TeamMemberEsat(tenant_id=tenant_id, **fields)
    db.session.add(row)
    commit_or_raise("TeamMemberEsat")
    logger.info("Team member ESAT recorded", extra={"tenant_id": tenant_id})
    return row.to_dict()


def update_member_esat(tenant_id: int, esat_id: int, data: dict) -> dict:
    row = get_for_tenant(TeamMemberEsat, esat_id, tenant_id, label="Team member ESAT")
    fields = validate("team_member_esat", data, partial=True)
    if "team_member_id" in fields:
        get_for_tenant(TeamMember, fields["team_member_id"], tenant_id, label="Team member")
    for key, value in fields.items():
        setattr(row, key, value)
    commit_or_raise("TeamMemberEsat")
    logger.info("Team member ESAT updated", extra={"tenant_id": tenant_id})
    return row.to_dict()


def delete_member_esat(tenant_id: int, esat_id: int) -> None:
    row = get_for_tenant(TeamMemberEsat, esat_id, tenant_id, label="Team member ESAT")
    db.session.delete(row)
    commit_or_raise("TeamMemberEsat")
    logger.info("Team member ESAT deleted", extra={"tenant_id": tenant_id})


def import_member_esat_csv(tenant_id: int, file_content: str | bytes) -> dict:
    parsed = csv_import.parse_csv(file_content, csv_import.TEAM_ESAT_COLUMNS)
    errors = list(parsed["errors"])
    warnings: list[str] = []

    members = db.session.execute(
        select(TeamMember).where(TeamMember.tenant_id == tenant_id)
    ).scalars().all()
    by_name = {m.name.strip().lower(): m for m in members}

    created = []
    for row in parsed["rows"]:
        member = by_name.get(row["name"].strip().lower())
        if member is None:
            warnings.append(f'Team member "{row["name"]}" not found, row {row["row_num"]} skipped')
            continue
        try:
            fields = validate("team_member_esat", {
                "team_member_id": member.id,
                "month": row["month"],
                "esat_score": row["score"],
                "notes": row.get("notes"),
            })
        except ValidationError as exc:
            errors.append(f"Row {row['row_num']}: {exc}")
            continue
        entry = TeamMemberEsat(tenant_id=tenant_id, **fields)
        db.session.add(entry)
        created.append(entry)

    commit_or_raise("TeamMemberEsat")
    if warnings:
        logger.warning(
            "Team ESAT import skipped unknown members",
            extra={"tenant_id": tenant_id, "skipped": len(warnings)},
        )
    logger.info("Team ESAT imported from CSV", extra={"tenant_id": tenant_id, "imported": len(created)})
    return {
        "imported": len(created),
        "records": [e.to_dict() for e in created],
        "warnings": warnings,
        "errors": errors,
    }


def member_esat_template() -> str:
    return csv_import.generate_template(csv_import.TEAM_ESAT_COLUMNS)


def member_esat_trend(tenant_id: int, team_member_id: int | None = None) -> list[dict]:
    """Average ESAT score per month, oldest month first."""
    buckets: dict[str, list[float]] = {}
    for row in list_member_esat(tenant_id, team_member_id=team_member_id):
        buckets.setdefault(row["month"], []).append(row["esat_score"])
    return [
        {"month": month, "average": round_half_up(sum(scores) / len(scores), 1), "count": len(scores)}
        for month, scores in sorted(buckets.items())
    ]


# ═════════════════════════════════════════════════════════════════════════
# Capacity
# ═════════════════════════════════════════════════════════════════════════


def capacity_status(total_allocation: int) -> str:
    if total_allocation > 100:
        return "overload"
    if total_allocation >= 80:
        return "optimal"
    if total_allocation > 0:
        return "available"
    return "idle"


def compute_capacity(members: list[dict], allocations: list[dict]) -> dict:
    """Classify each active member by their summed allocation for the month."""
    result = []
    for member in members:
        if not member.get("is_active", True):
            continue
        own = [a for a in allocations if a["team_member_id"] == member["id"]]
        total = sum(a["allocation_percentage"] or 0 for a in own)
        result.append({
            "team_member_id": member["id"],
            "name": member["name"],
            "squad": member.get("squad"),
            "total_allocation": total,
            "project_names": [
                a.get("project_name") or ("OPEX" if a.get("cost_type") == "opex" else "Unknown")
                for a in own
            ],
            "status": capacity_status(total),
        })
    counts = {status: 0 for status in CAPACITY_STATUSES}
    for entry in result:
        counts[entry["status"]] += 1
    return {"members": result, "counts": counts}


def capacity_overview(tenant_id: int, month: str | None = None) -> dict:
    month = month_param(month) if month else date.today().strftime("%Y-%m")
    allocations = db.session.execute(
        select(ProjectTeamAllocation).where(
            ProjectTeamAllocation.tenant_id == tenant_id,
            ProjectTeamAllocation.month == month,
        )
    ).scalars().all()
    report = compute_capacity(
        list_members(tenant_id, active=True),
        [a.to_dict() for a in allocations],
    )
    report["month"] = month
    return report


# ═════════════════════════════════════════════════════════════════════════
# Workload analysis
# ═════════════════════════════════════════════════════════════════════════

HOURS_PER_DAY = 8


def working_days(month: str) -> list[date]:
    """Weekdays (Mon–Fri) of a ``YYYY-MM`` month."""
    year, mon = (int(part) for part in month.split("-"))
    last = calendar.monthrange(year, mon)[1]
    days = (date(year, mon, day) for day in range(1, last + 1))
    return [d for d in days if d.weekday() < 5]


def idle_periods(days: list[date], busy: set[date]) -> list[dict]:
    """Group consecutive idle working days into ``{start, end}`` runs."""
    periods = []
    start = end = None
    for day in days:
        if day in busy:
            if start is not None:
                periods.append({"start": start.isoformat(), "end": end.isoformat()})
                start = None
            continue
        if start is None:
            start = day
        end = day
    if start is not None:
        periods.append({"start": start.isoformat(), "end": end.isoformat()})
    return periods


def compute_workload(members: list[dict], tasks: list[dict], allocations: list[dict], month: str) -> dict:
    """Per-member task load for one month.

    ``tasks`` carry ``task_date`` as an ISO string; ``allocations`` are the
    month's allocation rows. Inactive members are skipped.
    """
    days = working_days(month)
    capacity_hours = len(days) * HOURS_PER_DAY
    result = []
    for member in members:
        if not member.get("is_active", True):
            continue
        own = [t for t in tasks if t["team_member_id"] == member["id"]]
        task_dates = {date.fromisoformat(t["task_date"]) for t in own}
        summary: dict[str, dict] = {}
        for task in own:
            entry = summary.setdefault(task["task_name"], {"count": 0, "hours": 0.0})
            entry["count"] += 1
            entry["hours"] += task["duration"] or 0
        total_hours = sum(t["duration"] or 0 for t in own)
        result.append({
            "team_member_id": member["id"],
            "name": member["name"],
            "position": member.get("position"),
            "squad": member.get("squad"),
            "days_with_tasks": len(task_dates),
            "idle_days": sum(1 for d in days if d not in task_dates),
            "idle_periods": idle_periods(days, task_dates),
            "task_summary": summary,
            "total_hours": total_hours,
            "utilisation_rate": int(round_half_up(total_hours / capacity_hours * 100)) if capacity_hours else 0,
            "planned_allocation": sum(
                a["allocation_percentage"] or 0 for a in allocations if a["team_member_id"] == member["id"]
            ),
        })
    return {"month": month, "working_days": len(days), "members": result}


def workload_overview(
    tenant_id: int,
    month: str | None = None,
    squad: str | None = None,
    position: str | None = None,
) -> dict:
    month = month_param(month) if month else date.today().strftime("%Y-%m")
    first = date.fromisoformat(f"{month}-01")
    last = first.replace(day=calendar.monthrange(first.year, first.month)[1])

    members = list_members(tenant_id, active=True, squad=squad)
    if position:
        members = [m for m in members if m.get("position") == position]
    tasks = list_tasks(tenant_id, date_from=first, date_to=last)
    allocations = db.session.execute(
        select(ProjectTeamAllocation).where(
            ProjectTeamAllocation.tenant_id == tenant_id,
            ProjectTeamAllocation.month == month,
        )
    ).scalars().all()
    report = compute_workload(members, tasks, [a.to_dict() for a in allocations], month)
    logger.debug(
        "Workload computed",
        extra={"tenant_id": tenant_id, "month": month, "members": len(report["members"])},
    )
    return report


def compute_allocation_load(members: list[dict], allocations: list[dict], year: int) -> dict:
    """Member-months per calendar month, split by HPP/OPEX cost type.

    A member's cost type comes from their latest allocation in ``year``
    (``hpp`` when they have none that year). Members without any allocation
    at all are left out.
    """
    prefix = f"{year}-"
    groups = {"hpp": [], "opex": []}
    for member in members:
        if not member.get("is_active", True):
            continue
        own = [a for a in allocations if a["team_member_id"] == member["id"]]
        if not own:
            continue
        in_year = [a for a in own if a["month"].startswith(prefix)]
        latest = max(in_year, key=lambda a: a["month"], default=None)
        cost_type = latest["cost_type"] if latest else "hpp"
        monthly = {}
        for idx, key in enumerate(MONTH_COLUMNS, start=1):
            month_key = f"{year}-{idx:02d}"
            monthly[key] = round_half_up(
                sum(a["allocation_percentage"] or 0 for a in in_year if a["month"] == month_key) / 100, 2,
            )
        groups[cost_type].append({
            "team_member_id": member["id"],
            "name": member["name"],
            "position": member.get("position"),
            "cost_type": cost_type,
            "monthly_load": monthly,
            "total_months": round_half_up(sum(monthly.values()), 2),
        })

    report = {"year": year}
    for cost_type in ("hpp", "opex"):
        rows = groups[cost_type]
        report[f"{cost_type}_members"] = rows
        report[f"{cost_type}_monthly_totals"] = {
            key: round_half_up(sum(r["monthly_load"][key] for r in rows), 2) for key in MONTH_COLUMNS
        }
        report[f"total_{cost_type}_members"] = len(rows)
    return report


def allocation_load_overview(tenant_id: int, year: int | None = None) -> dict:
    year = year or date.today().year
    allocations = db.session.execute(
        select(ProjectTeamAllocation).where(ProjectTeamAllocation.tenant_id == tenant_id)
    ).scalars().all()
    return compute_allocation_load(
        list_members(tenant_id, active=True),
        [a.to_dict() for a in allocations],
        year,
    )
