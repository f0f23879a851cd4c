"""
Lead service — sales pipeline CRUD, stage history and pipeline statistics.

Stage history:
    - On create, when ``changed_by`` is supplied, an initial history row is
      written (previous_stage NULL, new_stage = stage, notes "Lead created").
    - On update, when the stage changes and ``changed_by`` is supplied, a row
      with the previous and new stage is written in the same commit.

Pipeline stats (``compute_pipeline_stats``) are a pure function over
serialized leads so the dashboard can reuse them without a second query.
"""

from __future__ import annotations

import logging
from collections import Counter

from sqlalchemy import or_, select

from command_center.models import db
from command_center.models.sales import ACTIVE_STAGES, Lead, LeadHistory
from command_center.services.validation import clean, text, validate
from command_center.utils.helpers import commit_or_raise, get_for_tenant, round_half_up

logger = logging.getLogger(__name__)

NO_LOSS_REASON = "No reason given"


_changed_by_rule = text("Changed by", 100)
_history_notes_rule = text("History notes", 1000)


def _changed_by(data: dict) -> str | None:
    return clean(_changed_by_rule, data.get("changed_by"), "changed_by")


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


def list_leads(tenant_id: int, stage: str | None = None, q: str | None = None) -> list[dict]:
    stmt = select(Lead).where(Lead.tenant_id == tenant_id)
    if stage:
        stmt = stmt.where(Lead.stage == stage)
    if q:
        like = f"%{q.strip()}%"
        stmt = stmt.where(or_(Lead.company_name.ilike(like), Lead.project_name.ilike(like)))
    rows = db.session.execute(stmt.order_by(Lead.created_at.desc(), Lead.id.desc())).scalars().all()
    return [lead.to_dict() for lead in rows]


def get_lead(tenant_id: int, lead_id: int) -> dict:
    return get_for_tenant(Lead, lead_id, tenant_id).to_dict()


def create_lead(tenant_id: int, data: dict) -> dict:
    fields = validate("lead", data)
    changed_by = _changed_by(data)

    lead = Lead(tenant_id=tenant_id, **fields)
    db.session.add(lead)
    if changed_by:
        db.session.flush()
        db.session.add(LeadHistory(
            tenant_id=tenant_id,
            lead_id=lead.id,
            previous_stage=None,
            new_stage=lead.stage,
            changed_by=changed_by,
            notes="Lead created",
        ))
    commit_or_raise("Lead")
    logger.info("Lead created", extra={"tenant_id": tenant_id, "lead_id": lead.id})
    return lead.to_dict()


def update_lead(tenant_id: int, lead_id: int, data: dict) -> dict:
    lead = get_for_tenant(Lead, lead_id, tenant_id)
    fields = validate("lead", data, partial=True)
    changed_by = _changed_by(data)
    history_notes = clean(_history_notes_rule, data.get("history_notes"), "history_notes")
    previous_stage = lead.stage

    for key, value in fields.items():
        setattr(lead, key, value)

    if changed_by and lead.stage != previous_stage:
        db.session.add(LeadHistory(
            tenant_id=tenant_id,
            lead_id=lead.id,
            previous_stage=previous_stage,
            new_stage=lead.stage,
            changed_by=changed_by,
            notes=history_notes,
        ))
    commit_or_raise("Lead")
    logger.info(
        "Lead updated",
        extra={"tenant_id": tenant_id, "lead_id": lead_id, "stage": lead.stage},
    )
    return lead.to_dict()


def delete_lead(tenant_id: int, lead_id: int) -> None:
    lead = get_for_tenant(Lead, lead_id, tenant_id)
    db.session.delete(lead)
    commit_or_raise("Lead")
    logger.info("Lead deleted", extra={"tenant_id": tenant_id, "lead_id": lead_id})


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


def list_history(tenant_id: int, lead_id: int) -> list[dict]:
    get_for_tenant(Lead, lead_id, tenant_id)
    rows = db.session.execute(
        select(LeadHistory)
        .where(LeadHistory.tenant_id == tenant_id, LeadHistory.lead_id == lead_id)
        .order_by(LeadHistory.created_at.desc(), LeadHistory.id.desc())
    ).scalars().all()
    return [h.to_dict() for h in rows]


def add_history(tenant_id: int, data: dict) -> dict:
    """Record a manual history entry (e.g. a note without a stage change)."""
    fields = validate("lead_history", data)
    get_for_tenant(Lead, fields["lead_id"], tenant_id)
    entry = LeadHistory(tenant_id=tenant_id, **fields)
    db.session.add(entry)
    commit_or_raise("LeadHistory")
    logger.info("Lead history recorded", extra={"tenant_id": tenant_id, "lead_id": entry.lead_id})
    return entry.to_dict()


# ---------------------------------------------------------------------------
# Pipeline statistics
# ---------------------------------------------------------------------------


def compute_pipeline_stats(leads: list[dict]) -> dict:
    """Pipeline value, win rate, stage distribution and top loss reasons."""
    won = [lead for lead in leads if lead["stage"] == "won"]
    lost = [lead for lead in leads if lead["stage"] == "lost"]
    active = [lead for lead in leads if lead["stage"] in ACTIVE_STAGES]

    pipeline_value = sum(
        (lead["estimated_value"] or 0) * (lead["probability"] or 0) / 100 for lead in active
    )
    closed = len(won) + len(lost)
    win_rate = len(won) / closed * 100 if closed else 0

    stage_distribution = []
    for stage in ACTIVE_STAGES:
        in_stage = [lead for lead in leads if lead["stage"] == stage]
        stage_distribution.append({
            "stage": stage,
            "count": len(in_stage),
            "total_value": sum(lead["estimated_value"] or 0 for lead in in_stage),
        })

    reasons = Counter(lead.get("loss_reason") or NO_LOSS_REASON for lead in lost)
    top_loss_reasons = [
        {"reason": reason, "count": count} for reason, count in reasons.most_common(3)
    ]

    return {
        "total_leads": len(leads),
        "active_count": len(active),
        "won_count": len(won),
        "lost_count": len(lost),
        "pipeline_value": round_half_up(pipeline_value, 2),
        "won_value": sum(lead["estimated_value"] or 0 for lead in won),
        "lost_value": sum(lead["estimated_value"] or 0 for lead in lost),
        "win_rate": round_half_up(win_rate, 1),
        "stage_distribution": stage_distribution,
        "top_loss_reasons": top_loss_reasons,
    }


def pipeline_stats(tenant_id: int) -> dict:
    return compute_pipeline_stats(list_leads(tenant_id))
