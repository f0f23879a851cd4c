"""
Tests: lead CRUD, stage history and pipeline statistics.
"""

import pytest

from command_center.core.exceptions import NotFoundError, ValidationError
from command_center.services import lead_service as svc


def _lead(tenant_id, **overrides):
    data = {"company_name": "PT Maju", "project_name": "Mobile App", **overrides}
    return svc.create_lead(tenant_id, data)


# ── CRUD ─────────────────────────────────────────────────────────────────


def test_create_lead_defaults(tenant):
    lead = _lead(tenant.id)
    assert lead["stage"] == "gathering_requirement"
    assert lead["source"] == "other"
    assert lead["tenant_id"] == tenant.id


def test_create_lead_invalid_email(tenant):
    with pytest.raises(ValidationError):
        _lead(tenant.id, contact_email="nope")


def test_proposal_date_stored(tenant):
    lead = _lead(tenant.id, proposal_date="2025-03-01")
    assert lead["proposal_date"] == "2025-03-01"


def test_non_text_changed_by_rejected(tenant):
    with pytest.raises(ValidationError) as exc:
        _lead(tenant.id, changed_by=["sales"])
    assert "changed_by" in exc.value.details


def test_search_matches_company_or_project(tenant):
    _lead(tenant.id, company_name="Bank Nusantara")
    _lead(tenant.id, project_name="Nusantara Portal")
    _lead(tenant.id, company_name="Other Co", project_name="Other")
    assert len(svc.list_leads(tenant.id, q="nusantara")) == 2


def test_filter_by_stage(tenant):
    _lead(tenant.id, stage="proposal")
    _lead(tenant.id)
    rows = svc.list_leads(tenant.id, stage="proposal")
    assert [r["stage"] for r in rows] == ["proposal"]


def test_lead_scoped_to_tenant(tenant, other_tenant):
    lead = _lead(tenant.id)
    with pytest.raises(NotFoundError):
        svc.get_lead(other_tenant.id, lead["id"])
    assert svc.list_leads(other_tenant.id) == []


# ── History ──────────────────────────────────────────────────────────────


def test_create_with_changed_by_writes_initial_history(tenant):
    lead = _lead(tenant.id, changed_by="Rina")
    history = svc.list_history(tenant.id, lead["id"])
    assert len(history) == 1
    assert history[0]["previous_stage"] is None
    assert history[0]["new_stage"] == "gathering_requirement"
    assert history[0]["notes"] == "Lead created"


def test_create_without_changed_by_writes_no_history(tenant):
    lead = _lead(tenant.id)
    assert svc.list_history(tenant.id, lead["id"]) == []


def test_stage_change_records_history(tenant):
    lead = _lead(tenant.id, changed_by="Rina")
    svc.update_lead(tenant.id, lead["id"], {"stage": "proposal", "changed_by": "Rina"})
    history = svc.list_history(tenant.id, lead["id"])
    assert len(history) == 2
    stages = {(h["previous_stage"], h["new_stage"]) for h in history}
    assert ("gathering_requirement", "proposal") in stages


def test_update_without_stage_change_writes_no_history(tenant):
    lead = _lead(tenant.id)
    svc.update_lead(tenant.id, lead["id"], {"notes": "called", "changed_by": "Rina"})
    assert svc.list_history(tenant.id, lead["id"]) == []


def test_manual_history_entry(tenant):
    lead = _lead(tenant.id)
    entry = svc.add_history(tenant.id, {
        "lead_id": lead["id"], "new_stage": "gathering_requirement",
        "changed_by": "Rina", "notes": "Follow-up meeting",
    })
    assert entry["lead_id"] == lead["id"]


def test_manual_history_for_foreign_lead(tenant, other_tenant):
    lead = _lead(tenant.id)
    with pytest.raises(NotFoundError):
        svc.add_history(other_tenant.id, {
            "lead_id": lead["id"], "new_stage": "won", "changed_by": "X",
        })


def test_delete_lead_removes_history(tenant):
    lead = _lead(tenant.id, changed_by="Rina")
    svc.delete_lead(tenant.id, lead["id"])
    with pytest.raises(NotFoundError):
        svc.list_history(tenant.id, lead["id"])


# ── Pipeline stats ───────────────────────────────────────────────────────


def _row(stage, value, probability=0, loss_reason=None):
    return {"stage": stage, "estimated_value": value, "probability": probability, "loss_reason": loss_reason}


def test_pipeline_stats():
    leads = [
        _row("proposal", 1000, 50),
        _row("negotiation", 2000, 25),
        _row("won", 5000),
        _row("lost", 300, loss_reason="Price"),
        _row("lost", 200, loss_reason="Price"),
        _row("lost", 100),
    ]
    stats = svc.compute_pipeline_stats(leads)
    assert stats["total_leads"] == 6
    assert stats["active_count"] == 2
    assert stats["pipeline_value"] == 1000.0
    assert stats["won_value"] == 5000
    assert stats["lost_value"] == 600
    assert stats["win_rate"] == 25.0
    assert stats["top_loss_reasons"] == [
        {"reason": "Price", "count": 2},
        {"reason": "No reason given", "count": 1},
    ]
    proposal = next(s for s in stats["stage_distribution"] if s["stage"] == "proposal")
    assert proposal == {"stage": "proposal", "count": 1, "total_value": 1000}


def test_pipeline_stats_empty():
    stats = svc.compute_pipeline_stats([])
    assert stats["win_rate"] == 0
    assert stats["pipeline_value"] == 0
    assert stats["top_loss_reasons"] == []
    assert len(stats["stage_distribution"]) == 5
