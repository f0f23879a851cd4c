"""
Sales pipeline models.

Models:
    - Lead: a prospective project moving through the pipeline stages
    - LeadHistory: one row per stage transition (append-only)
"""

from command_center.models import db
from command_center.models.base import TenantModel, iso

LEAD_STAGES = (
    "gathering_requirement",
    "prototype",
    "proposal",
    "negotiation",
    "review",
    "won",
    "lost",
)
ACTIVE_STAGES = LEAD_STAGES[:5]
CLOSED_STAGES = ("won", "lost")

LEAD_SOURCES = ("referral", "website", "cold_call", "event", "social_media", "other")


class Lead(TenantModel):
    __tablename__ = "leads"

    id = db.Column(db.Integer, primary_key=True)
    company_name = db.Column(db.String(200), nullable=False)
    project_name = db.Column(db.String(200), nullable=False)
    contact_person = db.Column(db.String(100))
    contact_email = db.Column(db.String(100))
    contact_phone = db.Column(db.String(20))
    estimated_value = db.Column(db.BigInteger, nullable=False, default=0)
    probability = db.Column(db.Integer, nullable=False, default=0)
    stage = db.Column(db.String(50), nullable=False, default="gathering_requirement", index=True)
    source = db.Column(db.String(30))
    proposal_date = db.Column(db.Date)
    expected_close_date = db.Column(db.Date)
    actual_close_date = db.Column(db.Date)
    loss_reason = db.Column(db.String(200))
    loss_details = db.Column(db.Text)
    win_factors = db.Column(db.Text)
    competitor = db.Column(db.String(200))
    notes = db.Column(db.Text)

    history = db.relationship(
        "LeadHistory", back_populates="lead",
        cascade="all, delete-orphan", lazy="select",
        order_by="LeadHistory.created_at.desc()",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "company_name": self.company_name,
            "project_name": self.project_name,
            "contact_person": self.contact_person,
            "contact_email": self.contact_email,
            "contact_phone": self.contact_phone,
            "estimated_value": self.estimated_value,
            "probability": self.probability,
            "stage": self.stage,
            "source": self.source,
            "proposal_date": iso(self.proposal_date),
            "expected_close_date": iso(self.expected_close_date),
            "actual_close_date": iso(self.actual_close_date),
            "loss_reason": self.loss_reason,
            "loss_details": self.loss_details,
            "win_factors": self.win_factors,
            "competitor": self.competitor,
            "notes": self.notes,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }


class LeadHistory(TenantModel):
    __tablename__ = "lead_history"

    id = db.Column(db.Integer, primary_key=True)
    lead_id = db.Column(
        db.Integer, db.ForeignKey("leads.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    previous_stage = db.Column(db.String(50))
    new_stage = db.Column(db.String(50), nullable=False)
    changed_by = db.Column(db.String(100), nullable=False)
    notes = db.Column(db.Text)

    lead = db.relationship("Lead", back_populates="history")

    def to_dict(self):
        return {
            "id": self.id,
            "lead_id": self.lead_id,
            "previous_stage": self.previous_stage,
            "new_stage": self.new_stage,
            "changed_by": self.changed_by,
            "notes": self.notes,
            "created_at": iso(self.created_at),
        }
