"""
Project domain models.

Models:
    - Project: a delivery project with budget / actual cost / COGS
    - ProjectRevenue: a dated revenue entry booked against a project
"""

from command_center.models import db
from command_center.models.base import TenantModel, amount_value, iso


class Project(TenantModel):
    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    budget = db.Column(db.BigInteger, nullable=False, default=0)
    actual_cost = db.Column(db.BigInteger, nullable=False, default=0)
    cogs = db.Column(db.BigInteger, nullable=False, default=0)
    status = db.Column(
        db.String(30),
        nullable=False,
        default="On Track",
        comment="On Track | At Risk | Underperform",
    )

    revenues = db.relationship(
        "ProjectRevenue", back_populates="project",
        cascade="all, delete-orphan", lazy="select",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "name": self.name,
            "budget": self.budget,
            "actual_cost": self.actual_cost,
            "cogs": self.cogs,
            "status": self.status,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }


class ProjectRevenue(TenantModel):
    __tablename__ = "project_revenues"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    amount = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    date = db.Column(db.Date, nullable=False)
    note = db.Column(db.Text)

    project = db.relationship("Project", back_populates="revenues")

    def to_dict(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "project_id": self.project_id,
            "amount": amount_value(self.amount),
            "date": iso(self.date),
            "note": self.note,
            "created_at": iso(self.created_at),
        }
