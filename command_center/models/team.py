"""
Team & staffing models.

Models:
    - Squad: named group of team members (unique name per tenant)
    - TeamMember: person on the business unit roster
    - ProjectTeamAllocation: % of a member's month charged to a project (HPP)
      or to overhead (OPEX); one row per (member, month, cost_type)
    - TeamMemberEsat: monthly satisfaction score per member
    - DailyTask: time log entry for a member on a given day
"""

from command_center.models import db
from command_center.models.base import TenantModel, iso

EMPLOYMENT_STATUSES = ("Permanent", "Contract", "Freelance", "Vendor")
COST_TYPES = ("hpp", "opex")


class Squad(TenantModel):
    __tablename__ = "squads"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "name", name="uq_squad_tenant_name"),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": iso(self.created_at),
        }


class TeamMember(TenantModel):
    __tablename__ = "team_members"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(100))
    position = db.Column(db.String(100))
    squad = db.Column(db.String(100))
    supervisor = db.Column(db.String(100))
    employment_status = db.Column(db.String(20))
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    allocations = db.relationship(
        "ProjectTeamAllocation", back_populates="team_member",
        cascade="all, delete-orphan", lazy="select",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "name": self.name,
            "email": self.email,
            "position": self.position,
            "squad": self.squad,
            "supervisor": self.supervisor,
            "employment_status": self.employment_status,
            "is_active": self.is_active,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }


class ProjectTeamAllocation(TenantModel):
    __tablename__ = "project_team_allocations"
    __table_args__ = (
        db.UniqueConstraint(
            "tenant_id", "team_member_id", "month", "cost_type",
            name="uq_allocation_member_month_cost_type",
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    team_member_id = db.Column(
        db.Integer, db.ForeignKey("team_members.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=True, index=True,
    )
    month = db.Column(db.String(50), nullable=False, index=True)
    allocation_percentage = db.Column(db.Integer, nullable=False, default=100)
    role_in_project = db.Column(db.String(100))
    cost_type = db.Column(db.String(10), nullable=False, default="hpp")
    notes = db.Column(db.Text)

    team_member = db.relationship("TeamMember", back_populates="allocations")
    project = db.relationship("Project")

    def to_dict(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "team_member_id": self.team_member_id,
            "team_member_name": self.team_member.name if self.team_member else None,
            "project_id": self.project_id,
            "project_name": self.project.name if self.project else None,
            "month": self.month,
            "allocation_percentage": self.allocation_percentage,
            "role_in_project": self.role_in_project,
            "cost_type": self.cost_type,
            "notes": self.notes,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }


class TeamMemberEsat(TenantModel):
    __tablename__ = "team_member_esat"

    id = db.Column(db.Integer, primary_key=True)
    team_member_id = db.Column(
        db.Integer, db.ForeignKey("team_members.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    month = db.Column(db.String(50), nullable=False, index=True)
    esat_score = db.Column(db.Float, nullable=False)
    notes = db.Column(db.Text)

    team_member = db.relationship("TeamMember")

    def to_dict(self):
        return {
            "id": self.id,
            "team_member_id": self.team_member_id,
            "team_member_name": self.team_member.name if self.team_member else None,
            "month": self.month,
            "esat_score": self.esat_score,
            "notes": self.notes,
            "created_at": iso(self.created_at),
        }


class DailyTask(TenantModel):
    __tablename__ = "daily_tasks"

    id = db.Column(db.Integer, primary_key=True)
    team_member_id = db.Column(
        db.Integer, db.ForeignKey("team_members.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="SET NULL"),
        nullable=True,
    )
    task_date = db.Column(db.Date, nullable=False, index=True)
    task_name = db.Column(db.String(500), nullable=False)
    duration = db.Column(db.Float, nullable=False, default=0)
    notes = db.Column(db.Text)

    def to_dict(self):
        return {
            "id": self.id,
            "team_member_id": self.team_member_id,
            "project_id": self.project_id,
            "task_date": iso(self.task_date),
            "task_name": self.task_name,
            "duration": self.duration,
            "notes": self.notes,
            "created_at": iso(self.created_at),
        }
