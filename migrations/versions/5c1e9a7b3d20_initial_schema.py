"""initial_schema

Tenants plus every tenant-scoped table: projects & revenue, monthly P&L,
OPEX budget/consumption, leads & history, squads / team / allocations /
member ESAT / daily tasks, CSAT & ESAT surveys, knowledge base.

Revision ID: 5c1e9a7b3d20
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = "5c1e9a7b3d20"
down_revision = None
branch_labels = None
depends_on = None

MONTHS = ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec")


def _tenant_columns():
    return [
        sa.Column("tenant_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
    ]


def _create(existing, name, *columns, indexes=()):
    if name in existing:
        return
    op.create_table(name, *columns, *_tenant_columns())
    op.create_index(f"ix_{name}_tenant_id", name, ["tenant_id"])
    for column in indexes:
        op.create_index(f"ix_{name}_{column}", name, [column])


def upgrade():
    bind = op.get_bind()
    existing = set(sa_inspect(bind).get_table_names())

    if "tenants" not in existing:
        op.create_table(
            "tenants",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("slug", sa.String(length=100), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("settings", sa.JSON(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("slug"),
        )

    # ── Projects & finance ───────────────────────────────────────────────
    _create(
        existing, "projects",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("budget", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("actual_cost", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("cogs", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="On Track"),
        sa.PrimaryKeyConstraint("id"),
    )
    _create(
        existing, "project_revenues",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        indexes=("project_id",),
    )
    _create(
        existing, "monthly_financials",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("month", sa.String(length=50), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("revenue", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("opex", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("cogs", sa.BigInteger(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
    )
    _create(
        existing, "opex_budgets",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(length=200), nullable=False),
        sa.Column("squad", sa.String(length=100), nullable=True),
        sa.Column("okr", sa.String(length=200), nullable=True),
        sa.Column("kpi", sa.String(length=200), nullable=True),
        sa.Column("account", sa.String(length=100), nullable=True),
        *[sa.Column(m, sa.BigInteger(), nullable=False, server_default="0") for m in MONTHS],
        sa.PrimaryKeyConstraint("id"),
        indexes=("year",),
    )
    _create(
        existing, "opex_consumptions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("opex_budget_id", sa.Integer(), nullable=True),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("quarter", sa.String(length=2), nullable=False),
        sa.Column("allocation_description", sa.String(length=200), nullable=False),
        sa.Column("usage_description", sa.Text(), nullable=True),
        sa.Column("amount", sa.BigInteger(), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(["opex_budget_id"], ["opex_budgets.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        indexes=("opex_budget_id",),
    )

    # ── Sales pipeline ───────────────────────────────────────────────────
    _create(
        existing, "leads",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("company_name", sa.String(length=200), nullable=False),
        sa.Column("project_name", sa.String(length=200), nullable=False),
        sa.Column("contact_person", sa.String(length=100), nullable=True),
        sa.Column("contact_email", sa.String(length=100), nullable=True),
        sa.Column("contact_phone", sa.String(length=20), nullable=True),
        sa.Column("estimated_value", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("probability", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("stage", sa.String(length=50), nullable=False, server_default="gathering_requirement"),
        sa.Column("source", sa.String(length=30), nullable=True),
        sa.Column("proposal_date", sa.Date(), nullable=True),
        sa.Column("expected_close_date", sa.Date(), nullable=True),
        sa.Column("actual_close_date", sa.Date(), nullable=True),
        sa.Column("loss_reason", sa.String(length=200), nullable=True),
        sa.Column("loss_details", sa.Text(), nullable=True),
        sa.Column("win_factors", sa.Text(), nullable=True),
        sa.Column("competitor", sa.String(length=200), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        indexes=("stage",),
    )
    _create(
        existing, "lead_history",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("lead_id", sa.Integer(), nullable=False),
        sa.Column("previous_stage", sa.String(length=50), nullable=True),
        sa.Column("new_stage", sa.String(length=50), nullable=False),
        sa.Column("changed_by", sa.String(length=100), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["lead_id"], ["leads.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        indexes=("lead_id",),
    )

    # ── Team ─────────────────────────────────────────────────────────────
    _create(
        existing, "squads",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "name", name="uq_squad_tenant_name"),
    )
    _create(
        existing, "team_members",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=100), nullable=True),
        sa.Column("position", sa.String(length=100), nullable=True),
        sa.Column("squad", sa.String(length=100), nullable=True),
        sa.Column("supervisor", sa.String(length=100), nullable=True),
        sa.Column("employment_status", sa.String(length=20), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint("id"),
    )
    _create(
        existing, "project_team_allocations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("team_member_id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=True),
        sa.Column("month", sa.String(length=50), nullable=False),
        sa.Column("allocation_percentage", sa.Integer(), nullable=False, server_default="100"),
        sa.Column("role_in_project", sa.String(length=100), nullable=True),
        sa.Column("cost_type", sa.String(length=10), nullable=False, server_default="hpp"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["team_member_id"], ["team_members.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "tenant_id", "team_member_id", "month", "cost_type",
            name="uq_allocation_member_month_cost_type",
        ),
        indexes=("team_member_id", "project_id", "month"),
    )
    _create(
        existing, "team_member_esat",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("team_member_id", sa.Integer(), nullable=False),
        sa.Column("month", sa.String(length=50), nullable=False),
        sa.Column("esat_score", sa.Float(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["team_member_id"], ["team_members.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        indexes=("team_member_id", "month"),
    )
    _create(
        existing, "daily_tasks",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("team_member_id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=True),
        sa.Column("task_date", sa.Date(), nullable=False),
        sa.Column("task_name", sa.String(length=500), nullable=False),
        sa.Column("duration", sa.Float(), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["team_member_id"], ["team_members.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        indexes=("team_member_id", "task_date"),
    )

    # ── Surveys ──────────────────────────────────────────────────────────
    _create(
        existing, "survey_data",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("csat", sa.Float(), nullable=True),
        sa.Column("esat", sa.Float(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        indexes=("date",),
    )
    _create(
        existing, "csat_surveys",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("reviewer_name", sa.String(length=100), nullable=False),
        sa.Column("reviewer_role", sa.String(length=100), nullable=True),
        sa.Column("public_token", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("public_token"),
        indexes=("project_id",),
    )
    _create(
        existing, "csat_responses",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("survey_id", sa.Integer(), nullable=False),
        sa.Column("csat_score", sa.Integer(), nullable=False),
        sa.Column("feedback", sa.Text(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["survey_id"], ["csat_surveys.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        indexes=("survey_id",),
    )
    _create(
        existing, "esat_surveys",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("period", sa.String(length=50), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("access_token", sa.String(length=64), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("access_token"),
    )
    _create(
        existing, "esat_responses",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("survey_id", sa.Integer(), nullable=False),
        sa.Column("respondent_name", sa.String(length=100), nullable=False),
        sa.Column("respondent_position", sa.String(length=100), nullable=True),
        sa.Column("respondent_squad", sa.String(length=100), nullable=True),
        sa.Column("is_complete", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["survey_id"], ["esat_surveys.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        indexes=("survey_id",),
    )
    _create(
        existing, "esat_answers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("response_id", sa.Integer(), nullable=False),
        sa.Column("question_code", sa.String(length=30), nullable=False),
        sa.Column("category", sa.String(length=30), nullable=False),
        sa.Column("answer_value", sa.Integer(), nullable=True),
        sa.Column("answer_text", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["response_id"], ["esat_responses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("response_id", "question_code", name="uq_esat_answer_question"),
        indexes=("response_id",),
    )

    # ── Knowledge base ───────────────────────────────────────────────────
    _create(
        existing, "documents",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("category", sa.String(length=20), nullable=False, server_default="other"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("public_slug", sa.String(length=16), nullable=True),
        sa.Column("created_by", sa.String(length=100), nullable=True),
        sa.Column("updated_by", sa.String(length=100), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("public_slug"),
        indexes=("category", "status"),
    )
    _create(
        existing, "document_versions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("document_id", sa.Integer(), nullable=False),
        sa.Column("version_number", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("change_notes", sa.Text(), nullable=True),
        sa.Column("edited_by", sa.String(length=100), nullable=True),
        sa.ForeignKeyConstraint(["document_id"], ["documents.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("document_id", "version_number", name="uq_document_version"),
        indexes=("document_id",),
    )
    _create(
        existing, "document_faqs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("document_id", sa.Integer(), nullable=False),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("answer", sa.Text(), nullable=False),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(["document_id"], ["documents.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        indexes=("document_id",),
    )
    _create(
        existing, "document_attachments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("document_id", sa.Integer(), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("storage_path", sa.String(length=255), nullable=False),
        sa.Column("content_type", sa.String(length=100), nullable=True),
        sa.Column("size_bytes", sa.Integer(), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(["document_id"], ["documents.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("storage_path"),
        indexes=("document_id",),
    )


# Children before parents.
_DROP_ORDER = (
    "document_attachments", "document_faqs", "document_versions", "documents",
    "esat_answers", "esat_responses", "esat_surveys",
    "csat_responses", "csat_surveys", "survey_data",
    "daily_tasks", "team_member_esat", "project_team_allocations", "team_members", "squads",
    "lead_history", "leads",
    "opex_consumptions", "opex_budgets", "monthly_financials",
    "project_revenues", "projects",
    "tenants",
)


def downgrade():
    bind = op.get_bind()
    existing = set(sa_inspect(bind).get_table_names())
    for name in _DROP_ORDER:
        if name in existing:
            op.drop_table(name)
