"""
Finance models — monthly P&L figures and the OPEX budget.

Models:
    - MonthlyFinancial: revenue / OPEX / COGS for one calendar month
    - OpexBudget: one budget line with twelve monthly amounts
    - OpexConsumption: spend booked against a budget line for a quarter
"""

from command_center.models import db
from command_center.models.base import TenantModel, iso

MONTH_COLUMNS = ("jan", "feb", "mar", "apr", "may", "jun",
                 "jul", "aug", "sep", "oct", "nov", "dec")


class MonthlyFinancial(TenantModel):
    __tablename__ = "monthly_financials"

    id = db.Column(db.Integer, primary_key=True)
    month = db.Column(db.String(50), nullable=False)
    year = db.Column(db.Integer, nullable=False)
    revenue = db.Column(db.BigInteger, nullable=False, default=0)
    opex = db.Column(db.BigInteger, nullable=False, default=0)
    cogs = db.Column(db.BigInteger, nullable=False, default=0)

    def to_dict(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "month": self.month,
            "year": self.year,
            "revenue": self.revenue,
            "opex": self.opex,
            "cogs": self.cogs,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }


class OpexBudget(TenantModel):
    __tablename__ = "opex_budgets"

    id = db.Column(db.Integer, primary_key=True)
    year = db.Column(db.Integer, nullable=False, index=True)
    description = db.Column(db.String(200), nullable=False)
    squad = db.Column(db.String(100))
    okr = db.Column(db.String(200))
    kpi = db.Column(db.String(200))
    account = db.Column(db.String(100))
    jan = db.Column(db.BigInteger, nullable=False, default=0)
    feb = db.Column(db.BigInteger, nullable=False, default=0)
    mar = db.Column(db.BigInteger, nullable=False, default=0)
    apr = db.Column(db.BigInteger, nullable=False, default=0)
    may = db.Column(db.BigInteger, nullable=False, default=0)
    jun = db.Column(db.BigInteger, nullable=False, default=0)
    jul = db.Column(db.BigInteger, nullable=False, default=0)
    aug = db.Column(db.BigInteger, nullable=False, default=0)
    sep = db.Column(db.BigInteger, nullable=False, default=0)
    oct = db.Column(db.BigInteger, nullable=False, default=0)
    nov = db.Column(db.BigInteger, nullable=False, default=0)
    dec = db.Column(db.BigInteger, nullable=False, default=0)

    consumptions = db.relationship(
        "OpexConsumption", back_populates="budget",
        cascade="all, delete-orphan", lazy="select",
    )

    def quarter_budget(self, quarter: str) -> int:
        """Sum of the three monthly amounts making up Q1..Q4."""
        idx = int(quarter[1]) - 1
        months = MONTH_COLUMNS[idx * 3: idx * 3 + 3]
        return sum(getattr(self, m) or 0 for m in months)

    def to_dict(self):
        d = {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "year": self.year,
            "description": self.description,
            "squad": self.squad,
            "okr": self.okr,
            "kpi": self.kpi,
            "account": self.account,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
        for m in MONTH_COLUMNS:
            d[m] = getattr(self, m)
        return d


class OpexConsumption(TenantModel):
    __tablename__ = "opex_consumptions"

    id = db.Column(db.Integer, primary_key=True)
    opex_budget_id = db.Column(
        db.Integer, db.ForeignKey("opex_budgets.id", ondelete="SET NULL"),
        nullable=True, index=True,
    )
    year = db.Column(db.Integer, nullable=False)
    quarter = db.Column(db.String(2), nullable=False, comment="Q1 | Q2 | Q3 | Q4")
    allocation_description = db.Column(db.String(200), nullable=False)
    usage_description = db.Column(db.Text)
    amount = db.Column(db.BigInteger, nullable=False, default=0)

    budget = db.relationship("OpexBudget", back_populates="consumptions")

    def to_dict(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "opex_budget_id": self.opex_budget_id,
            "year": self.year,
            "quarter": self.quarter,
            "allocation_description": self.allocation_description,
            "usage_description": self.usage_description,
            "amount": self.amount,
            "created_at": iso(self.created_at),
        }
