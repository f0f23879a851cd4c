"""
TenantModel — Abstract base class for tenant-scoped models.

Every business table (projects, leads, team, surveys, documents) inherits
from TenantModel instead of db.Model directly. This adds:
  - tenant_id FK column with index
  - created_at / updated_at timestamps
  - query_for_tenant(tenant_id) classmethod
"""

from datetime import datetime, timezone

from command_center.models import db


def utcnow():
    return datetime.now(timezone.utc)


def iso(value):
    """Serialize a date/datetime column value (None-safe)."""
    return value.isoformat() if value else None


def amount_value(value):
    """Serialize a Numeric money column: int when whole, float otherwise."""
    if value is None:
        return None
    number = float(value)
    return int(number) if number.is_integer() else number


class TenantModel(db.Model):
    """Abstract base for tenant-scoped tables."""
    __abstract__ = True

    tenant_id = db.Column(
        db.Integer,
        db.ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    @classmethod
    def query_for_tenant(cls, tenant_id):
        """Return a query filtered by tenant_id."""
        return cls.query.filter_by(tenant_id=tenant_id)
