"""Shared utility functions used by services and blueprints.

get_for_tenant:  tenant-scoped primary-key lookup that raises NotFoundError
parse_date:      lenient date parsing (returns None on bad input)
parse_date_input: strict date parsing (raises ValueError on bad input)
commit_or_raise: commit the session, turning IntegrityError into ConflictError
round_half_up:   decimal rounding with halves away from zero (not banker's rounding)
"""
import logging
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.exc import IntegrityError

from command_center.core.exceptions import ConflictError, NotFoundError
from command_center.models import db

logger = logging.getLogger(__name__)


def get_for_tenant(model, pk, tenant_id, label=None):
    """Fetch a tenant-owned row by primary key.

    Rows belonging to another tenant are reported exactly like missing
    rows (NotFoundError).
    """
    label = label or model.__name__
    obj = db.session.get(model, pk) if pk is not None else None
    if obj is None or obj.tenant_id != tenant_id:
        raise NotFoundError(resource=label, resource_id=pk, tenant_id=tenant_id)
    return obj


def parse_date(value):
    """Parse a date string (ISO or DD.MM.YYYY) to a date object.

    Returns None for empty/invalid input. Supports:
    - YYYY-MM-DD
    - YYYY-MM-DDTHH:MM:SS (datetime ISO -> .date())
    - DD.MM.YYYY
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except (ValueError, TypeError):
        pass
    try:
        return datetime.fromisoformat(str(value)).date()
    except (ValueError, TypeError):
        pass
    try:
        return datetime.strptime(str(value), "%d.%m.%Y").date()
    except (ValueError, TypeError):
        return None


def parse_date_input(value):
    """Parse a date string, raising ValueError on bad input.

    Same as parse_date() but raises instead of returning None, so
    validators can report the offending field.
    """
    if value in (None, ""):
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError("Invalid date format. Use YYYY-MM-DD or DD.MM.YYYY.")
    return parsed


def commit_or_raise(resource: str, field: str = "id", value=None):
    """Commit the current session.

    IntegrityError rolls back and is re-raised as ConflictError so the
    caller's prior state is untouched and the API answers 409.
    """
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Integrity error on commit (%s): %s", resource, exc.orig)
        raise ConflictError(resource=resource, field=field, value=value) from exc


def round_half_up(value: float, places: int = 0) -> float:
    """Round ``value`` to ``places`` decimals, 0.5 always rounding up."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))
