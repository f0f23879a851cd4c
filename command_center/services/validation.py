"""
Field validation for every record the dashboard writes.

Each record type has a schema: a mapping of field name to a rule. A rule
takes the raw value (or ``MISSING`` when the key is absent) and returns the
cleaned value, or raises ValueError with a human-readable message.

    validate("lead", payload)                 # create: every field checked
    validate("lead", payload, partial=True)   # update: only present keys

Errors for all fields are collected and raised together as one
ValidationError whose ``details`` maps field -> message.
"""

from __future__ import annotations

from datetime import datetime

from email_validator import EmailNotValidError, validate_email

from command_center.core.exceptions import ValidationError
from command_center.models.finance import MONTH_COLUMNS
from command_center.models.knowledge import DOCUMENT_CATEGORIES, DOCUMENT_STATUSES
from command_center.models.sales import LEAD_SOURCES, LEAD_STAGES
from command_center.models.survey import ESAT_STATUSES
from command_center.models.team import COST_TYPES, EMPLOYMENT_STATUSES
from command_center.utils.helpers import parse_date_input

MISSING = object()

PROJECT_STATUSES = ("On Track", "At Risk", "Underperform")
QUARTERS = ("Q1", "Q2", "Q3", "Q4")

_MONTH_FORMATS = ("%Y-%m", "%b %Y", "%B %Y", "%Y-%m-%d")


# ---------------------------------------------------------------------------
# Month normalisation
# ---------------------------------------------------------------------------


def normalize_month(value) -> str:
    """Return a month as ``YYYY-MM``.

    Accepts ``2025-01``, ``Jan 2025``, ``January 2025`` and a full ISO date.
    Raises ValueError for anything else.
    """
    text = str(value).strip()
    for fmt in _MONTH_FORMATS:
        try:
            return datetime.strptime(text, fmt).strftime("%Y-%m")
        except ValueError:
            continue
    raise ValueError("must be a month like 2025-01 or Jan 2025")


def month_param(value, field: str = "month") -> str:
    """normalize_month for query parameters: raises ValidationError instead."""
    try:
        return normalize_month(value)
    except ValueError as exc:
        raise ValidationError(f"{field} {exc}", details={field: str(exc)}) from None


# ---------------------------------------------------------------------------
# Rule factories
# ---------------------------------------------------------------------------


def _blank(value) -> bool:
    return value is MISSING or value is None or (isinstance(value, str) and not value.strip())


def text(label, max_len, *, min_len=0, required=False):
    def rule(value):
        if _blank(value):
            if required:
                raise ValueError(f"{label} is required")
            return None
        if isinstance(value, (dict, list, bool)):
            raise ValueError(f"{label} must be text")
        value = str(value).strip()
        if len(value) < min_len:
            raise ValueError(f"{label} must be at least {min_len} characters")
        if len(value) > max_len:
            raise ValueError(f"{label} too long (max {max_len} characters)")
        return value
    return rule


def _to_number(label, value):
    if isinstance(value, bool):
        raise ValueError(f"{label} must be a number")
    if isinstance(value, (int, float)):
        return value
    try:
        return float(str(value).strip())
    except ValueError:
        raise ValueError(f"{label} must be a number") from None


def integer(label, *, minimum=None, maximum=None, default=MISSING):
    def rule(value):
        if _blank(value):
            if default is MISSING:
                raise ValueError(f"{label} is required")
            return default
        number = _to_number(label, value)
        if isinstance(number, float):
            if not number.is_integer():
                raise ValueError(f"{label} must be a whole number")
            number = int(number)
        if minimum is not None and number < minimum:
            raise ValueError(f"{label} cannot be less than {minimum}")
        if maximum is not None and number > maximum:
            raise ValueError(f"{label} cannot exceed {maximum}")
        return number
    return rule


def number(label, *, minimum=None, maximum=None, default=MISSING):
    def rule(value):
        if _blank(value):
            if default is MISSING:
                raise ValueError(f"{label} is required")
            return default
        result = float(_to_number(label, value))
        if minimum is not None and result < minimum:
            raise ValueError(f"{label} cannot be less than {minimum}")
        if maximum is not None and result > maximum:
            raise ValueError(f"{label} cannot exceed {maximum}")
        return result
    return rule


def choice(label, options, *, default=MISSING):
    def rule(value):
        if _blank(value):
            if default is MISSING:
                raise ValueError(f"{label} is required")
            return default
        if value not in options:
            raise ValueError(f"{label} must be one of: {', '.join(options)}")
        return value
    return rule


def boolean(label, *, default=True):
    def rule(value):
        if value is MISSING or value is None:
            return default
        if isinstance(value, bool):
            return value
        lowered = str(value).strip().lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no"):
            return False
        raise ValueError(f"{label} must be true or false")
    return rule


def email(label, max_len=100):
    def rule(value):
        if _blank(value):
            return None
        value = str(value).strip()
        if len(value) > max_len:
            raise ValueError(f"{label} too long (max {max_len} characters)")
        try:
            return validate_email(value, check_deliverability=False).normalized
        except EmailNotValidError:
            raise ValueError(f"Invalid {label.lower()} format") from None
    return rule


def date_field(label, *, required=False):
    def rule(value):
        if _blank(value):
            if required:
                raise ValueError(f"{label} is required")
            return None
        try:
            return parse_date_input(value)
        except ValueError:
            raise ValueError(f"{label} must be a date (YYYY-MM-DD)") from None
    return rule


def month(label, max_len=50):
    def rule(value):
        if _blank(value):
            raise ValueError(f"{label} is required")
        if len(str(value)) > max_len:
            raise ValueError(f"{label} too long (max {max_len} characters)")
        try:
            return normalize_month(value)
        except ValueError as exc:
            raise ValueError(f"{label} {exc}") from None
    return rule


def reference(label, *, required=True):
    """Foreign-key id: positive integer."""
    def rule(value):
        if _blank(value):
            if required:
                raise ValueError(f"{label} is required")
            return None
        if isinstance(value, bool):
            raise ValueError(f"Invalid {label.lower()}")
        try:
            ref = int(value)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid {label.lower()}") from None
        if ref <= 0:
            raise ValueError(f"Invalid {label.lower()}")
        return ref
    return rule


def _money(label):
    return integer(label, minimum=0, default=0)


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

SCHEMAS: dict[str, dict] = {
    "project": {
        "name": text("Project name", 200, required=True),
        "budget": _money("Budget"),
        "actual_cost": _money("Actual cost"),
        "cogs": _money("COGS"),
        "status": choice("Status", PROJECT_STATUSES, default="On Track"),
    },
    "monthly_financial": {
        "month": text("Month", 50, required=True),
        "year": integer("Year", minimum=2020, maximum=2100),
        "revenue": _money("Revenue"),
        "opex": _money("OPEX"),
        "cogs": _money("COGS"),
    },
    "survey_data": {
        "date": date_field("Date", required=True),
        "csat": number("CSAT", minimum=0, maximum=100),
        "esat": number("ESAT", minimum=0, maximum=100),
    },
    "team_member": {
        "name": text("Name", 100, required=True),
        "email": email("Email"),
        "position": text("Position", 100),
        "squad": text("Squad", 100),
        "supervisor": text("Supervisor", 100),
        "employment_status": choice("Employment status", EMPLOYMENT_STATUSES, default=None),
        "is_active": boolean("Active"),
    },
    "squad": {
        "name": text("Squad name", 100, required=True),
        "description": text("Description", 1000),
    },
    "daily_task": {
        "team_member_id": reference("Team member ID"),
        "task_date": date_field("Task date", required=True),
        "task_name": text("Task name", 500, required=True),
        "project_id": reference("Project ID", required=False),
        "duration": number("Duration", minimum=0, maximum=24, default=0.0),
        "notes": text("Notes", 1000),
    },
    "allocation": {
        "team_member_id": reference("Team member ID"),
        "project_id": reference("Project ID", required=False),
        "month": month("Month"),
        "allocation_percentage": integer("Allocation percentage", minimum=0, maximum=100),
        "role_in_project": text("Role", 100),
        "cost_type": choice("Cost type", COST_TYPES, default="hpp"),
        "notes": text("Notes", 1000),
    },
    "team_member_esat": {
        "team_member_id": reference("Team member ID"),
        "month": month("Month"),
        "esat_score": number("Score", minimum=0, maximum=100),
        "notes": text("Notes", 1000),
    },
    "lead": {
        "company_name": text("Company name", 200, required=True),
        "project_name": text("Project name", 200, required=True),
        "contact_person": text("Contact person", 100),
        "contact_email": email("Email"),
        "contact_phone": text("Phone number", 20),
        "estimated_value": _money("Estimated value"),
        "probability": integer("Probability", minimum=0, maximum=100, default=0),
        "stage": choice("Stage", LEAD_STAGES, default="gathering_requirement"),
        "source": choice("Source", LEAD_SOURCES, default="other"),
        "proposal_date": date_field("Proposal date"),
        "expected_close_date": date_field("Expected close date"),
        "actual_close_date": date_field("Close date"),
        "loss_reason": text("Loss reason", 200),
        "loss_details": text("Loss details", 2000),
        "win_factors": text("Win factors", 2000),
        "competitor": text("Competitor", 200),
        "notes": text("Notes", 5000),
    },
    "lead_history": {
        "lead_id": reference("Lead ID"),
        "previous_stage": text("Previous stage", 50),
        "new_stage": text("New stage", 50, required=True),
        "changed_by": text("Changed by", 100, required=True),
        "notes": text("Notes", 1000),
    },
    "project_revenue": {
        "project_id": reference("Project ID"),
        "amount": number("Amount", minimum=0),
        "date": date_field("Date", required=True),
        "note": text("Note", 1000),
    },
    "opex_budget": {
        "description": text("Description", 200, required=True),
        "year": integer("Year", minimum=2020, maximum=2100),
        "squad": text("Squad", 100),
        "okr": text("OKR", 200),
        "kpi": text("KPI", 200),
        "account": text("Account", 100),
        **{m: _money(m.capitalize()) for m in MONTH_COLUMNS},
    },
    "opex_consumption": {
        "opex_budget_id": reference("OPEX budget ID", required=False),
        "year": integer("Year", minimum=2020, maximum=2100),
        "quarter": choice("Quarter", QUARTERS),
        "allocation_description": text("Allocation description", 200, required=True),
        "usage_description": text("Usage description", 1000),
        "amount": integer("Amount", minimum=0),
    },
    "csat_response": {
        "csat_score": integer("Score", minimum=1, maximum=5),
        "feedback": text("Feedback", 2000),
    },
    "esat_survey": {
        "title": text("Title", 200, required=True),
        "description": text("Description", 2000),
        "period": text("Period", 50),
        "start_date": date_field("Start date"),
        "end_date": date_field("End date"),
        "status": choice("Status", ESAT_STATUSES, default="draft"),
    },
    "esat_respondent": {
        "respondent_name": text("Name", 100, required=True),
        "respondent_position": text("Position", 100),
        "respondent_squad": text("Squad", 100),
    },
    "document": {
        "title": text("Title", 255, required=True),
        "content": text("Content", 200_000),
        "category": choice("Category", DOCUMENT_CATEGORIES, default="other"),
        "status": choice("Status", DOCUMENT_STATUSES, default="draft"),
        "is_public": boolean("Public", default=False),
        "change_notes": text("Change notes", 1000),
        "edited_by": text("Editor", 100),
    },
    "document_faq": {
        "question": text("Question", 1000, required=True),
        "answer": text("Answer", 5000, required=True),
        "order_index": integer("Order", minimum=0, default=0),
    },
}


def validate(record: str, data: dict | None, *, partial: bool = False) -> dict:
    """Validate ``data`` against the named schema and return cleaned values.

    On create (``partial=False``) every field in the schema is checked and
    defaults are filled in. On update only the keys present in ``data`` are
    checked and returned.

    Raises:
        ValidationError: with ``details`` mapping each failing field to its message.
    """
    schema = SCHEMAS[record]
    if data is None:
        data = {}
    elif not isinstance(data, dict):
        raise ValidationError("Expected a JSON object", details={"body": "must be an object"})
    cleaned: dict = {}
    errors: dict = {}

    for field, rule in schema.items():
        if partial and field not in data:
            continue
        try:
            cleaned[field] = rule(data.get(field, MISSING))
        except ValueError as exc:
            errors[field] = str(exc)

    if errors:
        raise ValidationError("; ".join(errors.values()), details=errors)
    return cleaned


def clean(rule, value, field: str):
    """Run a single rule outside a schema, raising ValidationError keyed by ``field``."""
    try:
        return rule(MISSING if value is None else value)
    except ValueError as exc:
        raise ValidationError(str(exc), details={field: str(exc)}) from None


def require_object(item, field: str) -> dict:
    """Return ``item`` when it is a dict; list entries must be JSON objects."""
    if not isinstance(item, dict):
        raise ValidationError(f"{field} must be an object", details={field: "must be an object"})
    return item
