"""
Survey service — aggregate CSAT/ESAT data points and client CSAT surveys.

CSAT surveys are created in bulk, one per reviewer, for a project. Each gets
a random ``public_token``; the reviewer opens the public link, sees the
project name, and submits a 1-5 star score with optional feedback. The
first submission marks the survey ``completed``; any later submission is a
ConflictError (409).
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from command_center.core.exceptions import ConflictError, NotFoundError, ValidationError
from command_center.models import db
from command_center.models.project import Project
from command_center.models.survey import CsatResponse, CsatSurvey, SurveyData
from command_center.services.validation import text, validate
from command_center.utils.helpers import commit_or_raise, get_for_tenant, round_half_up

logger = logging.getLogger(__name__)

_reviewer_name = text("Reviewer name", 100, required=True)
_reviewer_role = text("Reviewer role", 100)


# ═════════════════════════════════════════════════════════════════════════
# Aggregate survey data
# ═════════════════════════════════════════════════════════════════════════


def list_survey_data(tenant_id: int) -> list[dict]:
    rows = db.session.execute(
        select(SurveyData)
        .where(SurveyData.tenant_id == tenant_id)
        .order_by(SurveyData.date.desc(), SurveyData.id.desc())
    ).scalars().all()
    return [r.to_dict() for r in rows]


def latest_survey_data(tenant_id: int) -> dict | None:
    row = db.session.execute(
        select(SurveyData)
        .where(SurveyData.tenant_id == tenant_id)
        .order_by(SurveyData.date.desc(), SurveyData.id.desc())
        .limit(1)
    ).scalar_one_or_none()
    return row.to_dict() if row else None


def create_survey_data(tenant_id: int, data: dict) -> dict:
    fields = validate("survey_data", data)
    row = SurveyData(tenant_id=tenant_id, **fields)
    db.session.add(row)
    commit_or_raise("SurveyData")
    logger.info("Survey data recorded", extra={"tenant_id": tenant_id})
    return row.to_dict()


def update_survey_data(tenant_id: int, record_id: int, data: dict) -> dict:
    row = get_for_tenant(SurveyData, record_id, tenant_id, label="Survey data")
    for key, value in validate("survey_data", data, partial=True).items():
        setattr(row, key, value)
    commit_or_raise("SurveyData")
    logger.info("Survey data updated", extra={"tenant_id": tenant_id})
    return row.to_dict()


def delete_survey_data(tenant_id: int, record_id: int) -> None:
    row = get_for_tenant(SurveyData, record_id, tenant_id, label="Survey data")
    db.session.delete(row)
    commit_or_raise("SurveyData")
    logger.info("Survey data deleted", extra={"tenant_id": tenant_id})


# ═════════════════════════════════════════════════════════════════════════
# CSAT surveys (admin)
# ═════════════════════════════════════════════════════════════════════════


def create_csat_surveys(tenant_id: int, data: dict) -> list[dict]:
    """Create one pending survey per reviewer for a project.

    Body: { project_id, reviewers: [{name, role?}, ...] }
    """
    project_id = data.get("project_id")
    if project_id is None:
        raise ValidationError("Project is required", details={"project_id": "Project is required"})
    project = get_for_tenant(Project, project_id, tenant_id)

    reviewers = data.get("reviewers")
    if not isinstance(reviewers, list) or not reviewers:
        raise ValidationError(
            "At least one reviewer is required",
            details={"reviewers": "At least one reviewer is required"},
        )

    errors = {}
    cleaned = []
    for idx, reviewer in enumerate(reviewers):
        if not isinstance(reviewer, dict):
            errors[f"reviewers[{idx}]"] = "Reviewer must be an object with a name"
            continue
        try:
            cleaned.append((_reviewer_name(reviewer.get("name")), _reviewer_role(reviewer.get("role"))))
        except ValueError as exc:
            errors[f"reviewers[{idx}]"] = str(exc)
    if errors:
        raise ValidationError("; ".join(errors.values()), details=errors)

    surveys = []
    for name, role in cleaned:
        survey = CsatSurvey(
            tenant_id=tenant_id,
            project_id=project.id,
            reviewer_name=name,
            reviewer_role=role,
            public_token=secrets.token_urlsafe(24),
            status="pending",
        )
        db.session.add(survey)
        surveys.append(survey)
    commit_or_raise("CsatSurvey")
    logger.info(
        "CSAT surveys created",
        extra={"tenant_id": tenant_id, "project_id": project.id, "count": len(surveys)},
    )
    return [s.to_dict() for s in surveys]


def list_csat_surveys(tenant_id: int, project_id: int | None = None) -> list[dict]:
    """Surveys newest first, each with responses (newest first) and latest_response."""
    stmt = (
        select(CsatSurvey)
        .where(CsatSurvey.tenant_id == tenant_id)
        .options(selectinload(CsatSurvey.responses), selectinload(CsatSurvey.project))
    )
    if project_id is not None:
        stmt = stmt.where(CsatSurvey.project_id == project_id)
    rows = db.session.execute(
        stmt.order_by(CsatSurvey.created_at.desc(), CsatSurvey.id.desc())
    ).scalars().all()
    return [s.to_dict(include_responses=True) for s in rows]


def delete_csat_survey(tenant_id: int, survey_id: int) -> None:
    survey = get_for_tenant(CsatSurvey, survey_id, tenant_id, label="CSAT survey")
    db.session.delete(survey)
    commit_or_raise("CsatSurvey")
    logger.info("CSAT survey deleted", extra={"tenant_id": tenant_id})


def csat_average(tenant_id: int, project_id: int | None = None) -> dict:
    stmt = select(CsatResponse.csat_score).where(CsatResponse.tenant_id == tenant_id)
    if project_id is not None:
        stmt = stmt.join(CsatSurvey, CsatSurvey.id == CsatResponse.survey_id).where(
            CsatSurvey.project_id == project_id
        )
    scores = db.session.execute(stmt).scalars().all()
    return {
        "responses": len(scores),
        "average": round_half_up(sum(scores) / len(scores), 2) if scores else 0,
    }


# ═════════════════════════════════════════════════════════════════════════
# CSAT public flow
# ═════════════════════════════════════════════════════════════════════════


def _csat_by_token(token: str) -> CsatSurvey:
    survey = db.session.execute(
        select(CsatSurvey).where(CsatSurvey.public_token == token)
    ).scalar_one_or_none()
    if survey is None:
        raise NotFoundError("CSAT survey")
    return survey


def get_public_csat(token: str) -> dict:
    survey = _csat_by_token(token)
    return {
        "project_name": survey.project.name if survey.project else None,
        "reviewer_name": survey.reviewer_name,
        "reviewer_role": survey.reviewer_role,
        "status": survey.status,
    }


def submit_csat_response(token: str, data: dict) -> dict:
    survey = _csat_by_token(token)
    if survey.status == "completed":
        raise ConflictError("CsatSurvey", "status", "completed")
    fields = validate("csat_response", data)
    response = CsatResponse(
        tenant_id=survey.tenant_id,
        survey_id=survey.id,
        submitted_at=datetime.now(timezone.utc),
        **fields,
    )
    db.session.add(response)
    survey.status = "completed"
    commit_or_raise("CsatResponse")
    logger.info(
        "CSAT response submitted",
        extra={"tenant_id": survey.tenant_id, "project_id": survey.project_id},
    )
    return response.to_dict()
