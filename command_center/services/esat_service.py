"""
ESAT survey service — admin CRUD, the public token flow and results.

Public flow (no login, survey reached by its ``access_token``):
    1. get_public_survey(token)          closed -> GoneError, not active -> ForbiddenError
    2. start_response(token, respondent)
    3. save_answer(token, response_id, answer)   upsert on (response, question_code)
    4. submit_response(token, response_id)       marks complete + submitted_at
  or submit_all(token, payload) to do 2-4 in one request.

A response that has been submitted is read-only; further answers or a second
submit raise ConflictError.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone

from sqlalchemy import select

from command_center.core.exceptions import ConflictError, ForbiddenError, GoneError, NotFoundError, ValidationError
from command_center.models import db
from command_center.models.survey import EsatAnswer, EsatResponse, EsatSurvey
from command_center.services import esat_analytics
from command_center.services.validation import require_object, validate
from command_center.utils.helpers import commit_or_raise, get_for_tenant

logger = logging.getLogger(__name__)

MAX_TEXT_ANSWER = 2000
LIKERT_RANGE_MESSAGE = "Answer must be a whole number from 1 to 5"


def _new_token() -> str:
    return secrets.token_urlsafe(24)


# ═════════════════════════════════════════════════════════════════════════
# Admin CRUD
# ═════════════════════════════════════════════════════════════════════════


def list_surveys(tenant_id: int, status: str | None = None) -> list[dict]:
    stmt = select(EsatSurvey).where(EsatSurvey.tenant_id == tenant_id)
    if status:
        stmt = stmt.where(EsatSurvey.status == status)
    rows = db.session.execute(
        stmt.order_by(EsatSurvey.created_at.desc(), EsatSurvey.id.desc())
    ).scalars().all()
    return [s.to_dict() for s in rows]


def get_survey(tenant_id: int, survey_id: int) -> dict:
    return get_for_tenant(EsatSurvey, survey_id, tenant_id, label="ESAT survey").to_dict()


def _check_dates(survey: EsatSurvey) -> None:
    if survey.start_date and survey.end_date and survey.end_date < survey.start_date:
        raise ValidationError(
            "End date cannot be before start date",
            details={"end_date": "End date cannot be before start date"},
        )


def create_survey(tenant_id: int, data: dict) -> dict:
    fields = validate("esat_survey", data)
    survey = EsatSurvey(tenant_id=tenant_id, access_token=_new_token(), **fields)
    _check_dates(survey)
    db.session.add(survey)
    commit_or_raise("EsatSurvey")
    logger.info("ESAT survey created", extra={"tenant_id": tenant_id})
    return survey.to_dict()


def update_survey(tenant_id: int, survey_id: int, data: dict) -> dict:
    survey = get_for_tenant(EsatSurvey, survey_id, tenant_id, label="ESAT survey")
    for key, value in validate("esat_survey", data, partial=True).items():
        setattr(survey, key, value)
    _check_dates(survey)
    commit_or_raise("EsatSurvey")
    logger.info("ESAT survey updated", extra={"tenant_id": tenant_id, "status": survey.status})
    return survey.to_dict()


def delete_survey(tenant_id: int, survey_id: int) -> None:
    survey = get_for_tenant(EsatSurvey, survey_id, tenant_id, label="ESAT survey")
    db.session.delete(survey)
    commit_or_raise("EsatSurvey")
    logger.info("ESAT survey deleted", extra={"tenant_id": tenant_id})


def survey_results(tenant_id: int, survey_id: int) -> dict:
    """Responses with answers and completion, category averages, overall score."""
    survey = get_for_tenant(EsatSurvey, survey_id, tenant_id, label="ESAT survey")
    responses = db.session.execute(
        select(EsatResponse)
        .where(EsatResponse.survey_id == survey.id)
        .order_by(EsatResponse.created_at.desc(), EsatResponse.id.desc())
    ).scalars().all()
    response_dicts = [r.to_dict() for r in responses]
    answers = [a.to_dict() for r in responses for a in r.answers]

    detailed = []
    for item in esat_analytics.responses_with_answers(response_dicts, answers):
        detailed.append({
            **item["response"],
            "answers": item["answers"],
            "completion": esat_analytics.response_completion(item["answers"]),
        })

    overall = esat_analytics.overall_score(answers)
    return {
        "survey": survey.to_dict(),
        "response_count": len(responses),
        "responses": detailed,
        "category_averages": esat_analytics.all_category_averages(answers),
        "overall_score": overall,
        "score_band": esat_analytics.score_band(overall) if answers else None,
        "completion_rate": esat_analytics.completion_rate(response_dicts),
    }


# ═════════════════════════════════════════════════════════════════════════
# Public token flow
# ═════════════════════════════════════════════════════════════════════════


def _survey_by_token(token: str) -> EsatSurvey:
    survey = db.session.execute(
        select(EsatSurvey).where(EsatSurvey.access_token == token)
    ).scalar_one_or_none()
    if survey is None:
        raise NotFoundError("ESAT survey")
    return survey


def _open_survey(token: str) -> EsatSurvey:
    survey = _survey_by_token(token)
    if survey.status == "closed":
        raise GoneError("This survey has been closed. Thank you for your interest.")
    if survey.status != "active":
        raise ForbiddenError("This survey is not currently active.")
    return survey


def _open_response(survey: EsatSurvey, response_id) -> EsatResponse:
    response = db.session.get(EsatResponse, response_id) if response_id is not None else None
    if response is None or response.survey_id != survey.id:
        raise NotFoundError("ESAT response", response_id)
    if response.is_complete:
        raise ConflictError("EsatResponse", "is_complete", "true")
    return response


def get_public_survey(token: str) -> dict:
    survey = _open_survey(token)
    return {
        "survey": survey.to_dict_public(),
        **esat_analytics.catalogue(),
    }


def start_response(token: str, data: dict) -> dict:
    survey = _open_survey(token)
    fields = validate("esat_respondent", data)
    response = EsatResponse(tenant_id=survey.tenant_id, survey_id=survey.id, **fields)
    db.session.add(response)
    commit_or_raise("EsatResponse")
    logger.info("ESAT response started", extra={"tenant_id": survey.tenant_id})
    return response.to_dict()


def _clean_answer(data: dict) -> dict:
    """Validate one answer against the question catalogue."""
    code = str(data.get("question_code") or "")
    question = esat_analytics.QUESTIONS_BY_CODE.get(code)
    if question is None:
        raise ValidationError(f"Unknown question: {code}", details={"question_code": "unknown question"})

    if question["type"] == "likert":
        value = data.get("answer_value")
        if isinstance(value, bool) or not isinstance(value, int) or not (
            esat_analytics.LIKERT_MIN <= value <= esat_analytics.LIKERT_MAX
        ):
            raise ValidationError(LIKERT_RANGE_MESSAGE, details={code: LIKERT_RANGE_MESSAGE})
        return {"question_code": code, "category": question["category"],
                "answer_value": value, "answer_text": None}

    raw_text = data.get("answer_text")
    if raw_text is not None and not isinstance(raw_text, str):
        raise ValidationError("Answer must be text", details={code: "must be text"})
    text = (raw_text or "").strip()
    if len(text) > MAX_TEXT_ANSWER:
        raise ValidationError(
            "Answer too long", details={code: f"max {MAX_TEXT_ANSWER} characters"},
        )
    return {"question_code": code, "category": question["category"],
            "answer_value": None, "answer_text": text or None}


def _stage_answer(response: EsatResponse, answer: dict) -> EsatAnswer:
    existing = db.session.execute(
        select(EsatAnswer).where(
            EsatAnswer.response_id == response.id,
            EsatAnswer.question_code == answer["question_code"],
        )
    ).scalar_one_or_none()
    if existing is not None:
        existing.answer_value = answer["answer_value"]
        existing.answer_text = answer["answer_text"]
        return existing
    row = EsatAnswer(tenant_id=response.tenant_id, response_id=response.id, **answer)
    db.session.add(row)
    return row


def save_answer(token: str, response_id: int, data: dict) -> dict:
    survey = _open_survey(token)
    response = _open_response(survey, response_id)
    row = _stage_answer(response, _clean_answer(data))
    commit_or_raise("EsatAnswer", "question_code", row.question_code)
    return row.to_dict()


def submit_response(token: str, response_id: int) -> dict:
    survey = _open_survey(token)
    response = _open_response(survey, response_id)
    response.is_complete = True
    response.submitted_at = datetime.now(timezone.utc)
    commit_or_raise("EsatResponse")
    logger.info("ESAT response submitted", extra={"tenant_id": survey.tenant_id})
    result = response.to_dict(include_answers=True)
    result["completion"] = esat_analytics.response_completion(result["answers"])
    return result


def submit_all(token: str, data: dict) -> dict:
    """Create, answer and submit a response in one request.

    Body: { respondent_name, respondent_position?, respondent_squad?,
            answers: [{question_code, answer_value? , answer_text?}, ...] }
    """
    survey = _open_survey(token)
    fields = validate("esat_respondent", data)
    raw_answers = data.get("answers") or []
    if not isinstance(raw_answers, list):
        raise ValidationError("answers must be a list", details={"answers": "must be a list"})
    cleaned = {}
    for idx, item in enumerate(raw_answers):
        answer = _clean_answer(require_object(item, f"answers[{idx}]"))
        cleaned[answer["question_code"]] = answer

    response = EsatResponse(
        tenant_id=survey.tenant_id,
        survey_id=survey.id,
        is_complete=True,
        submitted_at=datetime.now(timezone.utc),
        **fields,
    )
    db.session.add(response)
    db.session.flush()
    for answer in cleaned.values():
        db.session.add(EsatAnswer(tenant_id=survey.tenant_id, response_id=response.id, **answer))
    commit_or_raise("EsatResponse")
    logger.info(
        "ESAT response submitted in one shot",
        extra={"tenant_id": survey.tenant_id, "answers": len(cleaned)},
    )
    result = response.to_dict(include_answers=True)
    result["completion"] = esat_analytics.response_completion(result["answers"])
    return result
