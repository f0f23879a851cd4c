"""
Satisfaction survey models.

Models:
    - SurveyData: aggregate CSAT/ESAT data point for a date
    - CsatSurvey: client satisfaction request sent to one reviewer
    - CsatResponse: the reviewer's star rating + feedback
    - EsatSurvey: employee satisfaction survey reachable via access_token
    - EsatResponse: one respondent's session on an EsatSurvey
    - EsatAnswer: one answer (Likert 1-5 or free text), unique per
      (response, question_code)
"""

from command_center.models import db
from command_center.models.base import TenantModel, iso

CSAT_STATUSES = ("pending", "completed")
ESAT_STATUSES = ("draft", "active", "closed")


class SurveyData(TenantModel):
    __tablename__ = "survey_data"

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, nullable=False, index=True)
    csat = db.Column(db.Float)
    esat = db.Column(db.Float)

    def to_dict(self):
        return {
            "id": self.id,
            "date": iso(self.date),
            "csat": self.csat,
            "esat": self.esat,
            "created_at": iso(self.created_at),
        }


class CsatSurvey(TenantModel):
    __tablename__ = "csat_surveys"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    reviewer_name = db.Column(db.String(100), nullable=False)
    reviewer_role = db.Column(db.String(100))
    public_token = db.Column(db.String(64), unique=True, nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False, default="pending")

    project = db.relationship("Project")
    responses = db.relationship(
        "CsatResponse", back_populates="survey",
        cascade="all, delete-orphan", lazy="select",
        order_by="CsatResponse.submitted_at.desc()",
    )

    def to_dict(self, include_responses=False):
        d = {
            "id": self.id,
            "project_id": self.project_id,
            "project_name": self.project.name if self.project else None,
            "reviewer_name": self.reviewer_name,
            "reviewer_role": self.reviewer_role,
            "public_token": self.public_token,
            "status": self.status,
            "created_at": iso(self.created_at),
        }
        if include_responses:
            responses = [r.to_dict() for r in self.responses]
            d["responses"] = responses
            d["latest_response"] = responses[0] if responses else None
        return d


class CsatResponse(TenantModel):
    __tablename__ = "csat_responses"

    id = db.Column(db.Integer, primary_key=True)
    survey_id = db.Column(
        db.Integer, db.ForeignKey("csat_surveys.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    csat_score = db.Column(db.Integer, nullable=False)
    feedback = db.Column(db.Text)
    submitted_at = db.Column(db.DateTime(timezone=True), nullable=False)

    survey = db.relationship("CsatSurvey", back_populates="responses")

    def to_dict(self):
        return {
            "id": self.id,
            "survey_id": self.survey_id,
            "csat_score": self.csat_score,
            "feedback": self.feedback,
            "submitted_at": iso(self.submitted_at),
        }


class EsatSurvey(TenantModel):
    __tablename__ = "esat_surveys"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    period = db.Column(db.String(50))
    start_date = db.Column(db.Date)
    end_date = db.Column(db.Date)
    status = db.Column(db.String(20), nullable=False, default="draft")
    access_token = db.Column(db.String(64), unique=True, nullable=False, index=True)

    responses = db.relationship(
        "EsatResponse", back_populates="survey",
        cascade="all, delete-orphan", lazy="select",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "period": self.period,
            "start_date": iso(self.start_date),
            "end_date": iso(self.end_date),
            "status": self.status,
            "access_token": self.access_token,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def to_dict_public(self):
        """Fields safe to show to an anonymous respondent."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "period": self.period,
            "status": self.status,
        }


class EsatResponse(TenantModel):
    __tablename__ = "esat_responses"

    id = db.Column(db.Integer, primary_key=True)
    survey_id = db.Column(
        db.Integer, db.ForeignKey("esat_surveys.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    respondent_name = db.Column(db.String(100), nullable=False)
    respondent_position = db.Column(db.String(100))
    respondent_squad = db.Column(db.String(100))
    is_complete = db.Column(db.Boolean, nullable=False, default=False)
    submitted_at = db.Column(db.DateTime(timezone=True))

    survey = db.relationship("EsatSurvey", back_populates="responses")
    answers = db.relationship(
        "EsatAnswer", back_populates="response",
        cascade="all, delete-orphan", lazy="select",
    )

    def to_dict(self, include_answers=False):
        d = {
            "id": self.id,
            "survey_id": self.survey_id,
            "respondent_name": self.respondent_name,
            "respondent_position": self.respondent_position,
            "respondent_squad": self.respondent_squad,
            "is_complete": self.is_complete,
            "submitted_at": iso(self.submitted_at),
            "created_at": iso(self.created_at),
        }
        if include_answers:
            d["answers"] = [a.to_dict() for a in self.answers]
        return d


class EsatAnswer(TenantModel):
    __tablename__ = "esat_answers"
    __table_args__ = (
        db.UniqueConstraint("response_id", "question_code", name="uq_esat_answer_question"),
    )

    id = db.Column(db.Integer, primary_key=True)
    response_id = db.Column(
        db.Integer, db.ForeignKey("esat_responses.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    question_code = db.Column(db.String(30), nullable=False)
    category = db.Column(db.String(30), nullable=False)
    answer_value = db.Column(db.Integer)
    answer_text = db.Column(db.Text)

    response = db.relationship("EsatResponse", back_populates="answers")

    def to_dict(self):
        return {
            "id": self.id,
            "response_id": self.response_id,
            "question_code": self.question_code,
            "category": self.category,
            "answer_value": self.answer_value,
            "answer_text": self.answer_text,
        }
