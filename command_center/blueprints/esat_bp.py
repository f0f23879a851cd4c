"""
ESAT blueprint — employee satisfaction surveys (admin side).

Respondents use the token endpoints in public_bp.

Routes:
    GET    /api/v1/esat/questions              — question catalogue
    GET    /api/v1/esat/surveys                — list (?status=)
    POST   /api/v1/esat/surveys                — create (access_token generated)
    GET    /api/v1/esat/surveys/<id>           — get
    PUT    /api/v1/esat/surveys/<id>           — update (e.g. status draft -> active -> closed)
    DELETE /api/v1/esat/surveys/<id>           — delete
    GET    /api/v1/esat/surveys/<id>/results   — responses, category averages, overall score
"""

from flask import Blueprint, jsonify, request

from command_center.blueprints import json_body, tenant_id
from command_center.services import esat_analytics, esat_service

esat_bp = Blueprint("esat", __name__, url_prefix="/api/v1/esat")


@esat_bp.route("/questions", methods=["GET"])
def questions():
    return jsonify(esat_analytics.catalogue())


@esat_bp.route("/surveys", methods=["GET"])
def list_surveys():
    return jsonify(esat_service.list_surveys(tenant_id(), status=request.args.get("status")))


@esat_bp.route("/surveys", methods=["POST"])
def create_survey():
    return jsonify(esat_service.create_survey(tenant_id(), json_body())), 201


@esat_bp.route("/surveys/<int:survey_id>", methods=["GET"])
def get_survey(survey_id):
    return jsonify(esat_service.get_survey(tenant_id(), survey_id))


@esat_bp.route("/surveys/<int:survey_id>", methods=["PUT", "PATCH"])
def update_survey(survey_id):
    return jsonify(esat_service.update_survey(tenant_id(), survey_id, json_body()))


@esat_bp.route("/surveys/<int:survey_id>", methods=["DELETE"])
def delete_survey(survey_id):
    esat_service.delete_survey(tenant_id(), survey_id)
    return "", 204


@esat_bp.route("/surveys/<int:survey_id>/results", methods=["GET"])
def survey_results(survey_id):
    return jsonify(esat_service.survey_results(tenant_id(), survey_id))
