"""
Survey blueprint — aggregate CSAT/ESAT data points and CSAT surveys (admin side).

The reviewer-facing CSAT form lives in public_bp.

Routes:
    GET    /api/v1/surveys/data              — list data points, newest first
    POST   /api/v1/surveys/data              — record { date, csat?, esat? }
    PUT    /api/v1/surveys/data/<id>         — update
    DELETE /api/v1/surveys/data/<id>         — delete

    GET    /api/v1/surveys/csat              — surveys with responses (?project_id=)
    POST   /api/v1/surveys/csat              — { project_id, reviewers: [{name, role?}] }
    GET    /api/v1/surveys/csat/average      — average score (?project_id=)
    DELETE /api/v1/surveys/csat/<id>         — delete survey
"""

from flask import Blueprint, jsonify, request

from command_center.blueprints import json_body, tenant_id
from command_center.services import survey_service

survey_bp = Blueprint("survey", __name__, url_prefix="/api/v1/surveys")


@survey_bp.route("/data", methods=["GET"])
def list_data():
    return jsonify(survey_service.list_survey_data(tenant_id()))


@survey_bp.route("/data", methods=["POST"])
def create_data():
    return jsonify(survey_service.create_survey_data(tenant_id(), json_body())), 201


@survey_bp.route("/data/<int:record_id>", methods=["PUT", "PATCH"])
def update_data(record_id):
    return jsonify(survey_service.update_survey_data(tenant_id(), record_id, json_body()))


@survey_bp.route("/data/<int:record_id>", methods=["DELETE"])
def delete_data(record_id):
    survey_service.delete_survey_data(tenant_id(), record_id)
    return "", 204


@survey_bp.route("/csat", methods=["GET"])
def list_csat():
    return jsonify(survey_service.list_csat_surveys(
        tenant_id(), project_id=request.args.get("project_id", type=int),
    ))


@survey_bp.route("/csat", methods=["POST"])
def create_csat():
    return jsonify(survey_service.create_csat_surveys(tenant_id(), json_body())), 201


@survey_bp.route("/csat/average", methods=["GET"])
def csat_average():
    return jsonify(survey_service.csat_average(
        tenant_id(), project_id=request.args.get("project_id", type=int),
    ))


@survey_bp.route("/csat/<int:survey_id>", methods=["DELETE"])
def delete_csat(survey_id):
    survey_service.delete_csat_survey(tenant_id(), survey_id)
    return "", 204
