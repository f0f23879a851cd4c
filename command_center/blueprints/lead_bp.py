"""
Lead blueprint — sales pipeline.

Routes:
    GET    /api/v1/leads                  — list (?stage=, ?q=, limit/offset)
    POST   /api/v1/leads                  — create (changed_by? records initial history)
    GET    /api/v1/leads/pipeline-stats   — pipeline value, win rate, stage distribution
    GET    /api/v1/leads/<id>             — get
    PUT    /api/v1/leads/<id>             — update (changed_by?, history_notes?)
    DELETE /api/v1/leads/<id>             — delete
    GET    /api/v1/leads/<id>/history     — stage history, newest first
    POST   /api/v1/leads/<id>/history     — add manual history entry
"""

from flask import Blueprint, jsonify, request

from command_center.blueprints import json_body, paginate_list, tenant_id
from command_center.services import lead_service

lead_bp = Blueprint("lead", __name__, url_prefix="/api/v1/leads")


@lead_bp.route("", methods=["GET"])
def list_leads():
    leads = lead_service.list_leads(
        tenant_id(),
        stage=request.args.get("stage"),
        q=request.args.get("q"),
    )
    return jsonify(paginate_list(leads))


@lead_bp.route("", methods=["POST"])
def create_lead():
    return jsonify(lead_service.create_lead(tenant_id(), json_body())), 201


@lead_bp.route("/pipeline-stats", methods=["GET"])
def pipeline_stats():
    return jsonify(lead_service.pipeline_stats(tenant_id()))


@lead_bp.route("/<int:lead_id>", methods=["GET"])
def get_lead(lead_id):
    return jsonify(lead_service.get_lead(tenant_id(), lead_id))


@lead_bp.route("/<int:lead_id>", methods=["PUT", "PATCH"])
def update_lead(lead_id):
    return jsonify(lead_service.update_lead(tenant_id(), lead_id, json_body()))


@lead_bp.route("/<int:lead_id>", methods=["DELETE"])
def delete_lead(lead_id):
    lead_service.delete_lead(tenant_id(), lead_id)
    return "", 204


@lead_bp.route("/<int:lead_id>/history", methods=["GET"])
def list_history(lead_id):
    return jsonify(lead_service.list_history(tenant_id(), lead_id))


@lead_bp.route("/<int:lead_id>/history", methods=["POST"])
def add_history(lead_id):
    data = {**json_body(), "lead_id": lead_id}
    return jsonify(lead_service.add_history(tenant_id(), data)), 201
