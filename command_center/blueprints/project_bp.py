"""
Project blueprint — projects, revenue entries, per-project financials.

Every route is scoped to the tenant resolved by the tenant context
middleware (X-Tenant-ID header or tenant_id parameter).

Routes:
    GET    /api/v1/projects                      — list (?status=, limit/offset)
    POST   /api/v1/projects                      — create
    GET    /api/v1/projects/<id>                 — get
    PUT    /api/v1/projects/<id>                 — update (partial)
    DELETE /api/v1/projects/<id>                 — delete
    GET    /api/v1/projects/<id>/financials      — revenue total, margin, budget variance
    GET    /api/v1/projects/<id>/revenues        — revenue entries
    POST   /api/v1/projects/<id>/revenues        — add revenue entry
    DELETE /api/v1/projects/revenues/<rid>       — delete revenue entry
"""

from flask import Blueprint, jsonify, request

from command_center.blueprints import json_body, paginate_list, tenant_id
from command_center.services import project_service

project_bp = Blueprint("project", __name__, url_prefix="/api/v1/projects")


@project_bp.route("", methods=["GET"])
def list_projects():
    projects = project_service.list_projects(tenant_id(), status=request.args.get("status"))
    return jsonify(paginate_list(projects))


@project_bp.route("", methods=["POST"])
def create_project():
    return jsonify(project_service.create_project(tenant_id(), json_body())), 201


@project_bp.route("/<int:project_id>", methods=["GET"])
def get_project(project_id):
    return jsonify(project_service.get_project(tenant_id(), project_id))


@project_bp.route("/<int:project_id>", methods=["PUT", "PATCH"])
def update_project(project_id):
    return jsonify(project_service.update_project(tenant_id(), project_id, json_body()))


@project_bp.route("/<int:project_id>", methods=["DELETE"])
def delete_project(project_id):
    project_service.delete_project(tenant_id(), project_id)
    return "", 204


@project_bp.route("/<int:project_id>/financials", methods=["GET"])
def project_financials(project_id):
    return jsonify(project_service.project_financials(tenant_id(), project_id))


@project_bp.route("/<int:project_id>/revenues", methods=["GET"])
def list_revenues(project_id):
    project_service.get_project(tenant_id(), project_id)
    return jsonify(project_service.list_revenues(tenant_id(), project_id))


@project_bp.route("/<int:project_id>/revenues", methods=["POST"])
def add_revenue(project_id):
    data = {**json_body(), "project_id": project_id}
    return jsonify(project_service.add_revenue(tenant_id(), data)), 201


@project_bp.route("/revenues/<int:revenue_id>", methods=["DELETE"])
def delete_revenue(revenue_id):
    project_service.delete_revenue(tenant_id(), revenue_id)
    return "", 204
