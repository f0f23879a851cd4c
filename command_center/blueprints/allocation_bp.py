"""
Allocation blueprint — monthly staffing of team members onto projects.

Routes:
    GET    /api/v1/allocations            — list (?month=, ?project_id=, ?team_member_id=)
    POST   /api/v1/allocations            — add; 201 when inserted, 200 when the
                                            (member, month, cost_type) row was updated
    POST   /api/v1/allocations/bulk       — same allocation for several members
    GET    /api/v1/allocations/summary    — per-month HPP/OPEX totals, grouping by project
    PUT    /api/v1/allocations/<id>       — update (partial)
    DELETE /api/v1/allocations/<id>       — delete
"""

from flask import Blueprint, jsonify, request

from command_center.blueprints import json_body, tenant_id
from command_center.services import allocation_service

allocation_bp = Blueprint("allocation", __name__, url_prefix="/api/v1/allocations")


@allocation_bp.route("", methods=["GET"])
def list_allocations():
    rows = allocation_service.list_allocations(
        tenant_id(),
        month=request.args.get("month"),
        project_id=request.args.get("project_id", type=int),
        team_member_id=request.args.get("team_member_id", type=int),
    )
    return jsonify(rows)


@allocation_bp.route("", methods=["POST"])
def add_allocation():
    allocation, created = allocation_service.add_allocation(tenant_id(), json_body())
    return jsonify({**allocation, "created": created}), 201 if created else 200


@allocation_bp.route("/bulk", methods=["POST"])
def bulk_add():
    return jsonify(allocation_service.bulk_add_allocations(tenant_id(), json_body())), 201


@allocation_bp.route("/summary", methods=["GET"])
def summary():
    return jsonify(allocation_service.allocation_summary(tenant_id(), request.args.get("month")))


@allocation_bp.route("/<int:allocation_id>", methods=["PUT", "PATCH"])
def update_allocation(allocation_id):
    return jsonify(allocation_service.update_allocation(tenant_id(), allocation_id, json_body()))


@allocation_bp.route("/<int:allocation_id>", methods=["DELETE"])
def delete_allocation(allocation_id):
    allocation_service.delete_allocation(tenant_id(), allocation_id)
    return "", 204
