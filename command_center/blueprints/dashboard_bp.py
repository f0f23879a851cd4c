"""
Dashboard blueprint — the command-center landing summary.

Routes:
    GET /api/v1/dashboard   — project status counts, financial totals, latest
                              survey point, lead pipeline, team capacity
                              (?year= for financials, ?month= for capacity)
"""

from flask import Blueprint, jsonify, request

from command_center.blueprints import tenant_id
from command_center.services import dashboard_service

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/v1/dashboard")


@dashboard_bp.route("", methods=["GET"])
def overview():
    return jsonify(dashboard_service.overview(
        tenant_id(),
        year=request.args.get("year", type=int),
        month=request.args.get("month"),
    ))
