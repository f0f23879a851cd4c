"""
Finance blueprint — monthly financials, OPEX budget lines and consumption.

Routes:
    GET    /api/v1/finance/monthly                 — list (?year=)
    POST   /api/v1/finance/monthly                 — create
    PUT    /api/v1/finance/monthly/<id>            — update
    DELETE /api/v1/finance/monthly/<id>            — delete
    GET    /api/v1/finance/summary                 — totals, gross/net profit, margin (?year=)

    GET    /api/v1/finance/opex-budgets            — list (?year=)
    POST   /api/v1/finance/opex-budgets            — create
    PUT    /api/v1/finance/opex-budgets/<id>       — update
    DELETE /api/v1/finance/opex-budgets/<id>       — delete

    GET    /api/v1/finance/opex-consumptions       — list (?year=)
    POST   /api/v1/finance/opex-consumptions       — create
    PUT    /api/v1/finance/opex-consumptions/<id>  — update
    DELETE /api/v1/finance/opex-consumptions/<id>  — delete

    GET    /api/v1/finance/opex-utilisation        — per line / quarter / year (?year=, default current)
"""

from datetime import date

from flask import Blueprint, jsonify, request

from command_center.blueprints import json_body, tenant_id
from command_center.services import finance_service

finance_bp = Blueprint("finance", __name__, url_prefix="/api/v1/finance")


def _year():
    return request.args.get("year", type=int)


# ── Monthly financials ──────────────────────────────────────────────────


@finance_bp.route("/monthly", methods=["GET"])
def list_monthly():
    return jsonify(finance_service.list_monthly(tenant_id(), _year()))


@finance_bp.route("/monthly", methods=["POST"])
def create_monthly():
    return jsonify(finance_service.create_monthly(tenant_id(), json_body())), 201


@finance_bp.route("/monthly/<int:record_id>", methods=["PUT", "PATCH"])
def update_monthly(record_id):
    return jsonify(finance_service.update_monthly(tenant_id(), record_id, json_body()))


@finance_bp.route("/monthly/<int:record_id>", methods=["DELETE"])
def delete_monthly(record_id):
    finance_service.delete_monthly(tenant_id(), record_id)
    return "", 204


@finance_bp.route("/summary", methods=["GET"])
def summary():
    return jsonify(finance_service.financial_summary(tenant_id(), _year()))


# ── OPEX budget lines ───────────────────────────────────────────────────


@finance_bp.route("/opex-budgets", methods=["GET"])
def list_budgets():
    return jsonify(finance_service.list_budgets(tenant_id(), _year()))


@finance_bp.route("/opex-budgets", methods=["POST"])
def create_budget():
    return jsonify(finance_service.create_budget(tenant_id(), json_body())), 201


@finance_bp.route("/opex-budgets/<int:budget_id>", methods=["PUT", "PATCH"])
def update_budget(budget_id):
    return jsonify(finance_service.update_budget(tenant_id(), budget_id, json_body()))


@finance_bp.route("/opex-budgets/<int:budget_id>", methods=["DELETE"])
def delete_budget(budget_id):
    finance_service.delete_budget(tenant_id(), budget_id)
    return "", 204


# ── OPEX consumption ────────────────────────────────────────────────────


@finance_bp.route("/opex-consumptions", methods=["GET"])
def list_consumptions():
    return jsonify(finance_service.list_consumptions(tenant_id(), _year()))


@finance_bp.route("/opex-consumptions", methods=["POST"])
def create_consumption():
    return jsonify(finance_service.create_consumption(tenant_id(), json_body())), 201


@finance_bp.route("/opex-consumptions/<int:consumption_id>", methods=["PUT", "PATCH"])
def update_consumption(consumption_id):
    return jsonify(finance_service.update_consumption(tenant_id(), consumption_id, json_body()))


@finance_bp.route("/opex-consumptions/<int:consumption_id>", methods=["DELETE"])
def delete_consumption(consumption_id):
    finance_service.delete_consumption(tenant_id(), consumption_id)
    return "", 204


@finance_bp.route("/opex-utilisation", methods=["GET"])
def opex_utilisation():
    year = _year() or date.today().year
    return jsonify(finance_service.opex_utilisation(tenant_id(), year))
