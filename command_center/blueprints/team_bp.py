"""
Team blueprint — squads, roster, daily tasks, per-member ESAT, capacity and workload.

Routes:
    GET    /api/v1/team/squads                   — list
    POST   /api/v1/team/squads                   — create (name unique per tenant)
    PUT    /api/v1/team/squads/<id>              — update
    DELETE /api/v1/team/squads/<id>              — delete

    GET    /api/v1/team/members                  — list (?active=true|false, ?squad=)
    POST   /api/v1/team/members                  — create
    GET    /api/v1/team/members/<id>             — get
    PUT    /api/v1/team/members/<id>             — update
    DELETE /api/v1/team/members/<id>             — delete
    POST   /api/v1/team/members/import           — CSV import (file upload, csv_content or raw body)
    GET    /api/v1/team/members/template         — CSV template download

    GET    /api/v1/team/tasks                    — list (?team_member_id=, ?from=, ?to=)
    POST   /api/v1/team/tasks                    — create
    PUT    /api/v1/team/tasks/<id>               — update
    DELETE /api/v1/team/tasks/<id>               — delete

    GET    /api/v1/team/esat                     — list (?team_member_id=, ?month=)
    POST   /api/v1/team/esat                     — create
    PUT    /api/v1/team/esat/<id>                — update
    DELETE /api/v1/team/esat/<id>                — delete
    POST   /api/v1/team/esat/import              — CSV import
    GET    /api/v1/team/esat/template            — CSV template download
    GET    /api/v1/team/esat/trend               — average score per month

    GET    /api/v1/team/capacity                 — capacity overview (?month=, default current)
    GET    /api/v1/team/workload                 — per-member task load (?month=, ?squad=, ?position=)
    GET    /api/v1/team/workload/yearly          — HPP/OPEX member-month load (?year=, default current)
"""

from flask import Blueprint, Response, jsonify, request

from command_center.blueprints import json_body, tenant_id
from command_center.core.exceptions import ValidationError
from command_center.services import team_service

team_bp = Blueprint("team", __name__, url_prefix="/api/v1/team")


def _read_csv_content() -> bytes:
    """Raw CSV bytes from a multipart ``file``, a JSON ``csv_content`` field or the body.

    Decoding is left to ``csv_import.parse_csv``.
    """
    file = request.files.get("file")
    if file:
        return file.read()

    data = request.get_json(silent=True)
    if isinstance(data, dict) and data.get("csv_content"):
        content = data["csv_content"]
        if not isinstance(content, str):
            raise ValidationError("csv_content must be a string", details={"csv_content": "Must be a string"})
        return content.encode("utf-8")

    if request.data and not request.is_json:
        return request.data

    raise ValidationError("No CSV content provided", details={"file": "CSV file is required"})


def _csv_download(content: str, filename: str) -> Response:
    return Response(
        content,
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


def _active_filter():
    value = request.args.get("active")
    if value is None:
        return None
    return value.lower() in ("1", "true", "yes")


# ── Squads ──────────────────────────────────────────────────────────────


@team_bp.route("/squads", methods=["GET"])
def list_squads():
    return jsonify(team_service.list_squads(tenant_id()))


@team_bp.route("/squads", methods=["POST"])
def create_squad():
    return jsonify(team_service.create_squad(tenant_id(), json_body())), 201


@team_bp.route("/squads/<int:squad_id>", methods=["PUT", "PATCH"])
def update_squad(squad_id):
    return jsonify(team_service.update_squad(tenant_id(), squad_id, json_body()))


@team_bp.route("/squads/<int:squad_id>", methods=["DELETE"])
def delete_squad(squad_id):
    team_service.delete_squad(tenant_id(), squad_id)
    return "", 204


# ── Members ─────────────────────────────────────────────────────────────


@team_bp.route("/members", methods=["GET"])
def list_members():
    members = team_service.list_members(
        tenant_id(), active=_active_filter(), squad=request.args.get("squad"),
    )
    return jsonify(members)


@team_bp.route("/members", methods=["POST"])
def create_member():
    return jsonify(team_service.create_member(tenant_id(), json_body())), 201


@team_bp.route("/members/import", methods=["POST"])
def import_members():
    result = team_service.import_members_csv(tenant_id(), _read_csv_content())
    return jsonify(result), 201 if result["imported"] else 200


@team_bp.route("/members/template", methods=["GET"])
def member_template():
    return _csv_download(team_service.member_template(), "team_members_template.csv")


@team_bp.route("/members/<int:member_id>", methods=["GET"])
def get_member(member_id):
    return jsonify(team_service.get_member(tenant_id(), member_id))


@team_bp.route("/members/<int:member_id>", methods=["PUT", "PATCH"])
def update_member(member_id):
    return jsonify(team_service.update_member(tenant_id(), member_id, json_body()))


@team_bp.route("/members/<int:member_id>", methods=["DELETE"])
def delete_member(member_id):
    team_service.delete_member(tenant_id(), member_id)
    return "", 204


# ── Daily tasks ─────────────────────────────────────────────────────────


@team_bp.route("/tasks", methods=["GET"])
def list_tasks():
    tasks = team_service.list_tasks(
        tenant_id(),
        team_member_id=request.args.get("team_member_id", type=int),
        date_from=request.args.get("from"),
        date_to=request.args.get("to"),
    )
    return jsonify(tasks)


@team_bp.route("/tasks", methods=["POST"])
def create_task():
    return jsonify(team_service.create_task(tenant_id(), json_body())), 201


@team_bp.route("/tasks/<int:task_id>", methods=["PUT", "PATCH"])
def update_task(task_id):
    return jsonify(team_service.update_task(tenant_id(), task_id, json_body()))


@team_bp.route("/tasks/<int:task_id>", methods=["DELETE"])
def delete_task(task_id):
    team_service.delete_task(tenant_id(), task_id)
    return "", 204


# ── Member ESAT ─────────────────────────────────────────────────────────


@team_bp.route("/esat", methods=["GET"])
def list_member_esat():
    rows = team_service.list_member_esat(
        tenant_id(),
        team_member_id=request.args.get("team_member_id", type=int),
        month=request.args.get("month"),
    )
    return jsonify(rows)


@team_bp.route("/esat", methods=["POST"])
def create_member_esat():
    return jsonify(team_service.create_member_esat(tenant_id(), json_body())), 201


@team_bp.route("/esat/import", methods=["POST"])
def import_member_esat():
    result = team_service.import_member_esat_csv(tenant_id(), _read_csv_content())
    return jsonify(result), 201 if result["imported"] else 200


@team_bp.route("/esat/template", methods=["GET"])
def member_esat_template():
    return _csv_download(team_service.member_esat_template(), "team_esat_template.csv")


@team_bp.route("/esat/trend", methods=["GET"])
def member_esat_trend():
    trend = team_service.member_esat_trend(
        tenant_id(), team_member_id=request.args.get("team_member_id", type=int),
    )
    return jsonify(trend)


@team_bp.route("/esat/<int:esat_id>", methods=["PUT", "PATCH"])
def update_member_esat(esat_id):
    return jsonify(team_service.update_member_esat(tenant_id(), esat_id, json_body()))


@team_bp.route("/esat/<int:esat_id>", methods=["DELETE"])
def delete_member_esat(esat_id):
    team_service.delete_member_esat(tenant_id(), esat_id)
    return "", 204


# ── Capacity & workload ─────────────────────────────────────────────────


@team_bp.route("/capacity", methods=["GET"])
def capacity():
    return jsonify(team_service.capacity_overview(tenant_id(), request.args.get("month")))


@team_bp.route("/workload", methods=["GET"])
def workload():
    report = team_service.workload_overview(
        tenant_id(),
        request.args.get("month"),
        squad=request.args.get("squad"),
        position=request.args.get("position"),
    )
    return jsonify(report)


@team_bp.route("/workload/yearly", methods=["GET"])
def workload_yearly():
    return jsonify(team_service.allocation_load_overview(tenant_id(), request.args.get("year", type=int)))
