"""
Public blueprint — unauthenticated endpoints reached through a token, slug
or signed link. No tenant header is needed: the tenant comes from the record
behind the token. Rate limited with PUBLIC_RATE_LIMIT.

Routes:
    GET  /api/v1/public/csat/<token>                                   — survey header
    POST /api/v1/public/csat/<token>                                   — submit { csat_score, feedback? }

    GET  /api/v1/public/esat/<token>                                   — survey + questions
    POST /api/v1/public/esat/<token>/responses                         — start { respondent_name, ... }
    PUT  /api/v1/public/esat/<token>/responses/<rid>/answers           — save one answer
    POST /api/v1/public/esat/<token>/responses/<rid>/submit            — mark complete
    POST /api/v1/public/esat/<token>/submit                            — one-shot submit

    GET  /api/v1/public/documents/<slug>                               — published public document
    GET  /api/v1/public/attachments/<path>?expires=&signature=         — signed download
"""

from flask import Blueprint, jsonify, request, send_file

from command_center.blueprints import json_body
from command_center.services import attachment_storage, esat_service, knowledge_service, survey_service

public_bp = Blueprint("public", __name__, url_prefix="/api/v1/public")


# ── CSAT ────────────────────────────────────────────────────────────────


@public_bp.route("/csat/<token>", methods=["GET"])
def get_csat(token):
    return jsonify(survey_service.get_public_csat(token))


@public_bp.route("/csat/<token>", methods=["POST"])
def submit_csat(token):
    return jsonify(survey_service.submit_csat_response(token, json_body())), 201


# ── ESAT ────────────────────────────────────────────────────────────────


@public_bp.route("/esat/<token>", methods=["GET"])
def get_esat(token):
    return jsonify(esat_service.get_public_survey(token))


@public_bp.route("/esat/<token>/responses", methods=["POST"])
def start_esat_response(token):
    return jsonify(esat_service.start_response(token, json_body())), 201


@public_bp.route("/esat/<token>/responses/<int:response_id>/answers", methods=["PUT", "POST"])
def save_esat_answer(token, response_id):
    return jsonify(esat_service.save_answer(token, response_id, json_body()))


@public_bp.route("/esat/<token>/responses/<int:response_id>/submit", methods=["POST"])
def submit_esat_response(token, response_id):
    return jsonify(esat_service.submit_response(token, response_id))


@public_bp.route("/esat/<token>/submit", methods=["POST"])
def submit_esat_all(token):
    return jsonify(esat_service.submit_all(token, json_body())), 201


# ── Knowledge base ──────────────────────────────────────────────────────


@public_bp.route("/documents/<slug>", methods=["GET"])
def get_document(slug):
    return jsonify(knowledge_service.get_public_document(slug))


@public_bp.route("/attachments/<path:storage_path>", methods=["GET"])
def download_attachment(storage_path):
    attachment_storage.verify(
        storage_path,
        request.args.get("expires"),
        request.args.get("signature"),
    )
    attachment = knowledge_service.attachment_by_path(storage_path)
    return send_file(
        attachment_storage.full_path(storage_path),
        mimetype=attachment.content_type or "application/octet-stream",
        as_attachment=True,
        download_name=attachment.file_name,
    )
