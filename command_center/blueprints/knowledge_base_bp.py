"""
Knowledge base blueprint — markdown documents with versions, FAQs and attachments.

URL prefix: /api/v1/kb

Routes:
    GET    /api/v1/kb/documents                                — search (?q=, ?category=, ?status=)
    POST   /api/v1/kb/documents                                — create (writes version 1)
    GET    /api/v1/kb/documents/<id>                           — get with FAQs
    PUT    /api/v1/kb/documents/<id>                           — update (writes a new version)
    DELETE /api/v1/kb/documents/<id>                           — delete
    GET    /api/v1/kb/documents/<id>/versions                  — history, newest first
    GET    /api/v1/kb/documents/<id>/versions/<n>              — one version
    POST   /api/v1/kb/documents/<id>/versions/<n>/restore      — restore { edited_by? }
    POST   /api/v1/kb/documents/<id>/attachments               — multipart upload (field "file")
    GET    /api/v1/kb/attachments/<id>                         — metadata + fresh signed URL
    DELETE /api/v1/kb/attachments/<id>                         — remove
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from command_center.blueprints import json_body, paginate_list, tenant_id
from command_center.core.exceptions import ValidationError
from command_center.services import knowledge_service

knowledge_base_bp = Blueprint("knowledge_base", __name__, url_prefix="/api/v1/kb")


@knowledge_base_bp.route("/documents", methods=["GET"])
def list_documents():
    docs = knowledge_service.list_documents(
        tenant_id(),
        q=request.args.get("q"),
        category=request.args.get("category"),
        status=request.args.get("status"),
    )
    return jsonify(paginate_list(docs))


@knowledge_base_bp.route("/documents", methods=["POST"])
def create_document():
    """Body: { title, content?, category?, status?, is_public?, faqs?, change_notes?, edited_by? }"""
    return jsonify(knowledge_service.create_document(tenant_id(), json_body())), 201


@knowledge_base_bp.route("/documents/<int:doc_id>", methods=["GET"])
def get_document(doc_id):
    return jsonify(knowledge_service.get_document(tenant_id(), doc_id))


@knowledge_base_bp.route("/documents/<int:doc_id>", methods=["PUT", "PATCH"])
def update_document(doc_id):
    """Partial update; ``faqs`` (when present) replaces the whole FAQ list."""
    return jsonify(knowledge_service.update_document(tenant_id(), doc_id, json_body()))


@knowledge_base_bp.route("/documents/<int:doc_id>", methods=["DELETE"])
def delete_document(doc_id):
    knowledge_service.delete_document(tenant_id(), doc_id)
    return "", 204


# ---------------------------------------------------------------------------
# Versions
# ---------------------------------------------------------------------------


@knowledge_base_bp.route("/documents/<int:doc_id>/versions", methods=["GET"])
def list_versions(doc_id):
    return jsonify(knowledge_service.list_versions(tenant_id(), doc_id))


@knowledge_base_bp.route("/documents/<int:doc_id>/versions/<int:version_number>", methods=["GET"])
def get_version(doc_id, version_number):
    return jsonify(knowledge_service.get_version(tenant_id(), doc_id, version_number))


@knowledge_base_bp.route("/documents/<int:doc_id>/versions/<int:version_number>/restore", methods=["POST"])
def restore_version(doc_id, version_number):
    edited_by = (json_body().get("edited_by") or "").strip()[:100] or None
    return jsonify(knowledge_service.restore_version(tenant_id(), doc_id, version_number, edited_by))


# ---------------------------------------------------------------------------
# Attachments
# ---------------------------------------------------------------------------


@knowledge_base_bp.route("/documents/<int:doc_id>/attachments", methods=["POST"])
def upload_attachment(doc_id):
    file = request.files.get("file")
    if file is None:
        raise ValidationError("No file provided", details={"file": "File is required"})
    result = knowledge_service.add_attachment(
        tenant_id(),
        doc_id,
        file_name=file.filename,
        content=file.read(),
        content_type=file.mimetype,
    )
    return jsonify(result), 201


@knowledge_base_bp.route("/attachments/<int:attachment_id>", methods=["GET"])
def attachment_link(attachment_id):
    return jsonify(knowledge_service.attachment_link(tenant_id(), attachment_id))


@knowledge_base_bp.route("/attachments/<int:attachment_id>", methods=["DELETE"])
def delete_attachment(attachment_id):
    knowledge_service.delete_attachment(tenant_id(), attachment_id)
    return "", 204
