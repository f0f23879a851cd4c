"""
Tenant blueprint — business units sharing the deployment.

Routes:
    GET  /api/v1/tenants   — list tenants
    POST /api/v1/tenants   — create tenant { name, slug?, is_active? }
"""

from flask import Blueprint, jsonify

from command_center.blueprints import json_body
from command_center.services import tenant_service

tenant_bp = Blueprint("tenant", __name__, url_prefix="/api/v1/tenants")


@tenant_bp.route("", methods=["GET"])
def list_tenants():
    return jsonify(tenant_service.list_tenants())


@tenant_bp.route("", methods=["POST"])
def create_tenant():
    return jsonify(tenant_service.create_tenant(json_body())), 201
