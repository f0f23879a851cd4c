"""
Tenant context middleware: resolves the calling business unit per request.

Lookup order for the tenant id:
  1. ``X-Tenant-ID`` header
  2. ``tenant_id`` query parameter
  3. ``tenant_id`` in the JSON body

The resolved tenant is stored on ``g.tenant`` / ``g.tenant_id``. Unknown
tenants answer 404 and deactivated ones 403 (raised as NotFoundError /
ForbiddenError and mapped by the app error handlers).

Tenant management, health checks and the public token endpoints skip this
step; public endpoints derive the tenant from the record behind the token.
"""

import logging

from flask import g, request

from command_center.services.tenant_service import resolve_tenant
from command_center.utils.errors import E, api_error

logger = logging.getLogger(__name__)

TENANT_SKIP_PREFIXES = (
    "/api/v1/tenants",
    "/api/v1/health",
    "/api/v1/public/",
)


def requested_tenant_id():
    """Raw tenant id from header, query string or JSON body (None when absent)."""
    value = request.headers.get("X-Tenant-ID") or request.args.get("tenant_id")
    if value:
        return value
    if request.is_json:
        payload = request.get_json(silent=True)
        if isinstance(payload, dict):
            return payload.get("tenant_id")
    return None


def init_tenant_context(app):
    """Register the tenant resolution hook."""

    @app.before_request
    def _tenant_context():
        g.tenant = None
        g.tenant_id = None

        if not request.path.startswith("/api/v1/") or request.method == "OPTIONS":
            return None
        if request.path.startswith(TENANT_SKIP_PREFIXES):
            return None
        if request.url_rule is None:
            return None  # unmatched route; let the 404/405 handlers answer

        raw = requested_tenant_id()
        if raw in (None, ""):
            return api_error(
                E.VALIDATION_REQUIRED,
                "tenant_id is required (X-Tenant-ID header or tenant_id parameter)",
            )

        tenant = resolve_tenant(raw)
        g.tenant = tenant
        g.tenant_id = tenant.id
        return None

    logger.debug("Tenant context middleware installed")
