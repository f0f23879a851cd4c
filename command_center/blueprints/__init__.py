"""
BU Command Center
Blueprint registry and shared request helpers.
"""

from flask import g, request

from command_center.core.exceptions import ValidationError


def tenant_id() -> int:
    """Tenant resolved by the tenant context middleware for this request."""
    return g.tenant_id


def json_body() -> dict:
    """Request JSON as a dict ({} when absent)."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def paginate_list(items, default_limit=200, max_limit=1000):
    """Apply limit/offset pagination to an already-built list.

    Query params:
        limit  — max items (default 200, capped at max_limit)
        offset — starting position (default 0)

    Returns:
        {"items": [...], "total": n}
    """
    total = len(items)
    try:
        limit = min(int(request.args.get("limit", default_limit)), max_limit)
    except (ValueError, TypeError):
        limit = default_limit
    try:
        offset = max(int(request.args.get("offset", 0)), 0)
    except (ValueError, TypeError):
        offset = 0
    return {"items": items[offset:offset + max(limit, 0)], "total": total}
