"""Tenant service: create / list / resolve business-unit tenants."""

from __future__ import annotations

import logging
import re

from sqlalchemy import select

from command_center.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from command_center.models import db
from command_center.models.tenant import Tenant
from command_center.services.validation import clean, text
from command_center.utils.helpers import commit_or_raise

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(r"^[a-z0-9][a-z0-9-]{0,99}$")
_name_rule = text("Tenant name", 200, required=True)
_slug_rule = text("Slug", 100)


def _slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug[:100] or "tenant"


def create_tenant(data: dict) -> dict:
    name = clean(_name_rule, data.get("name"), "name")
    slug = (clean(_slug_rule, data.get("slug"), "slug") or "").lower() or _slugify(name)
    if not _SLUG_RE.match(slug):
        raise ValidationError(
            "Slug may only contain lowercase letters, digits and dashes",
            details={"slug": "invalid"},
        )
    if db.session.execute(select(Tenant.id).where(Tenant.slug == slug)).first():
        raise ConflictError("Tenant", "slug", slug)

    tenant = Tenant(name=name, slug=slug, is_active=data.get("is_active", True) is not False)
    db.session.add(tenant)
    commit_or_raise("Tenant", "slug", slug)
    logger.info("Tenant created", extra={"tenant_id": tenant.id})
    return tenant.to_dict()


def list_tenants() -> list[dict]:
    rows = db.session.execute(select(Tenant).order_by(Tenant.name)).scalars().all()
    return [t.to_dict() for t in rows]


def resolve_tenant(tenant_id) -> Tenant:
    """Return the active Tenant for ``tenant_id``.

    Raises:
        NotFoundError: unknown id.
        ForbiddenError: tenant exists but is deactivated.
    """
    try:
        tid = int(tenant_id)
    except (TypeError, ValueError):
        raise NotFoundError("Tenant", tenant_id) from None
    tenant = db.session.get(Tenant, tid)
    if tenant is None:
        raise NotFoundError("Tenant", tid)
    if not tenant.is_active:
        logger.warning("Request for deactivated tenant", extra={"tenant_id": tid})
        raise ForbiddenError("Tenant account is deactivated")
    return tenant
