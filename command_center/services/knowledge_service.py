"""
Knowledge base service — markdown documents, versions, FAQs and attachments.

Versioning:
    create_document           -> version 1
    update_document           -> version max + 1 (title, content, change notes, editor)
    restore_version(n)        -> version max + 1 copying version n's title/content

Publishing:
    The first time a document is made public it gets an 8-hex-char
    ``public_slug``; the slug is kept if the document is later hidden and
    shown again. The public endpoint only serves documents that are both
    ``is_public`` and ``published``.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import func, or_, select

from command_center.core.exceptions import NotFoundError, ValidationError
from command_center.models import db
from command_center.models.knowledge import Document, DocumentAttachment, DocumentFaq, DocumentVersion
from command_center.services import attachment_storage
from command_center.services.validation import require_object, validate
from command_center.utils.helpers import commit_or_raise, get_for_tenant

logger = logging.getLogger(__name__)

_META_FIELDS = ("change_notes", "edited_by")


def _split_meta(fields: dict) -> tuple[dict, dict]:
    meta = {k: fields.pop(k) for k in _META_FIELDS if k in fields}
    if "content" in fields and fields["content"] is None:
        fields["content"] = ""
    return fields, meta


def _clean_faqs(raw) -> list[dict]:
    if not isinstance(raw, list):
        raise ValidationError("faqs must be a list", details={"faqs": "must be a list"})
    cleaned = []
    errors = {}
    for idx, item in enumerate(raw):
        try:
            faq = validate("document_faq", require_object(item, f"faqs[{idx}]"))
        except ValidationError as exc:
            errors[f"faqs[{idx}]"] = str(exc)
            continue
        if "order_index" not in item:
            faq["order_index"] = idx
        cleaned.append(faq)
    if errors:
        raise ValidationError("; ".join(errors.values()), details=errors)
    return cleaned


def _replace_faqs(doc: Document, faqs: list[dict]) -> None:
    doc.faqs.clear()
    for faq in faqs:
        doc.faqs.append(DocumentFaq(tenant_id=doc.tenant_id, **faq))


def _new_slug() -> str:
    while True:
        slug = uuid.uuid4().hex[:8]
        taken = db.session.execute(
            select(Document.id).where(Document.public_slug == slug)
        ).first()
        if taken is None:
            return slug


def _ensure_slug(doc: Document) -> None:
    if doc.is_public and not doc.public_slug:
        doc.public_slug = _new_slug()


def _next_version(doc_id: int) -> int:
    current = db.session.execute(
        select(func.max(DocumentVersion.version_number)).where(DocumentVersion.document_id == doc_id)
    ).scalar()
    return (current or 0) + 1


def _write_version(doc: Document, change_notes: str | None, edited_by: str | None) -> DocumentVersion:
    version = DocumentVersion(
        tenant_id=doc.tenant_id,
        document_id=doc.id,
        version_number=_next_version(doc.id),
        title=doc.title,
        content=doc.content or "",
        change_notes=change_notes,
        edited_by=edited_by,
    )
    db.session.add(version)
    return version


# ═════════════════════════════════════════════════════════════════════════
# Documents
# ═════════════════════════════════════════════════════════════════════════


def list_documents(
    tenant_id: int,
    q: str | None = None,
    category: str | None = None,
    status: str | None = None,
) -> list[dict]:
    stmt = select(Document).where(Document.tenant_id == tenant_id)
    if q and q.strip():
        like = f"%{q.strip()}%"
        stmt = stmt.where(or_(Document.title.ilike(like), Document.content.ilike(like)))
    if category:
        stmt = stmt.where(Document.category == category)
    if status:
        stmt = stmt.where(Document.status == status)
    rows = db.session.execute(
        stmt.order_by(Document.updated_at.desc(), Document.id.desc())
    ).scalars().all()
    return [d.to_dict() for d in rows]


def get_document(tenant_id: int, doc_id: int) -> dict:
    return get_for_tenant(Document, doc_id, tenant_id).to_dict(include_faqs=True)


def create_document(tenant_id: int, data: dict) -> dict:
    fields, meta = _split_meta(validate("document", data))
    faqs = _clean_faqs(data["faqs"]) if data.get("faqs") is not None else []
    editor = meta.get("edited_by")

    doc = Document(tenant_id=tenant_id, created_by=editor, updated_by=editor, **fields)
    _ensure_slug(doc)
    db.session.add(doc)
    db.session.flush()
    _replace_faqs(doc, faqs)
    _write_version(doc, meta.get("change_notes") or "Initial version", editor)
    commit_or_raise("Document")
    logger.info("Document created", extra={"tenant_id": tenant_id, "document_id": doc.id})
    return doc.to_dict(include_faqs=True)


def update_document(tenant_id: int, doc_id: int, data: dict) -> dict:
    doc = get_for_tenant(Document, doc_id, tenant_id)
    fields, meta = _split_meta(validate("document", data, partial=True))
    faqs = _clean_faqs(data["faqs"]) if data.get("faqs") is not None else None

    for key, value in fields.items():
        setattr(doc, key, value)
    if "edited_by" in meta:
        doc.updated_by = meta["edited_by"]
    _ensure_slug(doc)
    if faqs is not None:
        _replace_faqs(doc, faqs)
    version = _write_version(doc, meta.get("change_notes"), meta.get("edited_by"))
    commit_or_raise("Document")
    logger.info(
        "Document updated",
        extra={"tenant_id": tenant_id, "document_id": doc.id, "version": version.version_number},
    )
    return doc.to_dict(include_faqs=True)


def delete_document(tenant_id: int, doc_id: int) -> None:
    doc = get_for_tenant(Document, doc_id, tenant_id)
    paths = [a.storage_path for a in doc.attachments]
    db.session.delete(doc)
    commit_or_raise("Document")
    for path in paths:
        attachment_storage.remove(path)
    logger.info("Document deleted", extra={"tenant_id": tenant_id, "document_id": doc_id})


# ═════════════════════════════════════════════════════════════════════════
# Versions
# ═════════════════════════════════════════════════════════════════════════


def list_versions(tenant_id: int, doc_id: int) -> list[dict]:
    doc = get_for_tenant(Document, doc_id, tenant_id)
    rows = db.session.execute(
        select(DocumentVersion)
        .where(DocumentVersion.document_id == doc.id)
        .order_by(DocumentVersion.version_number.desc())
    ).scalars().all()
    return [v.to_dict() for v in rows]


def _version(doc: Document, version_number: int) -> DocumentVersion:
    version = db.session.execute(
        select(DocumentVersion).where(
            DocumentVersion.document_id == doc.id,
            DocumentVersion.version_number == version_number,
        )
    ).scalar_one_or_none()
    if version is None:
        raise NotFoundError("Document version", version_number, doc.tenant_id)
    return version


def get_version(tenant_id: int, doc_id: int, version_number: int) -> dict:
    doc = get_for_tenant(Document, doc_id, tenant_id)
    return _version(doc, version_number).to_dict()


def restore_version(tenant_id: int, doc_id: int, version_number: int, edited_by: str | None = None) -> dict:
    """Copy an old version's title/content back onto the document as a new version."""
    doc = get_for_tenant(Document, doc_id, tenant_id)
    old = _version(doc, version_number)
    doc.title = old.title
    doc.content = old.content
    if edited_by:
        doc.updated_by = edited_by
    _write_version(doc, f"Restored from version {version_number}", edited_by)
    commit_or_raise("Document")
    logger.info(
        "Document version restored",
        extra={"tenant_id": tenant_id, "document_id": doc.id, "version": version_number},
    )
    return doc.to_dict(include_faqs=True)


# ═════════════════════════════════════════════════════════════════════════
# Public access
# ═════════════════════════════════════════════════════════════════════════


def get_public_document(slug: str) -> dict:
    doc = db.session.execute(
        select(Document).where(Document.public_slug == slug)
    ).scalar_one_or_none()
    if doc is None or not doc.is_public or doc.status != "published":
        raise NotFoundError("Document")
    return doc.to_dict_public()


# ═════════════════════════════════════════════════════════════════════════
# Attachments
# ═════════════════════════════════════════════════════════════════════════


def add_attachment(
    tenant_id: int,
    doc_id: int,
    file_name: str,
    content: bytes,
    content_type: str | None = None,
) -> dict:
    doc = get_for_tenant(Document, doc_id, tenant_id)
    name = (file_name or "").strip()[:255]
    if not name:
        raise ValidationError("File name is required", details={"file": "File name is required"})
    storage_path = attachment_storage.save(name, content)
    attachment = DocumentAttachment(
        tenant_id=tenant_id,
        document_id=doc.id,
        file_name=name,
        storage_path=storage_path,
        content_type=content_type,
        size_bytes=len(content),
    )
    db.session.add(attachment)
    try:
        commit_or_raise("DocumentAttachment", "storage_path", storage_path)
    except Exception:
        attachment_storage.remove(storage_path)
        raise
    logger.info("Attachment added", extra={"tenant_id": tenant_id, "document_id": doc.id})
    result = attachment.to_dict()
    result["download"] = attachment_storage.sign(storage_path)
    return result


def attachment_link(tenant_id: int, attachment_id: int) -> dict:
    attachment = get_for_tenant(DocumentAttachment, attachment_id, tenant_id, label="Attachment")
    return {**attachment.to_dict(), "download": attachment_storage.sign(attachment.storage_path)}


def delete_attachment(tenant_id: int, attachment_id: int) -> None:
    attachment = get_for_tenant(DocumentAttachment, attachment_id, tenant_id, label="Attachment")
    path = attachment.storage_path
    db.session.delete(attachment)
    commit_or_raise("DocumentAttachment")
    attachment_storage.remove(path)
    logger.info("Attachment deleted", extra={"tenant_id": tenant_id})


def attachment_by_path(storage_path: str) -> DocumentAttachment:
    attachment = db.session.execute(
        select(DocumentAttachment).where(DocumentAttachment.storage_path == storage_path)
    ).scalar_one_or_none()
    if attachment is None:
        raise NotFoundError("Attachment")
    return attachment
