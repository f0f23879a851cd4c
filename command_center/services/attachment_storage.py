"""
Attachment storage — local directory store with signed download URLs.

Files are written under ``ATTACHMENT_STORAGE_DIR`` as
``attachments/<uuid4 hex>.<ext>``; the original file name is kept only in
the database. Download links carry an expiry timestamp and an HMAC-SHA256
signature over ``path`` and ``expires`` keyed by ``SECRET_KEY``:

    /api/v1/public/attachments/<path>?expires=<unix ts>&signature=<hex>

A link is valid until ``expires``; after that the download endpoint answers
403 even when the signature is correct.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import os
import time
import uuid

from flask import current_app
from werkzeug.utils import secure_filename

from command_center.core.exceptions import ForbiddenError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PREFIX = "attachments"


def _root() -> str:
    return os.path.abspath(current_app.config["ATTACHMENT_STORAGE_DIR"])


def _resolve(storage_path: str) -> str:
    """Absolute path for a stored object; refuses paths outside the store."""
    root = _root()
    full = os.path.abspath(os.path.join(root, storage_path))
    if os.path.commonpath([root, full]) != root:
        raise NotFoundError("Attachment", storage_path)
    return full


def _extension(file_name: str) -> str:
    _, ext = os.path.splitext(secure_filename(file_name or ""))
    return ext.lower()[:16]


def save(file_name: str, content: bytes) -> str:
    """Write ``content`` under a random name and return its storage path."""
    limit = current_app.config["ATTACHMENT_MAX_BYTES"]
    if not content:
        raise ValidationError("File is empty", details={"file": "File is empty"})
    if len(content) > limit:
        raise ValidationError(
            f"File exceeds the {limit} byte limit",
            details={"file": f"max {limit} bytes"},
        )

    storage_path = f"{PREFIX}/{uuid.uuid4().hex}{_extension(file_name)}"
    full = _resolve(storage_path)
    os.makedirs(os.path.dirname(full), exist_ok=True)
    with open(full, "wb") as fh:
        fh.write(content)
    logger.info("Attachment stored", extra={"storage_path": storage_path, "size_bytes": len(content)})
    return storage_path


def remove(storage_path: str) -> None:
    full = _resolve(storage_path)
    if os.path.exists(full):
        os.remove(full)
        logger.info("Attachment removed", extra={"storage_path": storage_path})


def full_path(storage_path: str) -> str:
    full = _resolve(storage_path)
    if not os.path.isfile(full):
        raise NotFoundError("Attachment", storage_path)
    return full


# ── Signed URLs ─────────────────────────────────────────────────────────


def _signature(storage_path: str, expires: int) -> str:
    key = current_app.config["SECRET_KEY"].encode()
    message = f"{storage_path}:{expires}".encode()
    return hmac.new(key, message, hashlib.sha256).hexdigest()


def sign(storage_path: str, ttl: int | None = None, now: float | None = None) -> dict:
    """Return ``{"path", "expires", "signature", "url"}`` for a download link."""
    ttl = current_app.config["SIGNED_URL_TTL_SECONDS"] if ttl is None else ttl
    expires = int(now if now is not None else time.time()) + int(ttl)
    signature = _signature(storage_path, expires)
    return {
        "path": storage_path,
        "expires": expires,
        "signature": signature,
        "url": f"/api/v1/public/attachments/{storage_path}?expires={expires}&signature={signature}",
    }


def verify(storage_path: str, expires, signature: str | None, now: float | None = None) -> None:
    """Raise ForbiddenError unless the signature matches and has not expired."""
    try:
        expires = int(expires)
    except (TypeError, ValueError):
        raise ForbiddenError("Invalid download link") from None
    if not signature or not hmac.compare_digest(_signature(storage_path, expires), signature):
        raise ForbiddenError("Invalid download link")
    if expires < int(now if now is not None else time.time()):
        raise ForbiddenError("Download link has expired")
