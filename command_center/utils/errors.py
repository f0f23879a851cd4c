"""Standardised API error responses.

Usage
-----
    from command_center.utils.errors import api_error, E

    return api_error(E.NOT_FOUND, "Lead not found")
    return api_error(E.VALIDATION_REQUIRED, "tenant_id is required")
    return api_error(E.VALIDATION_INVALID, "Invalid lead", details={"probability": "..."})
"""

from __future__ import annotations

from flask import jsonify


# ── Error code constants ──────────────────────────────────────────────
class E:
    """Machine-readable error code constants (``ERR_`` prefix)."""

    # Validation – HTTP 400
    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"
    VALIDATION_CONSTRAINT = "ERR_VALIDATION_CONSTRAINT"

    # Not-found – HTTP 404
    NOT_FOUND = "ERR_NOT_FOUND"

    # Conflict / duplicate – HTTP 409
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"
    CONFLICT_STATE = "ERR_CONFLICT_STATE"

    # Permissions – HTTP 403
    FORBIDDEN = "ERR_FORBIDDEN"

    # Gone – HTTP 410
    GONE = "ERR_GONE"

    # Payload – HTTP 413
    PAYLOAD_TOO_LARGE = "ERR_PAYLOAD_TOO_LARGE"

    # Server – HTTP 500
    DATABASE = "ERR_DATABASE"
    INTERNAL = "ERR_INTERNAL"


# ── Default HTTP status mapping ───────────────────────────────────────
_DEFAULT_STATUS: dict[str, int] = {
    E.VALIDATION_REQUIRED: 400,
    E.VALIDATION_INVALID: 400,
    E.VALIDATION_CONSTRAINT: 400,
    E.NOT_FOUND: 404,
    E.CONFLICT_DUPLICATE: 409,
    E.CONFLICT_STATE: 409,
    E.FORBIDDEN: 403,
    E.GONE: 410,
    E.PAYLOAD_TOO_LARGE: 413,
    E.DATABASE: 500,
    E.INTERNAL: 500,
}


def api_error(
    code: str,
    message: str,
    *,
    status: int | None = None,
    details: dict | None = None,
):
    """Return a standard JSON error response.

    Parameters
    ----------
    code : str
        Machine-readable error code (use ``E.*`` constants).
    message : str
        Human-readable explanation for the UI.
    status : int, optional
        HTTP status override. Falls back to ``_DEFAULT_STATUS[code]``,
        then to ``400``.
    details : dict, optional
        Field-level breakdown or other structured payload.

    Returns
    -------
    tuple[Response, int]
        ``(jsonify(body), http_status)``, a drop-in return value for views.
    """

    http_status = status or _DEFAULT_STATUS.get(code, 400)

    body: dict = {
        "error": message,
        "code": code,
    }
    if details:
        body["details"] = details

    return jsonify(body), http_status


def register_error_handlers(app):
    """Map the core exception hierarchy and database failures to JSON responses."""
    import logging

    from flask import request
    from sqlalchemy.exc import IntegrityError, OperationalError

    from command_center.core.exceptions import (
        ConflictError,
        ForbiddenError,
        GoneError,
        NotFoundError,
        ValidationError,
    )
    from command_center.models import db

    logger = logging.getLogger(__name__)

    @app.errorhandler(NotFoundError)
    def _not_found(exc: NotFoundError):
        logger.info("Not found: %s", exc)
        return api_error(E.NOT_FOUND, exc.public_message)

    @app.errorhandler(ValidationError)
    def _validation(exc: ValidationError):
        return api_error(E.VALIDATION_INVALID, str(exc), details=exc.details)

    @app.errorhandler(ConflictError)
    def _conflict(exc: ConflictError):
        return api_error(E.CONFLICT_DUPLICATE, str(exc))

    @app.errorhandler(ForbiddenError)
    def _forbidden(exc: ForbiddenError):
        return api_error(E.FORBIDDEN, str(exc))

    @app.errorhandler(GoneError)
    def _gone(exc: GoneError):
        return api_error(E.GONE, str(exc))

    @app.errorhandler(IntegrityError)
    def _integrity(exc: IntegrityError):
        db.session.rollback()
        logger.warning("Integrity error on %s %s: %s", request.method, request.path, exc.orig)
        return api_error(E.CONFLICT_DUPLICATE, "Duplicate or constraint violation")

    @app.errorhandler(OperationalError)
    def _operational(exc: OperationalError):
        db.session.rollback()
        logger.exception("Database operational error on %s %s", request.method, request.path)
        return api_error(E.DATABASE, "Database error")
