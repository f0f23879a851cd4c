"""
Application-wide exception hierarchy.

Services raise these; the app factory registers one handler per type so
every blueprint gets the same HTTP mapping:

    NotFoundError   -> 404
    ValidationError -> 400 (with field-level ``details``)
    ConflictError   -> 409
    ForbiddenError  -> 403

Usage:
    from command_center.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Lead", resource_id=42)
    raise ValidationError("Invalid lead", details={"probability": "must be between 0 and 100"})
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist within the given scope.

    Used for both genuinely missing records and rows owned by another
    tenant, so a caller cannot discover foreign ids.

    Args:
        resource: Human-readable entity name (e.g. "Project", "Lead").
        resource_id: The key that was looked up. Included in logs, not in HTTP response.
        tenant_id: Optional tenant scope that was enforced. Debug logging only.
    """

    def __init__(
        self,
        resource: str,
        resource_id: int | str | None = None,
        tenant_id: int | None = None,
    ) -> None:
        self.resource = resource
        self.resource_id = resource_id
        self.tenant_id = tenant_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        if tenant_id is not None:
            msg += f" (tenant={tenant_id})"
        super().__init__(msg)

    @property
    def public_message(self) -> str:
        return f"{self.resource} not found"


class ValidationError(Exception):
    """Raised when input fails a field rule or a business rule.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown. Keys are field names,
                 values are error descriptions.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would duplicate a unique key or repeat a one-shot action.

    Args:
        resource: Model name.
        field: The unique field (or state) in conflict.
        value: The conflicting value.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        msg = f"{resource} with {field}={value!r} already exists"
        super().__init__(msg)


class ForbiddenError(Exception):
    """Raised when the scope exists but may not be used (inactive tenant, survey not open)."""


class GoneError(Exception):
    """Raised when a public resource existed but is no longer accepting input (closed survey)."""
