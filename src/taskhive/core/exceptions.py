"""Domain-specific exceptions.

All exceptions in the taskhive system inherit from TaskhiveError. Each
class carries the HTTP status the transport layer maps it to, so services
can raise typed errors without knowing anything about HTTP.
"""

from __future__ import annotations


class TaskhiveError(Exception):
    """Base exception for all taskhive errors.

    Anything that reaches the transport boundary as a bare TaskhiveError
    is treated as an internal failure.
    """

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        """Initialize the error.

        Args:
            message: Client-safe error description.
        """
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(TaskhiveError):
    """Malformed or semantically invalid input."""

    status_code = 400
    default_message = "Validation failed"


class InvalidReferenceError(ValidationError):
    """A referenced entity does not exist in the caller's tenant.

    Raised when e.g. a task is assigned to a user that belongs to another
    tenant, or does not exist at all.
    """

    default_message = "Referenced entity does not belong to your tenant"


class UnauthorizedError(TaskhiveError):
    """No identity, or an identity that could not be verified."""

    status_code = 401
    default_message = "Unauthorized"


class InvalidTokenError(UnauthorizedError):
    """Token signature invalid, malformed, or expired."""

    default_message = "Invalid or expired token"


class InvalidCredentialsError(UnauthorizedError):
    """Login failed.

    Deliberately generic: unknown tenant, unknown email, wrong password and
    inactive accounts all produce this same error.
    """

    default_message = "Invalid credentials"


class ForbiddenError(TaskhiveError):
    """Valid identity lacking the privilege for the requested action."""

    status_code = 403
    default_message = "You do not have permission to perform this action"


class NotFoundError(TaskhiveError):
    """Resource absent, or present in a tenant the caller cannot see.

    The two cases are indistinguishable on purpose.
    """

    status_code = 404
    default_message = "Resource not found"

    def __init__(self, resource_type: str | None = None, message: str | None = None) -> None:
        """Initialize NotFoundError.

        Args:
            resource_type: Human-readable resource kind, e.g. "Project".
            message: Explicit message, overrides the derived one.
        """
        if message is None and resource_type:
            message = f"{resource_type} not found"
        self.resource_type = resource_type
        super().__init__(message)


class ConflictError(TaskhiveError):
    """Uniqueness violation or exhausted quota."""

    status_code = 409
    default_message = "Conflict"


class QuotaExceededError(ConflictError):
    """Tenant is at its subscription limit for a resource.

    Attributes:
        resource: Limited resource ("users" or "projects").
        limit: The tenant's configured maximum.
    """

    def __init__(self, resource: str, limit: int) -> None:
        """Initialize QuotaExceededError.

        Args:
            resource: Limited resource name.
            limit: The limit that was reached.
        """
        self.resource = resource
        self.limit = limit
        super().__init__(f"{resource.capitalize()} limit reached for this subscription plan ({limit})")


class DuplicateRecordError(TaskhiveError):
    """Raised by store adapters when a unique constraint is violated.

    Services translate this into a ConflictError with a domain message.

    Attributes:
        field: The logical field whose uniqueness was violated.
    """

    def __init__(self, field: str) -> None:
        """Initialize DuplicateRecordError.

        Args:
            field: Logical field name, e.g. "subdomain" or "email".
        """
        self.field = field
        super().__init__(f"Duplicate value for {field}")
