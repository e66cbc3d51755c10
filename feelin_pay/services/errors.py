"""
Structured error classes for the payment pipeline and membership engine.

Fail-fast errors (validation, entitlement, not found) terminate a request
before any external call is made. ExternalServiceError never escapes the
pipeline: ledger and push failures are converted into response flags.
"""

from typing import Optional

from fastapi import status


class PipelineError(Exception):
    """Base exception for errors surfaced to API callers."""

    code = "INTERNAL_ERROR"
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON response."""
        return {
            "success": False,
            "code": self.code,
            "message": self.message,
        }


class ValidationError(PipelineError):
    """Malformed or missing input."""

    code = "VALIDATION_ERROR"
    http_status = status.HTTP_400_BAD_REQUEST


class EntitlementError(PipelineError):
    """Owner is blocked by trial/membership state."""

    code = "MEMBRESIA_VENCIDA"
    http_status = status.HTTP_403_FORBIDDEN

    def __init__(
        self,
        owner_id: str,
        message: str = "Membership expired. Renew to keep recording payments.",
    ):
        super().__init__(message)
        self.owner_id = owner_id


class NotFoundError(PipelineError):
    """Unknown owner or membership."""

    code = "NOT_FOUND"
    http_status = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id: str, code: Optional[str] = None):
        super().__init__(f"{entity} not found: {entity_id}", code=code)
        self.entity = entity
        self.entity_id = entity_id


class ExternalServiceError(Exception):
    """
    Ledger or notification integration failure.

    Caught locally by the component that made the call; carries enough
    context for one structured log line.
    """

    def __init__(self, operation: str, cause: Exception, owner_id: Optional[str] = None):
        super().__init__(f"{operation} failed: {cause}")
        self.operation = operation
        self.cause = cause
        self.owner_id = owner_id

    def log_extra(self) -> dict:
        return {
            "owner_id": self.owner_id,
            "operation": self.operation,
            "error": str(self.cause),
            "error_type": type(self.cause).__name__,
        }


class InternalError(PipelineError):
    """Unexpected fault. Never leaks internal detail to callers."""

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
