"""
Error taxonomy.

Every core operation either returns the updated aggregate or raises one of
these. Nothing here retries; callers decide.

- ValidationError: malformed input (unknown enum value, KPI count, scenario ID)
- PreconditionError: a prerequisite state is missing
- NotFoundError: the referenced document is absent or soft-deleted
- ConflictError: the change would violate an invariant
- ConcurrencyConflictError: the document changed since it was read
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel


# ============================================================================
# ERROR CODES
# ============================================================================


class ErrorCode(str, Enum):
    """Application error codes."""

    # General errors (1xxx)
    INTERNAL_ERROR = "E1000"
    VALIDATION_ERROR = "E1001"
    NOT_FOUND = "E1002"
    CONFLICT = "E1003"
    PRECONDITION_FAILED = "E1004"

    # Concurrency errors (2xxx)
    STALE_REVISION = "E2000"


# ============================================================================
# ERROR RESPONSE MODEL
# ============================================================================


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str
    message: str
    field: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """Serializable error envelope for whatever transport wraps the core."""

    error: ErrorDetail
    request_id: Optional[str] = None
    timestamp: Optional[str] = None


# ============================================================================
# BASE EXCEPTION
# ============================================================================


class RevCastError(Exception):
    """Base exception for RevCast."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        field: Optional[str] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.field = field
        super().__init__(message)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            error=ErrorDetail(
                code=self.code.value,
                message=self.message,
                field=self.field,
                details=self.details,
            ),
            request_id=request_id,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )


# ============================================================================
# SPECIFIC EXCEPTIONS
# ============================================================================


class ValidationError(RevCastError):
    """Input is malformed or outside the allowed values."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            status_code=400,
            field=field,
            details=details,
        )


class PreconditionError(RevCastError):
    """A prerequisite state is missing (e.g. no scenarios generated yet)."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code=ErrorCode.PRECONDITION_FAILED,
            status_code=412,
            details=details,
        )


class NotFoundError(RevCastError):
    """Resource not found error."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=f"{resource} not found: {identifier}",
            code=ErrorCode.NOT_FOUND,
            status_code=404,
            details={"resource": resource, "identifier": identifier, **(details or {})},
        )


class ConflictError(RevCastError):
    """The requested change would break an invariant."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.CONFLICT,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=409,
            details=details,
        )


class ConcurrencyConflictError(ConflictError):
    """Compare-and-swap failed: the stored revision moved on."""

    def __init__(self, resource: str, identifier: str, expected_revision: int):
        super().__init__(
            message=(
                f"{resource} {identifier} was modified concurrently "
                f"(expected revision {expected_revision})"
            ),
            details={
                "resource": resource,
                "identifier": identifier,
                "expected_revision": expected_revision,
            },
            code=ErrorCode.STALE_REVISION,
        )
        self.expected_revision = expected_revision
