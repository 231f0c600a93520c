"""
Exception hierarchy for fieldwarden.

Every failure surfaced by the mediation engine is a FieldWardenError:
- Machine-readable error code for monitoring
- Context dictionary for debugging
- Optional wrapped cause
"""

from typing import Optional, Dict, Any
from enum import Enum

from fieldwarden.schema.types import AccessViolation, ViolationKind


class ErrorCode(str, Enum):
    """Error codes for monitoring and alerting."""

    # Configuration errors (1xxx)
    CONFIG_INVALID = "E1001"

    # Argument errors (2xxx)
    INVALID_ARGUMENT = "E2001"

    # Access errors (3xxx)
    OBJECT_ACCESS_DENIED = "E3001"
    FIELD_ACCESS_DENIED = "E3002"

    # Lookup errors (4xxx)
    RECORD_NOT_FOUND = "E4001"

    # Storage errors (5xxx)
    OPERATION_FAILED = "E5001"


class FieldWardenError(Exception):
    """
    Base exception for all fieldwarden errors.

    Provides:
    - Error code for monitoring
    - Context for debugging
    - Error categorization
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        """
        Initialize fieldwarden error.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            context: Additional context for debugging
            cause: Original exception if this is a wrapped error
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "code": self.error_code.value,
            "context": self.context,
            "cause": type(self.cause).__name__ if self.cause else None
        }

    def __str__(self) -> str:
        """String representation with error code."""
        return f"[{self.error_code.value}] {self.message}"


# Configuration Errors
class ConfigurationError(FieldWardenError):
    """Invalid scope, mode or configuration source."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message, ErrorCode.CONFIG_INVALID, context, cause)


# Argument Errors
class InvalidArgumentError(FieldWardenError):
    """Missing record or empty field set, rejected before any check or I/O."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.INVALID_ARGUMENT, context)


# Access Errors
class AccessViolationError(FieldWardenError):
    """
    The actor lacks an object-level or field-level permission.

    The violation value is kept on ``self.violation`` so callers can branch on
    kind, permission, record type and field without parsing messages.
    """

    def __init__(self, violation: AccessViolation):
        if violation.kind == ViolationKind.FIELD_LEVEL:
            message = (
                f"No {violation.permission.value} access to field "
                f"'{violation.field}' on '{violation.record_type}'"
            )
            code = ErrorCode.FIELD_ACCESS_DENIED
        else:
            message = (
                f"No {violation.permission.value} access to "
                f"'{violation.record_type}'"
            )
            code = ErrorCode.OBJECT_ACCESS_DENIED

        super().__init__(message, code, violation.to_dict())
        self.violation = violation


# Lookup Errors
class NotFoundError(FieldWardenError):
    """
    Record absent, or not visible under the active scope.

    The two cases are never distinguished.
    """

    def __init__(self, record_type: str, record_id: Optional[str] = None):
        super().__init__(
            f"No '{record_type}' record found for identifier '{record_id}'",
            ErrorCode.RECORD_NOT_FOUND,
            {"record_type": record_type, "record_id": record_id}
        )
        self.record_type = record_type


# Storage Errors
class OperationFailedError(FieldWardenError):
    """
    A backend primitive failed.

    The message names only the verb; the backend's own exception is kept as
    ``cause`` and never shapes the message.
    """

    def __init__(
        self,
        operation: str,
        record_type: Optional[str] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(
            f"Storage operation '{operation}' failed",
            ErrorCode.OPERATION_FAILED,
            {"operation": operation, "record_type": record_type},
            cause
        )
        self.operation = operation
