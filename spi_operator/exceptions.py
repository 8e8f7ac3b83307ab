"""
Consolidated exception system with error codes, error kinds and correlation support.

Every error raised by the operator or by its collaborators (service providers,
token storage, the cluster API) is classified into one of three kinds before
it is turned into a status field or a retry decision:

- infrastructure: transient, retried with backoff, never written to status
- content: the credential itself is rejected, terminal status
- configuration: a resource points at something the operator does not know
"""

import threading
import traceback
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from .enums import ErrorKind

_thread_local = threading.local()


class ErrorCode(str, Enum):
    """Standardized error codes."""

    # System errors (1xxx)
    INTERNAL_ERROR = "1000"
    CONNECTION_ERROR = "1002"
    CONFIGURATION_ERROR = "1003"
    TIMEOUT_ERROR = "1004"
    CANCELLED = "1005"

    # Validation errors (2xxx)
    VALIDATION_FAILED = "2000"
    INVALID_FORMAT = "2001"
    MISSING_REQUIRED = "2002"

    # Resource errors (3xxx)
    NOT_FOUND = "3000"
    DUPLICATE = "3001"
    CONFLICT = "3002"
    EXPIRED = "3004"

    # Business logic errors (4xxx)
    PERMISSION_DENIED = "4003"
    UNKNOWN_SERVICE_PROVIDER = "4005"

    # External service errors (5xxx)
    EXTERNAL_API_ERROR = "5002"
    KUBERNETES_API_ERROR = "5005"
    SERVICE_PROVIDER_ERROR = "5006"
    TOKEN_STORAGE_ERROR = "5007"


class BaseError(Exception):
    """Base exception with context, error codes, logging, and error chaining."""

    kind: ErrorKind = ErrorKind.INFRASTRUCTURE

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        cause: Optional[Exception] = None,
        **context: Any,
    ):
        """
        Initialize base error with rich context.

        Args:
            message: Human-readable error message
            error_code: Standardized error code from ErrorCode enum
            status_code: HTTP-like status code, drives the log level
            cause: Original exception that caused this error
            **context: Additional context information
        """
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.error_id = str(uuid.uuid4())
        self.context = context

        correlation_id = get_correlation_id()
        if correlation_id:
            self.context["correlation_id"] = correlation_id

        self.context["error_id"] = self.error_id

        if cause:
            self.context["cause"] = {
                "type": type(cause).__name__,
                "message": str(cause),
                "traceback": traceback.format_exception(type(cause), cause, cause.__traceback__),
            }

        self._log_error()

        super().__init__(message)

    def _log_error(self) -> None:
        """Log error with appropriate level based on status code."""
        # Lazy import, the logger imports the config which imports nothing from here
        from .utils.logger import get_logger

        logger = get_logger()

        log_data = {
            "error_id": self.error_id,
            "error_code": self.error_code.value,
            "error_kind": self.kind.value,
            "status_code": self.status_code,
            "error_message": self.message,
            "context": {k: v for k, v in self.context.items() if k not in ["cause", "traceback"]},
        }

        if "correlation_id" in self.context:
            log_data["correlation_id"] = self.context["correlation_id"]

        if self.status_code >= 500:
            logger.error(f"Error {self.error_code}: {self.message}", extra=log_data)
        elif self.status_code >= 400:
            logger.warning(f"Client error {self.error_code}: {self.message}", extra=log_data)
        else:
            logger.info(f"Error {self.error_code}: {self.message}", extra=log_data)

    def to_dict(
        self, include_cause: bool = False, include_traceback: bool = False
    ) -> Dict[str, Any]:
        """
        Convert to dict for events and structured logs.

        Args:
            include_cause: Include cause information (useful for debugging)
            include_traceback: Include full traceback (only in debug mode)

        Returns:
            Dictionary representation suitable for JSON serialization
        """
        result: Dict[str, Any] = {
            "error": {
                "id": self.error_id,
                "code": self.error_code.value,
                "kind": self.kind.value,
                "message": self.message,
                "timestamp": self.timestamp,
                "context": {
                    k: v
                    for k, v in self.context.items()
                    if k not in ["cause", "error_id", "correlation_id"]
                },
            }
        }

        if "correlation_id" in self.context:
            result["error"]["correlation_id"] = self.context["correlation_id"]

        if include_cause and "cause" in self.context:
            result["error"]["cause"] = {
                "type": self.context["cause"]["type"],
                "message": self.context["cause"]["message"],
            }
            if include_traceback:
                result["error"]["cause"]["traceback"] = self.context["cause"]["traceback"]

        return result

    def add_context(self, **kwargs: Any) -> "BaseError":
        """
        Add additional context to the error (fluent interface).

        Returns:
            Self for method chaining
        """
        self.context.update(kwargs)
        return self

    @property
    def error_chain(self) -> List[Exception]:
        """Get the full chain of errors."""
        chain: List[Exception] = [self]
        current = self.cause
        while current:
            chain.append(current)
            current = getattr(current, "cause", None)
        return chain


# Layer-specific base exceptions
class ServiceError(BaseError):
    """Operator-internal errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        operation: Optional[str] = None,
        cause: Optional[Exception] = None,
        **context,
    ):
        """Initialize service error with operation context."""
        if operation:
            context["operation"] = operation
        super().__init__(message, error_code, 500, cause, **context)


class ValidationError(BaseError):
    """Validation errors."""

    kind = ErrorKind.CONTENT

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_FAILED,
        cause: Optional[Exception] = None,
        **context,
    ):
        """Initialize validation error with field context."""
        if field:
            context["field"] = field
        super().__init__(message, error_code, 400, cause, **context)


class ConfigurationError(BaseError):
    """The operator or a resource refers to something that is not configured."""

    kind = ErrorKind.CONFIGURATION

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.CONFIGURATION_ERROR,
        cause: Optional[Exception] = None,
        **context,
    ):
        super().__init__(message, error_code, 500, cause, **context)


class ExternalServiceError(BaseError):
    """External service integration errors."""

    def __init__(
        self,
        message: str,
        service_name: str,
        error_code: ErrorCode = ErrorCode.EXTERNAL_API_ERROR,
        cause: Optional[Exception] = None,
        **context,
    ):
        """Initialize external service error with service context."""
        context["service_name"] = service_name
        super().__init__(message, error_code, 502, cause, **context)


# ==================== CLUSTER API EXCEPTIONS ====================


class ResourceError(BaseError):
    """Errors reported by the cluster API for a specific object."""


class ResourceNotFoundError(ResourceError):
    """The requested object does not exist."""

    def __init__(self, message: str = "Resource not found", **kwargs):
        super().__init__(message=message, error_code=ErrorCode.NOT_FOUND, status_code=404, **kwargs)


class ResourceConflictError(ResourceError):
    """The object was modified concurrently or already exists."""

    def __init__(self, message: str = "Resource conflict", **kwargs):
        super().__init__(message=message, error_code=ErrorCode.CONFLICT, status_code=409, **kwargs)


class KubernetesApiError(ExternalServiceError):
    """The cluster API could not be reached or answered with an unexpected error."""

    def __init__(self, message: str, cause: Optional[Exception] = None, **context):
        super().__init__(
            message,
            service_name="kubernetes",
            error_code=ErrorCode.KUBERNETES_API_ERROR,
            cause=cause,
            **context,
        )


# ==================== CREDENTIAL-SPECIFIC EXCEPTIONS ====================


# Provider responses that mean the credential itself was rejected
INVALID_TOKEN_STATUS_CODES = frozenset({401, 403})


class ServiceProviderError(BaseError):
    """
    A service provider answered a request with an error.

    The provider status code decides the kind: 401/403 mean the token content
    was rejected, anything else is treated as a transient failure.
    """

    def __init__(
        self,
        status_code: int,
        response: str = "",
        message: Optional[str] = None,
        cause: Optional[Exception] = None,
        **context,
    ):
        self.response = response
        super().__init__(
            message or f"service provider responded with status {status_code}: {response}",
            error_code=ErrorCode.SERVICE_PROVIDER_ERROR,
            status_code=status_code,
            cause=cause,
            response=response,
            **context,
        )

    @property
    def is_invalid_token(self) -> bool:
        """Whether the provider rejected the credential itself."""
        return self.status_code in INVALID_TOKEN_STATUS_CODES

    @property
    def kind(self) -> ErrorKind:  # type: ignore[override]
        return ErrorKind.CONTENT if self.is_invalid_token else ErrorKind.INFRASTRUCTURE


class UnknownServiceProviderError(ConfigurationError):
    """No registered service provider recognizes a URL."""

    def __init__(self, url: str, **kwargs):
        self.url = url
        super().__init__(
            f"no service provider is registered for url '{url}'",
            error_code=ErrorCode.UNKNOWN_SERVICE_PROVIDER,
            url=url,
            **kwargs,
        )


class TokenStorageError(ExternalServiceError):
    """The external token storage failed."""

    def __init__(self, message: str, operation: str, cause: Optional[Exception] = None, **context):
        context["operation"] = operation
        super().__init__(
            message,
            service_name="token-storage",
            error_code=ErrorCode.TOKEN_STORAGE_ERROR,
            cause=cause,
            **context,
        )


class OAuthStateError(ValidationError):
    """The OAuth state could not be decoded or failed validation."""

    def __init__(self, message: str, cause: Optional[Exception] = None, **context):
        super().__init__(
            message,
            field="state",
            error_code=ErrorCode.INVALID_FORMAT,
            cause=cause,
            **context,
        )


class ReconcileCancelledError(ServiceError):
    """The reconcile ran out of time or the operator is shutting down."""

    def __init__(self, message: str = "Reconcile cancelled", **kwargs):
        super().__init__(message, error_code=ErrorCode.CANCELLED, **kwargs)


# Factory functions for common error patterns
def not_found(
    resource_type: str, cause: Optional[Exception] = None, **identifiers
) -> ResourceNotFoundError:
    """
    Factory for not found errors.

    Args:
        resource_type: Kind of the object (e.g., 'SPIAccessToken')
        cause: Original exception if any
        **identifiers: Object identifiers (e.g., namespace='default', name='token')

    Returns:
        Configured ResourceNotFoundError instance
    """
    id_parts = [f"{k}={v}" for k, v in identifiers.items()]
    message = f"{resource_type} not found"
    if id_parts:
        message += f": {', '.join(id_parts)}"

    return ResourceNotFoundError(
        message,
        cause=cause,
        resource_type=resource_type,
        **identifiers,
    )


def conflict(
    resource_type: str, reason: str, cause: Optional[Exception] = None, **identifiers
) -> ResourceConflictError:
    """
    Factory for conflict errors.

    Args:
        resource_type: Kind of the object
        reason: What conflicted (stale resourceVersion, already exists, ...)
        cause: Original exception if any
        **identifiers: Object identifiers

    Returns:
        Configured ResourceConflictError instance
    """
    id_parts = [f"{k}={v}" for k, v in identifiers.items()]
    message = f"Conflict on {resource_type}: {reason}"
    if id_parts:
        message += f" ({', '.join(id_parts)})"

    return ResourceConflictError(
        message,
        cause=cause,
        resource_type=resource_type,
        reason=reason,
        **identifiers,
    )


def classify_error(error: BaseException) -> ErrorKind:
    """
    Classify any exception into an ErrorKind.

    Errors from this module carry their kind; anything else is assumed to be a
    transient infrastructure failure.
    """
    if isinstance(error, BaseError):
        return error.kind
    return ErrorKind.INFRASTRUCTURE


# Correlation ID management
def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current thread."""
    _thread_local.correlation_id = correlation_id


def get_correlation_id() -> Optional[str]:
    """Get the current thread's correlation ID."""
    return getattr(_thread_local, "correlation_id", None)


def clear_correlation_id() -> None:
    """Clear the current thread's correlation ID."""
    if hasattr(_thread_local, "correlation_id"):
        delattr(_thread_local, "correlation_id")
