"""
Custom exceptions for catalog enumeration with structured error context.

Each exception carries a context dictionary (platform, range, record key, ...)
so failures can be logged and persisted with enough detail to retry them.

Exception Hierarchy:
    CatalogError (base)
    ├── ConfigurationError
    ├── PlatformCommunicationError
    │   ├── NetworkError            (retryable)
    │   ├── RateLimitError          (retryable)
    │   ├── AuthenticationError     (non-retryable)
    │   └── ResourceNotFoundError   (non-retryable)
    ├── IncompleteEnumerationError
    ├── SinkWriteError
    ├── StoreError
    ├── LookupMiss
    └── RetryableError / NonRetryableError (mixins)
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class CatalogError(Exception):
    """
    Base exception for all enumeration and collection errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (platform, range, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Configuration Errors
# ============================================================================

class ConfigurationError(CatalogError):
    """
    Unknown platform name, unknown output kind or missing option.

    Fatal: raised before any enumeration work starts.
    """
    pass


# ============================================================================
# Platform Errors
# ============================================================================

class PlatformCommunicationError(CatalogError):
    """
    A driver or worker task failed to talk to its platform.

    Context should include:
        - platform: Platform name
        - url: The endpoint that failed
        - status_code: HTTP status code (if applicable)
        - retry_count: Number of retries attempted
    """
    pass


class IncompleteEnumerationError(CatalogError):
    """
    A range could not be split below the result cap at the required star
    boundary, so boundary repositories cannot be guaranteed.

    Context should include:
        - range: The indivisible range
        - count: Result count reported by the probe
        - cap: Result cap of the search API
    """
    pass


# ============================================================================
# Storage Errors
# ============================================================================

class SinkWriteError(CatalogError):
    """
    A record could not be committed to its sink.

    Context should include:
        - sink: Sink kind
        - platform_prefix / identifier: Key of the record
    """
    pass


class StoreError(CatalogError):
    """
    Package store operation failed.

    Context should include:
        - operation: Type of database operation (UPSERT, SELECT, DELETE)
        - table_name: Name of the table
    """
    pass


class LookupMiss(CatalogError):
    """No enumerated repository record matches a package name."""
    pass


# ============================================================================
# Retry Strategy Mixins
# ============================================================================

class RetryableError(CatalogError):
    """
    Mixin for errors that should trigger retry logic.

    Use this for transient errors like:
    - Network timeouts
    - Rate limiting (HTTP 429, GitHub secondary limits)
    - Service unavailable (HTTP 503)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
        max_retries: int = 3,
        retry_delay: float = 1.0
    ):
        super().__init__(message, context, original_exception)
        self.max_retries = max_retries
        self.retry_delay = retry_delay


class NonRetryableError(CatalogError):
    """
    Mixin for errors that should NOT trigger retry logic.

    Use this for permanent errors like:
    - Authentication failures (HTTP 401, 403)
    - Resource not found (HTTP 404)
    """
    pass


# ============================================================================
# Specific Platform Errors
# ============================================================================

class NetworkError(RetryableError, PlatformCommunicationError):
    """Network-related errors that should be retried."""
    pass


class RateLimitError(RetryableError, PlatformCommunicationError):
    """Rate limiting errors that should be retried with backoff."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
        retry_after: Optional[float] = None
    ):
        super().__init__(message, context, original_exception)
        self.retry_after = retry_after  # Seconds to wait before retry
        if retry_after:
            self.context["retry_after"] = retry_after


class AuthenticationError(NonRetryableError, PlatformCommunicationError):
    """Authentication failures (HTTP 401, 403) that should not be retried."""
    pass


class ResourceNotFoundError(NonRetryableError, PlatformCommunicationError):
    """Resource not found errors (HTTP 404) that should not be retried."""
    pass
