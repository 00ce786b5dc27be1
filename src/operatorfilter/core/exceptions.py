"""Operator filter exception hierarchy.

This module defines the base exception class and specialized exceptions
for different error categories across the application.
"""

from enum import Enum


class OperatorFilterError(Exception):
    """Base exception for all operator filter errors.

    All custom exceptions in the package should inherit from this class
    to enable consistent error handling and logging.
    """

    pass


class DatabaseConnectionError(OperatorFilterError):
    """Raised when database connection fails.

    Example:
        raise DatabaseConnectionError("Supabase: Connection refused")
    """

    pass


class ConfigurationError(OperatorFilterError):
    """Raised when configuration is invalid or missing.

    Use this for issues with environment variables, settings files,
    or unsupported chain ids.

    Example:
        raise ConfigurationError("No operator filter registries for chain 999")
    """

    pass


class ValidationError(OperatorFilterError):
    """Raised when data validation fails.

    Use this for malformed addresses or arguments that cannot be
    ABI-encoded.

    Example:
        raise ValidationError("Address must be 0x-prefixed 20-byte hex")
    """

    pass


class ExternalServiceError(OperatorFilterError):
    """Raised when an external service call fails.

    Attributes:
        service: Name of the external service that failed.
        status_code: HTTP status code if available, None otherwise.

    Example:
        raise ExternalServiceError(service="eth-rpc", message="Rate limited", status_code=429)
    """

    def __init__(
        self,
        service: str,
        message: str,
        status_code: int | None = None,
    ) -> None:
        self.service = service
        self.status_code = status_code
        super().__init__(f"{service}: {message}")


class CircuitBreakerOpenError(OperatorFilterError):
    """Raised when circuit breaker is open.

    Use this when an API client's circuit breaker has tripped due to
    consecutive failures and requests are being blocked.
    """

    pass


class CallFailureKind(str, Enum):
    """Why a read-only contract call did not produce a value."""

    REVERTED = "reverted"  # Function absent or reverted
    RPC_ERROR = "rpc_error"  # Node returned a non-revert JSON-RPC error
    TRANSPORT = "transport"  # Network, timeout, circuit open
    DECODE = "decode"  # Return data did not match the declared outputs

    @property
    def is_transient(self) -> bool:
        """Whether retrying later could produce a different answer."""
        return self in (CallFailureKind.TRANSPORT, CallFailureKind.RPC_ERROR)


class ChainCallError(OperatorFilterError):
    """Raised when an eth_call does not return usable data.

    Attributes:
        kind: Failure category used by callers to apply fail-open policies.
        address: Contract address that was called (if available).

    Example:
        raise ChainCallError("execution reverted", kind=CallFailureKind.REVERTED)
    """

    def __init__(
        self,
        message: str,
        kind: CallFailureKind,
        address: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.address = address
