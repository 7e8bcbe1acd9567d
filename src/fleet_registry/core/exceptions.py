"""
Fleet Registry Exception Hierarchy.

Defines all custom exceptions raised by the registry core and its adapters.
Every error carries structured details so the boundary layer can decide
whether to abort, log or surface it.
"""

from typing import Any


class FleetRegistryError(Exception):
    """
    Base exception for all Fleet Registry errors.

    All custom exceptions inherit from this class, allowing
    generic catch blocks and consistent error handling.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        """
        Initialize a FleetRegistryError.

        Args:
            message: Human-readable error message
            details: Optional structured data for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation with details."""
        base = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{base} ({details_str})"
        return base

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class RegistryError(FleetRegistryError):
    """
    Errors in registry operations.

    Raised when a registry operation violates its contract, including:
    - Record already exists
    - Record not found
    - Stored or received bytes that do not decode
    - Records that fail admission rules
    """

    def __init__(
        self,
        message: str,
        *,
        record_kind: str | None = None,
        key: str | None = None,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a RegistryError.

        Args:
            message: Human-readable error message
            record_kind: Kind of record involved
            key: World-state key involved
            operation: Operation being performed
            details: Optional structured data for debugging
        """
        details = details or {}
        if record_kind:
            details["record_kind"] = record_kind
        if key:
            details["key"] = key
        if operation:
            details["operation"] = operation

        super().__init__(message, details=details)
        self.record_kind = record_kind
        self.key = key
        self.operation = operation


class RecordExistsError(RegistryError):
    """Raised when creating a record under a key that is already present."""

    def __init__(
        self,
        message: str = "Record already exists",
        *,
        record_kind: str | None = None,
        key: str | None = None,
        operation: str = "create",
    ):
        super().__init__(
            message,
            record_kind=record_kind,
            key=key,
            operation=operation,
        )


class RecordNotFoundError(RegistryError):
    """Raised when reading, updating or deleting a key that is absent."""

    def __init__(
        self,
        message: str = "Record not found",
        *,
        record_kind: str | None = None,
        key: str | None = None,
        operation: str = "read",
    ):
        super().__init__(
            message,
            record_kind=record_kind,
            key=key,
            operation=operation,
        )


class CorruptRecordError(RegistryError):
    """Raised when stored or received bytes fail to decode into the expected shape."""

    def __init__(
        self,
        message: str = "Record could not be decoded",
        *,
        record_kind: str | None = None,
        key: str | None = None,
        reason: str | None = None,
    ):
        details = {}
        if reason:
            details["reason"] = reason
        super().__init__(
            message,
            record_kind=record_kind,
            key=key,
            operation="decode",
            details=details,
        )
        self.reason = reason


class ValidationFailedError(RegistryError):
    """
    Raised when a record fails a type-specific admission rule.

    Collects every violation found so the caller sees them all at once.
    """

    def __init__(
        self,
        message: str = "Record failed validation",
        *,
        record_kind: str | None = None,
        key: str | None = None,
        violations: list[str] | None = None,
    ):
        details = {}
        if violations:
            details["violations"] = violations
        super().__init__(
            message,
            record_kind=record_kind,
            key=key,
            operation="validate",
            details=details,
        )
        self.violations = violations or []


class StoreUnavailableError(FleetRegistryError):
    """
    Raised when a call into the world-state store fails.

    The underlying store error is chained as ``__cause__``.
    """

    def __init__(
        self,
        message: str = "World state store call failed",
        *,
        store_operation: str | None = None,
        key: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if store_operation:
            details["store_operation"] = store_operation
        if key:
            details["key"] = key
        super().__init__(message, details=details)
        self.store_operation = store_operation
        self.key = key


class RemoteCallFailedError(FleetRegistryError):
    """Raised when a cross-registry invocation returns a non-success status."""

    def __init__(
        self,
        message: str = "Cross-registry call failed",
        *,
        target: str | None = None,
        operation: str | None = None,
        status: int | None = None,
        response_message: str | None = None,
    ):
        details: dict[str, Any] = {}
        if target:
            details["target"] = target
        if operation:
            details["operation"] = operation
        if status is not None:
            details["status"] = status
        if response_message:
            details["response_message"] = response_message
        super().__init__(message, details=details)
        self.target = target
        self.operation = operation
        self.status = status
        self.response_message = response_message


class ConfigurationError(FleetRegistryError):
    """
    Errors in configuration loading or validation.

    Raised when:
    - Required environment variables are malformed
    - Configuration values are invalid
    """

    def __init__(
        self,
        message: str,
        *,
        env_var: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a ConfigurationError.

        Args:
            message: Human-readable error message
            env_var: Environment variable name if applicable
            details: Optional structured data for debugging
        """
        details = details or {}
        if env_var:
            details["env_var"] = env_var

        super().__init__(message, details=details)
        self.env_var = env_var


def format_exception(error: Exception) -> str:
    """
    Format an exception for user-friendly display.

    Args:
        error: The exception to format

    Returns:
        Formatted error message string
    """
    if isinstance(error, FleetRegistryError):
        return str(error)
    return f"{error.__class__.__name__}: {error}"
