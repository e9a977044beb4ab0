"""
Exception hierarchy for fraktal.

All library exceptions inherit from FraktalError for easy catching.
"""

from __future__ import annotations

from typing import Any


class FraktalError(Exception):
    """
    Base exception for all fraktal errors.

    Catch this to handle any library-related exception.

    Example:
        >>> try:
        ...     await packages.initialize()
        ... except FraktalError as e:
        ...     print(f"Setup failed: {e}")
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(FraktalError):
    """
    Configuration is missing or invalid.

    Raised when:
    - Required configuration values are not provided
    - A client is used without the endpoint it needs
    """

    pass


class ValidationError(FraktalError, ValueError):
    """
    Input validation error.

    Also a ValueError, so callers validating plain input can catch either.

    Raised when:
    - Package, transfer or PII input fails validation
    - A value cannot be canonicalized for hashing
    """

    pass


class NetworkError(FraktalError):
    """
    Network or API communication error.

    Raised when:
    - HTTP request fails (timeout, connection error)
    - API returns a non-success status
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code
        self.url = url

    def is_not_found(self) -> bool:
        """Check if the server reported the resource as missing."""
        return self.status_code == 404

    def is_server_error(self) -> bool:
        """Check if this is a server-side error."""
        return self.status_code is not None and 500 <= self.status_code < 600


class FireFlyError(NetworkError):
    """
    The FireFly middleware rejected a request.

    Raised when:
    - Datatype, interface, API or listener creation fails
    - A contract invoke/query returns an HTTP error
    """

    def __str__(self) -> str:
        prefix = f"[firefly:{self.status_code}] " if self.status_code else "[firefly] "
        return prefix + super().__str__()


class NotFoundError(FraktalError):
    """
    A datatype or contract artifact is absent where it must exist.

    Distinct from the "absent -> create" path taken during initialization.
    """

    def __init__(
        self,
        message: str,
        resource: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.resource = resource


class ContractError(FraktalError):
    """
    A contract invocation receipt carried an error.

    Raised by InvokeResponse.raise_for_error() for callers that prefer
    exceptions over checking the receipt.
    """

    def __init__(
        self,
        message: str,
        method: str | None = None,
        transaction_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.method = method
        self.transaction_id = transaction_id

    def __str__(self) -> str:
        if self.method:
            return f"[{self.method}] {self.message}"
        return self.message
