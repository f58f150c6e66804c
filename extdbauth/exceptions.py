"""Exception hierarchy for extdbauth.

Configuration faults and unsupported-operation faults are raised as these
types. Errors from the external database driver are deliberately not wrapped
and reach the caller as-is.
"""

from __future__ import annotations


class ExtDbAuthError(Exception):
    """Base exception for all extdbauth errors."""

    error_type: str = "internal_error"

    def __init__(self, message: str = "An internal error occurred") -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(ExtDbAuthError):
    """Missing or malformed provider configuration."""

    error_type = "configuration_error"


class UnsupportedAlgorithmError(ConfigurationError, ValueError):
    """The configured hash algorithm is not in the supported set."""

    error_type = "unsupported_algorithm"

    def __init__(self, algorithm: str) -> None:
        self.algorithm = algorithm
        super().__init__(f"Unsupported hash algorithm: {algorithm!r}")


class UnsupportedOperationError(ExtDbAuthError, NotImplementedError):
    """The provider does not support the requested chain operation."""

    error_type = "unsupported_operation"
