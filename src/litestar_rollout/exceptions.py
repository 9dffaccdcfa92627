"""Exceptions raised by litestar-rollout."""

from __future__ import annotations

__all__ = (
    "ConfigurationError",
    "FeatureFlagError",
    "FlagDeserializationError",
    "FlagValidationError",
    "StoreUnavailableError",
    "StoredValueError",
)


class FeatureFlagError(Exception):
    """Base exception for all feature flag errors."""


class ConfigurationError(FeatureFlagError):
    """Raised when the plugin or bootstrap configuration is invalid."""


class FlagValidationError(FeatureFlagError, ValueError):
    """Raised when a flag definition contains invalid values."""


class StoreUnavailableError(FeatureFlagError):
    """Raised by a shared store when it cannot be reached.

    Args:
        operation: The store operation that failed (``get``, ``set``, ...).
        cause: The underlying client exception, if any.
    """

    def __init__(self, operation: str, cause: BaseException | None = None) -> None:
        self.operation = operation
        self.cause = cause
        message = f"Shared store unavailable during '{operation}'"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class FlagDeserializationError(FeatureFlagError):
    """Raised when a stored flag payload cannot be decoded."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Cannot deserialize flag '{key}': {reason}")


class StoredValueError(FeatureFlagError):
    """Raised by a shared store when a stored key or value is not valid UTF-8.

    Args:
        key: The storage key (or scan pattern) that could not be decoded.
        reason: The decoder's error message.
    """

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Cannot decode stored value '{key}': {reason}")
