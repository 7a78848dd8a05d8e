"""Custom exception hierarchy for SOS."""

from __future__ import annotations


class SosError(Exception):
    """Base exception for all SOS-specific errors."""

    def __init__(self, message: str, details: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(SosError):
    """Raised when configuration is invalid or missing."""
    pass


class ValidationError(SosError):
    """Base class for validation errors."""
    pass


class InvalidNameError(ValidationError):
    """Raised when a bucket name or object key is rejected."""
    pass


class StorageError(SosError):
    """Raised when a storage backend operation fails.

    Carries the failed operation and its target (``bucket`` or
    ``bucket/key``) both as attributes and in ``details``.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        target: str | None = None,
        details: dict[str, str] | None = None,
    ) -> None:
        merged = dict(details or {})
        if operation:
            merged["operation"] = operation
        if target:
            merged["target"] = target
        super().__init__(message, merged)
        self.operation = operation
        self.target = target


class NotFoundError(StorageError):
    """Raised when the addressed bucket or object does not exist."""
    pass


class BucketNotFoundError(NotFoundError):
    pass


class ObjectNotFoundError(NotFoundError):
    pass


class StorageIOError(StorageError):
    """Raised for any underlying I/O failure that is not a missing entry."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        target: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, operation=operation, target=target)
        self.original_error = original_error


class ClientError(SosError):
    """Raised by the HTTP client when the server answers with a non-2xx status."""

    def __init__(self, message: str, status_code: int, body: str = "") -> None:
        super().__init__(message, {"status_code": str(status_code)})
        self.status_code = status_code
        self.body = body
