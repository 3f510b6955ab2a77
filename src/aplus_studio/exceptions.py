"""Centralized exception classes for aplus-studio.

This module provides a hierarchy of exceptions for better error handling
and user-friendly error messages throughout the application.
"""

from __future__ import annotations


class AplusStudioError(Exception):
    """Base exception for all aplus-studio errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(self, message: str, details: str | None = None):
        """Initialize the exception.

        Args:
            message: User-friendly error message.
            details: Additional technical details for debugging.
        """
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}\n  Details: {self.details}"
        return self.message


class ConfigurationError(AplusStudioError):
    """Raised when configuration is missing or invalid."""

    pass


class ValidationError(AplusStudioError):
    """Raised when input validation fails."""

    pass


class APIError(AplusStudioError):
    """Base class for errors raised around calls to the generative service."""

    pass


class QuotaExceededError(APIError):
    """Raised when a model tier has no remaining allowance."""

    pass


class ResearchError(APIError):
    """Raised internally when trend research fails.

    Never surfaced to callers: the researcher substitutes a fallback summary.
    """

    pass


class PlanningError(APIError):
    """Raised when the planning call yields no usable plan.

    Aborts the whole run before any generation job starts.
    """

    pass


class GenerationRefusedError(APIError):
    """Raised when the image model answers with text instead of an image."""

    def __init__(self, reason: str, details: str | None = None):
        super().__init__(f"Model refused generation: {reason}", details)
        self.reason = reason


class GenerationFailedError(APIError):
    """Raised when an image generation call fails for any non-refusal reason."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message, str(cause) if cause else None)
        self.cause = cause


class AllGenerationsFailedError(APIError):
    """Raised when every job of a run failed.

    Signals a systemic problem (for example no quota at all) rather than a
    content-specific refusal of a single job.
    """

    def __init__(self, errors: list[str] | None = None):
        self.errors = list(errors or [])
        details = "; ".join(self.errors) if self.errors else None
        super().__init__("All image generations failed", details)


class StorageError(AplusStudioError, ValueError):
    """Raised when storage operations fail."""

    pass


class StorageCapacityError(StorageError):
    """Raised by a key-value store when a write exceeds its capacity."""

    pass


class AssetNotFoundError(AplusStudioError, ValueError):
    """Raised when no published asset has the requested id."""

    pass


class RegenerationInProgressError(AplusStudioError):
    """Raised when an asset is already being regenerated."""

    pass
