"""
Error Taxonomy

Errors shared across the audit engine, the competitor pipeline and the
HTTP layer. The API maps each class to a status code; upstream provider
errors never reach a caller because every provider call has a fallback.
"""

from typing import Optional


class AuditError(Exception):
    """Base class for audit errors with an HTTP status hint."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AuditError):
    """Missing or malformed input."""
    status_code = 400


class NotFoundError(AuditError):
    """A referenced report or comparison does not exist."""
    status_code = 404


class UpstreamProviderError(AuditError):
    """An AI or NLP provider failed, timed out, or returned nothing usable."""
    status_code = 502

    def __init__(self, message: str, provider: str = "unknown"):
        super().__init__(message)
        self.provider = provider


class InsufficientDataError(AuditError):
    """Too few competitor analyses succeeded to build a comparison."""
    status_code = 422


class InternalError(AuditError):
    """Unexpected failure inside the service."""
    status_code = 500


class StatusTransitionError(InternalError):
    """A persisted comparison was asked to move backwards."""
