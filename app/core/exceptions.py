"""
Domain errors raised by services and translated to HTTP responses by routers.

Partial ingestion is deliberately not an exception; see IngestionResult.
"""

from typing import Optional


class CaptionAppError(Exception):
    """Base class for application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(CaptionAppError):
    """A manual style declaration is malformed."""


class UpstreamUnavailable(CaptionAppError):
    """An external API (Instagram Graph, OAuth, captioning model) failed."""


class NotFound(CaptionAppError):
    """No manual profile saved, or no social account linked."""


class OAuthStateError(CaptionAppError):
    """The OAuth `state` parameter is missing, forged or expired."""
