"""
Errors raised by carrier adapters.
Every failure of a tracking lookup is a TrackingError subclass.
"""

from typing import Optional


class TrackingError(Exception):
    """Base class for tracking lookup failures."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status  # Upstream HTTP status, when there was one


class InvalidInputError(TrackingError):
    """Tracking number is empty or too long."""


class AuthError(TrackingError):
    """OAuth token request was rejected or could not be made."""


class ConfigError(TrackingError):
    """Carrier returned a malformed auth response (e.g. no access token)."""


class UpstreamError(TrackingError):
    """Carrier tracking endpoint failed or returned an error payload."""


class NotFoundError(TrackingError):
    """Carrier answered, but has no shipment for the tracking number."""
