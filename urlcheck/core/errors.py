"""
Error types raised inside the URL checker.

Per-URL failures never leave their component: the scanner and the redirect
resolver catch them and turn them into ``status: error`` result fields. Only
InvalidInputError reaches the HTTP layer, where it becomes a 400.
"""

from typing import Optional


class UrlCheckError(Exception):
    """Base error with a human-readable message."""

    default_message = "URL check failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(UrlCheckError):
    """The batch payload is not an array of strings."""

    default_message = "Invalid input: URLs must be an array"


class InvalidUrlError(UrlCheckError):
    """A single URL has no recognizable scheme or host."""

    default_message = "Invalid URL format"

    def __init__(self, url: str, message: Optional[str] = None):
        self.url = url
        super().__init__(message)


class TransportError(UrlCheckError):
    """Network failure, timeout or unexpected response from an outbound call."""

    @classmethod
    def from_exception(cls, exc: Exception) -> "TransportError":
        # httpx timeouts frequently carry an empty message
        return cls(str(exc) or exc.__class__.__name__)


class IncompleteScanError(UrlCheckError):
    """Polling ran out of attempts before the scan report was complete."""

    default_message = "No scan results available"
