"""Custom exception hierarchy."""

from __future__ import annotations


class HttprError(Exception):
    """Base exception for all library errors."""

    pass


class MaterializationError(HttprError):
    """Request cannot be turned into a wire-level request.

    Raised for a malformed method or URI. Fatal for that request: it is
    never retried and no hook runs.
    """

    def __init__(self, message: str, method: str | None = None, uri: str | None = None) -> None:
        super().__init__(message)
        self.method = method
        self.uri = uri


class TransportError(HttprError):
    """Network-level failure (connect, timeout, transport I/O)."""

    def __init__(self, message: str, attempts: int = 1) -> None:
        super().__init__(message)
        self.attempts = attempts


class DecodingError(HttprError):
    """Response body cannot be parsed into the requested shape."""

    def __init__(self, message: str, content_type: str | None = None) -> None:
        super().__init__(message)
        self.content_type = content_type


class ConfigurationError(HttprError, ValueError):
    """Builder misuse such as an odd number of paired arguments.

    This signals a caller bug and is not meant to be caught.
    """

    pass
