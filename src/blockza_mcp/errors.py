"""
Error kinds raised by the upstream client and call handlers.

Handlers catch these at the protocol boundary and turn them into
error payloads, so none of them ever reach the host as an exception.
"""

from typing import Optional


class DirectoryError(Exception):
    """Base class for all directory errors."""


class ValidationError(DirectoryError):
    """A required argument is missing or has the wrong type."""


class NotFoundError(DirectoryError):
    """The upstream query succeeded but the requested record is absent."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class UpstreamError(DirectoryError):
    """Non-2xx response or a response body that does not match the expected envelope."""

    def __init__(self, message: str, status: Optional[int] = None, status_text: Optional[str] = None):
        self.status = status
        self.status_text = status_text
        super().__init__(message)

    @classmethod
    def from_status(cls, status: int, status_text: str) -> "UpstreamError":
        return cls(f"HTTP {status}: {status_text}", status=status, status_text=status_text)


class EmptyResultError(DirectoryError):
    """A query produced zero records where the caller needs at least one."""
