"""
Error types raised by the enhancement pipeline.

Codec and remote failures are normalized into these at the module boundary,
so sessions only need to handle ``EnhancerError``.
"""
from typing import Optional


class EnhancerError(RuntimeError):
    """Base class for pipeline errors."""


class ReadError(EnhancerError):
    """Raised when a local media file cannot be read."""


class InvalidMediaError(EnhancerError):
    """Raised for undecodable media or a video with a zero dimension."""


class RemoteError(EnhancerError):
    """Raised for transport, auth or non-success responses from the remote service."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class NoResultError(EnhancerError):
    """Raised when a well-formed response is missing the expected payload."""


class OperationCancelled(EnhancerError):
    """Raised inside a pipeline run after its cancellation token fired."""
