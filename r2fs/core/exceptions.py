"""
Custom exceptions for r2fs operations.

Projection errors are recovered locally, transport and session errors
propagate to the caller, cleanup errors are only logged.
"""
from typing import Optional


class R2FsError(Exception):
    """Base exception for all r2fs errors."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            status: HTTP status code (if available)
        """
        self.status = status
        super().__init__(message)


class ConfigurationError(R2FsError):
    """Raised when no usable endpoint is configured."""
    pass


class TransportError(R2FsError):
    """Exception raised for network and HTTP failures."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        body: str = "",
        method: Optional[str] = None,
        path: Optional[str] = None
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            status: HTTP status code, None for connection-level failures
            body: Response body text
            method: HTTP method of the failed request
            path: Request path of the failed request
        """
        self.body = body
        self.method = method
        self.path = path
        super().__init__(message, status)

    @classmethod
    def from_response(cls, method: str, path: str, status: int, reason: str, body: str) -> 'TransportError':
        """Build an error for a non-2xx gateway response."""
        return cls(
            f"API request failed: {status} {reason} - {body}",
            status=status,
            body=body,
            method=method,
            path=path
        )


class CancellationError(R2FsError):
    """Raised when a transfer is cancelled by the caller."""
    pass


class MalformedRecordError(R2FsError):
    """Raised for a listing entry that cannot be projected."""

    def __init__(self, key: Optional[str], reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Malformed record {key!r}: {reason}")


class PartialUploadError(R2FsError):
    """
    Raised when a multipart session fails after initiation.

    The remote upload has been aborted (best effort) before this is raised.
    """

    def __init__(self, key: str, upload_id: str, cause: BaseException) -> None:
        """
        Initialize the exception.

        Args:
            key: Destination object key
            upload_id: Remote multipart upload id
            cause: Original failure
        """
        self.key = key
        self.upload_id = upload_id
        self.cause = cause
        super().__init__(
            f"Multipart upload of {key!r} failed (upload id {upload_id}): {cause}",
            getattr(cause, 'status', None)
        )
