"""Exceptions for files app.

Every error raised by the drive logic derives from ``DriveError``
and carries the HTTP status the API layer answers with.
"""

from typing import ClassVar


class DriveError(Exception):
    """Base class for all drive errors."""

    status_code: ClassVar[int] = 500
    default_message: ClassVar[str] = 'Internal server error'

    def __init__(self, message: str | None = None) -> None:
        """Initialize DriveError.

        Args:
            message: Human readable description, defaults to the class one.
        """
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidArgumentError(DriveError):
    """Raised when input is missing or malformed."""

    status_code = 400
    default_message = 'Invalid argument'


class UnauthenticatedError(DriveError):
    """Raised when the caller identity cannot be established."""

    status_code = 401
    default_message = 'Authentication required'


class ForbiddenError(DriveError):
    """Raised when the caller does not own the resource."""

    status_code = 403
    default_message = 'Access denied'


class NotFoundError(DriveError):
    """Raised when an id does not resolve to a record."""

    status_code = 404
    default_message = 'Resource not found'


class GoneError(DriveError):
    """Raised when a share link has expired."""

    status_code = 410
    default_message = 'Share link has expired'


class InternalError(DriveError):
    """Raised on unexpected store failures."""


class BlobWriteFailedError(InternalError):
    """Raised when the blob store rejects a write."""

    default_message = 'Failed to store file content'


class BlobReadFailedError(InternalError):
    """Raised when the blob store fails to return content."""

    default_message = 'Failed to read file content'


class BlobDeleteFailedError(InternalError):
    """Raised when the blob store fails to delete content."""

    default_message = 'Failed to delete file content'
