"""Metadata and naming utilities for files and folders."""

import mimetypes
from typing import Final

from server.apps.files.exceptions import InvalidArgumentError

_DEFAULT_MIME_TYPE: Final = 'application/octet-stream'
_NAME_MAX_LENGTH: Final = 255
_FORBIDDEN_NAME_CHARACTERS: Final = ('/', '\x00')


def detect_mime_type(filename: str) -> str:
    """Detect MIME type from a filename.

    Uses Python's built-in mimetypes module to guess MIME type
    from filename extension.

    Args:
        filename: Filename with extension.

    Returns:
        MIME type string (e.g., 'image/jpeg', 'application/pdf').
        Returns 'application/octet-stream' if type cannot be determined.
    """
    mime_type, _ = mimetypes.guess_type(filename)
    if mime_type is None:
        return _DEFAULT_MIME_TYPE
    return mime_type


def validate_name(name: str | None, label: str = 'Name') -> str:
    """Validate a file or folder name.

    Names become components of materialized paths, so they may not
    contain the path separator.

    Args:
        name: Proposed name.
        label: Subject used in error messages.

    Returns:
        The name, unchanged.

    Raises:
        InvalidArgumentError: If the name is empty, too long or
            contains a forbidden character.
    """
    if not isinstance(name, str) or not name.strip():
        raise InvalidArgumentError(f'{label} is required')

    if len(name) > _NAME_MAX_LENGTH:
        raise InvalidArgumentError(
            f'{label} must be at most {_NAME_MAX_LENGTH} characters',
        )

    if any(char in name for char in _FORBIDDEN_NAME_CHARACTERS):
        raise InvalidArgumentError(f'{label} must not contain "/"')

    return name
