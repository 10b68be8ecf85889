"""Ownership check shared by every drive operation."""

import logging
from typing import Protocol

from server.apps.files.exceptions import ForbiddenError

logger = logging.getLogger(__name__)


class OwnedRecord(Protocol):
    """Anything carrying the id of the user who owns it."""

    pk: object
    owner_id: int


def is_owner(user_id: int, resource: OwnedRecord) -> bool:
    """Check whether the caller owns a record.

    Args:
        user_id: Resolved id of the caller.
        resource: File, Folder or Share.

    Returns:
        True if the caller owns the record.
    """
    return resource.owner_id == user_id


def authorize(user_id: int, resource: OwnedRecord) -> None:
    """Allow the caller to act on a record or fail.

    Args:
        user_id: Resolved id of the caller.
        resource: File, Folder or Share.

    Raises:
        ForbiddenError: If the caller does not own the record.
    """
    if not is_owner(user_id, resource):
        logger.warning(
            'Access denied: user %s on %s %s',
            user_id,
            type(resource).__name__,
            resource.pk,
        )
        raise ForbiddenError
