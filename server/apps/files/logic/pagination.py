"""Limit/offset slicing shared by listing operations."""

from typing import TypeVar

from django.db.models import Model, QuerySet

from server.apps.files.exceptions import InvalidArgumentError

_ModelT = TypeVar('_ModelT', bound=Model)


def paginate(
    queryset: QuerySet[_ModelT],
    limit: int | None,
    offset: int = 0,
) -> list[_ModelT]:
    """Slice an ordered queryset.

    Args:
        queryset: Ordered queryset to slice.
        limit: Maximum number of rows, None for all of them.
        offset: Number of rows to skip.

    Returns:
        Rows of the requested page.

    Raises:
        InvalidArgumentError: If limit is not positive or offset is negative.
    """
    if offset < 0:
        raise InvalidArgumentError('Offset must not be negative')

    if limit is None:
        return list(queryset[offset:])

    if limit <= 0:
        raise InvalidArgumentError('Limit must be positive')

    return list(queryset[offset:offset + limit])
