"""Name and metadata search over a user's files and folders."""

import datetime as dt
import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Final, final

from django.db.models import Q

from server.apps.files.exceptions import InvalidArgumentError
from server.apps.files.logic.lookups import parse_id
from server.apps.files.logic.pagination import paginate
from server.apps.files.models import File, Folder

logger = logging.getLogger(__name__)

SEARCH_DEFAULT_LIMIT: Final = 20
RECENT_DEFAULT_LIMIT: Final = 10

_KIND_FILES: Final = 'files'
_KIND_FOLDERS: Final = 'folders'
_KIND_ALL: Final = 'all'
_KINDS: Final = frozenset((_KIND_FILES, _KIND_FOLDERS, _KIND_ALL))


@final
@dataclass(slots=True)
class SearchResults:
    """Files and folders matching a search."""

    files: list[File] = field(default_factory=list)
    folders: list[Folder] = field(default_factory=list)


@final
@dataclass(slots=True)
class AdvancedSearchResults:
    """One page of files matching a filtered search."""

    files: list[File]
    total: int


def search(
    user_id: int,
    query: str,
    kind: str | None = _KIND_ALL,
    limit: int = SEARCH_DEFAULT_LIMIT,
) -> SearchResults:
    """Search the caller's files and folders by name.

    Args:
        user_id: Caller.
        query: Case-insensitive substring of the name.
        kind: ``files``, ``folders`` or ``all``.
        limit: Maximum results per kind.

    Returns:
        Matching files and folders, newest first.

    Raises:
        InvalidArgumentError: If the query is empty or the kind unknown.
    """
    if not query or not query.strip():
        raise InvalidArgumentError('Search query is required')

    kind = kind or _KIND_ALL
    if kind not in _KINDS:
        raise InvalidArgumentError(f'Unknown search type: {kind}')

    results = SearchResults()
    if kind in {_KIND_FILES, _KIND_ALL}:
        results.files = paginate(
            File.objects.filter(
                owner_id=user_id,
                name__icontains=query.strip(),
            ).order_by('-created_at'),
            limit,
        )
    if kind in {_KIND_FOLDERS, _KIND_ALL}:
        results.folders = paginate(
            Folder.objects.filter(
                owner_id=user_id,
                name__icontains=query.strip(),
            ).order_by('-created_at'),
            limit,
        )

    logger.debug(
        'Search %r by user %s: %d files, %d folders',
        query,
        user_id,
        len(results.files),
        len(results.folders),
    )
    return results


def advanced_search(  # noqa: WPS211
    user_id: int,
    *,
    query: str | None = None,
    mime_types: Sequence[str] | None = None,
    size_min: int | None = None,
    size_max: int | None = None,
    date_from: dt.datetime | None = None,
    date_to: dt.datetime | None = None,
    folder_id: uuid.UUID | str | None = None,
    tags: Sequence[str] | None = None,
    limit: int = SEARCH_DEFAULT_LIMIT,
) -> AdvancedSearchResults:
    """Search the caller's files with optional filters.

    Every filter left out matches everything.

    Args:
        user_id: Caller.
        query: Case-insensitive substring of the name.
        mime_types: MIME type prefixes such as ``image/``.
        size_min: Minimum size in bytes, inclusive.
        size_max: Maximum size in bytes, inclusive.
        date_from: Earliest creation time, inclusive.
        date_to: Latest creation time, inclusive.
        folder_id: Restrict to files directly inside this folder.
        tags: Files carrying any of these tags.
        limit: Maximum number of files.

    Returns:
        Matching files, newest first, and the total match count.

    Raises:
        InvalidArgumentError: If a range is inverted or an id malformed.
    """
    if size_min is not None and size_max is not None and size_min > size_max:
        raise InvalidArgumentError('size_min must not exceed size_max')
    if date_from is not None and date_to is not None and date_from > date_to:
        raise InvalidArgumentError('date_from must not be after date_to')

    queryset = File.objects.filter(owner_id=user_id)

    if query:
        queryset = queryset.filter(name__icontains=query)
    if folder_id:
        queryset = queryset.filter(folder_id=parse_id(folder_id, 'folder'))
    if mime_types:
        mime_filter = Q()
        for mime_type in mime_types:
            mime_filter |= Q(mime_type__startswith=mime_type)
        queryset = queryset.filter(mime_filter)
    if size_min is not None:
        queryset = queryset.filter(size__gte=size_min)
    if size_max is not None:
        queryset = queryset.filter(size__lte=size_max)
    if date_from is not None:
        queryset = queryset.filter(created_at__gte=date_from)
    if date_to is not None:
        queryset = queryset.filter(created_at__lte=date_to)
    if tags:
        queryset = queryset.filter(
            tags__user_id=user_id,
            tags__name__in=list(tags),
        ).distinct()

    queryset = queryset.order_by('-created_at')
    return AdvancedSearchResults(
        files=paginate(queryset, limit),
        total=queryset.count(),
    )


def recent_files(user_id: int, limit: int = RECENT_DEFAULT_LIMIT) -> list[File]:
    """Most recently uploaded files of the caller."""
    return paginate(
        File.objects.filter(owner_id=user_id).order_by('-created_at'),
        limit,
    )
