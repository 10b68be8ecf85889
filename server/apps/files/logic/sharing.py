"""Share tokens granting scoped, time-limited access to resources.

The Share table is the only record of sharing. Whether a file or
folder counts as shared is derived from it on read, so creating,
updating, revoking or expiring a share never touches the resource.
"""

import datetime as dt
import logging
import secrets
import uuid
from collections.abc import Iterable
from typing import Final, final

from django.db import transaction
from django.utils import timezone

from server.apps.activity.logic.activity_log import ActivityLog
from server.apps.activity.models import ActivityAction
from server.apps.files.config import DriveConfig
from server.apps.files.exceptions import (
    ForbiddenError,
    GoneError,
    InvalidArgumentError,
    NotFoundError,
)
from server.apps.files.infrastructure.blob_gateway import BlobGateway
from server.apps.files.logic.authorization import authorize
from server.apps.files.logic.lookups import Resource, load_resource, parse_id
from server.apps.files.logic.pagination import paginate
from server.apps.files.models import File, ResourceType, Share, SharePermission

logger = logging.getLogger(__name__)

# 32 random bytes, 64 hex characters
_TOKEN_BYTES: Final = 32


class _Unset:
    """Marker for arguments that were not passed at all."""

    def __repr__(self) -> str:
        return 'UNSET'


UNSET: Final = _Unset()


def generate_share_token() -> str:
    """Generate an unguessable share token.

    Returns:
        64 lowercase hex characters from the OS random source.
    """
    return secrets.token_hex(_TOKEN_BYTES)


def validate_permissions(permissions: Iterable[str] | None) -> list[str]:
    """Validate and normalize share permissions.

    Args:
        permissions: Requested permissions.

    Returns:
        Sorted, deduplicated permissions.

    Raises:
        InvalidArgumentError: If empty or containing an unknown value.
    """
    normalized = sorted(set(permissions or ()))
    if not normalized:
        raise InvalidArgumentError('At least one permission is required')

    unknown = set(normalized) - set(SharePermission.values)
    if unknown:
        raise InvalidArgumentError(
            f'Unknown permissions: {", ".join(sorted(unknown))}',
        )
    return normalized


def _validate_expiry(expires_at: dt.datetime | None) -> dt.datetime | None:
    if expires_at is None:
        return None
    if timezone.is_naive(expires_at):
        expires_at = timezone.make_aware(expires_at, dt.UTC)
    if expires_at <= timezone.now():
        raise InvalidArgumentError('Expiry must be in the future')
    return expires_at


@final
class ShareManager:
    """Creates, resolves and revokes shares."""

    def __init__(
        self,
        blobs: BlobGateway | None = None,
        activity: ActivityLog | None = None,
        config: DriveConfig | None = None,
    ) -> None:
        """Initialize the share manager.

        Args:
            blobs: Blob gateway used for share-link downloads.
            activity: Activity log every mutation is recorded in.
            config: Drive configuration, read from settings if omitted.
        """
        self._config = config or DriveConfig.from_settings()
        self._blobs = blobs or BlobGateway()
        self._activity = activity or ActivityLog(self._config)

    def create_share(  # noqa: WPS211
        self,
        user_id: int,
        resource_id: uuid.UUID | str,
        resource_type: str | None = None,
        permissions: Iterable[str] | None = (SharePermission.READ,),
        expires_at: dt.datetime | None = None,
        is_public: bool = True,
        shared_with_email: str | None = None,
    ) -> Share:
        """Share a file or folder owned by the caller.

        Args:
            user_id: Caller, must own the resource.
            resource_id: File or folder id.
            resource_type: ``file``, ``folder`` or None to detect.
            permissions: Subset of read and write.
            expires_at: Expiry, None for a share that never expires.
            is_public: Whether the link works for anyone.
            shared_with_email: Informational recipient address.

        Returns:
            Created Share.

        Raises:
            InvalidArgumentError: On bad permissions or a past expiry.
            NotFoundError: If the resource does not exist.
            ForbiddenError: If the caller does not own it.
        """
        normalized = validate_permissions(permissions)
        expiry = _validate_expiry(expires_at)
        resource = load_resource(resource_id, resource_type)
        authorize(user_id, resource)

        with transaction.atomic():
            share = Share.objects.create(
                resource_id=resource.id,
                resource_type=resource.resource_type,
                owner_id=user_id,
                shared_with_email=shared_with_email or '',
                permissions=normalized,
                token=generate_share_token(),
                expires_at=expiry,
                is_public=is_public,
            )

        logger.info(
            'Share created for %s %s (share ID: %s)',
            share.resource_type,
            share.resource_id,
            share.id,
        )

        action = (
            ActivityAction.SHARE
            if resource.resource_type == ResourceType.FILE
            else ActivityAction.SHARE_FOLDER
        )
        self._activity.record(
            user_id,
            action,
            resource.id,
            resource.name,
            resource.resource_type,
            details=f'Permissions: {", ".join(normalized)}',
        )
        return share

    def share_url(self, share: Share) -> str:
        """Public link for a share."""
        return f'{self._config.share_base_url}/shared/{share.token}'

    def resolve_share(self, token: str) -> tuple[Share, Resource]:
        """Resolve a share token without authentication.

        Args:
            token: Bearer token of the share.

        Returns:
            The Share and the resource it points at.

        Raises:
            NotFoundError: If no share or resource matches.
            GoneError: If the share has expired.
        """
        if not token:
            raise NotFoundError('Share not found')

        share = Share.objects.filter(token=token).first()
        if share is None:
            raise NotFoundError('Share not found')

        if share.is_expired():
            logger.info('Expired share link used: %s', share.id)
            raise GoneError

        try:
            resource = load_resource(share.resource_id, share.resource_type)
        except NotFoundError as exc:
            raise NotFoundError('Shared resource not found') from exc
        return share, resource

    def download_shared(self, token: str) -> tuple[Share, File, bytes]:
        """Download a file through its share link.

        Args:
            token: Bearer token of the share.

        Returns:
            The Share, the File and its content.

        Raises:
            NotFoundError: If the share, file or blob is missing.
            GoneError: If the share has expired.
            InvalidArgumentError: If the share points at a folder.
            ForbiddenError: If the share does not grant read.
        """
        share, resource = self.resolve_share(token)
        if not isinstance(resource, File):
            raise InvalidArgumentError('Only shared files can be downloaded')
        if SharePermission.READ not in share.permissions:
            raise ForbiddenError('Share does not grant read access')

        content = self._blobs.get(resource.storage_id)

        self._activity.record(
            share.owner_id,
            ActivityAction.DOWNLOAD,
            resource.id,
            resource.name,
            ResourceType.FILE,
            details='via share link',
        )
        return share, resource, content

    def list_shares(
        self,
        user_id: int,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[tuple[Share, Resource | None]]:
        """List the caller's shares, newest first.

        Args:
            user_id: Caller.
            limit: Maximum number of shares, None for all.
            offset: Number of shares to skip.

        Returns:
            Pairs of share and the resource it points at (None if gone).
        """
        shares = paginate(
            Share.objects.filter(owner_id=user_id).order_by('-created_at'),
            limit,
            offset,
        )
        return [(share, self._resource_or_none(share)) for share in shares]

    def update_share(
        self,
        user_id: int,
        share_id: uuid.UUID | str,
        permissions: Iterable[str] | None = None,
        expires_at: dt.datetime | None | _Unset = UNSET,
        is_public: bool | None = None,
    ) -> Share:
        """Partially update a share owned by the caller.

        Args:
            user_id: Caller.
            share_id: Share to update.
            permissions: New permissions, None to keep.
            expires_at: New expiry, None to clear, UNSET to keep.
            is_public: New visibility, None to keep.

        Returns:
            Updated Share.

        Raises:
            InvalidArgumentError: On bad permissions or a past expiry.
            NotFoundError: If the share does not exist.
            ForbiddenError: If the caller does not own it.
        """
        share = self._get_own_share(user_id, share_id)
        changes: dict[str, object] = {}

        if permissions is not None:
            changes['permissions'] = validate_permissions(permissions)
        if not isinstance(expires_at, _Unset):
            changes['expires_at'] = _validate_expiry(expires_at)
        if is_public is not None:
            changes['is_public'] = is_public

        if changes:
            with transaction.atomic():
                updated = Share.objects.filter(pk=share.pk).update(**changes)
            if not updated:
                raise NotFoundError('Share not found')
            for field, value in changes.items():
                setattr(share, field, value)

        logger.info('Share updated: %s (%s)', share.id, ', '.join(changes))

        self._activity.record(
            user_id,
            ActivityAction.UPDATE_SHARE,
            share.resource_id,
            self._target_name(share),
            share.resource_type,
            details=', '.join(sorted(changes)),
        )
        return share

    def revoke_share(self, user_id: int, share_id: uuid.UUID | str) -> None:
        """Delete a share owned by the caller.

        Raises:
            NotFoundError: If the share does not exist.
            ForbiddenError: If the caller does not own it.
        """
        share = self._get_own_share(user_id, share_id)
        target_name = self._target_name(share)

        with transaction.atomic():
            deleted, _ = Share.objects.filter(pk=share.pk).delete()
        if not deleted:
            raise NotFoundError('Share not found')

        logger.info('Share revoked: %s', share.id)

        self._activity.record(
            user_id,
            ActivityAction.REVOKE_SHARE,
            share.resource_id,
            target_name,
            share.resource_type,
        )

    def share_state(
        self,
        resource_type: str,
        resource_id: uuid.UUID | str,
    ) -> tuple[bool, str | None, dt.datetime | None]:
        """Derived share state of a resource.

        Args:
            resource_type: ``file`` or ``folder``.
            resource_id: Id of the resource.

        Returns:
            Whether it is shared, with token and expiry of the newest
            active share.
        """
        share = Share.objects.active().for_resource(
            resource_type,
            parse_id(resource_id),
        ).order_by('-created_at').first()
        if share is None:
            return False, None, None
        return True, share.token, share.expires_at

    def _get_own_share(self, user_id: int, share_id: uuid.UUID | str) -> Share:
        try:
            share = Share.objects.get(pk=parse_id(share_id, 'share'))
        except Share.DoesNotExist as exc:
            raise NotFoundError('Share not found') from exc
        authorize(user_id, share)
        return share

    def _resource_or_none(self, share: Share) -> Resource | None:
        try:
            return load_resource(share.resource_id, share.resource_type)
        except NotFoundError:
            return None

    def _target_name(self, share: Share) -> str:
        resource = self._resource_or_none(share)
        return resource.name if resource else str(share.resource_id)
