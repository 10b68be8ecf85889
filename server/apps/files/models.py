"""Database models for files app."""

import uuid
from typing import TYPE_CHECKING, ClassVar, Final, final, override

from django.conf import settings
from django.db import models
from django.utils import timezone

if TYPE_CHECKING:
    from datetime import datetime

# Constants for field max lengths
_NAME_MAX_LENGTH: Final = 255
_PATH_MAX_LENGTH: Final = 1024
_MIME_TYPE_MAX_LENGTH: Final = 255
_STORAGE_ID_MAX_LENGTH: Final = 255
_TAG_NAME_MAX_LENGTH: Final = 100
_TAG_COLOR_MAX_LENGTH: Final = 7  # Hex color: #RRGGBB
_TOKEN_MAX_LENGTH: Final = 64  # 32 random bytes, hex encoded
_RESOURCE_TYPE_MAX_LENGTH: Final = 16

# Materialized path of every root-level resource
ROOT_PATH: Final = '/'


class ResourceType(models.TextChoices):
    """The two kinds of things a user owns."""

    FILE = 'file', 'File'
    FOLDER = 'folder', 'Folder'


class SharePermission(models.TextChoices):
    """Rights a share token grants to its bearer."""

    READ = 'read', 'Read'
    WRITE = 'write', 'Write'


class OwnedResource(models.Model):
    """Fields and share state common to files and folders.

    Share state is not stored on the resource. The Share table is
    the only source of truth and ``is_shared`` is computed on read.
    """

    resource_type: ClassVar[str]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
    )

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='%(class)ss',
        db_index=True,
    )

    name = models.CharField(max_length=_NAME_MAX_LENGTH)

    path = models.CharField(
        max_length=_PATH_MAX_LENGTH,
        default=ROOT_PATH,
        help_text='Ancestor names at creation time, ending in /',
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Model metadata."""

        abstract = True

    @property
    def active_share(self) -> 'Share | None':
        """Newest unexpired share pointing at this resource."""
        return Share.objects.active().for_resource(
            self.resource_type,
            self.id,
        ).order_by('-created_at').first()

    @property
    def is_shared(self) -> bool:
        """Whether an unexpired share exists for this resource."""
        return Share.objects.active().for_resource(
            self.resource_type,
            self.id,
        ).exists()

    @property
    def share_token(self) -> str | None:
        """Token of the newest active share, if any."""
        share = self.active_share
        return share.token if share else None

    @property
    def share_expiry(self) -> 'datetime | None':
        """Expiry of the newest active share, if any."""
        share = self.active_share
        return share.expires_at if share else None


@final
class Folder(OwnedResource):
    """Folder in a user's hierarchy.

    Parents are fixed at creation, so the parent chain can never
    form a cycle.
    """

    resource_type = ResourceType.FOLDER

    parent = models.ForeignKey(
        'self',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='children',
    )

    class Meta:
        """Model metadata."""

        verbose_name = 'Folder'  # type: ignore[mutable-override]
        verbose_name_plural = 'Folders'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-created_at']

        indexes: ClassVar[list[models.Index]] = [
            # Optimize directory listing queries
            models.Index(
                fields=['owner', 'parent', '-created_at'],
                name='folders_owner_parent_idx',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.path}{self.name}/'

    @property
    def full_path(self) -> str:
        """Materialized path children of this folder receive."""
        return f'{self.path}{self.name}/'


@final
class File(OwnedResource):
    """File whose content lives in the blob store under ``storage_id``."""

    resource_type = ResourceType.FILE

    original_name = models.CharField(max_length=_NAME_MAX_LENGTH)

    size = models.BigIntegerField(help_text='File size in bytes')

    mime_type = models.CharField(
        max_length=_MIME_TYPE_MAX_LENGTH,
        default='application/octet-stream',
    )

    storage_id = models.CharField(
        max_length=_STORAGE_ID_MAX_LENGTH,
        unique=True,
        help_text='Opaque key of the content in the blob store',
    )

    # Files are removed explicitly (blob first) before their folder
    folder = models.ForeignKey(
        Folder,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='files',
    )

    tags = models.ManyToManyField(
        'Tag',
        related_name='files',
        blank=True,
    )

    class Meta:
        """Model metadata."""

        verbose_name = 'File'  # type: ignore[mutable-override]
        verbose_name_plural = 'Files'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-created_at']

        indexes: ClassVar[list[models.Index]] = [
            # Optimize directory listing queries
            models.Index(
                fields=['owner', 'folder', '-created_at'],
                name='files_owner_folder_idx',
            ),
        ]

        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.CheckConstraint(
                condition=models.Q(size__gte=0),
                name='files_size_non_negative',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.path}{self.name}'

    @property
    def tag_names(self) -> list[str]:
        """Sorted names of the tags attached to this file."""
        return sorted(self.tags.values_list('name', flat=True))


@final
class Tag(models.Model):
    """User-defined tag for organizing files.

    Tags are scoped to individual users to prevent naming conflicts
    and maintain user isolation.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='tags',
        db_index=True,
    )

    name = models.CharField(
        max_length=_TAG_NAME_MAX_LENGTH,
    )

    color = models.CharField(
        max_length=_TAG_COLOR_MAX_LENGTH,
        blank=True,
        default='',
        help_text='Hex color code for UI display (e.g., #FF5733)',
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Tag'  # type: ignore[mutable-override]
        verbose_name_plural = 'Tags'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['name']

        constraints: ClassVar[list[models.BaseConstraint]] = [
            # Ensure tag names are unique per user
            models.UniqueConstraint(
                fields=['user', 'name'],
                name='tags_user_name_unique',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.user.get_username()}:{self.name}'


class ShareQuerySet(models.QuerySet['Share']):
    """Query helpers for shares."""

    def active(self) -> 'ShareQuerySet':
        """Shares without expiry or expiring in the future."""
        return self.filter(
            models.Q(expires_at__isnull=True)
            | models.Q(expires_at__gt=timezone.now()),
        )

    def for_resource(
        self,
        resource_type: str,
        resource_id: uuid.UUID,
    ) -> 'ShareQuerySet':
        """Shares pointing at a single file or folder."""
        return self.filter(
            resource_type=resource_type,
            resource_id=resource_id,
        )


@final
class Share(models.Model):
    """Bearer token granting scoped access to one file or folder.

    Expiry is lazy: an expired share stays in the table but no longer
    resolves and no longer counts towards ``is_shared``.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
    )

    resource_id = models.UUIDField(db_index=True)

    resource_type = models.CharField(
        max_length=_RESOURCE_TYPE_MAX_LENGTH,
        choices=ResourceType.choices,
    )

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='shares',
        db_index=True,
    )

    shared_with_email = models.EmailField(
        blank=True,
        default='',
        help_text='Informational only, never used for access checks',
    )

    permissions = models.JSONField(default=list)

    token = models.CharField(
        max_length=_TOKEN_MAX_LENGTH,
        unique=True,
    )

    expires_at = models.DateTimeField(null=True, blank=True)

    is_public = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    objects = ShareQuerySet.as_manager()

    class Meta:
        """Model metadata."""

        verbose_name = 'Share'  # type: ignore[mutable-override]
        verbose_name_plural = 'Shares'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-created_at']

        indexes: ClassVar[list[models.Index]] = [
            models.Index(
                fields=['resource_type', 'resource_id'],
                name='shares_resource_idx',
            ),
            models.Index(
                fields=['owner', '-created_at'],
                name='shares_owner_recent_idx',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.resource_type}:{self.resource_id} ({self.token[:8]})'

    def is_expired(self) -> bool:
        """Check whether the share has passed its expiry.

        Returns:
            True if ``expires_at`` is set and in the past.
        """
        return self.expires_at is not None and self.expires_at <= timezone.now()
