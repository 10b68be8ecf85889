"""Database models for the activity (audit) log."""

import uuid
from typing import ClassVar, Final, final, override

from django.conf import settings
from django.db import models

from server.apps.files.models import ResourceType

# Constants for field max lengths
_ACTION_MAX_LENGTH: Final = 32
_TARGET_ID_MAX_LENGTH: Final = 64
_TARGET_NAME_MAX_LENGTH: Final = 520  # Room for "old → new" renames
_TARGET_TYPE_MAX_LENGTH: Final = 16
_USER_AGENT_MAX_LENGTH: Final = 255


class ActivityAction(models.TextChoices):
    """State-changing actions recorded in the log."""

    UPLOAD = 'upload', 'Upload'
    DOWNLOAD = 'download', 'Download'
    DELETE = 'delete', 'Delete'
    RENAME = 'rename', 'Rename'
    MOVE = 'move', 'Move'
    TAG = 'tag', 'Tag'
    SHARE = 'share', 'Share'
    CREATE_FOLDER = 'create_folder', 'Create folder'
    DELETE_FOLDER = 'delete_folder', 'Delete folder'
    RENAME_FOLDER = 'rename_folder', 'Rename folder'
    SHARE_FOLDER = 'share_folder', 'Share folder'
    UPDATE_SHARE = 'update_share', 'Update share'
    REVOKE_SHARE = 'revoke_share', 'Revoke share'


@final
class ActivityRecord(models.Model):
    """Immutable audit entry describing one action of a user.

    Records are written once and only ever removed by retention pruning.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='activities',
        db_index=True,
    )

    action = models.CharField(
        max_length=_ACTION_MAX_LENGTH,
        choices=ActivityAction.choices,
    )

    target_id = models.CharField(
        max_length=_TARGET_ID_MAX_LENGTH,
        blank=True,
        default='',
    )

    target_name = models.CharField(
        max_length=_TARGET_NAME_MAX_LENGTH,
        blank=True,
        default='',
    )

    target_type = models.CharField(
        max_length=_TARGET_TYPE_MAX_LENGTH,
        choices=ResourceType.choices,
    )

    details = models.TextField(blank=True, default='')

    ip_address = models.GenericIPAddressField(null=True, blank=True)

    user_agent = models.CharField(
        max_length=_USER_AGENT_MAX_LENGTH,
        blank=True,
        default='',
    )

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Activity record'  # type: ignore[mutable-override]
        verbose_name_plural = 'Activity records'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-created_at']

        indexes: ClassVar[list[models.Index]] = [
            models.Index(
                fields=['user', '-created_at'],
                name='activity_user_recent_idx',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.action}: {self.target_name}'
