"""Append-only audit log of user actions.

Writing to the log is best effort: a failure to record an action is
logged and swallowed, never propagated to the operation that caused it.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Final, final

from django.db import transaction
from django.utils import timezone

from server.apps.activity.models import ActivityRecord
from server.apps.files.config import DriveConfig
from server.apps.files.exceptions import InvalidArgumentError
from server.apps.files.logic.pagination import paginate

logger = logging.getLogger(__name__)

_USER_AGENT_MAX_LENGTH: Final = 255


@final
class ActivityLog:
    """Records and lists activity, and prunes it by age."""

    def __init__(
        self,
        config: DriveConfig | None = None,
        ip_address: str | None = None,
        user_agent: str = '',
    ) -> None:
        """Initialize the activity log.

        Args:
            config: Drive configuration, read from settings if omitted.
            ip_address: Client address stamped on every record.
            user_agent: Client user agent stamped on every record.
        """
        self._config = config or DriveConfig.from_settings()
        self._ip_address = ip_address
        self._user_agent = user_agent[:_USER_AGENT_MAX_LENGTH]

    @property
    def config(self) -> DriveConfig:
        """Configuration this log was built with."""
        return self._config

    def bind(self, ip_address: str | None, user_agent: str = '') -> 'ActivityLog':
        """Return a log stamping records with request metadata.

        Args:
            ip_address: Client IP address.
            user_agent: Client user agent string.

        Returns:
            New ActivityLog sharing this log's configuration.
        """
        return ActivityLog(
            self._config,
            ip_address=ip_address,
            user_agent=user_agent,
        )

    def record(  # noqa: WPS211
        self,
        user_id: int,
        action: str,
        target_id: uuid.UUID | str | None,
        target_name: str,
        target_type: str,
        details: str = '',
    ) -> ActivityRecord | None:
        """Append an audit record, never raising.

        The write runs in its own savepoint, so a failed insert cannot
        poison a surrounding transaction.

        Args:
            user_id: User the action is attributed to.
            action: One of ``ActivityAction``.
            target_id: Id of the file or folder acted on.
            target_name: Name of the target at the time of the action.
            target_type: ``file`` or ``folder``.
            details: Optional free text.

        Returns:
            Created record, or None if the write failed.
        """
        try:
            with transaction.atomic():
                activity = ActivityRecord.objects.create(
                    user_id=user_id,
                    action=action,
                    target_id=str(target_id) if target_id else '',
                    target_name=target_name,
                    target_type=target_type,
                    details=details or '',
                    ip_address=self._ip_address,
                    user_agent=self._user_agent,
                )
        except Exception:
            logger.exception(
                'Failed to record activity %s on %s %s for user %s',
                action,
                target_type,
                target_id,
                user_id,
            )
            return None

        logger.debug(
            'Recorded activity %s on %s %s for user %s',
            action,
            target_type,
            target_id,
            user_id,
        )
        return activity

    def list_activities(
        self,
        user_id: int,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ActivityRecord]:
        """List a user's activity, newest first.

        Args:
            user_id: Owner of the records.
            limit: Page size, defaults to the configured page size.
            offset: Number of records to skip.

        Returns:
            Records of the requested page.

        Raises:
            InvalidArgumentError: If limit is not positive or offset is negative.
        """
        queryset = ActivityRecord.objects.filter(
            user_id=user_id,
        ).order_by('-created_at')
        return paginate(
            queryset,
            self._config.default_page_size if limit is None else limit,
            offset,
        )

    def prune(
        self,
        older_than_days: int | None = None,
        batch_size: int | None = None,
    ) -> int:
        """Delete records older than the retention window.

        Deletes in bounded batches until nothing older than the cutoff
        remains, so running it again right away deletes nothing.

        Args:
            older_than_days: Retention window, defaults to configuration.
            batch_size: Rows per delete batch, defaults to configuration.

        Returns:
            Number of records deleted.

        Raises:
            InvalidArgumentError: If a non-positive value is given.
        """
        days = self._resolve_days(older_than_days)
        size = batch_size
        if size is None:
            size = self._config.activity_prune_batch_size
        if size <= 0:
            raise InvalidArgumentError('Batch size must be positive')

        cutoff = self.cutoff(days)
        total = 0

        while True:
            batch = list(
                ActivityRecord.objects.filter(
                    created_at__lt=cutoff,
                ).order_by('created_at').values_list('id', flat=True)[:size],
            )
            if not batch:
                break

            deleted, _ = ActivityRecord.objects.filter(id__in=batch).delete()
            total += deleted
            logger.debug('Pruned batch of %d activity records', deleted)

        logger.info(
            'Pruned %d activity records older than %d days',
            total,
            days,
        )
        return total

    def count_prunable(self, older_than_days: int | None = None) -> int:
        """Count records a prune would delete.

        Args:
            older_than_days: Retention window, defaults to configuration.

        Returns:
            Number of records older than the cutoff.
        """
        cutoff = self.cutoff(self._resolve_days(older_than_days))
        return ActivityRecord.objects.filter(created_at__lt=cutoff).count()

    def cutoff(self, older_than_days: int) -> datetime:
        """Timestamp before which records are pruned."""
        return timezone.now() - timedelta(days=older_than_days)

    def _resolve_days(self, older_than_days: int | None) -> int:
        if older_than_days is None:
            return self._config.activity_retention_days
        if older_than_days <= 0:
            raise InvalidArgumentError('Retention days must be positive')
        return older_than_days
