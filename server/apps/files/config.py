"""Explicit configuration for drive components."""

from dataclasses import dataclass
from typing import Self, final

from django.conf import settings


@final
@dataclass(frozen=True, slots=True)
class DriveConfig:
    """Settings consumed by the drive components.

    Built once from Django settings and handed to every component
    at construction, so no component reads settings on its own.
    """

    share_base_url: str = 'http://localhost:3000'
    activity_retention_days: int = 90
    activity_prune_batch_size: int = 100
    default_page_size: int = 50
    session_timeout: int = 86400

    @classmethod
    def from_settings(cls) -> Self:
        """Build configuration from Django settings.

        Returns:
            DriveConfig with values from settings or the defaults.
        """
        defaults = cls()
        return cls(
            share_base_url=getattr(
                settings,
                'DRIVE_SHARE_BASE_URL',
                defaults.share_base_url,
            ).rstrip('/'),
            activity_retention_days=getattr(
                settings,
                'DRIVE_ACTIVITY_RETENTION_DAYS',
                defaults.activity_retention_days,
            ),
            activity_prune_batch_size=getattr(
                settings,
                'DRIVE_ACTIVITY_PRUNE_BATCH_SIZE',
                defaults.activity_prune_batch_size,
            ),
            default_page_size=getattr(
                settings,
                'DRIVE_DEFAULT_PAGE_SIZE',
                defaults.default_page_size,
            ),
            session_timeout=getattr(
                settings,
                'DRIVE_SESSION_TIMEOUT',
                defaults.session_timeout,
            ),
        )
