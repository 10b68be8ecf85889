"""Session management for API bearer tokens.

Sessions are issued at login and expire after a period of inactivity.
"""

import logging
import secrets
from datetime import timedelta
from typing import TYPE_CHECKING, Final

from django.db import transaction
from django.utils import timezone

from server.apps.files.config import DriveConfig
from server.apps.identity.models import AccessSession

if TYPE_CHECKING:
    from django.contrib.auth.models import User

logger = logging.getLogger(__name__)

# Session ID length in bytes (generates 64 hex chars)
_SESSION_ID_BYTES: Final = 32
_USER_AGENT_MAX_LENGTH: Final = 255


def get_session_timeout(config: DriveConfig | None = None) -> int:
    """Get session inactivity timeout in seconds.

    Args:
        config: Drive configuration, read from settings if omitted.

    Returns:
        Timeout in seconds.
    """
    return (config or DriveConfig.from_settings()).session_timeout


def create_session(
    user: 'User',
    ip_address: str | None,
    user_agent: str = '',
    config: DriveConfig | None = None,
) -> AccessSession:
    """Create a new session for the user.

    Cleans stale sessions first.

    Args:
        user: Django user for the session.
        ip_address: Client IP address.
        user_agent: Client user agent string.
        config: Drive configuration, read from settings if omitted.

    Returns:
        Created AccessSession instance.
    """
    cleanup_stale_sessions(config)

    with transaction.atomic():
        session = AccessSession.objects.create(
            user=user,
            session_id=secrets.token_hex(_SESSION_ID_BYTES),
            ip_address=ip_address,
            user_agent=user_agent[:_USER_AGENT_MAX_LENGTH],
        )

    logger.info(
        'Session created for user %s: %s',
        user.username,
        session.session_id[:8],
    )
    return session


def update_session_activity(session_id: str) -> bool:
    """Update last activity timestamp for a session.

    Args:
        session_id: Session ID to update.

    Returns:
        True if session was found and updated, False otherwise.
    """
    updated = AccessSession.objects.filter(
        session_id=session_id,
    ).update(
        last_activity=timezone.now(),
    )

    return updated > 0


def end_session(session_id: str) -> bool:
    """End a session.

    Args:
        session_id: Session ID to end.

    Returns:
        True if session was found and deleted, False otherwise.
    """
    deleted, _ = AccessSession.objects.filter(
        session_id=session_id,
    ).delete()

    if deleted:
        logger.info('Session ended: %s', session_id[:8])

    return deleted > 0


def cleanup_stale_sessions(config: DriveConfig | None = None) -> int:
    """Remove sessions that have been inactive past the timeout.

    Args:
        config: Drive configuration, read from settings if omitted.

    Returns:
        Number of sessions cleaned up.
    """
    cutoff = timezone.now() - timedelta(seconds=get_session_timeout(config))

    deleted, _ = AccessSession.objects.filter(
        last_activity__lt=cutoff,
    ).delete()

    if deleted:
        logger.info('Cleaned up %d stale sessions', deleted)

    return deleted


def get_user_sessions(user: 'User') -> list[AccessSession]:
    """Get all sessions of a user, most recently active first."""
    return list(
        AccessSession.objects.filter(user=user).order_by('-last_activity'),
    )


def get_session(session_id: str) -> AccessSession | None:
    """Get a session by ID.

    Args:
        session_id: Session ID to look up.

    Returns:
        AccessSession if found, None otherwise.
    """
    try:
        return AccessSession.objects.select_related('user').get(
            session_id=session_id,
        )
    except AccessSession.DoesNotExist:
        return None


def is_session_expired(
    session: AccessSession,
    config: DriveConfig | None = None,
) -> bool:
    """Check whether a session has been inactive past the timeout."""
    timeout = timedelta(seconds=get_session_timeout(config))
    return session.last_activity < timezone.now() - timeout
