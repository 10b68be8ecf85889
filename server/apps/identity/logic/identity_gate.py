"""Turning bearer tokens into user ids.

The gate validates the token format itself and delegates the question
"is this session alive" to a session oracle.
"""

import logging
import re
from typing import Final, Protocol, final

from server.apps.files.config import DriveConfig
from server.apps.files.exceptions import UnauthenticatedError
from server.apps.identity.logic import session_manager

logger = logging.getLogger(__name__)

_TOKEN_PATTERN: Final = re.compile('^[0-9a-f]{64}$')
_BEARER_PREFIX: Final = 'Bearer '


class SessionOracle(Protocol):
    """Anything that can vouch for a session token."""

    def verify(self, token: str) -> int | None:
        """Return the user id behind a live session, or None."""


@final
class DatabaseSessionOracle:
    """Session oracle backed by ``AccessSession`` rows."""

    def __init__(self, config: DriveConfig | None = None) -> None:
        """Initialize the oracle.

        Args:
            config: Drive configuration, read from settings if omitted.
        """
        self._config = config or DriveConfig.from_settings()

    def verify(self, token: str) -> int | None:
        """Look up a session and touch its activity timestamp.

        Args:
            token: Session id.

        Returns:
            Id of the session's user, None if unknown, expired or the
            user is inactive.
        """
        session = session_manager.get_session(token)
        if session is None:
            return None

        if session_manager.is_session_expired(session, self._config):
            logger.info('Expired session presented: %s', token[:8])
            session_manager.end_session(token)
            return None

        if not session.user.is_active:
            logger.warning('Inactive user presented session: %s', token[:8])
            return None

        session_manager.update_session_activity(token)
        return session.user_id


@final
class IdentityGate:
    """Resolves the caller of a request."""

    def __init__(
        self,
        oracle: SessionOracle | None = None,
        config: DriveConfig | None = None,
    ) -> None:
        """Initialize the gate.

        Args:
            oracle: Session oracle, database backed if omitted.
            config: Drive configuration, read from settings if omitted.
        """
        self._oracle = oracle or DatabaseSessionOracle(config)

    def resolve(self, token: str | None) -> int:
        """Resolve a session token to a user id.

        Args:
            token: Session token.

        Returns:
            Id of the authenticated user.

        Raises:
            UnauthenticatedError: If the token is missing, malformed or
                rejected by the oracle.
        """
        if not token:
            raise UnauthenticatedError('Missing session token')

        if not _TOKEN_PATTERN.match(token):
            raise UnauthenticatedError('Malformed session token')

        user_id = self._oracle.verify(token)
        if user_id is None:
            raise UnauthenticatedError('Invalid session')
        return user_id

    def resolve_header(self, authorization: str | None) -> int:
        """Resolve an ``Authorization: Bearer <token>`` header.

        Raises:
            UnauthenticatedError: If the header is missing or not a
                bearer header, or the token is rejected.
        """
        if not authorization or not authorization.startswith(_BEARER_PREFIX):
            raise UnauthenticatedError(
                'Missing or invalid authorization header',
            )
        return self.resolve(authorization.removeprefix(_BEARER_PREFIX).strip())
