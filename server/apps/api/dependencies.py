"""Wiring of drive components for a single request."""

from typing import Final

from django.http import HttpRequest

from server.apps.activity.logic.activity_log import ActivityLog
from server.apps.files.config import DriveConfig
from server.apps.files.infrastructure.blob_gateway import BlobGateway
from server.apps.files.logic.hierarchy import HierarchyStore
from server.apps.files.logic.sharing import ShareManager
from server.apps.identity.logic.identity_gate import IdentityGate

_FORWARDED_FOR: Final = 'HTTP_X_FORWARDED_FOR'


def client_ip(request: HttpRequest) -> str | None:
    """Best guess of the client address.

    Args:
        request: Incoming request.

    Returns:
        First address of X-Forwarded-For, else REMOTE_ADDR.
    """
    forwarded = request.META.get(_FORWARDED_FOR, '')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR') or None


def user_agent(request: HttpRequest) -> str:
    """User agent header of the request, empty if absent."""
    return request.META.get('HTTP_USER_AGENT', '')


def activity_log(request: HttpRequest) -> ActivityLog:
    """Activity log stamping records with the request's client."""
    return ActivityLog(DriveConfig.from_settings()).bind(
        client_ip(request),
        user_agent(request),
    )


def hierarchy_store(request: HttpRequest) -> HierarchyStore:
    """Hierarchy store for one request."""
    activity = activity_log(request)
    return HierarchyStore(
        blobs=BlobGateway(),
        activity=activity,
        config=activity.config,
    )


def share_manager(request: HttpRequest) -> ShareManager:
    """Share manager for one request."""
    activity = activity_log(request)
    return ShareManager(
        blobs=BlobGateway(),
        activity=activity,
        config=activity.config,
    )


def identity_gate() -> IdentityGate:
    """Identity gate backed by the session table."""
    return IdentityGate(config=DriveConfig.from_settings())
