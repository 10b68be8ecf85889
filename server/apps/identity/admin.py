"""Django admin configuration for identity app."""

from typing import Final, override

from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest

from server.apps.identity.models import AccessSession

_USER_AGENT_DISPLAY_LENGTH: Final = 50


@admin.register(AccessSession)
class AccessSessionAdmin(admin.ModelAdmin):
    """Admin interface for AccessSession model."""

    list_display = [
        'session_id_short',
        'user',
        'ip_address',
        'user_agent_short',
        'started_at',
        'last_activity',
    ]

    list_filter = [
        'user',
        'started_at',
        'last_activity',
    ]

    search_fields = [
        'user__username',
        'ip_address',
        'user_agent',
    ]

    readonly_fields = [
        'session_id',
        'ip_address',
        'user_agent',
        'started_at',
        'last_activity',
    ]

    def session_id_short(self, obj: AccessSession) -> str:
        """Display truncated session ID.

        Args:
            obj: AccessSession instance.

        Returns:
            First 8 characters of session ID.
        """
        return obj.session_id[:8]
    session_id_short.short_description = 'Session ID'  # type: ignore[attr-defined]

    def user_agent_short(self, obj: AccessSession) -> str:
        """Display truncated user agent.

        Args:
            obj: AccessSession instance.

        Returns:
            Leading part of the user agent or dash if empty.
        """
        if not obj.user_agent:
            return '-'
        if len(obj.user_agent) > _USER_AGENT_DISPLAY_LENGTH:
            return f'{obj.user_agent[:_USER_AGENT_DISPLAY_LENGTH]}...'
        return obj.user_agent
    user_agent_short.short_description = 'User Agent'  # type: ignore[attr-defined]

    @override
    def get_queryset(self, request: HttpRequest) -> QuerySet[AccessSession]:
        """Optimize queryset with select_related."""
        return super().get_queryset(request).select_related('user')

    @override
    def has_add_permission(self, request: HttpRequest) -> bool:
        """Sessions are only created at login."""
        return False

    @override
    def has_change_permission(
        self,
        request: HttpRequest,
        obj: AccessSession | None = None,
    ) -> bool:
        """Sessions are managed automatically."""
        return False
