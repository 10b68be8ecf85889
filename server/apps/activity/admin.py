"""Django admin configuration for activity app."""

from typing import override

from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest

from server.apps.activity.models import ActivityRecord


@admin.register(ActivityRecord)
class ActivityRecordAdmin(admin.ModelAdmin):
    """Read-only admin interface for the audit trail."""

    list_display = [
        'created_at',
        'user',
        'action',
        'target_type',
        'target_name',
        'ip_address',
    ]

    list_filter = [
        'action',
        'target_type',
        'created_at',
    ]

    search_fields = [
        'target_name',
        'target_id',
        'user__username',
    ]

    date_hierarchy = 'created_at'

    @override
    def get_queryset(self, request: HttpRequest) -> QuerySet[ActivityRecord]:
        """Optimize queryset with select_related."""
        return super().get_queryset(request).select_related('user')

    @override
    def has_add_permission(self, request: HttpRequest) -> bool:
        """Activity is only appended by drive operations."""
        return False

    @override
    def has_change_permission(
        self,
        request: HttpRequest,
        obj: ActivityRecord | None = None,
    ) -> bool:
        """Activity records are append-only."""
        return False
