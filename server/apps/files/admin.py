"""Django admin configuration for files app."""

from typing import Final, override

from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest
from django.utils.html import format_html

from server.apps.files.models import File, Folder, Share, Tag

_KIB: Final = 1024


def format_bytes(size_bytes: int) -> str:
    """Format bytes in human-readable format.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Formatted size string (e.g., '1.5 MB', '234 KB').
    """
    if size_bytes < _KIB:
        return f'{size_bytes} B'
    if size_bytes < _KIB ** 2:
        return f'{size_bytes / _KIB:.1f} KB'
    if size_bytes < _KIB ** 3:
        return f'{size_bytes / _KIB ** 2:.1f} MB'
    return f'{size_bytes / _KIB ** 3:.1f} GB'


@admin.register(Folder)
class FolderAdmin(admin.ModelAdmin):
    """Admin interface for Folder model."""

    list_display = [
        'name',
        'owner',
        'path',
        'created_at',
    ]

    list_filter = [
        'owner',
        'created_at',
    ]

    search_fields = [
        'name',
        'path',
    ]

    readonly_fields = [
        'id',
        'path',
        'created_at',
        'updated_at',
    ]

    raw_id_fields = ['parent']

    @override
    def get_queryset(self, request: HttpRequest) -> QuerySet[Folder]:
        """Optimize queryset with select_related."""
        return super().get_queryset(request).select_related('owner')


@admin.register(File)
class FileAdmin(admin.ModelAdmin):
    """Admin interface for File model."""

    list_display = [
        'name',
        'owner',
        'path',
        'size_display',
        'mime_type',
        'created_at',
    ]

    list_filter = [
        'mime_type',
        'created_at',
        'owner',
    ]

    search_fields = [
        'name',
        'original_name',
        'storage_id',
    ]

    readonly_fields = [
        'id',
        'original_name',
        'size',
        'mime_type',
        'storage_id',
        'path',
        'created_at',
        'updated_at',
    ]

    raw_id_fields = ['folder']

    filter_horizontal = ['tags']  # Better UX for M2M relationship

    fieldsets = (
        ('File Information', {
            'fields': ('id', 'name', 'original_name', 'owner', 'folder', 'path'),
        }),
        ('Storage', {
            'fields': ('size', 'mime_type', 'storage_id'),
        }),
        ('Tags', {
            'fields': ('tags',),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
        }),
    )

    def size_display(self, obj: File) -> str:
        """Display file size in human-readable format.

        Args:
            obj: File instance.

        Returns:
            Formatted size string.
        """
        return format_bytes(obj.size)
    size_display.short_description = 'Size'  # type: ignore[attr-defined]

    @override
    def get_queryset(self, request: HttpRequest) -> QuerySet[File]:
        """Optimize queryset with select_related."""
        return super().get_queryset(request).select_related('owner')


@admin.register(Tag)
class TagAdmin(admin.ModelAdmin):
    """Admin interface for Tag model."""

    list_display = [
        'name',
        'user',
        'color_display',
        'file_count',
        'created_at',
    ]

    list_filter = [
        'user',
        'created_at',
    ]

    search_fields = [
        'name',
    ]

    readonly_fields = ['created_at']

    def color_display(self, obj: Tag) -> str:
        """Display color swatch with hex code.

        Args:
            obj: Tag instance.

        Returns:
            HTML formatted color swatch and code.
        """
        if obj.color:
            return format_html(
                '<span style="background-color: {color}; '
                'padding: 2px 10px; border: 1px solid #ccc;">'
                '&nbsp;</span> {color}',
                color=obj.color,
            )
        return '-'
    color_display.short_description = 'Color'  # type: ignore[attr-defined]

    def file_count(self, obj: Tag) -> int:
        """Number of files tagged with this tag."""
        return obj.files.count()
    file_count.short_description = 'Files'  # type: ignore[attr-defined]

    @override
    def get_queryset(self, request: HttpRequest) -> QuerySet[Tag]:
        """Optimize queryset with select_related."""
        return super().get_queryset(request).select_related('user')


@admin.register(Share)
class ShareAdmin(admin.ModelAdmin):
    """Admin interface for Share model."""

    list_display = [
        'token_short',
        'resource_type',
        'resource_id',
        'owner',
        'is_public',
        'expires_at',
        'created_at',
    ]

    list_filter = [
        'resource_type',
        'is_public',
        'created_at',
    ]

    search_fields = [
        'token',
        'shared_with_email',
        'owner__username',
    ]

    readonly_fields = [
        'id',
        'token',
        'resource_id',
        'resource_type',
        'created_at',
    ]

    def token_short(self, obj: Share) -> str:
        """Display truncated token."""
        return obj.token[:8]
    token_short.short_description = 'Token'  # type: ignore[attr-defined]

    @override
    def get_queryset(self, request: HttpRequest) -> QuerySet[Share]:
        """Optimize queryset with select_related."""
        return super().get_queryset(request).select_related('owner')
