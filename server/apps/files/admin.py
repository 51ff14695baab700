"""Django admin configuration for files app."""

from typing import Final

from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest

from server.apps.files.models import File

_KB: Final = 1024
_MB: Final = _KB * 1024
_GB: Final = _MB * 1024


def _format_bytes(size_bytes: int) -> str:
    """Format bytes in human-readable format.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Formatted size string (e.g., '1.5 MB', '234 KB').
    """
    if size_bytes < _KB:
        return f'{size_bytes} B'
    if size_bytes < _MB:
        return f'{size_bytes / _KB:.1f} KB'
    if size_bytes < _GB:
        return f'{size_bytes / _MB:.1f} MB'
    return f'{size_bytes / _GB:.1f} GB'


@admin.register(File)
class FileAdmin(admin.ModelAdmin[File]):
    """Read-only admin interface for file metadata.

    Rows are created and deleted only through FileOperations so blob
    and metadata stay in step; the admin never writes.
    """

    list_display = [
        'original_name',
        'owner',
        'size_display',
        'content_type',
        'created_at',
        'deleted_at',
    ]

    list_filter = [
        'content_type',
        'created_at',
    ]

    search_fields = [
        'original_name',
        'object_key',
        'sha256',
    ]

    readonly_fields = [
        'id',
        'owner',
        'object_key',
        'original_name',
        'size_bytes',
        'content_type',
        'sha256',
        'created_at',
        'deleted_at',
    ]

    def size_display(self, obj: File) -> str:
        """Display file size in human-readable format.

        Args:
            obj: File instance.

        Returns:
            Formatted size string.
        """
        return _format_bytes(obj.size_bytes)
    size_display.short_description = 'Size'  # type: ignore[attr-defined]

    def get_queryset(self, request: HttpRequest) -> QuerySet[File]:
        """Include soft-deleted rows for reconciliation.

        Args:
            request: HTTP request.

        Returns:
            QuerySet over all rows.
        """
        return File.all_objects.select_related('owner')

    def has_add_permission(self, request: HttpRequest) -> bool:
        """Disallow creating rows without bytes."""
        return False

    def has_delete_permission(
        self,
        request: HttpRequest,
        obj: File | None = None,
    ) -> bool:
        """Disallow deleting rows while leaving blobs behind."""
        return False
