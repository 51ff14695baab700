"""Database models for files app."""

from typing import ClassVar, Final, final, override

from django.conf import settings
from django.db import models

# Constants for field max lengths
_OBJECT_KEY_MAX_LENGTH: Final = 255
ORIGINAL_NAME_MAX_LENGTH: Final = 255
_CONTENT_TYPE_MAX_LENGTH: Final = 255
_CHECKSUM_MAX_LENGTH: Final = 64  # SHA256 hex length


class ActiveFileManager(models.Manager['File']):
    """Manager that hides soft-deleted files."""

    @override
    def get_queryset(self) -> models.QuerySet['File']:
        """Exclude rows with deleted_at set."""
        return super().get_queryset().filter(deleted_at__isnull=True)


@final
class File(models.Model):
    """Metadata row for a file whose bytes live in the blob store.

    The bytes are stored under ``object_key`` following the pattern
    ``user/{owner_id}/{year}/{month}/{file_id}``. The key is assigned
    once and never reused, even after the row is deleted.
    """

    id = models.UUIDField(
        primary_key=True,
        editable=False,
    )

    # Owner relationship
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='files',
        db_index=True,
    )

    object_key = models.CharField(
        max_length=_OBJECT_KEY_MAX_LENGTH,
        unique=True,
        editable=False,
        help_text='Key in blob store: user/{owner_id}/{yyyy}/{mm}/{file_id}',
    )

    original_name = models.CharField(
        max_length=ORIGINAL_NAME_MAX_LENGTH,
        help_text='File name as uploaded or last renamed',
    )

    size_bytes = models.BigIntegerField(
        help_text='Number of bytes written to the blob store',
    )

    content_type = models.CharField(
        max_length=_CONTENT_TYPE_MAX_LENGTH,
    )

    sha256 = models.CharField(
        max_length=_CHECKSUM_MAX_LENGTH,
        help_text='SHA256 of the stored bytes',
        db_index=True,
    )

    created_at = models.DateTimeField()

    deleted_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text='Set when the file is soft-deleted',
    )

    objects = ActiveFileManager()
    all_objects = models.Manager()

    class Meta:
        """Model metadata."""

        verbose_name = 'File'  # type: ignore[mutable-override]
        verbose_name_plural = 'Files'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-created_at', '-id']

        indexes: ClassVar[list[models.Index]] = [
            # Optimize recent files queries
            models.Index(
                fields=['owner', '-created_at'],
                name='files_owner_recent_idx',
            ),
        ]

        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.CheckConstraint(
                condition=models.Q(size_bytes__gte=0),
                name='files_size_bytes_non_negative',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.owner_id}:{self.original_name}'
