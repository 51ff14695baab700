"""Django ORM adapter for file metadata."""

import logging
from typing import final
from uuid import UUID

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import QuerySet
from django.utils import timezone

from server.apps.files.exceptions import (
    DuplicateFileIdError,
    StorageBackendError,
)
from server.apps.files.models import File
from server.apps.files.records import FileRecord, FileSearchFilters

logger = logging.getLogger(__name__)


def _to_record(file_instance: File) -> FileRecord:
    return FileRecord(
        id=file_instance.id,
        owner_id=file_instance.owner_id,
        object_key=file_instance.object_key,
        original_name=file_instance.original_name,
        size_bytes=file_instance.size_bytes,
        content_type=file_instance.content_type,
        sha256=file_instance.sha256,
        created_at=file_instance.created_at,
        deleted_at=file_instance.deleted_at,
    )


def apply_search_filters(
    queryset: QuerySet[File],
    filters: FileSearchFilters,
) -> QuerySet[File]:
    """Narrow a queryset by optional search filters.

    Empty strings and non-positive sizes add no constraint, so an
    inverted size range simply matches nothing.

    Args:
        queryset: Base queryset (already scoped to an owner).
        filters: Search filters.

    Returns:
        Filtered queryset.
    """
    if filters.name_pattern:
        queryset = queryset.filter(
            original_name__icontains=filters.name_pattern,
        )
    if filters.content_type:
        queryset = queryset.filter(content_type=filters.content_type)
    if filters.min_size > 0:
        queryset = queryset.filter(size_bytes__gte=filters.min_size)
    if filters.max_size > 0:
        queryset = queryset.filter(size_bytes__lte=filters.max_size)
    return queryset


@final
class DjangoFileMetadataStore:
    """``FileMetadataStore`` backed by the File model.

    With ``soft_delete`` enabled, delete sets ``deleted_at`` and keeps
    the row; otherwise the row is removed.
    """

    def __init__(self, *, soft_delete: bool = False) -> None:
        self._soft_delete = soft_delete

    def create(self, record: FileRecord) -> None:
        """Insert a metadata row.

        Args:
            record: Complete file record.

        Raises:
            DuplicateFileIdError: If id or object key already exist.
            StorageBackendError: On other database failures.
        """
        try:
            with transaction.atomic():
                File.objects.create(
                    id=record.id,
                    owner_id=record.owner_id,
                    object_key=record.object_key,
                    original_name=record.original_name,
                    size_bytes=record.size_bytes,
                    content_type=record.content_type,
                    sha256=record.sha256,
                    created_at=record.created_at,
                )
        except IntegrityError as exc:
            raise DuplicateFileIdError(
                f'File {record.id} or key {record.object_key} already exists',
            ) from exc
        except DatabaseError as exc:
            raise StorageBackendError(
                f'Failed to create metadata for file {record.id}',
            ) from exc
        logger.info(
            'File record created in database: %s (ID: %s)',
            record.object_key,
            record.id,
        )

    def by_id(self, file_id: UUID) -> FileRecord | None:
        """Load a live record.

        Args:
            file_id: File identifier.

        Returns:
            FileRecord or None when missing or soft-deleted.
        """
        try:
            file_instance = File.objects.filter(id=file_id).first()
        except DatabaseError as exc:
            raise StorageBackendError(f'Failed to load file {file_id}') from exc
        if file_instance is None:
            return None
        return _to_record(file_instance)

    def list_by_owner(
        self,
        owner_id: int,
        limit: int,
        offset: int,
    ) -> list[FileRecord]:
        """List owner's live records, newest first.

        Args:
            owner_id: Owner's user ID.
            limit: Page size.
            offset: Rows to skip.

        Returns:
            Ordered list of records.
        """
        return self._fetch(File.objects.filter(owner_id=owner_id), limit, offset)

    def search_by_filters(
        self,
        owner_id: int,
        filters: FileSearchFilters,
        limit: int,
        offset: int,
    ) -> list[FileRecord]:
        """Search owner's live records, newest first.

        Args:
            owner_id: Owner's user ID.
            filters: Search filters.
            limit: Page size.
            offset: Rows to skip.

        Returns:
            Ordered list of matching records.
        """
        queryset = apply_search_filters(
            File.objects.filter(owner_id=owner_id),
            filters,
        )
        return self._fetch(queryset, limit, offset)

    def delete(self, file_id: UUID, owner_id: int) -> None:
        """Delete or soft-delete the owner's record.

        Args:
            file_id: File identifier.
            owner_id: Owner's user ID.

        Raises:
            StorageBackendError: If the database operation fails.
        """
        queryset = File.objects.filter(id=file_id, owner_id=owner_id)
        try:
            with transaction.atomic():
                if self._soft_delete:
                    queryset.update(deleted_at=timezone.now())
                else:
                    queryset.delete()
        except DatabaseError as exc:
            raise StorageBackendError(
                f'Failed to delete metadata for file {file_id}',
            ) from exc
        logger.info(
            'File record %s in database: ID=%s',
            'soft-deleted' if self._soft_delete else 'deleted',
            file_id,
        )

    def update_name(self, file_id: UUID, owner_id: int, new_name: str) -> bool:
        """Rename the owner's live record.

        Args:
            file_id: File identifier.
            owner_id: Owner's user ID.
            new_name: New original name.

        Returns:
            True if a live row was renamed.

        Raises:
            StorageBackendError: If the database operation fails.
        """
        try:
            updated = File.objects.filter(id=file_id, owner_id=owner_id).update(
                original_name=new_name,
            )
        except DatabaseError as exc:
            raise StorageBackendError(f'Failed to rename file {file_id}') from exc
        return updated > 0

    def _fetch(
        self,
        queryset: QuerySet[File],
        limit: int,
        offset: int,
    ) -> list[FileRecord]:
        ordered = queryset.order_by('-created_at', '-id')[offset:offset + limit]
        try:
            return [_to_record(file_instance) for file_instance in ordered]
        except DatabaseError as exc:
            raise StorageBackendError('Failed to query file metadata') from exc
