"""Business logic for file operations.

Bytes and metadata live in two stores that fail independently.
Every write orders its steps so a failure leaves at most one named
inconsistency (orphaned blob or orphaned metadata), which is logged
at error level and raised as a StorageConsistencyError subclass.
"""

import dataclasses
import logging
import uuid
from collections.abc import Callable
from datetime import datetime
from typing import BinaryIO, Final, final
from uuid import UUID

from django.conf import settings
from django.core.exceptions import ValidationError
from django.utils import timezone

from server.apps.files.exceptions import (
    BlobNotFoundError,
    OrphanedBlobError,
    OrphanedMetadataError,
    StorageBackendError,
    StoredFileNotFoundError,
)
from server.apps.files.infrastructure.metadata import (
    calculate_file_checksum,
    clean_filename,
    detect_mime_type,
    remove_spool,
    spool_upload,
)
from server.apps.files.infrastructure.protocols import (
    BlobStore,
    FileMetadataStore,
)
from server.apps.files.infrastructure.repository import DjangoFileMetadataStore
from server.apps.files.infrastructure.storage import get_blob_store
from server.apps.files.logic.object_keys import (
    build_object_key,
    validate_object_key,
)
from server.apps.files.models import ORIGINAL_NAME_MAX_LENGTH
from server.apps.files.records import FileRecord, FileSearchFilters

logger = logging.getLogger(__name__)

_DEFAULT_PAGE_SIZE: Final = 50
_DEFAULT_MAX_PAGE_SIZE: Final = 500


@final
@dataclasses.dataclass(frozen=True, slots=True)
class FileOperationsConfig:
    """Explicit configuration for FileOperations."""

    allowed_content_types: frozenset[str]
    upload_temp_dir: str | None = None
    enforce_declared_size: bool = False
    page_size: int = _DEFAULT_PAGE_SIZE
    max_page_size: int = _DEFAULT_MAX_PAGE_SIZE

    @classmethod
    def from_settings(cls) -> 'FileOperationsConfig':
        """Read configuration from Django settings.

        Returns:
            FileOperationsConfig instance.
        """
        return cls(
            allowed_content_types=frozenset(
                settings.QUIETSTORE_ALLOWED_CONTENT_TYPES,
            ),
            upload_temp_dir=getattr(settings, 'QUIETSTORE_UPLOAD_TEMP_DIR', None),
            enforce_declared_size=getattr(
                settings,
                'QUIETSTORE_ENFORCE_DECLARED_SIZE',
                False,
            ),
            page_size=getattr(
                settings,
                'QUIETSTORE_PAGE_SIZE',
                _DEFAULT_PAGE_SIZE,
            ),
            max_page_size=getattr(
                settings,
                'QUIETSTORE_MAX_PAGE_SIZE',
                _DEFAULT_MAX_PAGE_SIZE,
            ),
        )


@final
class FileOperations:
    """Save, open, list, search, rename and delete files.

    Holds no mutable state; thread-safety is delegated to the injected
    blob and metadata stores.
    """

    def __init__(
        self,
        blob_store: BlobStore,
        metadata_store: FileMetadataStore,
        config: FileOperationsConfig,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        """Initialize FileOperations.

        Args:
            blob_store: Storage for file bytes.
            metadata_store: Storage for file metadata rows.
            config: Validation and pagination settings.
            clock: Source of the current time.
        """
        self._blobs = blob_store
        self._metadata = metadata_store
        self._config = config
        self._clock = clock

    def save_file(  # noqa: WPS211
        self,
        owner_id: int,
        original_name: str,
        content_type: str,
        declared_size: int,
        stream: BinaryIO,
    ) -> FileRecord:
        """Upload bytes to the blob store, then commit metadata.

        Steps: spool -> blob put -> checksum of spooled bytes ->
        metadata create. If the checksum or metadata create fails the
        blob is deleted again (compensation) before the error is raised.

        Args:
            owner_id: Owner's user ID.
            original_name: Client-supplied file name.
            content_type: Client-supplied MIME type (guessed if empty).
            declared_size: Size announced by the client.
            stream: Incoming file content.

        Returns:
            The committed FileRecord.

        Raises:
            ValidationError: If name, size or content type are invalid.
            StorageBackendError: If the blob write, checksum or metadata
                create fails.
            OrphanedBlobError: If the upload cannot be committed and the
                compensating delete fails.
        """
        filename = self._validate_name(original_name)
        if declared_size <= 0:
            raise ValidationError('File size must be greater than 0')
        content_type = self._validate_content_type(content_type, filename)

        file_id = uuid.uuid4()
        created_at = self._clock()
        object_key = build_object_key(owner_id, file_id, created_at)
        validate_object_key(owner_id, object_key)

        spool_path, size = spool_upload(stream, self._config.upload_temp_dir)
        try:
            self._check_observed_size(object_key, declared_size, size)

            # Step 1: Upload to blob store first
            with open(spool_path, 'rb') as spooled:
                self._blobs.put(object_key, spooled, size, content_type)

            # Step 2: Checksum exactly the bytes that were stored
            try:
                checksum = calculate_file_checksum(spool_path)
            except OSError as hash_error:
                logger.exception(
                    'Checksum failed, rolling back blob upload: %s',
                    object_key,
                )
                backend_error = StorageBackendError(
                    f'Failed to checksum upload {object_key}',
                )
                self._compensate_upload(object_key, file_id, backend_error)
                raise backend_error from hash_error
        finally:
            remove_spool(spool_path)

        record = FileRecord(
            id=file_id,
            owner_id=owner_id,
            object_key=object_key,
            original_name=filename,
            size_bytes=size,
            content_type=content_type,
            sha256=checksum,
            created_at=created_at,
        )

        # Step 3: Commit metadata, compensate on failure
        try:
            self._metadata.create(record)
        except StorageBackendError as metadata_error:
            logger.exception(
                'Metadata create failed, rolling back blob upload: %s',
                object_key,
            )
            self._compensate_upload(object_key, file_id, metadata_error)
            raise

        logger.info(
            'File saved: %s (ID: %s, size: %d)',
            object_key,
            file_id,
            size,
        )
        return record

    def open_file(
        self,
        owner_id: int,
        file_id: UUID | str,
    ) -> tuple[FileRecord, BinaryIO]:
        """Open a file owned by the caller for streaming read.

        Args:
            owner_id: Caller's user ID.
            file_id: File identifier.

        Returns:
            Tuple of (record, open stream). The caller closes the stream.

        Raises:
            StoredFileNotFoundError: If missing or owned by someone else.
            BlobNotFoundError: If metadata exists but the blob is gone.
        """
        record = self.get_file(owner_id, file_id)
        try:
            stream = self._blobs.get(record.object_key)
        except BlobNotFoundError:
            logger.error(
                'Blob missing for existing metadata: %s (ID: %s)',
                record.object_key,
                file_id,
            )
            raise
        return record, stream

    def get_file(self, owner_id: int, file_id: UUID | str) -> FileRecord:
        """Load metadata of a file owned by the caller.

        Args:
            owner_id: Caller's user ID.
            file_id: File identifier.

        Returns:
            FileRecord.

        Raises:
            StoredFileNotFoundError: If missing or owned by someone else.
        """
        try:
            lookup_id = UUID(str(file_id))
        except ValueError:
            raise StoredFileNotFoundError(file_id) from None

        record = self._metadata.by_id(lookup_id)
        if record is None or record.owner_id != owner_id:
            logger.info('File not found for owner %s: ID=%s', owner_id, file_id)
            raise StoredFileNotFoundError(file_id)
        return record

    def delete_file(self, owner_id: int, file_id: UUID | str) -> None:
        """Delete blob first, then metadata.

        Args:
            owner_id: Caller's user ID.
            file_id: File identifier.

        Raises:
            StoredFileNotFoundError: If missing or owned by someone else.
            StorageBackendError: If the blob delete fails (nothing changed).
            OrphanedMetadataError: If the blob is gone but metadata remains.
        """
        record = self.get_file(owner_id, file_id)
        logger.info('Deleting file: ID=%s, key=%s', file_id, record.object_key)

        self._blobs.delete(record.object_key)

        try:
            self._metadata.delete(record.id, owner_id)
        except StorageBackendError as exc:
            logger.error(
                'Metadata delete failed after blob delete (orphaned metadata): '
                'ID=%s, key=%s',
                file_id,
                record.object_key,
                exc_info=True,
            )
            raise OrphanedMetadataError(record.object_key, file_id) from exc

    def list_files(
        self,
        owner_id: int,
        limit: int = 0,
        offset: int = 0,
    ) -> list[FileRecord]:
        """List the owner's files, newest first.

        Args:
            owner_id: Owner's user ID.
            limit: Page size (default page size if not positive).
            offset: Rows to skip.

        Returns:
            Ordered list of records.
        """
        limit, offset = self._page(limit, offset)
        return self._metadata.list_by_owner(owner_id, limit, offset)

    def search_files(  # noqa: WPS211
        self,
        owner_id: int,
        name_pattern: str = '',
        content_type: str = '',
        min_size: int = 0,
        max_size: int = 0,
        limit: int = 0,
        offset: int = 0,
    ) -> list[FileRecord]:
        """Search the owner's files, newest first.

        Empty or zero filters add no constraint. ``min_size`` above
        ``max_size`` is a valid filter that matches nothing.

        Args:
            owner_id: Owner's user ID.
            name_pattern: Case-insensitive substring of the name.
            content_type: Exact MIME type.
            min_size: Minimum size in bytes.
            max_size: Maximum size in bytes.
            limit: Page size (default page size if not positive).
            offset: Rows to skip.

        Returns:
            Ordered list of matching records.
        """
        limit, offset = self._page(limit, offset)
        filters = FileSearchFilters(
            name_pattern=name_pattern.strip(),
            content_type=content_type.strip(),
            min_size=min_size,
            max_size=max_size,
        )
        return self._metadata.search_by_filters(owner_id, filters, limit, offset)

    def rename_file(
        self,
        owner_id: int,
        file_id: UUID | str,
        new_name: str,
    ) -> FileRecord:
        """Change the display name of a file.

        Object key, size and checksum are never touched.

        Args:
            owner_id: Caller's user ID.
            file_id: File identifier.
            new_name: New file name.

        Returns:
            Updated FileRecord.

        Raises:
            ValidationError: If the new name is empty or too long.
            StoredFileNotFoundError: If missing or owned by someone else.
        """
        filename = self._validate_name(new_name)
        record = self.get_file(owner_id, file_id)
        if not self._metadata.update_name(record.id, owner_id, filename):
            logger.info('File vanished during rename: ID=%s', file_id)
            raise StoredFileNotFoundError(file_id)
        logger.info(
            'File renamed: ID=%s, %s -> %s',
            file_id,
            record.original_name,
            filename,
        )
        return dataclasses.replace(record, original_name=filename)

    def _compensate_upload(
        self,
        object_key: str,
        file_id: UUID,
        cause: StorageBackendError,
    ) -> None:
        try:
            self._blobs.delete(object_key)
        except StorageBackendError:
            logger.error(
                'Failed to rollback upload, orphaned blob: %s (ID: %s)',
                object_key,
                file_id,
                exc_info=True,
            )
            raise OrphanedBlobError(object_key, file_id) from cause
        logger.info('Rolled back blob upload: %s', object_key)

    def _validate_name(self, name: str) -> str:
        filename = clean_filename(name or '')
        if not filename:
            raise ValidationError('Filename cannot be empty')
        if len(filename) > ORIGINAL_NAME_MAX_LENGTH:
            raise ValidationError(
                f'Filename is longer than {ORIGINAL_NAME_MAX_LENGTH} characters',
            )
        return filename

    def _validate_content_type(self, content_type: str, filename: str) -> str:
        content_type = (content_type or '').strip().lower()
        if not content_type:
            content_type = detect_mime_type(filename)
        if content_type not in self._config.allowed_content_types:
            raise ValidationError(f'File type not allowed: {content_type}')
        return content_type

    def _check_observed_size(
        self,
        object_key: str,
        declared_size: int,
        size: int,
    ) -> None:
        if size <= 0:
            raise ValidationError('Uploaded file is empty')
        if size == declared_size:
            return
        logger.warning(
            'Declared size %d differs from received %d bytes: %s',
            declared_size,
            size,
            object_key,
        )
        if self._config.enforce_declared_size:
            raise ValidationError(
                f'Declared size {declared_size} does not match '
                f'received {size} bytes',
            )

    def _page(self, limit: int, offset: int) -> tuple[int, int]:
        if offset < 0:
            raise ValidationError('Offset cannot be negative')
        if limit <= 0:
            limit = self._config.page_size
        return min(limit, self._config.max_page_size), offset


def get_file_operations() -> FileOperations:
    """Build FileOperations wired to the configured backends.

    Returns:
        FileOperations using the ``blobs`` storage and the ORM.
    """
    return FileOperations(
        blob_store=get_blob_store(),
        metadata_store=DjangoFileMetadataStore(
            soft_delete=getattr(settings, 'QUIETSTORE_SOFT_DELETE', False),
        ),
        config=FileOperationsConfig.from_settings(),
    )
