"""Capabilities the file operations depend on.

Concrete adapters live in ``storage.py`` (blob bytes) and
``repository.py`` (metadata rows). Business logic only sees these
protocols so backends can be swapped or faked in tests.
"""

from typing import BinaryIO, Protocol
from uuid import UUID

from server.apps.files.records import FileRecord, FileSearchFilters


class BlobStore(Protocol):
    """Durable key/value byte storage."""

    def put(
        self,
        key: str,
        stream: BinaryIO,
        length: int,
        content_type: str,
    ) -> None:
        """Store ``length`` bytes from ``stream`` under ``key``.

        Raises:
            StorageBackendError: If the write fails.
        """

    def get(self, key: str) -> BinaryIO:
        """Open a streaming read of the bytes under ``key``.

        Raises:
            BlobNotFoundError: If nothing is stored under the key.
            StorageBackendError: If the read cannot be started.
        """

    def delete(self, key: str) -> None:
        """Delete the bytes under ``key``; missing keys are not an error.

        Raises:
            StorageBackendError: If the delete fails.
        """


class FileMetadataStore(Protocol):
    """Relational persistence of file metadata."""

    def create(self, record: FileRecord) -> None:
        """Insert a new metadata row.

        Raises:
            DuplicateFileIdError: If the id or object key already exists.
            StorageBackendError: On any other database failure.
        """

    def by_id(self, file_id: UUID) -> FileRecord | None:
        """Return the live (not soft-deleted) record or None."""

    def list_by_owner(
        self,
        owner_id: int,
        limit: int,
        offset: int,
    ) -> list[FileRecord]:
        """Return owner's live records, newest first."""

    def search_by_filters(
        self,
        owner_id: int,
        filters: FileSearchFilters,
        limit: int,
        offset: int,
    ) -> list[FileRecord]:
        """Return owner's live records matching filters, newest first."""

    def delete(self, file_id: UUID, owner_id: int) -> None:
        """Remove (or soft-delete) the owner's record."""

    def update_name(self, file_id: UUID, owner_id: int, new_name: str) -> bool:
        """Change ``original_name`` of the owner's live record.

        Returns False when no live row matched.
        """
