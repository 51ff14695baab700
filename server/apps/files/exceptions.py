"""Exceptions for files app."""


class StoredFileNotFoundError(Exception):
    """Raised when a file is missing or belongs to another user.

    Both cases share one message so callers cannot discover
    files owned by someone else.
    """

    def __init__(self, file_id: object) -> None:
        """Initialize StoredFileNotFoundError.

        Args:
            file_id: Requested file identifier.
        """
        self.file_id = file_id
        super().__init__('File not found')


class StorageBackendError(Exception):
    """Raised when the blob store or metadata store fails."""


class DuplicateFileIdError(StorageBackendError):
    """Raised when a metadata row with the same id or key already exists."""


class BlobNotFoundError(StorageBackendError):
    """Raised when no blob exists under the requested object key."""

    def __init__(self, object_key: str) -> None:
        """Initialize BlobNotFoundError.

        Args:
            object_key: Key that was looked up.
        """
        self.object_key = object_key
        super().__init__(f'Blob not found: {object_key}')


class StorageConsistencyError(Exception):
    """Blob store and metadata store disagree and need reconciliation."""

    def __init__(self, object_key: str, file_id: object, message: str) -> None:
        """Initialize StorageConsistencyError.

        Args:
            object_key: Object key involved in the inconsistency.
            file_id: File identifier involved in the inconsistency.
            message: Human-readable description.
        """
        self.object_key = object_key
        self.file_id = file_id
        super().__init__(message)


class OrphanedBlobError(StorageConsistencyError):
    """Blob was written but neither metadata nor compensation succeeded."""

    def __init__(self, object_key: str, file_id: object) -> None:
        """Initialize OrphanedBlobError.

        Args:
            object_key: Key of the blob left without metadata.
            file_id: Identifier the metadata row would have had.
        """
        super().__init__(
            object_key,
            file_id,
            f'Orphaned blob {object_key} (file {file_id}): '
            'upload was not committed and compensating delete failed',
        )


class OrphanedMetadataError(StorageConsistencyError):
    """Blob was deleted but its metadata row could not be removed."""

    def __init__(self, object_key: str, file_id: object) -> None:
        """Initialize OrphanedMetadataError.

        Args:
            object_key: Key of the already deleted blob.
            file_id: Identifier of the metadata row left behind.
        """
        super().__init__(
            object_key,
            file_id,
            f'Orphaned metadata for file {file_id}: '
            f'blob {object_key} deleted, metadata delete failed',
        )
