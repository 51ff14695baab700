"""Blob store backends for file bytes."""

import logging
from typing import Any, BinaryIO, Final, final, override

from botocore.exceptions import BotoCoreError, ClientError
from django.core.files.base import File as DjangoFile
from django.core.files.storage import Storage, storages
from storages.backends.s3 import S3Storage

from server.apps.files.exceptions import BlobNotFoundError, StorageBackendError

logger = logging.getLogger(__name__)

# Alias of the blob storage in settings.STORAGES
BLOB_STORAGE_ALIAS: Final = 'blobs'

_BACKEND_ERRORS: Final = (OSError, BotoCoreError, ClientError)
_US_EAST_1: Final = 'us-east-1'


@final
class ObjectStorage(S3Storage):
    """S3-compatible storage backend for file bytes.

    Extends django-storages S3Storage with:
    - Enhanced error logging
    - Bucket bootstrap for fresh MinIO deployments
    """

    @override
    def save(  # noqa: WPS211
        self,
        name: str,
        content: Any,
        max_length: int | None = None,
    ) -> str:
        """Save object to S3 with error handling and logging.

        Args:
            name: Object key.
            content: File content (file-like object).
            max_length: Optional maximum length for the key.

        Returns:
            Actual key used.

        Raises:
            Exception: If S3 upload fails.
        """
        try:
            logger.info('Uploading object to storage: %s', name)
            saved_name = super().save(name, content, max_length)
            logger.info('Successfully uploaded object: %s', saved_name)
        except Exception:
            logger.exception('Failed to upload object to storage: %s', name)
            raise
        else:
            return saved_name

    @override
    def delete(self, name: str) -> None:
        """Delete object from S3 with error handling and logging.

        Args:
            name: Key of object to delete.

        Raises:
            Exception: If S3 delete fails.
        """
        try:
            logger.info('Deleting object from storage: %s', name)
            super().delete(name)
            logger.info('Successfully deleted object: %s', name)
        except Exception:
            logger.exception('Failed to delete object from storage: %s', name)
            raise

    def ensure_bucket(self) -> None:
        """Create the configured bucket unless it already exists.

        A concurrent creator winning the race is not an error as long
        as the bucket is reachable afterwards.
        """
        client = self.connection.meta.client
        try:
            client.head_bucket(Bucket=self.bucket_name)
        except ClientError:
            logger.info('Bucket missing, creating: %s', self.bucket_name)
        else:
            return

        create_params: dict[str, Any] = {'Bucket': self.bucket_name}
        if self.region_name and self.region_name not in {_US_EAST_1, 'auto'}:
            create_params['CreateBucketConfiguration'] = {
                'LocationConstraint': self.region_name,
            }
        try:
            client.create_bucket(**create_params)
        except ClientError:
            # Raises again if the bucket is still not there
            client.head_bucket(Bucket=self.bucket_name)


@final
class DjangoBlobStore:
    """``BlobStore`` on top of any Django storage backend.

    Works with ObjectStorage (S3/MinIO) and FileSystemStorage alike.
    Backend exceptions are translated to StorageBackendError.
    """

    def __init__(self, storage: Storage) -> None:
        """Initialize the adapter.

        Args:
            storage: Django storage holding the blobs.
        """
        self._storage = storage

    def put(
        self,
        key: str,
        stream: BinaryIO,
        length: int,
        content_type: str,
    ) -> None:
        """Write bytes under an exact key.

        Args:
            key: Object key.
            stream: Readable binary stream positioned at the start.
            length: Number of bytes in the stream.
            content_type: MIME type stored with the object.

        Raises:
            StorageBackendError: If the write fails or the backend
                stored the bytes under a different name.
        """
        content = DjangoFile(stream, name=key)
        content.size = length
        content.content_type = content_type  # type: ignore[attr-defined]

        try:
            saved_name = self._storage.save(key, content)
        except _BACKEND_ERRORS as exc:
            raise StorageBackendError(f'Failed to store blob {key}') from exc

        if saved_name != key:
            logger.error(
                'Blob stored under unexpected name %s (wanted %s)',
                saved_name,
                key,
            )
            self.delete(saved_name)
            raise StorageBackendError(f'Object key already taken: {key}')

    def get(self, key: str) -> BinaryIO:
        """Open the blob for streaming read.

        Args:
            key: Object key.

        Returns:
            Open binary file object; the caller closes it.

        Raises:
            BlobNotFoundError: If the key does not exist.
            StorageBackendError: If the backend fails.
        """
        try:
            return self._storage.open(key, 'rb')  # type: ignore[return-value]
        except FileNotFoundError as exc:
            raise BlobNotFoundError(key) from exc
        except _BACKEND_ERRORS as exc:
            raise StorageBackendError(f'Failed to open blob {key}') from exc

    def delete(self, key: str) -> None:
        """Delete the blob; deleting a missing key succeeds.

        Args:
            key: Object key.

        Raises:
            StorageBackendError: If the backend fails.
        """
        try:
            self._storage.delete(key)
        except FileNotFoundError:
            logger.warning('Blob already absent: %s', key)
        except _BACKEND_ERRORS as exc:
            raise StorageBackendError(f'Failed to delete blob {key}') from exc


def get_blob_store() -> DjangoBlobStore:
    """Build the blob store configured in settings.STORAGES.

    Returns:
        DjangoBlobStore over the ``blobs`` storage alias.
    """
    return DjangoBlobStore(storages[BLOB_STORAGE_ALIAS])
