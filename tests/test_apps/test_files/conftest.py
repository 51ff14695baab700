"""Shared fixtures for files app tests."""

from datetime import UTC, datetime, timedelta
from typing import Final

import boto3
import pytest
from django.contrib.auth import get_user_model
from django.core.files.storage import FileSystemStorage
from moto import mock_aws

from server.apps.files.exceptions import StorageBackendError
from server.apps.files.infrastructure.repository import DjangoFileMetadataStore
from server.apps.files.infrastructure.storage import (
    DjangoBlobStore,
    ObjectStorage,
)
from server.apps.files.logic.file_operations import (
    FileOperations,
    FileOperationsConfig,
)

User = get_user_model()

TEST_BUCKET: Final = 'quietstore-files'
FIXED_NOW: Final = datetime(2026, 3, 14, 9, 30, tzinfo=UTC)
ALLOWED_TYPES: Final = frozenset((
    'text/plain',
    'application/pdf',
    'image/png',
))


class TickingClock:
    """Clock that advances one second on every call."""

    def __init__(self, start=FIXED_NOW):
        self.current = start

    def __call__(self):
        now = self.current
        self.current = now + timedelta(seconds=1)
        return now


class FlakyMetadataStore:
    """Metadata store wrapper that fails selected operations."""

    def __init__(self, inner, fail_on=()):
        self.inner = inner
        self.fail_on = set(fail_on)

    def __getattr__(self, name):
        if name in self.fail_on:
            return self._fail
        return getattr(self.inner, name)

    def _fail(self, *args, **kwargs):
        raise StorageBackendError('metadata store unavailable')


class FlakyBlobStore:
    """Blob store wrapper that fails selected operations."""

    def __init__(self, inner, fail_on=()):
        self.inner = inner
        self.fail_on = set(fail_on)
        self.deleted = []

    def put(self, key, stream, length, content_type):
        if 'put' in self.fail_on:
            raise StorageBackendError('blob store unavailable')
        self.inner.put(key, stream, length, content_type)

    def get(self, key):
        if 'get' in self.fail_on:
            raise StorageBackendError('blob store unavailable')
        return self.inner.get(key)

    def delete(self, key):
        if 'delete' in self.fail_on:
            raise StorageBackendError('blob store unavailable')
        self.deleted.append(key)
        self.inner.delete(key)


@pytest.fixture
def user(db):
    """Create test user.

    Returns:
        User instance for testing.
    """
    return User.objects.create_user(
        username='testuser',
        password='testpass123',
        email='test@example.com',
    )


@pytest.fixture
def other_user(db):
    """Create second test user for isolation tests.

    Returns:
        Second user instance.
    """
    return User.objects.create_user(
        username='otheruser',
        password='testpass123',
        email='other@example.com',
    )


@pytest.fixture
def mock_s3():
    """Mock S3 service with quietstore-files bucket.

    Yields:
        boto3 S3 resource with quietstore-files bucket created.
    """
    with mock_aws():
        # Create S3 resource
        conn = boto3.resource('s3', region_name='us-east-1')

        # Create bucket
        conn.create_bucket(Bucket=TEST_BUCKET)

        yield conn


@pytest.fixture
def s3_storage(mock_s3):
    """ObjectStorage pointed at the mocked bucket.

    Returns:
        ObjectStorage instance.
    """
    return ObjectStorage(
        bucket_name=TEST_BUCKET,
        access_key='testing',
        secret_key='testing',
        region_name='us-east-1',
        file_overwrite=False,
        default_acl=None,
    )


@pytest.fixture
def fs_storage(tmp_path):
    """FileSystemStorage rooted in a temporary directory.

    Returns:
        FileSystemStorage instance.
    """
    return FileSystemStorage(location=tmp_path / 'blobs')


@pytest.fixture
def blob_store(fs_storage):
    """Blob store over the temporary filesystem storage.

    Returns:
        DjangoBlobStore instance.
    """
    return DjangoBlobStore(fs_storage)


@pytest.fixture
def metadata_store(db):
    """Metadata store over the test database.

    Returns:
        DjangoFileMetadataStore with hard delete.
    """
    return DjangoFileMetadataStore()


@pytest.fixture
def operations_config(tmp_path):
    """Configuration used by file operations tests.

    Returns:
        FileOperationsConfig instance.
    """
    spool_dir = tmp_path / 'spool'
    spool_dir.mkdir()
    return FileOperationsConfig(
        allowed_content_types=ALLOWED_TYPES,
        upload_temp_dir=str(spool_dir),
        page_size=3,
        max_page_size=5,
    )


@pytest.fixture
def file_operations(blob_store, metadata_store, operations_config):
    """FileOperations over filesystem blobs and the test database.

    Returns:
        FileOperations instance with a ticking clock.
    """
    return FileOperations(
        blob_store=blob_store,
        metadata_store=metadata_store,
        config=operations_config,
        clock=TickingClock(),
    )


@pytest.fixture
def make_operations(blob_store, metadata_store, operations_config):
    """Factory for FileOperations with failure-injecting stores.

    Returns:
        Callable taking ``blob_fail_on`` and ``metadata_fail_on`` and
        returning (operations, blobs, metadata).
    """
    def factory(blob_fail_on=(), metadata_fail_on=()):
        blobs = FlakyBlobStore(blob_store, blob_fail_on)
        metadata = FlakyMetadataStore(metadata_store, metadata_fail_on)
        operations = FileOperations(
            blob_store=blobs,
            metadata_store=metadata,
            config=operations_config,
            clock=TickingClock(),
        )
        return operations, blobs, metadata

    return factory


@pytest.fixture
def spool_dir(operations_config):
    """Directory where uploads are spooled.

    Returns:
        Path of the spool directory.
    """
    return operations_config.upload_temp_dir
