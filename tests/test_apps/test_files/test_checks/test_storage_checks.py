"""Tests for storage settings checks."""

from server.apps.files.checks import check_storage_settings


def _ids(messages):
    return [message.id for message in messages]


def test_defaults_pass(settings):
    """Test default settings produce no messages."""
    settings.QUIETSTORE_BLOB_BACKEND = 'filesystem'

    assert check_storage_settings() == []


def test_unknown_backend(settings):
    """Test unknown blob backends are reported."""
    settings.QUIETSTORE_BLOB_BACKEND = 'ftp'

    assert _ids(check_storage_settings()) == ['files.E001']


def test_s3_without_credentials(settings):
    """Test S3 backend requires credentials."""
    settings.QUIETSTORE_BLOB_BACKEND = 's3'
    settings.STORAGES = {
        **settings.STORAGES,
        'blobs': {
            'BACKEND': 'server.apps.files.infrastructure.storage.ObjectStorage',
            'OPTIONS': {'bucket_name': 'files', 'access_key': None},
        },
    }

    assert _ids(check_storage_settings()) == ['files.E002']


def test_empty_allow_list(settings):
    """Test an empty allow-list is flagged."""
    settings.QUIETSTORE_ALLOWED_CONTENT_TYPES = ()

    assert 'files.W001' in _ids(check_storage_settings())


def test_page_size_above_max(settings):
    """Test default page size may not exceed the maximum."""
    settings.QUIETSTORE_PAGE_SIZE = 100
    settings.QUIETSTORE_MAX_PAGE_SIZE = 10

    assert 'files.E003' in _ids(check_storage_settings())
