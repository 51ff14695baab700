"""Django storage configuration for blob backends.

File bytes live under the ``blobs`` storage alias, which is either:
- S3-compatible storage (MinIO locally, any S3 API in production)
- local filesystem storage

Both are consumed through the same ``BlobStore`` adapter.
"""

from typing import Any, Final

from server.settings.components import BASE_DIR, config

QUIETSTORE_BLOB_BACKEND: Final = config(
    'QUIETSTORE_BLOB_BACKEND',
    default='filesystem',
)

_S3_BLOB_STORAGE: Final[dict[str, Any]] = {
    'BACKEND': 'server.apps.files.infrastructure.storage.ObjectStorage',
    'OPTIONS': {
        'bucket_name': config(
            'AWS_STORAGE_BUCKET_NAME',
            default='quietstore-files',
        ),
        'access_key': config('AWS_ACCESS_KEY_ID', default=None),
        'secret_key': config('AWS_SECRET_ACCESS_KEY', default=None),
        'endpoint_url': config(
            'AWS_S3_ENDPOINT_URL',
            default=None,
        ),
        'region_name': config(
            'AWS_S3_REGION_NAME',
            default='us-east-1',
        ),
        'file_overwrite': False,  # Object keys are never reused
        'default_acl': None,  # Inherit bucket ACL
        'addressing_style': 'path',  # MinIO serves buckets by path
    },
}

_FILESYSTEM_BLOB_STORAGE: Final[dict[str, Any]] = {
    'BACKEND': 'django.core.files.storage.FileSystemStorage',
    'OPTIONS': {
        'location': config(
            'QUIETSTORE_BLOB_ROOT',
            default=str(BASE_DIR.joinpath('blobs')),
        ),
    },
}

# Storage configuration dictionary
STORAGES: Final[dict[str, dict[str, Any]]] = {
    'default': {
        'BACKEND': 'django.core.files.storage.FileSystemStorage',
    },
    'staticfiles': {
        'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
    },
    'blobs': (
        _S3_BLOB_STORAGE
        if QUIETSTORE_BLOB_BACKEND == 's3'
        else _FILESYSTEM_BLOB_STORAGE
    ),
}
