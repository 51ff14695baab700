"""System checks for file storage settings."""

from typing import Any, Final

from django.conf import settings
from django.core.checks import CheckMessage, Error, Warning  # noqa: A004

_BLOB_BACKENDS: Final = frozenset(('filesystem', 's3'))


def check_storage_settings(**kwargs: Any) -> list[CheckMessage]:
    """Validate blob backend, allow-list and pagination settings.

    Args:
        kwargs: Arguments passed by the checks framework (unused).

    Returns:
        List of problems found.
    """
    messages: list[CheckMessage] = []

    backend = settings.QUIETSTORE_BLOB_BACKEND
    if backend not in _BLOB_BACKENDS:
        messages.append(Error(
            f'Unknown blob backend: {backend!r}',
            hint='Set QUIETSTORE_BLOB_BACKEND to "filesystem" or "s3".',
            id='files.E001',
        ))
    elif backend == 's3':
        options = settings.STORAGES['blobs'].get('OPTIONS', {})
        if not options.get('access_key') or not options.get('secret_key'):
            messages.append(Error(
                'S3 blob backend needs an access key and a secret key',
                hint='Set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY.',
                id='files.E002',
            ))

    if not settings.QUIETSTORE_ALLOWED_CONTENT_TYPES:
        messages.append(Warning(
            'No content types are allowed, every upload will be rejected',
            id='files.W001',
        ))

    page_size = settings.QUIETSTORE_PAGE_SIZE
    max_page_size = settings.QUIETSTORE_MAX_PAGE_SIZE
    if page_size <= 0 or page_size > max_page_size:
        messages.append(Error(
            f'Invalid page sizes: default {page_size}, max {max_page_size}',
            hint='Use 0 < QUIETSTORE_PAGE_SIZE <= QUIETSTORE_MAX_PAGE_SIZE.',
            id='files.E003',
        ))
    return messages
