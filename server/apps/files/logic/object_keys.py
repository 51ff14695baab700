"""Object key strategy for blob storage."""

from datetime import datetime
from typing import Final
from uuid import UUID

from django.core.exceptions import ValidationError

_KEY_ROOT: Final = 'user'


def build_object_key(owner_id: int, file_id: UUID, when: datetime) -> str:
    """Derive the blob key for a new file.

    Keys are partitioned by owner and calendar month and end with the
    freshly generated file id, so they never collide.

    Example: (7, uuid, 2026-03-14) -> 'user/7/2026/03/<uuid>'

    Args:
        owner_id: Owner's user ID.
        file_id: Newly generated file identifier.
        when: Upload timestamp.

    Returns:
        Object key.
    """
    return '{root}/{owner}/{year:04d}/{month:02d}/{file_id}'.format(
        root=_KEY_ROOT,
        owner=owner_id,
        year=when.year,
        month=when.month,
        file_id=file_id,
    )


def validate_object_key(owner_id: int, object_key: str) -> None:
    """Validate key stays inside the owner's partition.

    Args:
        owner_id: Owner's user ID.
        object_key: Proposed object key.

    Raises:
        ValidationError: If key is empty, malformed or belongs to
            another owner.
    """
    if not object_key:
        raise ValidationError('Object key cannot be empty')

    parts = object_key.split('/')
    if len(parts) != 5 or parts[0] != _KEY_ROOT or '' in parts:
        raise ValidationError(f'Malformed object key: {object_key}')

    if parts[1] != str(owner_id):
        raise ValidationError(
            f'Object key owner ({parts[1]}) does not match '
            f'owner ({owner_id})',
        )
