"""Tests for object key derivation."""

import uuid
from datetime import UTC, datetime

import pytest
from django.core.exceptions import ValidationError

from server.apps.files.logic.object_keys import (
    build_object_key,
    validate_object_key,
)

_FILE_ID = uuid.UUID('6f1c1f0e-8d7a-4c55-9a61-3f2b7f0d9a10')


def test_build_object_key():
    """Test key is partitioned by owner, year and month."""
    when = datetime(2026, 3, 14, tzinfo=UTC)

    key = build_object_key(7, _FILE_ID, when)

    assert key == f'user/7/2026/03/{_FILE_ID}'


def test_build_object_key_pads_month():
    """Test single-digit months are zero padded."""
    when = datetime(2025, 1, 31, 23, 59, tzinfo=UTC)

    assert build_object_key(1, _FILE_ID, when).startswith('user/1/2025/01/')


def test_build_object_key_validates_for_owner():
    """Test built keys pass validation for the same owner."""
    key = build_object_key(42, _FILE_ID, datetime(2026, 12, 1, tzinfo=UTC))

    validate_object_key(42, key)


@pytest.mark.parametrize('key', [
    '',
    'user/7/2026/03',
    'files/7/2026/03/abc',
    'user/7/2026//abc',
    'user/7/2026/03/abc/extra',
])
def test_validate_object_key_malformed(key):
    """Test malformed keys are rejected."""
    with pytest.raises(ValidationError):
        validate_object_key(7, key)


def test_validate_object_key_wrong_owner():
    """Test keys in another owner's partition are rejected."""
    key = build_object_key(8, _FILE_ID, datetime(2026, 3, 1, tzinfo=UTC))

    with pytest.raises(ValidationError):
        validate_object_key(7, key)
