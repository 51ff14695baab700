"""Tests for file operations business logic."""

import hashlib
import logging
import os
import uuid
from io import BytesIO

import pytest
from django.core.exceptions import ValidationError

from server.apps.files.exceptions import (
    BlobNotFoundError,
    OrphanedBlobError,
    OrphanedMetadataError,
    StorageBackendError,
    StoredFileNotFoundError,
)
from server.apps.files.infrastructure.repository import DjangoFileMetadataStore
from server.apps.files.logic.file_operations import FileOperations
from server.apps.files.models import File

_CONTENT = b'hello quietstore'


def _upload(operations, owner, name='notes.txt', content=_CONTENT, **kwargs):
    return operations.save_file(
        owner_id=owner.id,
        original_name=name,
        content_type=kwargs.get('content_type', 'text/plain'),
        declared_size=kwargs.get('declared_size', len(content)),
        stream=BytesIO(content),
    )


@pytest.mark.django_db
class TestSaveFile:
    """Tests for uploading files."""

    def test_save_file_success(self, user, file_operations, fs_storage):
        """Test bytes land at the key and metadata matches them."""
        record = _upload(file_operations, user)

        assert record.owner_id == user.id
        assert record.original_name == 'notes.txt'
        assert record.size_bytes == len(_CONTENT)
        assert record.content_type == 'text/plain'
        assert record.sha256 == hashlib.sha256(_CONTENT).hexdigest()
        assert record.object_key == f'user/{user.id}/2026/03/{record.id}'

        with fs_storage.open(record.object_key, 'rb') as stored:
            assert stored.read() == _CONTENT

        row = File.objects.get(id=record.id)
        assert row.object_key == record.object_key
        assert row.sha256 == record.sha256

    def test_save_file_removes_spool(self, user, file_operations, spool_dir):
        """Test temporary upload file is removed after save."""
        _upload(file_operations, user)

        assert os.listdir(spool_dir) == []

    def test_save_file_fresh_ids(self, user, file_operations):
        """Test two uploads of the same content get distinct ids and keys."""
        first = _upload(file_operations, user)
        second = _upload(file_operations, user)

        assert first.id != second.id
        assert first.object_key != second.object_key
        assert first.sha256 == second.sha256

    def test_save_file_strips_directories(self, user, file_operations):
        """Test client-supplied directories are dropped from the name."""
        record = _upload(file_operations, user, name='../../etc/notes.txt')

        assert record.original_name == 'notes.txt'

    def test_save_file_guesses_content_type(self, user, file_operations):
        """Test empty content type is guessed from the file name."""
        record = _upload(file_operations, user, name='a.pdf', content_type='')

        assert record.content_type == 'application/pdf'

    def test_save_file_normalizes_content_type(self, user, file_operations):
        """Test content type is compared case-insensitively."""
        record = _upload(file_operations, user, content_type=' Text/Plain ')

        assert record.content_type == 'text/plain'

    @pytest.mark.parametrize('name', ['', '   ', '/'])
    def test_save_file_empty_name(self, user, file_operations, name):
        """Test upload without a usable name is rejected."""
        with pytest.raises(ValidationError):
            _upload(file_operations, user, name=name)

        assert File.all_objects.count() == 0

    @pytest.mark.parametrize('declared_size', [0, -1])
    def test_save_file_non_positive_size(
        self,
        user,
        file_operations,
        declared_size,
    ):
        """Test non-positive declared size is rejected."""
        with pytest.raises(ValidationError):
            _upload(file_operations, user, declared_size=declared_size)

        assert File.all_objects.count() == 0

    def test_save_file_disallowed_type(self, user, file_operations, fs_storage):
        """Test content type outside the allow-list is rejected."""
        with pytest.raises(ValidationError):
            _upload(
                file_operations,
                user,
                name='run.exe',
                content_type='application/x-msdownload',
            )

        assert File.all_objects.count() == 0
        assert not fs_storage.exists('user')

    def test_save_file_empty_stream(self, user, file_operations, fs_storage):
        """Test zero received bytes is rejected before any write."""
        with pytest.raises(ValidationError):
            _upload(file_operations, user, content=b'', declared_size=10)

        assert File.all_objects.count() == 0
        assert not fs_storage.exists('user')

    def test_save_file_size_mismatch_records_observed(
        self,
        user,
        file_operations,
        caplog,
    ):
        """Test declared size mismatch keeps the observed size."""
        with caplog.at_level(logging.WARNING):
            record = _upload(file_operations, user, declared_size=999)

        assert record.size_bytes == len(_CONTENT)
        assert 'Declared size 999' in caplog.text

    def test_save_file_size_mismatch_enforced(
        self,
        user,
        blob_store,
        metadata_store,
        operations_config,
        fs_storage,
    ):
        """Test declared size mismatch is rejected when enforced."""
        operations = FileOperations(
            blob_store=blob_store,
            metadata_store=metadata_store,
            config=operations_config.__class__(
                allowed_content_types=operations_config.allowed_content_types,
                upload_temp_dir=operations_config.upload_temp_dir,
                enforce_declared_size=True,
            ),
        )

        with pytest.raises(ValidationError):
            _upload(operations, user, declared_size=999)

        assert File.all_objects.count() == 0
        assert not fs_storage.exists('user')

    def test_save_file_blob_failure(self, user, make_operations):
        """Test failed blob write leaves no metadata behind."""
        operations, _, _ = make_operations(blob_fail_on=['put'])

        with pytest.raises(StorageBackendError):
            _upload(operations, user)

        assert File.all_objects.count() == 0

    def test_save_file_metadata_failure_compensates(
        self,
        user,
        make_operations,
        fs_storage,
    ):
        """Test failed metadata create deletes the uploaded blob."""
        operations, blobs, _ = make_operations(metadata_fail_on=['create'])

        with pytest.raises(StorageBackendError) as exc_info:
            _upload(operations, user)

        assert not isinstance(exc_info.value, OrphanedBlobError)
        assert len(blobs.deleted) == 1
        assert not fs_storage.exists(blobs.deleted[0])
        assert File.all_objects.count() == 0

    def test_save_file_compensation_failure(
        self,
        user,
        make_operations,
        fs_storage,
        caplog,
    ):
        """Test failed compensation raises and logs the orphaned blob."""
        operations, _, _ = make_operations(
            blob_fail_on=['delete'],
            metadata_fail_on=['create'],
        )

        with caplog.at_level(logging.ERROR):
            with pytest.raises(OrphanedBlobError) as exc_info:
                _upload(operations, user)

        orphan = exc_info.value
        assert orphan.object_key.startswith(f'user/{user.id}/')
        assert isinstance(orphan.__cause__, StorageBackendError)
        assert fs_storage.exists(orphan.object_key)
        assert File.all_objects.count() == 0
        assert any(
            rec.levelno == logging.ERROR and orphan.object_key in rec.getMessage()
            for rec in caplog.records
        )

    def test_save_file_checksum_failure_compensates(
        self,
        user,
        make_operations,
        fs_storage,
        monkeypatch,
    ):
        """Test a failed checksum deletes the uploaded blob."""
        def broken_checksum(path):
            raise OSError('spool unreadable')

        monkeypatch.setattr(
            'server.apps.files.logic.file_operations.calculate_file_checksum',
            broken_checksum,
        )
        operations, blobs, _ = make_operations()

        with pytest.raises(StorageBackendError) as exc_info:
            _upload(operations, user)

        assert isinstance(exc_info.value.__cause__, OSError)
        assert len(blobs.deleted) == 1
        assert not fs_storage.exists(blobs.deleted[0])
        assert File.all_objects.count() == 0

    @pytest.mark.parametrize(('length', 'accepted'), [
        (255, True),
        (256, False),
    ])
    def test_save_file_name_length(self, user, file_operations, length, accepted):
        """Test names are limited to the stored column length."""
        name = 'n' * (length - 4) + '.txt'

        if accepted:
            assert _upload(file_operations, user, name=name).original_name == name
        else:
            with pytest.raises(ValidationError):
                _upload(file_operations, user, name=name)
            assert File.all_objects.count() == 0


@pytest.mark.django_db
class TestOpenFile:
    """Tests for reading files back."""

    def test_open_file_success(self, user, file_operations):
        """Test stream yields the stored bytes."""
        record = _upload(file_operations, user)

        opened, stream = file_operations.open_file(user.id, record.id)
        with stream:
            assert stream.read() == _CONTENT
        assert opened == record

    def test_open_file_accepts_string_id(self, user, file_operations):
        """Test file id may be passed as a string."""
        record = _upload(file_operations, user)

        opened, stream = file_operations.open_file(user.id, str(record.id))
        stream.close()

        assert opened.id == record.id

    def test_open_file_foreign_owner(self, user, other_user, file_operations):
        """Test foreign and missing files are indistinguishable."""
        record = _upload(file_operations, user)

        with pytest.raises(StoredFileNotFoundError) as foreign:
            file_operations.open_file(other_user.id, record.id)
        with pytest.raises(StoredFileNotFoundError) as missing:
            file_operations.open_file(other_user.id, uuid.uuid4())

        assert str(foreign.value) == str(missing.value)

    def test_open_file_malformed_id(self, user, file_operations):
        """Test malformed ids are reported as not found."""
        with pytest.raises(StoredFileNotFoundError):
            file_operations.open_file(user.id, 'not-a-uuid')

    def test_open_file_missing_blob(
        self,
        user,
        file_operations,
        fs_storage,
        caplog,
    ):
        """Test dangling metadata surfaces as BlobNotFoundError."""
        record = _upload(file_operations, user)
        fs_storage.delete(record.object_key)

        with caplog.at_level(logging.ERROR):
            with pytest.raises(BlobNotFoundError):
                file_operations.open_file(user.id, record.id)

        assert 'Blob missing' in caplog.text

    def test_get_file_returns_metadata(self, user, file_operations):
        """Test metadata lookup without opening the blob."""
        record = _upload(file_operations, user)

        assert file_operations.get_file(user.id, record.id) == record


@pytest.mark.django_db
class TestDeleteFile:
    """Tests for deleting files."""

    def test_delete_file_success(self, user, file_operations, fs_storage):
        """Test both blob and metadata are removed."""
        record = _upload(file_operations, user)

        file_operations.delete_file(user.id, record.id)

        assert not fs_storage.exists(record.object_key)
        assert not File.all_objects.filter(id=record.id).exists()
        with pytest.raises(StoredFileNotFoundError):
            file_operations.get_file(user.id, record.id)

    def test_delete_file_foreign_owner(
        self,
        user,
        other_user,
        file_operations,
        fs_storage,
    ):
        """Test deleting someone else's file changes nothing."""
        record = _upload(file_operations, user)

        with pytest.raises(StoredFileNotFoundError):
            file_operations.delete_file(other_user.id, record.id)

        assert fs_storage.exists(record.object_key)
        assert File.objects.filter(id=record.id).exists()

    def test_delete_file_blob_already_gone(
        self,
        user,
        file_operations,
        fs_storage,
    ):
        """Test missing blob does not block metadata removal."""
        record = _upload(file_operations, user)
        fs_storage.delete(record.object_key)

        file_operations.delete_file(user.id, record.id)

        assert not File.all_objects.filter(id=record.id).exists()

    def test_delete_file_blob_failure(self, user, make_operations, fs_storage):
        """Test failed blob delete keeps metadata intact."""
        operations, _, _ = make_operations(blob_fail_on=['delete'])
        record = _upload(operations, user)

        with pytest.raises(StorageBackendError):
            operations.delete_file(user.id, record.id)

        assert fs_storage.exists(record.object_key)
        assert File.objects.filter(id=record.id).exists()

    def test_delete_file_metadata_failure(
        self,
        user,
        make_operations,
        fs_storage,
        caplog,
    ):
        """Test metadata failure after blob delete is reported as orphan."""
        operations, _, _ = make_operations(metadata_fail_on=['delete'])
        record = _upload(operations, user)

        with caplog.at_level(logging.ERROR):
            with pytest.raises(OrphanedMetadataError) as exc_info:
                operations.delete_file(user.id, record.id)

        assert exc_info.value.object_key == record.object_key
        assert not fs_storage.exists(record.object_key)
        assert File.objects.filter(id=record.id).exists()
        assert 'orphaned metadata' in caplog.text

    def test_delete_file_soft(
        self,
        user,
        blob_store,
        operations_config,
        fs_storage,
    ):
        """Test soft delete hides the row but keeps it for audit."""
        operations = FileOperations(
            blob_store=blob_store,
            metadata_store=DjangoFileMetadataStore(soft_delete=True),
            config=operations_config,
        )
        record = _upload(operations, user)

        operations.delete_file(user.id, record.id)

        assert not fs_storage.exists(record.object_key)
        assert operations.list_files(user.id) == []
        row = File.all_objects.get(id=record.id)
        assert row.deleted_at is not None
        with pytest.raises(StoredFileNotFoundError):
            operations.get_file(user.id, record.id)


@pytest.mark.django_db
class TestListAndSearch:
    """Tests for listing and searching metadata."""

    def test_list_files_newest_first(self, user, file_operations):
        """Test listing orders by creation time descending."""
        first = _upload(file_operations, user, name='a.txt')
        second = _upload(file_operations, user, name='b.txt')
        third = _upload(file_operations, user, name='c.txt')

        listed = file_operations.list_files(user.id)

        assert [rec.id for rec in listed] == [third.id, second.id, first.id]

    def test_list_files_owner_isolation(self, user, other_user, file_operations):
        """Test listing never returns other owners' files."""
        _upload(file_operations, user)

        assert file_operations.list_files(other_user.id) == []

    def test_list_files_pagination(self, user, file_operations):
        """Test limit and offset select consecutive pages."""
        records = [
            _upload(file_operations, user, name=f'{index}.txt')
            for index in range(4)
        ]
        newest_first = [rec.id for rec in reversed(records)]

        first_page = file_operations.list_files(user.id, limit=2)
        second_page = file_operations.list_files(user.id, limit=2, offset=2)

        assert [rec.id for rec in first_page] == newest_first[:2]
        assert [rec.id for rec in second_page] == newest_first[2:]

    def test_list_files_default_and_max_limit(self, user, file_operations):
        """Test non-positive limit uses default, large limit is clamped."""
        for index in range(6):
            _upload(file_operations, user, name=f'{index}.txt')

        assert len(file_operations.list_files(user.id)) == 3
        assert len(file_operations.list_files(user.id, limit=-1)) == 3
        assert len(file_operations.list_files(user.id, limit=100)) == 5

    def test_list_files_negative_offset(self, user, file_operations):
        """Test negative offset is rejected."""
        with pytest.raises(ValidationError):
            file_operations.list_files(user.id, offset=-1)

    def test_search_by_name_case_insensitive(self, user, file_operations):
        """Test name pattern is a case-insensitive substring."""
        report = _upload(file_operations, user, name='Annual-Report.txt')
        _upload(file_operations, user, name='notes.txt')

        found = file_operations.search_files(user.id, name_pattern='report')

        assert [rec.id for rec in found] == [report.id]

    def test_search_by_content_type(self, user, file_operations):
        """Test content type filter is exact."""
        pdf = _upload(
            file_operations,
            user,
            name='a.pdf',
            content_type='application/pdf',
        )
        _upload(file_operations, user, name='a.txt')

        found = file_operations.search_files(
            user.id,
            content_type='application/pdf',
        )

        assert [rec.id for rec in found] == [pdf.id]

    def test_search_by_size_range(self, user, file_operations):
        """Test size bounds are inclusive."""
        small = _upload(file_operations, user, content=b'x' * 10)
        medium = _upload(file_operations, user, content=b'x' * 20)
        _upload(file_operations, user, content=b'x' * 30)

        found = file_operations.search_files(user.id, min_size=10, max_size=20)

        assert {rec.id for rec in found} == {small.id, medium.id}

    def test_search_inverted_size_range(self, user, file_operations):
        """Test min above max matches nothing instead of failing."""
        _upload(file_operations, user)

        assert file_operations.search_files(
            user.id,
            min_size=100,
            max_size=10,
        ) == []

    def test_search_without_filters(self, user, other_user, file_operations):
        """Test empty filters return all of the owner's files."""
        _upload(file_operations, user)
        _upload(file_operations, user)
        _upload(file_operations, other_user)

        assert len(file_operations.search_files(user.id)) == 2


@pytest.mark.django_db
class TestRenameFile:
    """Tests for renaming files."""

    def test_rename_file_success(self, user, file_operations, fs_storage):
        """Test rename changes only the display name."""
        record = _upload(file_operations, user)

        renamed = file_operations.rename_file(user.id, record.id, 'final.txt')

        assert renamed.original_name == 'final.txt'
        assert renamed.object_key == record.object_key
        assert renamed.size_bytes == record.size_bytes
        assert renamed.sha256 == record.sha256
        assert file_operations.get_file(user.id, record.id) == renamed
        assert fs_storage.exists(record.object_key)

    def test_rename_file_empty_name(self, user, file_operations):
        """Test blank rename target is rejected."""
        record = _upload(file_operations, user)

        with pytest.raises(ValidationError):
            file_operations.rename_file(user.id, record.id, '  ')

        assert file_operations.get_file(user.id, record.id).original_name == (
            'notes.txt'
        )

    def test_rename_file_foreign_owner(self, user, other_user, file_operations):
        """Test renaming someone else's file is reported as not found."""
        record = _upload(file_operations, user)

        with pytest.raises(StoredFileNotFoundError):
            file_operations.rename_file(other_user.id, record.id, 'x.txt')

        assert file_operations.get_file(user.id, record.id).original_name == (
            'notes.txt'
        )

    def test_rename_file_too_long(self, user, file_operations):
        """Test overlong rename target is rejected before any write."""
        record = _upload(file_operations, user)

        with pytest.raises(ValidationError):
            file_operations.rename_file(user.id, record.id, 'n' * 256)

        assert file_operations.get_file(user.id, record.id).original_name == (
            'notes.txt'
        )

    def test_rename_file_deleted_concurrently(self, user, make_operations):
        """Test rename of a row deleted after lookup reports not found."""
        operations, _, metadata = make_operations()
        record = _upload(operations, user)
        inner = metadata.inner

        def delete_then_rename(file_id, owner_id, new_name):
            inner.delete(file_id, owner_id)
            return inner.update_name(file_id, owner_id, new_name)

        metadata.update_name = delete_then_rename

        with pytest.raises(StoredFileNotFoundError):
            operations.rename_file(user.id, record.id, 'final.txt')

        assert File.all_objects.count() == 0
