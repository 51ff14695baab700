"""Metadata extraction utilities for uploads."""

import hashlib
import mimetypes
import os
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO, Final

_CHUNK_SIZE: Final = 8192  # 8KB chunks for checksum calculation
_SPOOL_CHUNK_SIZE: Final = 64 * 1024
_SPOOL_PREFIX: Final = 'qs-upload-'


def detect_mime_type(filename: str) -> str:
    """Guess MIME type from the filename extension.

    Args:
        filename: Filename with extension.

    Returns:
        MIME type string (e.g., 'image/jpeg', 'application/pdf').
        Returns 'application/octet-stream' if type cannot be determined.
    """
    mime_type, _ = mimetypes.guess_type(filename)
    if mime_type is None:
        return 'application/octet-stream'
    return mime_type


def calculate_checksum(file_obj: BinaryIO) -> str:
    """Calculate SHA256 checksum of file.

    Reads file in chunks to handle large files efficiently.
    Resets file pointer to beginning after calculation.

    Args:
        file_obj: File-like object to checksum.

    Returns:
        Hex-encoded SHA256 hash string.
    """
    sha256_hash = hashlib.sha256()

    # Reset file pointer to beginning
    file_obj.seek(0)

    # Read in chunks to handle large files
    for chunk in iter(lambda: file_obj.read(_CHUNK_SIZE), b''):
        sha256_hash.update(chunk)

    # Reset file pointer to beginning for subsequent operations
    file_obj.seek(0)

    return sha256_hash.hexdigest()


def calculate_file_checksum(path: str) -> str:
    """Calculate SHA256 checksum of a file on local disk.

    Args:
        path: Path to the file.

    Returns:
        Hex-encoded SHA256 hash string.
    """
    with open(path, 'rb') as file_obj:
        return calculate_checksum(file_obj)


def spool_upload(stream: BinaryIO, temp_dir: str | None = None) -> tuple[str, int]:
    """Copy an incoming stream into a local temporary file.

    The blob backend needs a definite length and the checksum needs a
    second pass over the same bytes, so uploads are buffered first.
    The caller removes the file when done.

    Args:
        stream: Readable binary stream.
        temp_dir: Directory for the temporary file (system default if None).

    Returns:
        Tuple of (temporary file path, number of bytes written).
    """
    spool = tempfile.NamedTemporaryFile(  # noqa: SIM115
        prefix=_SPOOL_PREFIX,
        dir=temp_dir,
        delete=False,
    )
    try:
        with spool:
            shutil.copyfileobj(stream, spool, _SPOOL_CHUNK_SIZE)
            size = spool.tell()
    except BaseException:
        remove_spool(spool.name)
        raise
    return spool.name, size


def remove_spool(path: str) -> None:
    """Remove a spooled upload, ignoring files already gone.

    Args:
        path: Path returned by spool_upload.
    """
    try:
        os.remove(path)
    except FileNotFoundError:
        return


def clean_filename(filename: str) -> str:
    """Reduce a client-supplied name to its last path component.

    Args:
        filename: Name as sent by the client (e.g., '../docs/a.pdf').

    Returns:
        Filename without directories or surrounding whitespace.
    """
    return Path(filename.replace('\\', '/').strip()).name.strip()
