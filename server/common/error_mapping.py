"""Translate domain errors into caller-visible rejections.

Validation, auth, not-found and conflict errors carry stable messages
that are safe to return. Backend and consistency errors are logged in
full here and reach the caller only as an opaque failure.
"""

import dataclasses
import logging
from http import HTTPStatus
from typing import Final, final

from django.core.exceptions import ValidationError
from django.db import DatabaseError

from server.apps.accounts.exceptions import (
    AuthenticationError,
    UsernameConflictError,
)
from server.apps.files.exceptions import (
    StorageBackendError,
    StorageConsistencyError,
    StoredFileNotFoundError,
)

logger = logging.getLogger(__name__)

_INTERNAL_ERROR_MESSAGE: Final = 'internal error'


@final
@dataclasses.dataclass(frozen=True, slots=True)
class PublicError:
    """Rejection shape exposed to API callers."""

    status: int
    code: str
    message: str

    def to_dict(self) -> dict[str, str]:
        """Serialize the response body.

        Returns:
            Dictionary with ``error`` and ``message`` keys.
        """
        return {'error': self.code, 'message': self.message}


def _validation_message(exc: ValidationError) -> str:
    return '; '.join(str(message) for message in exc.messages)


def to_public_error(exc: Exception) -> PublicError:  # noqa: WPS212
    """Map an exception raised by the core to a public error.

    Args:
        exc: Exception raised by file or session operations.

    Returns:
        PublicError with HTTP status, machine code and message.
    """
    if isinstance(exc, ValidationError):
        return PublicError(
            HTTPStatus.BAD_REQUEST,
            'validation_error',
            _validation_message(exc),
        )
    if isinstance(exc, AuthenticationError):
        return PublicError(HTTPStatus.UNAUTHORIZED, 'unauthorized', str(exc))
    if isinstance(exc, StoredFileNotFoundError):
        return PublicError(HTTPStatus.NOT_FOUND, 'not_found', str(exc))
    if isinstance(exc, UsernameConflictError):
        return PublicError(
            HTTPStatus.CONFLICT,
            'conflict',
            'username already taken',
        )

    if isinstance(exc, StorageConsistencyError):
        logger.error(
            'Storage consistency error needs reconciliation: '
            'key=%s, file_id=%s',
            exc.object_key,
            exc.file_id,
            exc_info=exc,
        )
    elif isinstance(exc, (StorageBackendError, DatabaseError)):
        logger.error('Storage backend failure', exc_info=exc)
    else:
        logger.error('Unexpected error', exc_info=exc)
    return PublicError(
        HTTPStatus.INTERNAL_SERVER_ERROR,
        'internal_error',
        _INTERNAL_ERROR_MESSAGE,
    )
