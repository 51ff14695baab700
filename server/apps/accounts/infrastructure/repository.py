"""Django adapters for refresh tokens and user accounts."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import final

from django.contrib.auth import authenticate, get_user_model
from django.db import connection, transaction
from django.db.models import Q

from server.apps.accounts.models import RefreshToken
from server.apps.accounts.records import UserIdentity

logger = logging.getLogger(__name__)

_STATEMENT_TIMEOUT_SQL = 'SET LOCAL statement_timeout = {0}'


def _purgeable(expires_before: datetime, revoked_before: datetime) -> Q:
    return Q(expires_at__lt=expires_before) | Q(
        revoked_at__isnull=False,
        revoked_at__lt=revoked_before,
    )


@final
class DjangoRefreshTokenStore:
    """``RefreshTokenStore`` backed by the RefreshToken model.

    When ``statement_timeout`` is set, purge queries run in a
    transaction whose statements the database cancels after that long.
    Only PostgreSQL enforces it; other backends run unbounded.
    """

    def __init__(self, statement_timeout: timedelta | None = None) -> None:
        """Initialize DjangoRefreshTokenStore.

        Args:
            statement_timeout: Upper bound for each purge statement.
        """
        self._statement_timeout = statement_timeout

    def insert(
        self,
        user_id: int,
        token_hash: str,
        issued_at: datetime,
        expires_at: datetime,
    ) -> None:
        """Store a new token hash.

        Args:
            user_id: Owner of the token.
            token_hash: SHA256 hex of the raw token.
            issued_at: Issue timestamp.
            expires_at: Expiry timestamp.
        """
        RefreshToken.objects.create(
            user_id=user_id,
            token_hash=token_hash,
            issued_at=issued_at,
            expires_at=expires_at,
        )

    def find_valid(self, user_id: int, token_hash: str, now: datetime) -> bool:
        """Check for an unrevoked, unexpired row.

        Args:
            user_id: Owner of the token.
            token_hash: SHA256 hex of the raw token.
            now: Current time.

        Returns:
            True if such a row exists.
        """
        return RefreshToken.objects.filter(
            user_id=user_id,
            token_hash=token_hash,
            revoked_at__isnull=True,
            expires_at__gt=now,
        ).exists()

    def revoke(self, user_id: int, token_hash: str, now: datetime) -> bool:
        """Revoke the unrevoked row for this pair, expired or not.

        Args:
            user_id: Owner of the token.
            token_hash: SHA256 hex of the raw token.
            now: Revocation timestamp.

        Returns:
            True if a row was revoked.
        """
        updated = RefreshToken.objects.filter(
            user_id=user_id,
            token_hash=token_hash,
            revoked_at__isnull=True,
        ).update(revoked_at=now)
        return updated > 0

    def revoke_if_valid(
        self,
        user_id: int,
        token_hash: str,
        now: datetime,
    ) -> bool:
        """Revoke the row in one conditional UPDATE.

        The validity check lives in the WHERE clause, so the database
        lets only one of two racing updates match the row.

        Args:
            user_id: Owner of the token.
            token_hash: SHA256 hex of the raw token.
            now: Current time, also stored as revocation time.

        Returns:
            True if this call revoked a valid row.
        """
        updated = RefreshToken.objects.filter(
            user_id=user_id,
            token_hash=token_hash,
            revoked_at__isnull=True,
            expires_at__gt=now,
        ).update(revoked_at=now)
        return updated > 0

    def purge(self, expires_before: datetime, revoked_before: datetime) -> int:
        """Delete expired rows and rows revoked before the cutoff.

        Args:
            expires_before: Rows expiring before this are deleted.
            revoked_before: Rows revoked before this are deleted.

        Returns:
            Number of rows deleted.
        """
        with self._bounded():
            deleted, _ = RefreshToken.objects.filter(
                _purgeable(expires_before, revoked_before),
            ).delete()
        return deleted

    def count_purgeable(
        self,
        expires_before: datetime,
        revoked_before: datetime,
    ) -> tuple[int, int]:
        """Count rows purge would delete, split by reason.

        A row that is both expired and revoked counts as expired.

        Args:
            expires_before: Expiry cutoff.
            revoked_before: Revocation cutoff.

        Returns:
            Tuple of (expired, revoked past retention).
        """
        with self._bounded():
            expired = RefreshToken.objects.filter(
                expires_at__lt=expires_before,
            ).count()
            revoked = RefreshToken.objects.filter(
                revoked_at__isnull=False,
                revoked_at__lt=revoked_before,
                expires_at__gte=expires_before,
            ).count()
        return expired, revoked

    @contextmanager
    def _bounded(self) -> Iterator[None]:
        with transaction.atomic():
            timeout = self._statement_timeout
            if timeout is not None and connection.vendor == 'postgresql':
                milliseconds = max(1, int(timeout.total_seconds() * 1000))
                with connection.cursor() as cursor:
                    cursor.execute(_STATEMENT_TIMEOUT_SQL.format(milliseconds))
            yield


@final
class DjangoUserDirectory:
    """``UserDirectory`` backed by django.contrib.auth."""

    def authenticate(self, username: str, password: str) -> UserIdentity | None:
        """Verify credentials with the configured auth backends.

        Args:
            username: Login name.
            password: Plain-text password.

        Returns:
            UserIdentity on success, None otherwise.
        """
        user = authenticate(username=username, password=password)
        if user is None:
            return None
        return UserIdentity(user_id=user.pk, username=user.get_username())

    def get_active(self, user_id: int) -> UserIdentity | None:
        """Load an active user.

        Args:
            user_id: User primary key.

        Returns:
            UserIdentity, or None if missing or deactivated.
        """
        user = get_user_model().objects.filter(
            pk=user_id,
            is_active=True,
        ).first()
        if user is None:
            logger.info('Active user not found: ID=%s', user_id)
            return None
        return UserIdentity(user_id=user.pk, username=user.get_username())
