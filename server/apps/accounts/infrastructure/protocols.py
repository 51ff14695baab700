"""Capabilities the session manager and purger depend on."""

from datetime import datetime
from typing import Protocol

from server.apps.accounts.records import UserIdentity


class RefreshTokenStore(Protocol):
    """Persistence of hashed refresh tokens."""

    def insert(
        self,
        user_id: int,
        token_hash: str,
        issued_at: datetime,
        expires_at: datetime,
    ) -> None:
        """Store a new unrevoked token hash."""

    def find_valid(self, user_id: int, token_hash: str, now: datetime) -> bool:
        """Check for an unrevoked, unexpired row for this exact pair."""

    def revoke(self, user_id: int, token_hash: str, now: datetime) -> bool:
        """Revoke the unrevoked row for this pair.

        Returns:
            True if a row was revoked, False if none was unrevoked.
        """

    def revoke_if_valid(
        self,
        user_id: int,
        token_hash: str,
        now: datetime,
    ) -> bool:
        """Atomically revoke the row only if it is unrevoked and unexpired.

        Of two concurrent calls for the same pair at most one
        returns True.
        """

    def purge(self, expires_before: datetime, revoked_before: datetime) -> int:
        """Delete expired rows and rows revoked before the cutoff.

        Returns:
            Number of rows deleted.
        """

    def count_purgeable(
        self,
        expires_before: datetime,
        revoked_before: datetime,
    ) -> tuple[int, int]:
        """Count rows purge would delete.

        Returns:
            Tuple of (expired rows, revoked rows past retention).
        """


class UserDirectory(Protocol):
    """Lookup and password check of user accounts."""

    def authenticate(self, username: str, password: str) -> UserIdentity | None:
        """Verify credentials against the stored password hash."""

    def get_active(self, user_id: int) -> UserIdentity | None:
        """Return the user if it exists and is active."""
