"""Login sessions: access tokens plus rotating refresh tokens.

Refresh tokens are single-use. Each refresh revokes the presented
token with one conditional UPDATE and issues a new pair, so a replayed
or concurrently presented token is rejected.
"""

import dataclasses
import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Final, final

from django.conf import settings
from django.utils import timezone

from server.apps.accounts.exceptions import AuthenticationError
from server.apps.accounts.infrastructure.protocols import (
    RefreshTokenStore,
    UserDirectory,
)
from server.apps.accounts.infrastructure.repository import (
    DjangoRefreshTokenStore,
    DjangoUserDirectory,
)
from server.apps.accounts.logic.tokens import (
    AccessTokenCodec,
    generate_refresh_token,
    hash_refresh_token,
)
from server.apps.accounts.records import AccessClaims, TokenPair, UserIdentity

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE: Final = 'invalid credentials'
INVALID_REFRESH_MESSAGE: Final = 'invalid or expired refresh token'
MISSING_USER_MESSAGE: Final = 'missing user id'

_DEFAULT_ACCESS_TTL: Final = 15 * 60
_DEFAULT_REFRESH_TTL: Final = 7 * 24 * 60 * 60


@final
@dataclasses.dataclass(frozen=True, slots=True)
class SessionConfig:
    """Explicit configuration for SessionManager."""

    secret: str
    algorithm: str = 'HS256'
    issuer: str = 'quietstore'
    audience: str = 'quietstore-api'
    access_ttl: timedelta = timedelta(seconds=_DEFAULT_ACCESS_TTL)
    refresh_ttl: timedelta = timedelta(seconds=_DEFAULT_REFRESH_TTL)

    @classmethod
    def from_settings(cls) -> 'SessionConfig':
        """Read configuration from Django settings.

        The signing secret falls back to SECRET_KEY when
        QUIETSTORE_JWT_SECRET is empty.

        Returns:
            SessionConfig instance.
        """
        return cls(
            secret=settings.QUIETSTORE_JWT_SECRET or settings.SECRET_KEY,
            algorithm=settings.QUIETSTORE_JWT_ALGORITHM,
            issuer=settings.QUIETSTORE_JWT_ISSUER,
            audience=settings.QUIETSTORE_JWT_AUDIENCE,
            access_ttl=timedelta(seconds=settings.QUIETSTORE_ACCESS_TOKEN_TTL),
            refresh_ttl=timedelta(
                seconds=settings.QUIETSTORE_REFRESH_TOKEN_TTL,
            ),
        )


@final
class SessionManager:
    """Issue, verify, rotate and revoke login credentials."""

    def __init__(
        self,
        users: UserDirectory,
        refresh_tokens: RefreshTokenStore,
        config: SessionConfig,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        """Initialize SessionManager.

        Args:
            users: User lookup and password verification.
            refresh_tokens: Storage for hashed refresh tokens.
            config: Token signing and lifetime settings.
            clock: Source of the current time.
        """
        self._users = users
        self._refresh_tokens = refresh_tokens
        self._config = config
        self._clock = clock
        self._codec = AccessTokenCodec(
            secret=config.secret,
            algorithm=config.algorithm,
            issuer=config.issuer,
            audience=config.audience,
        )

    def login(self, username: str, password: str) -> TokenPair:
        """Check a password and start a session.

        Args:
            username: Login name.
            password: Plain-text password.

        Returns:
            New access/refresh token pair.

        Raises:
            AuthenticationError: If the credentials are rejected.
        """
        username = (username or '').strip()
        if not username or not password:
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

        identity = self._users.authenticate(username, password)
        if identity is None:
            logger.info('Login failed for user %s', username)
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

        pair = self._issue_pair(identity)
        logger.info('Session started for user %s', identity.username)
        return pair

    def refresh(self, user_id: int | str, raw_refresh_token: str) -> TokenPair:
        """Exchange a refresh token for a new pair.

        The presented token is revoked whether or not the rest of the
        rotation succeeds.

        Args:
            user_id: ID of the user the token was issued to.
            raw_refresh_token: Refresh token as handed to the client.

        Returns:
            New access/refresh token pair.

        Raises:
            AuthenticationError: If the token is unknown, foreign,
                expired, revoked or already rotated, or the user is
                no longer active.
        """
        owner_id = self._coerce_user_id(user_id, INVALID_REFRESH_MESSAGE)
        if not raw_refresh_token:
            raise AuthenticationError(INVALID_REFRESH_MESSAGE)

        token_hash = hash_refresh_token(raw_refresh_token)
        if not self._refresh_tokens.revoke_if_valid(
            owner_id,
            token_hash,
            self._clock(),
        ):
            logger.info('Refresh rejected for user ID=%s', owner_id)
            raise AuthenticationError(INVALID_REFRESH_MESSAGE)

        identity = self._users.get_active(owner_id)
        if identity is None:
            raise AuthenticationError(INVALID_REFRESH_MESSAGE)

        pair = self._issue_pair(identity)
        logger.info('Session refreshed for user %s', identity.username)
        return pair

    def logout(self, user_id: int | str, raw_refresh_token: str) -> None:
        """Revoke one refresh token of the caller.

        Other sessions of the same user stay valid. Unknown or already
        revoked tokens are ignored.

        Args:
            user_id: Authenticated caller's user ID.
            raw_refresh_token: Refresh token to revoke.
        """
        owner_id = self._coerce_user_id(user_id, MISSING_USER_MESSAGE)
        if not raw_refresh_token:
            return
        revoked = self._refresh_tokens.revoke(
            owner_id,
            hash_refresh_token(raw_refresh_token),
            self._clock(),
        )
        if revoked:
            logger.info('Session ended for user ID=%s', owner_id)

    def verify_access_token(self, token: str) -> AccessClaims:
        """Verify an access token.

        Args:
            token: Compact JWT string.

        Returns:
            Verified claims.

        Raises:
            AuthenticationError: If the token is not acceptable.
        """
        return self._codec.decode(token or '')

    def is_refresh_token_active(
        self,
        user_id: int | str,
        raw_refresh_token: str,
    ) -> bool:
        """Check whether a refresh token could currently be rotated.

        Args:
            user_id: ID of the user the token was issued to.
            raw_refresh_token: Refresh token as handed to the client.

        Returns:
            True if the token is unrevoked and unexpired.
        """
        try:
            owner_id = self._coerce_user_id(user_id, INVALID_REFRESH_MESSAGE)
        except AuthenticationError:
            return False
        return self._refresh_tokens.find_valid(
            owner_id,
            hash_refresh_token(raw_refresh_token or ''),
            self._clock(),
        )

    def _issue_pair(self, identity: UserIdentity) -> TokenPair:
        now = self._clock()
        access_token = self._codec.encode(
            identity,
            issued_at=now,
            expires_at=now + self._config.access_ttl,
        )
        raw_refresh_token = generate_refresh_token()
        self._refresh_tokens.insert(
            identity.user_id,
            hash_refresh_token(raw_refresh_token),
            issued_at=now,
            expires_at=now + self._config.refresh_ttl,
        )
        return TokenPair(
            access_token=access_token,
            refresh_token=raw_refresh_token,
            expires_in=int(self._config.access_ttl.total_seconds()),
        )

    def _coerce_user_id(self, user_id: int | str, message: str) -> int:
        try:
            return int(user_id)
        except (TypeError, ValueError):
            raise AuthenticationError(message) from None


def get_session_manager() -> SessionManager:
    """Build SessionManager wired to Django auth and the ORM.

    Returns:
        SessionManager configured from settings.
    """
    return SessionManager(
        users=DjangoUserDirectory(),
        refresh_tokens=DjangoRefreshTokenStore(),
        config=SessionConfig.from_settings(),
    )
