"""Access token codec and refresh token helpers.

Access tokens are HMAC-signed JWTs (PyJWT). Refresh tokens are opaque
random strings; only their SHA256 hex digest is ever stored.
"""

import hashlib
import logging
import secrets
from datetime import UTC, datetime
from typing import Any, Final, final

import jwt

from server.apps.accounts.exceptions import AuthenticationError
from server.apps.accounts.records import AccessClaims, UserIdentity

logger = logging.getLogger(__name__)

HMAC_ALGORITHMS: Final = frozenset(('HS256', 'HS384', 'HS512'))
INVALID_TOKEN_MESSAGE: Final = 'invalid token'

# 32 bytes of entropy, about 43 URL-safe characters
_REFRESH_TOKEN_BYTES: Final = 32
_REQUIRED_CLAIMS: Final = ('sub', 'iss', 'aud', 'iat', 'nbf', 'exp')


def generate_refresh_token() -> str:
    """Generate a high-entropy raw refresh token.

    Returns:
        URL-safe random string.
    """
    return secrets.token_urlsafe(_REFRESH_TOKEN_BYTES)


def hash_refresh_token(raw_token: str) -> str:
    """Hash a raw refresh token for storage and lookup.

    Args:
        raw_token: Token as handed to the client.

    Returns:
        Hex-encoded SHA256 hash string.
    """
    return hashlib.sha256(raw_token.encode()).hexdigest()


@final
class AccessTokenCodec:
    """Sign and verify access tokens with a shared HMAC secret."""

    def __init__(
        self,
        secret: str,
        algorithm: str,
        issuer: str,
        audience: str,
    ) -> None:
        """Initialize AccessTokenCodec.

        Args:
            secret: HMAC signing key.
            algorithm: One of HS256, HS384, HS512.
            issuer: Value of the ``iss`` claim.
            audience: Value of the ``aud`` claim.

        Raises:
            ValueError: If the secret is empty or the algorithm is not HMAC.
        """
        if not secret:
            raise ValueError('Access token secret cannot be empty')
        if algorithm not in HMAC_ALGORITHMS:
            raise ValueError(f'Unsupported signing algorithm: {algorithm}')
        self._secret = secret
        self._algorithm = algorithm
        self._issuer = issuer
        self._audience = audience

    def encode(
        self,
        identity: UserIdentity,
        issued_at: datetime,
        expires_at: datetime,
    ) -> str:
        """Sign an access token for the user.

        Args:
            identity: Authenticated user.
            issued_at: Value of ``iat`` and ``nbf``.
            expires_at: Value of ``exp``.

        Returns:
            Compact JWT string.
        """
        payload: dict[str, Any] = {
            'sub': str(identity.user_id),
            'user_id': str(identity.user_id),
            'username': identity.username,
            'iss': self._issuer,
            'aud': self._audience,
            'iat': issued_at,
            'nbf': issued_at,
            'exp': expires_at,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def decode(self, token: str) -> AccessClaims:
        """Verify an access token and return its claims.

        The header algorithm is checked before the signature, so tokens
        signed with ``none`` or an asymmetric algorithm are refused
        even if the key would happen to verify.

        Args:
            token: Compact JWT string.

        Returns:
            Verified AccessClaims.

        Raises:
            AuthenticationError: If the token is malformed, uses another
                algorithm, has a bad signature, is expired or not yet
                valid, has the wrong issuer or audience, or lacks
                a user id.
        """
        try:
            header = jwt.get_unverified_header(token)
        except jwt.InvalidTokenError:
            raise AuthenticationError(INVALID_TOKEN_MESSAGE) from None

        if header.get('alg') != self._algorithm:
            logger.warning(
                'Rejected access token with algorithm %r',
                header.get('alg'),
            )
            raise AuthenticationError(INVALID_TOKEN_MESSAGE)

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
                options={'require': list(_REQUIRED_CLAIMS)},
            )
        except jwt.InvalidTokenError as exc:
            logger.info('Rejected access token: %s', exc)
            raise AuthenticationError(INVALID_TOKEN_MESSAGE) from None

        user_id = payload.get('user_id')
        if not isinstance(user_id, str) or not user_id:
            raise AuthenticationError(INVALID_TOKEN_MESSAGE)

        return AccessClaims(
            user_id=user_id,
            username=str(payload.get('username', '')),
            subject=payload['sub'],
            issuer=payload['iss'],
            audience=self._audience,
            issued_at=datetime.fromtimestamp(payload['iat'], tz=UTC),
            not_before=datetime.fromtimestamp(payload['nbf'], tz=UTC),
            expires_at=datetime.fromtimestamp(payload['exp'], tz=UTC),
        )
