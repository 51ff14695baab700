"""Plain data records passed across the accounts app boundaries."""

import dataclasses
from datetime import datetime
from typing import Any, Final, final

_TOKEN_TYPE: Final = 'Bearer'


@final
@dataclasses.dataclass(frozen=True, slots=True)
class UserIdentity:
    """Active user as seen by the session manager."""

    user_id: int
    username: str


@final
@dataclasses.dataclass(frozen=True, slots=True)
class AccessClaims:
    """Verified claims of an access token."""

    user_id: str
    username: str
    subject: str
    issuer: str
    audience: str
    issued_at: datetime
    not_before: datetime
    expires_at: datetime


@final
@dataclasses.dataclass(frozen=True, slots=True)
class TokenPair:
    """Access token and refresh token handed out together."""

    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = _TOKEN_TYPE

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses.

        Returns:
            Dictionary with access_token, token_type, expires_in and
            refresh_token.
        """
        return {
            'access_token': self.access_token,
            'token_type': self.token_type,
            'expires_in': self.expires_in,
            'refresh_token': self.refresh_token,
        }
