"""Exceptions for accounts app."""


class AuthenticationError(Exception):
    """Raised when credentials or tokens are rejected.

    The message is safe to show to clients and never tells apart
    the underlying cause (unknown user, wrong password, expired,
    revoked or replayed token, bad signature).
    """


class UsernameConflictError(Exception):
    """Raised when registering a username that is already taken."""

    def __init__(self, username: str) -> None:
        """Initialize UsernameConflictError.

        Args:
            username: Requested username.
        """
        self.username = username
        super().__init__(f'Username already taken: {username}')
