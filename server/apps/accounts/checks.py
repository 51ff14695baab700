"""System checks for session settings."""

from typing import Any, Final

from django.conf import settings
from django.core.checks import CheckMessage, Error, Warning  # noqa: A004

from server.apps.accounts.logic.tokens import HMAC_ALGORITHMS

_MIN_SECRET_LENGTH: Final = 32

_POSITIVE_DURATIONS: Final = (
    'QUIETSTORE_ACCESS_TOKEN_TTL',
    'QUIETSTORE_REFRESH_TOKEN_TTL',
    'QUIETSTORE_PURGE_INTERVAL',
    'QUIETSTORE_PURGE_REVOKED_RETENTION',
    'QUIETSTORE_PURGE_TICK_TIMEOUT',
)


def check_session_settings(**kwargs: Any) -> list[CheckMessage]:
    """Validate signing and lifetime settings.

    Args:
        kwargs: Arguments passed by the checks framework (unused).

    Returns:
        List of problems found.
    """
    messages: list[CheckMessage] = []

    algorithm = settings.QUIETSTORE_JWT_ALGORITHM
    if algorithm not in HMAC_ALGORITHMS:
        messages.append(Error(
            f'Unsupported access token algorithm: {algorithm!r}',
            hint='Use one of HS256, HS384, HS512.',
            id='accounts.E001',
        ))

    secret = settings.QUIETSTORE_JWT_SECRET or settings.SECRET_KEY
    if len(secret) < _MIN_SECRET_LENGTH:
        messages.append(Warning(
            f'Access token secret is shorter than {_MIN_SECRET_LENGTH} '
            'characters',
            hint='Set QUIETSTORE_JWT_SECRET to a long random value.',
            id='accounts.W001',
        ))

    for name in _POSITIVE_DURATIONS:
        if getattr(settings, name) <= 0:
            messages.append(Error(
                f'{name} must be a positive number of seconds',
                id='accounts.E002',
            ))
    return messages
