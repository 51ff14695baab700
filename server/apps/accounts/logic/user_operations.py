"""Business logic for user registration."""

import logging

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from server.apps.accounts.exceptions import UsernameConflictError
from server.apps.accounts.records import UserIdentity

logger = logging.getLogger(__name__)


def register_user(username: str, password: str, email: str = '') -> UserIdentity:
    """Create a user account with a hashed password.

    Args:
        username: Desired login name.
        password: Plain-text password, hashed with PASSWORD_HASHERS.
        email: Optional e-mail address.

    Returns:
        UserIdentity of the new user.

    Raises:
        ValidationError: If username or password is blank.
        UsernameConflictError: If the username is already taken.
    """
    username = (username or '').strip()
    if not username:
        raise ValidationError('Username cannot be empty')
    if not password:
        raise ValidationError('Password cannot be empty')

    user_model = get_user_model()
    if user_model.objects.filter(username=username).exists():
        raise UsernameConflictError(username)

    try:
        with transaction.atomic():
            user = user_model.objects.create_user(
                username=username,
                email=email,
                password=password,
            )
    except IntegrityError:
        # Lost a race with a concurrent registration
        raise UsernameConflictError(username) from None

    logger.info('User registered: %s (ID: %s)', username, user.pk)
    return UserIdentity(user_id=user.pk, username=user.get_username())
