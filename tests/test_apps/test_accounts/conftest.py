"""Shared fixtures for accounts app tests."""

from datetime import timedelta
from typing import Final

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone

from server.apps.accounts.infrastructure.repository import (
    DjangoRefreshTokenStore,
    DjangoUserDirectory,
)
from server.apps.accounts.logic.session_manager import (
    SessionConfig,
    SessionManager,
)

User = get_user_model()

TEST_SECRET: Final = 'test-signing-secret-with-at-least-32-bytes!'
TEST_PASSWORD: Final = 'correct'


class MutableClock:
    """Clock that stays put until advanced."""

    def __init__(self, start=None):
        self.current = start or timezone.now()

    def __call__(self):
        return self.current

    def advance(self, **delta):
        self.current += timedelta(**delta)


@pytest.fixture
def user(db):
    """Create test user alice.

    Returns:
        User instance for testing.
    """
    return User.objects.create_user(
        username='alice',
        password=TEST_PASSWORD,
        email='alice@example.com',
    )


@pytest.fixture
def other_user(db):
    """Create second test user for isolation tests.

    Returns:
        Second user instance.
    """
    return User.objects.create_user(
        username='bob',
        password=TEST_PASSWORD,
        email='bob@example.com',
    )


@pytest.fixture
def clock():
    """Controllable clock starting at the current time.

    Returns:
        MutableClock instance.
    """
    return MutableClock()


@pytest.fixture
def session_config():
    """Session configuration with a fixed test secret.

    Returns:
        SessionConfig instance.
    """
    return SessionConfig(
        secret=TEST_SECRET,
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(days=7),
    )


@pytest.fixture
def refresh_store(db):
    """Refresh token store over the test database.

    Returns:
        DjangoRefreshTokenStore instance.
    """
    return DjangoRefreshTokenStore()


@pytest.fixture
def session_manager(refresh_store, session_config, clock):
    """SessionManager over Django auth and the test database.

    Returns:
        SessionManager instance.
    """
    return SessionManager(
        users=DjangoUserDirectory(),
        refresh_tokens=refresh_store,
        config=session_config,
        clock=clock,
    )
