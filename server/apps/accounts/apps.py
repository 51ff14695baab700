"""Django app configuration for accounts app."""

from typing import override

from django.apps import AppConfig
from django.core import checks


class AccountsConfig(AppConfig):
    """Configuration for accounts app."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'server.apps.accounts'
    verbose_name = 'Accounts'

    @override
    def ready(self) -> None:
        """Register session settings checks when app is ready."""
        from server.apps.accounts.checks import (  # noqa: PLC0415
            check_session_settings,
        )

        checks.register(check_session_settings)
