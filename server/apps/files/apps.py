"""Django app configuration for files app."""

from typing import override

from django.apps import AppConfig
from django.core import checks


class FilesConfig(AppConfig):
    """Configuration for files app."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'server.apps.files'
    verbose_name = 'Files'

    @override
    def ready(self) -> None:
        """Register storage settings checks when app is ready."""
        from server.apps.files.checks import (  # noqa: PLC0415
            check_storage_settings,
        )

        checks.register(check_storage_settings)
