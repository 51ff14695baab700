"""Django management command to run the refresh token purger."""

import logging
from datetime import timedelta
from typing import Any, final, override

from django.core.management.base import BaseCommand

from server.apps.accounts.infrastructure.repository import (
    DjangoRefreshTokenStore,
)
from server.apps.accounts.logic.purge_scheduler import (
    PurgeConfig,
    RefreshTokenPurger,
)

logger = logging.getLogger(__name__)


@final
class Command(BaseCommand):
    """Purge refresh tokens periodically in the foreground."""

    help = 'Run the periodic refresh token purge until interrupted'

    @override
    def add_arguments(self, parser: Any) -> None:
        """Add command arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--interval',
            type=int,
            default=None,
            help='Seconds between purges (default: from settings)',
        )

    @override
    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the command.

        Args:
            args: Positional arguments.
            options: Keyword arguments from command line.
        """
        config = PurgeConfig.from_settings()
        if options['interval']:
            config = PurgeConfig(
                interval=timedelta(seconds=options['interval']),
                revoked_retention=config.revoked_retention,
                tick_timeout=config.tick_timeout,
            )

        store = DjangoRefreshTokenStore(statement_timeout=config.tick_timeout)
        purger = RefreshTokenPurger(store, config)
        self.stdout.write(
            self.style.SUCCESS(
                f'Purging refresh tokens every {config.interval}',
            ),
        )

        try:
            purger.run_forever()
        except KeyboardInterrupt:
            self.stdout.write(self.style.WARNING('\nShutting down...'))
        finally:
            purger.stop()
            self.stdout.write(self.style.SUCCESS('Refresh token purger stopped'))
