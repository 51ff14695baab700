"""Management command to purge expired and revoked refresh tokens."""

from typing import Any, final, override

from django.core.management.base import BaseCommand, CommandError

from server.apps.accounts.infrastructure.repository import (
    DjangoRefreshTokenStore,
)
from server.apps.accounts.logic.purge_scheduler import (
    PurgeConfig,
    RefreshTokenPurger,
)


@final
class Command(BaseCommand):
    """Run a single refresh token purge tick."""

    help = 'Delete expired refresh tokens and revoked ones past retention'

    @override
    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without deleting',
        )

    @override
    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the purge command.

        Args:
            args: Positional arguments (unused).
            options: Command options.

        Raises:
            CommandError: If the purge tick did not complete.
        """
        config = PurgeConfig.from_settings()
        store = DjangoRefreshTokenStore(statement_timeout=config.tick_timeout)
        purger = RefreshTokenPurger(store, config)
        expires_before, revoked_before = purger.cutoffs()

        self.stdout.write(
            f'Looking for tokens expired before {expires_before} '
            f'or revoked before {revoked_before}',
        )

        if options['dry_run']:
            expired, revoked = store.count_purgeable(
                expires_before,
                revoked_before,
            )
            self.stdout.write(
                self.style.SUCCESS(
                    f'Would purge {expired + revoked} refresh tokens '
                    f'({expired} expired, {revoked} revoked)',
                ),
            )
            return

        try:
            deleted = purger.run_once()
        finally:
            purger.stop()

        if deleted is None:
            raise CommandError('Refresh token purge failed, see logs')
        self.stdout.write(
            self.style.SUCCESS(f'Purged {deleted} refresh tokens'),
        )
