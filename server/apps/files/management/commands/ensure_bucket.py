"""Management command to bootstrap the blob storage bucket."""

from typing import Any, final, override

from botocore.exceptions import BotoCoreError, ClientError
from django.core.files.storage import storages
from django.core.management.base import BaseCommand, CommandError

from server.apps.files.infrastructure.storage import (
    BLOB_STORAGE_ALIAS,
    ObjectStorage,
)


@final
class Command(BaseCommand):
    """Create the S3 bucket for file bytes if it does not exist."""

    help = 'Create the blob storage bucket (S3 backend only)'

    @override
    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the command.

        Args:
            args: Positional arguments (unused).
            options: Command options.

        Raises:
            CommandError: If the bucket cannot be created or reached.
        """
        storage = storages[BLOB_STORAGE_ALIAS]
        if not isinstance(storage, ObjectStorage):
            self.stdout.write(
                f'Blob storage is {type(storage).__name__}, nothing to do',
            )
            return

        try:
            storage.ensure_bucket()
        except (BotoCoreError, ClientError) as exc:
            raise CommandError(
                f'Bucket {storage.bucket_name} is not available: {exc}',
            ) from exc

        self.stdout.write(
            self.style.SUCCESS(f'Bucket ready: {storage.bucket_name}'),
        )
