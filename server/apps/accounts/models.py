"""Database models for accounts app."""

import uuid
from typing import ClassVar, Final, final, override

from django.conf import settings
from django.db import models

_TOKEN_HASH_MAX_LENGTH: Final = 64  # SHA256 hex length


@final
class RefreshToken(models.Model):
    """Hashed refresh token issued at login or rotation.

    Only the SHA256 of the raw token is stored. A row is valid while
    ``revoked_at`` is empty and ``expires_at`` lies in the future;
    once revoked it is never valid again.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='refresh_tokens',
    )

    token_hash = models.CharField(
        max_length=_TOKEN_HASH_MAX_LENGTH,
        db_index=True,
        help_text='SHA256 of the raw refresh token',
    )

    issued_at = models.DateTimeField()
    expires_at = models.DateTimeField(db_index=True)
    revoked_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Refresh token'  # type: ignore[mutable-override]
        verbose_name_plural = 'Refresh tokens'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-issued_at']

        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.UniqueConstraint(
                fields=['user', 'token_hash'],
                condition=models.Q(revoked_at__isnull=True),
                name='refresh_tokens_one_unrevoked_per_hash',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.user_id}:{self.token_hash[:8]}'

    @property
    def is_revoked(self) -> bool:
        """Check whether the token was revoked."""
        return self.revoked_at is not None
