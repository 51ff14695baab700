"""Django admin configuration for accounts app."""

from django.contrib import admin
from django.http import HttpRequest

from server.apps.accounts.models import RefreshToken


@admin.register(RefreshToken)
class RefreshTokenAdmin(admin.ModelAdmin[RefreshToken]):
    """Admin interface for refresh tokens (read-only audit view)."""

    list_display = [
        'user',
        'issued_at',
        'expires_at',
        'revoked_at',
        'is_revoked',
    ]

    list_filter = [
        'issued_at',
        'revoked_at',
    ]

    search_fields = [
        'user__username',
    ]

    readonly_fields = [
        'id',
        'user',
        'token_hash',
        'issued_at',
        'expires_at',
        'revoked_at',
    ]

    def has_add_permission(self, request: HttpRequest) -> bool:
        """Disallow creating tokens by hand."""
        return False
