"""Settings for the development environment."""

from server.settings.components.common import SECRET_KEY

DEBUG = True

ALLOWED_HOSTS = ['localhost', '127.0.0.1', '[::1]']

if not SECRET_KEY:
    SECRET_KEY = 'development-only-insecure-secret-key'  # noqa: S105
