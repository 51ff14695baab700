"""Settings for the production environment."""

from django.core.exceptions import ImproperlyConfigured

from server.settings.components import config
from server.settings.components.common import SECRET_KEY

DEBUG = False

ALLOWED_HOSTS = config(
    'DOMAIN_NAME',
    cast=lambda hosts: [host.strip() for host in hosts.split(',')],
    default='localhost',
)

if not SECRET_KEY:
    raise ImproperlyConfigured('DJANGO_SECRET_KEY must be set in production')
