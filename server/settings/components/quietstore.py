"""File storage and session settings."""

from server.settings.components import config

# Content types accepted on upload
QUIETSTORE_ALLOWED_CONTENT_TYPES = (
    'image/jpeg',
    'image/jpg',
    'image/png',
    'image/gif',
    'image/webp',
    'application/pdf',
    'application/json',
    'application/zip',
    'application/docx',
    'application/xlsx',
    'text/plain',
    'text/html',
    'text/css',
    'text/javascript',
    'text/typescript',
    'text/x-go',
    'text/x-python',
    'text/x-c++src',
)

# Directory for spooling uploads (system temp dir when unset)
QUIETSTORE_UPLOAD_TEMP_DIR = config('QUIETSTORE_UPLOAD_TEMP_DIR', default=None)

# Reject uploads whose byte count differs from the declared size
QUIETSTORE_ENFORCE_DECLARED_SIZE = config(
    'QUIETSTORE_ENFORCE_DECLARED_SIZE',
    cast=bool,
    default=False,
)

# Keep metadata rows with deleted_at set instead of deleting them
QUIETSTORE_SOFT_DELETE = config('QUIETSTORE_SOFT_DELETE', cast=bool, default=False)

# Pagination
QUIETSTORE_PAGE_SIZE = config('QUIETSTORE_PAGE_SIZE', cast=int, default=50)
QUIETSTORE_MAX_PAGE_SIZE = config(
    'QUIETSTORE_MAX_PAGE_SIZE',
    cast=int,
    default=500,
)

# Access tokens (falls back to SECRET_KEY when the secret is empty)
QUIETSTORE_JWT_SECRET = config('QUIETSTORE_JWT_SECRET', default='')
QUIETSTORE_JWT_ALGORITHM = config('QUIETSTORE_JWT_ALGORITHM', default='HS256')
QUIETSTORE_JWT_ISSUER = config('QUIETSTORE_JWT_ISSUER', default='quietstore')
QUIETSTORE_JWT_AUDIENCE = config(
    'QUIETSTORE_JWT_AUDIENCE',
    default='quietstore-api',
)
QUIETSTORE_ACCESS_TOKEN_TTL = config(
    'QUIETSTORE_ACCESS_TOKEN_TTL',
    cast=int,
    default=15 * 60,
)

# Refresh tokens
QUIETSTORE_REFRESH_TOKEN_TTL = config(
    'QUIETSTORE_REFRESH_TOKEN_TTL',
    cast=int,
    default=7 * 24 * 60 * 60,
)

# Refresh token purge
QUIETSTORE_PURGE_INTERVAL = config(
    'QUIETSTORE_PURGE_INTERVAL',
    cast=int,
    default=6 * 60 * 60,
)
QUIETSTORE_PURGE_REVOKED_RETENTION = config(
    'QUIETSTORE_PURGE_REVOKED_RETENTION',
    cast=int,
    default=30 * 60 * 60,
)
QUIETSTORE_PURGE_TICK_TIMEOUT = config(
    'QUIETSTORE_PURGE_TICK_TIMEOUT',
    cast=int,
    default=15,
)
