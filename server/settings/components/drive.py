"""File-drive settings: sharing, activity retention and sessions."""

from server.settings.components import config

# Public share links are built as {DRIVE_SHARE_BASE_URL}/shared/{token}
DRIVE_SHARE_BASE_URL = config(
    'FRONTEND_URL',
    default='http://localhost:3000',
)

# Activity records older than this are removed by `prune_activity`
DRIVE_ACTIVITY_RETENTION_DAYS = config(
    'DRIVE_ACTIVITY_RETENTION_DAYS',
    cast=int,
    default=90,
)
DRIVE_ACTIVITY_PRUNE_BATCH_SIZE = config(
    'DRIVE_ACTIVITY_PRUNE_BATCH_SIZE',
    cast=int,
    default=100,
)

# Page size used when a listing request does not pass `limit`
DRIVE_DEFAULT_PAGE_SIZE = config(
    'DRIVE_DEFAULT_PAGE_SIZE',
    cast=int,
    default=50,
)

# Session tokens expire after this many seconds without activity
DRIVE_SESSION_TIMEOUT = config(
    'DRIVE_SESSION_TIMEOUT',
    cast=int,
    default=86400,
)
