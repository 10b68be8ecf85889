"""Logging configuration.

Every module logs through ``logging.getLogger(__name__)``,
so everything under ``server`` is routed by the ``server`` logger.
"""

from server.settings.components import config

_LOG_LEVEL = config('DJANGO_LOG_LEVEL', default='INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'console': {
            'format': '{asctime} {levelname} {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'console',
        },
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'WARNING',
            'propagate': False,
        },
        'server': {
            'handlers': ['console'],
            'level': _LOG_LEVEL,
            'propagate': True,
        },
    },
}
