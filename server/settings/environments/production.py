"""Overrides for the production environment."""

from server.settings.components import config

DEBUG = False

ALLOWED_HOSTS = [
    config('DOMAIN_NAME'),
]

SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_REFERRER_POLICY = 'same-origin'
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
