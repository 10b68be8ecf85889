"""Django app configuration for api app."""

from django.apps import AppConfig


class ApiConfig(AppConfig):
    """Configuration for the JSON API app."""

    name = 'server.apps.api'
    verbose_name = 'API'
