"""Main URL mapping configuration file."""

from django.contrib import admin
from django.urls import include, path

from server.apps.api import views as api_views

urlpatterns = [
    # Apps:
    path('api/', include('server.apps.api.urls', namespace='api')),

    # Health checks:
    path('health/', api_views.health, name='health'),

    # django-admin:
    path('admin/', admin.site.urls),
]
