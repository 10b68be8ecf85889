"""Django settings for the server project.

Settings are split into components and assembled with
django-split-settings. Pick an environment with ``DJANGO_ENV``:
``DJANGO_ENV=production python manage.py runserver``.

Reference: https://github.com/wemake-services/django-split-settings
"""

from os import environ

from split_settings.tools import include, optional

# Managing environment via `DJANGO_ENV` variable:
environ.setdefault('DJANGO_ENV', 'development')
_ENV = environ['DJANGO_ENV']

_base_settings = (
    'components/common.py',
    'components/logging.py',
    'components/storages.py',
    'components/drive.py',
    # Select the right env:
    'environments/{0}.py'.format(_ENV),
    # Optionally override some settings:
    optional('environments/local.py'),
)

include(*_base_settings)
