"""WSGI config for the homeworkhub project."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "homeworkhub.settings")

application = get_wsgi_application()
