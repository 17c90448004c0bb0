"""ASGI config for the homeworkhub project."""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "homeworkhub.settings")

application = get_asgi_application()
