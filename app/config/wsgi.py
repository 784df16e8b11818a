"""
WSGI config for the Django application.

Provided for traditional deployments (gunicorn). Uvicorn uses asgi.py.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
