"""
Root pytest configuration for the Django project.

pytest-django loads config.settings (see pyproject.toml). Local values come
from .env.development; project-wide fixtures live in app/conftest.py and
app-specific fixtures in each app's tests/conftest.py.
"""

import os

# Ensure Django settings are configured before any tests run
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
