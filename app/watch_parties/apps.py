"""
Django app configuration for watch parties.
"""

from django.apps import AppConfig


class WatchPartiesConfig(AppConfig):
    """Configuration for the watch parties application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "watch_parties"
    verbose_name = "Watch Parties"
