"""
Django app configuration for fans.
"""

from django.apps import AppConfig


class FansConfig(AppConfig):
    """Configuration for the fans application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "fans"
    verbose_name = "Fans"
