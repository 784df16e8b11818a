# =============================================================================
# Django Project Configuration Package
# =============================================================================
# Settings, URLs, ASGI/WSGI applications and Celery configuration.
#
# Import the Celery app so shared_task registers against it when Django starts.
# =============================================================================

from config.celery import app as celery_app

__all__ = ("celery_app",)
