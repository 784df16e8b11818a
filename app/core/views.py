"""
Core views providing infrastructure endpoints and API error rendering.

This module contains code that is not part of the business domain but is
shared by every API: the health check and the DRF exception handler that
turns domain exceptions into JSON responses.
"""

import logging

from django.db import connection
from django.http import JsonResponse
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import BaseApplicationError

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    Returns:
        JsonResponse with status and component health:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "disconnected"
        - cache: "connected" or "disconnected"

    HTTP Status Codes:
        200: All systems operational
        503: Database unreachable
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except Exception:
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    try:
        from django.core.cache import cache

        cache.set("health_check", "ok", timeout=1)
        if cache.get("health_check") == "ok":
            health_status["cache"] = "connected"
        else:
            health_status["cache"] = "disconnected"
    except Exception:
        # Cache is not critical for payments; report degraded, stay healthy
        health_status["cache"] = "disconnected"

    status_code = 200 if is_healthy else 503

    return JsonResponse(health_status, status=status_code)


def api_exception_handler(exc, context):
    """
    DRF exception handler for every API view.

    Resolution order:
        1. BaseApplicationError subclasses are rendered with ``to_dict()``
           and their own ``status_code``.
        2. DRF's own exceptions (authentication, parse and serializer
           errors) use the default handler.
        3. Anything else is logged with its traceback and answered with a
           generic 500 body. The original message never reaches clients.
    """
    if isinstance(exc, BaseApplicationError):
        if exc.status_code >= 500:
            logger.error(
                f"Application error in {context['view'].__class__.__name__}: {exc}",
                extra={"error_code": exc.error_code},
            )
            return Response(
                {"error": exc.message, "error_code": exc.error_code},
                status=exc.status_code,
            )
        return Response(exc.to_dict(), status=exc.status_code)

    response = exception_handler(exc, context)
    if response is not None:
        return response

    logger.exception(
        f"Unhandled exception in {context['view'].__class__.__name__}",
        extra={"exception_type": exc.__class__.__name__},
    )
    return Response(
        {"error": "An unexpected error occurred", "error_code": "INTERNAL"},
        status=500,
    )
