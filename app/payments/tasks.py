"""
Celery tasks for payment processing.

This module provides periodic tasks for:
- Settling pending payments that never received a webhook or confirmation

The schedule lives in django-celery-beat (see migration
0002_expire_stale_payments_schedule) and can be changed from the admin.

Usage:
    from payments.tasks import expire_stale_payments

    expire_stale_payments.delay()
"""

from __future__ import annotations

import logging

from celery import shared_task

from payments.services import ExpiryService

logger = logging.getLogger(__name__)


@shared_task
def expire_stale_payments(older_than_hours: int | None = None) -> dict:
    """
    Periodic task to settle stale pending payments.

    Args:
        older_than_hours: Age threshold (defaults to PAYMENT_PENDING_EXPIRY_HOURS)

    Returns:
        Dict with checked/completed/failed/skipped/errors counts
    """
    summary = ExpiryService.expire_stale_payments(older_than_hours)

    if summary.completed or summary.failed:
        logger.info(
            f"Settled {summary.completed + summary.failed} stale payments",
            extra=summary.to_dict(),
        )

    return summary.to_dict()
