"""
Webhook processing with event-level deduplication.

WebhookProcessor applies a verified Stripe event at most once. The
ProcessedWebhookEvent row and the handler's effects are written in a single
transaction:

    1. Insert the ledger row (primary key = Stripe event id)
    2. Run the handler for the event type
    3. Commit both, or roll both back

A concurrent delivery of the same event blocks on the ledger insert, then
fails it with IntegrityError once the first commits, and is reported as a
duplicate. If the handler raises, nothing is recorded and Stripe's retry
gets a fresh attempt.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from django.db import IntegrityError, transaction

from core.services import BaseService

from payments.exceptions import WebhookProcessingError, WebhookSignatureError
from payments.models import ProcessedWebhookEvent
from payments.webhooks.handlers import dispatch_webhook


class DuplicateWebhookEvent(Exception):
    """Internal signal: the event id is already in the ledger."""


@dataclass
class WebhookProcessResult:
    """
    Outcome of processing one delivery.

    Attributes:
        event_id: Stripe Event ID
        event_type: Stripe event type
        duplicate: True if the event had already been processed
    """

    event_id: str
    event_type: str
    duplicate: bool = False


class WebhookProcessor(BaseService):
    """Apply verified Stripe events exactly once."""

    @classmethod
    def process(cls, event: dict[str, Any]) -> WebhookProcessResult:
        """
        Process a verified event.

        Args:
            event: Event dict as returned by StripeAdapter.construct_webhook_event

        Returns:
            WebhookProcessResult, with ``duplicate`` set for replays

        Raises:
            WebhookSignatureError: Event has no id or type
            WebhookProcessingError: Handler reported failure
            Exception: Anything the handler raised, after rollback
        """
        logger = cls.get_logger()
        event_id = event.get("id")
        event_type = event.get("type")

        if not event_id or not event_type:
            raise WebhookSignatureError("Invalid event")

        log_context = {"stripe_event_id": event_id, "event_type": event_type}

        if ProcessedWebhookEvent.objects.filter(event_id=event_id).exists():
            logger.info("Webhook already processed", extra=log_context)
            return WebhookProcessResult(event_id, event_type, duplicate=True)

        try:
            with cls.atomic():
                try:
                    with transaction.atomic():
                        webhook_event = ProcessedWebhookEvent.objects.create(
                            event_id=event_id,
                            event_type=event_type,
                            payload=event,
                        )
                except IntegrityError:
                    raise DuplicateWebhookEvent(event_id) from None

                result = dispatch_webhook(webhook_event)
                if not result.success:
                    raise WebhookProcessingError(result.error or "Handler failed")
        except DuplicateWebhookEvent:
            logger.info("Webhook processed concurrently", extra=log_context)
            return WebhookProcessResult(event_id, event_type, duplicate=True)
        except Exception:
            logger.error("Webhook handler failed", extra=log_context, exc_info=True)
            raise

        logger.info("Webhook processed", extra=log_context)
        return WebhookProcessResult(event_id, event_type)
