"""
ProcessedWebhookEvent: ledger of gateway events whose effects are applied.

A row exists for an event id if and only if that event's handler committed.
The row is written in the same database transaction as the handler's
effects, so a crash between the two cannot leave one without the other.

Usage:
    from payments.models import ProcessedWebhookEvent

    if ProcessedWebhookEvent.objects.filter(event_id=event.id).exists():
        return HttpResponse("Already processed", status=200)
"""

from __future__ import annotations

from django.db import models


class ProcessedWebhookEvent(models.Model):
    """
    One row per processed Stripe event.

    The Stripe Event ID is the primary key, which makes the insert itself the
    dedup check: a concurrent second delivery of the same event fails with
    IntegrityError and its transaction is rolled back.

    Fields:
        event_id: Stripe Event ID (evt_xxx)
        event_type: Stripe event type
        processed_at: When the handler's effects were committed
        payload: Copy of the event for audit

    Note:
        Rows are never updated or deleted by application code.
    """

    event_id = models.CharField(
        max_length=255,
        primary_key=True,
        help_text="Stripe Event ID (evt_xxx)",
    )

    event_type = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Stripe event type (e.g., 'invoice.payment_succeeded')",
    )

    processed_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="When the event's effects were committed",
    )

    payload = models.JSONField(
        default=dict,
        blank=True,
        help_text="Webhook payload kept for audit",
    )

    class Meta:
        ordering = ["-processed_at"]
        verbose_name = "Processed Webhook Event"
        verbose_name_plural = "Processed Webhook Events"

    def __str__(self) -> str:
        return f"ProcessedWebhookEvent({self.event_id}, {self.event_type})"

    def get_object_id(self) -> str | None:
        """Return ``data.object.id`` from the stored payload, if present."""
        try:
            return self.payload.get("data", {}).get("object", {}).get("id")
        except (AttributeError, TypeError):
            return None
