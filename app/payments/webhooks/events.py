"""
Stripe event types this service reacts to.

Anything Stripe sends that is not listed here maps to UNKNOWN and is
acknowledged without effects.
"""

from django.db import models


class GatewayEventType(models.TextChoices):
    CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
    SUBSCRIPTION_CREATED = "customer.subscription.created"
    SUBSCRIPTION_UPDATED = "customer.subscription.updated"
    SUBSCRIPTION_DELETED = "customer.subscription.deleted"
    INVOICE_PAYMENT_SUCCEEDED = "invoice.payment_succeeded"
    INVOICE_PAYMENT_FAILED = "invoice.payment_failed"
    PAYMENT_INTENT_SUCCEEDED = "payment_intent.succeeded"
    PAYMENT_INTENT_FAILED = "payment_intent.payment_failed"
    PAYMENT_INTENT_CANCELED = "payment_intent.canceled"
    UNKNOWN = "unknown"

    @classmethod
    def from_raw(cls, event_type: str | None) -> "GatewayEventType":
        """Map a raw Stripe event type string, defaulting to UNKNOWN."""
        try:
            return cls(event_type)
        except ValueError:
            return cls.UNKNOWN
