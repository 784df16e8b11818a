"""
Payment domain models.

This module contains all payment-related models:
- PaymentRecord: One payer's payment for a watch party or catalog product
- ProcessedWebhookEvent: Ledger of Stripe events whose effects are applied
- GatewayCustomer: User to Stripe customer mapping
- BillableSubject: Abstract plan/feature/billing fields for venues and fans
"""

from payments.models.billing import BillableSubject
from payments.models.gateway_customer import GatewayCustomer
from payments.models.payment_record import PaymentRecord, PaymentRecordQuerySet
from payments.models.processed_webhook_event import ProcessedWebhookEvent

__all__ = [
    "BillableSubject",
    "GatewayCustomer",
    "PaymentRecord",
    "PaymentRecordQuerySet",
    "ProcessedWebhookEvent",
]
