"""
Payment services.

This module provides:
- PaymentIntentService: Issues PaymentIntents with duplicate-purchase prevention
- ConfirmationService: Completes payments confirmed by the client
- RefundService: Refunds one attendee or every attendee of a watch party
- CheckoutService: Opens Stripe Checkout and billing portal sessions
- BillingService: Reports fan pass and venue plan status, feature access and prices
- ExpiryService: Settles pending payments that never heard back from Stripe

Usage:
    from payments.services import PaymentIntentService

    issued = PaymentIntentService.create_virtual_attendance_intent(
        user=request.user,
        watch_party_id=watch_party_id,
    )
"""

from payments.services.billing_service import BillingService
from payments.services.checkout_service import CheckoutService
from payments.services.completion import (
    complete_payment,
    fail_payment,
    record_payment_attempt_failure,
)
from payments.services.confirmation_service import ConfirmationService
from payments.services.expiry_service import ExpiryService, ExpirySummary
from payments.services.payment_intent_service import IssuedIntent, PaymentIntentService
from payments.services.refund_service import (
    BulkRefundOutcome,
    RefundOutcome,
    RefundService,
)

__all__ = [
    "BillingService",
    "BulkRefundOutcome",
    "CheckoutService",
    "ConfirmationService",
    "ExpiryService",
    "ExpirySummary",
    "IssuedIntent",
    "PaymentIntentService",
    "RefundOutcome",
    "RefundService",
    "complete_payment",
    "fail_payment",
    "record_payment_attempt_failure",
]
