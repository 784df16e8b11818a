"""
Payment adapters for external services.

All Stripe API calls go through StripeAdapter to ensure consistent error
handling, timeouts, idempotency and observability.

Usage:
    from payments.adapters import StripeAdapter, CreatePaymentIntentParams

    result = StripeAdapter.create_payment_intent(
        CreatePaymentIntentParams(
            amount_cents=999,
            currency="usd",
            idempotency_key="create_intent:watch_party:wp-1:42:1:ab12cd34",
        )
    )
"""

from payments.adapters.stripe_adapter import (
    CheckoutSessionResult,
    CreateCheckoutSessionParams,
    CreatePaymentIntentParams,
    CustomerResult,
    IdempotencyKeyGenerator,
    PaymentIntentResult,
    PortalSessionResult,
    RefundResult,
    StripeAdapter,
)

__all__ = [
    "CheckoutSessionResult",
    "CreateCheckoutSessionParams",
    "CreatePaymentIntentParams",
    "CustomerResult",
    "IdempotencyKeyGenerator",
    "PaymentIntentResult",
    "PortalSessionResult",
    "RefundResult",
    "StripeAdapter",
]
