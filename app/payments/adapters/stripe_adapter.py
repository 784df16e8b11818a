"""
Stripe API adapter for payment operations.

This module provides the StripeAdapter class which encapsulates all
Stripe API interactions. All Stripe calls go through this adapter to
ensure consistent error handling, timeouts, idempotency and observability.

Features:
- Configurable timeout and network retries on all API calls
- Automatic error translation to payments.exceptions
- Structured logging with timing metrics
- Idempotency keys on every mutating call

Configuration (via settings):
- STRIPE_SECRET_KEY: Stripe API secret key
- STRIPE_WEBHOOK_SECRET: Webhook signing secret
- STRIPE_API_TIMEOUT_SECONDS: API call timeout (default: 10)
- STRIPE_MAX_RETRIES: SDK network retries (default: 3)

Usage:
    from payments.adapters import StripeAdapter, CreatePaymentIntentParams

    result = StripeAdapter.create_payment_intent(
        CreatePaymentIntentParams(
            amount_cents=999,
            currency="usd",
            metadata={"type": "virtual_attendance", "subjectId": str(party.id)},
            idempotency_key=IdempotencyKeyGenerator.generate(
                "create_intent", f"watch_party:{party.id}:{user.id}", attempt=1
            ),
        )
    )
"""

from __future__ import annotations

import hashlib
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any

import stripe
from django.conf import settings

from payments.exceptions import (
    StripeAPIUnavailableError,
    StripeAuthenticationError,
    StripeCardDeclinedError,
    StripeInvalidRequestError,
    StripeRateLimitError,
    StripeTimeoutError,
    WebhookConfigurationError,
    WebhookSignatureError,
)

# =============================================================================
# Data Types
# =============================================================================


@dataclass
class CreatePaymentIntentParams:
    """
    Parameters for creating a Stripe PaymentIntent.

    Attributes:
        amount_cents: Payment amount in smallest currency unit (server-side price)
        currency: ISO 4217 currency code
        idempotency_key: Unique key for idempotent creation
        metadata: Key-value pairs to attach to the PaymentIntent
        customer_id: Optional Stripe Customer ID
        receipt_email: Optional email for Stripe receipts
    """

    amount_cents: int
    currency: str
    idempotency_key: str
    metadata: dict[str, str] = field(default_factory=dict)
    customer_id: str | None = None
    receipt_email: str | None = None

    def __post_init__(self) -> None:
        if self.amount_cents <= 0:
            raise ValueError("amount_cents must be positive")
        if not self.idempotency_key:
            raise ValueError("idempotency_key is required")
        if not self.currency:
            raise ValueError("currency is required")


@dataclass
class CreateCheckoutSessionParams:
    """
    Parameters for creating a Stripe Checkout Session.

    Attributes:
        price_id: Stripe Price ID (already checked against the configured checkout prices)
        customer_id: Stripe Customer the session is opened for
        mode: "subscription" or "payment"
        success_url / cancel_url: Redirect targets
        metadata: Attached to the session and echoed in the webhook
        idempotency_key: Unique key for idempotent creation
    """

    price_id: str
    customer_id: str
    success_url: str
    cancel_url: str
    idempotency_key: str
    mode: str = "subscription"
    metadata: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.mode not in ("subscription", "payment"):
            raise ValueError("mode must be 'subscription' or 'payment'")
        if not self.price_id:
            raise ValueError("price_id is required")


@dataclass
class PaymentIntentResult:
    """
    Result from Stripe PaymentIntent operations.

    Attributes:
        id: PaymentIntent ID (pi_xxx)
        status: Current status (requires_payment_method, succeeded, etc.)
        amount_cents: Amount in cents
        currency: Currency code
        client_secret: Secret for client-side confirmation
        metadata: Attached metadata
        raw_response: Full Stripe response dict (for debugging)
    """

    id: str
    status: str
    amount_cents: int
    currency: str
    client_secret: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class RefundResult:
    """
    Result from Stripe Refund operations.

    Attributes:
        id: Refund ID (re_xxx)
        amount_cents: Refunded amount in cents
        currency: Currency code
        status: Refund status (succeeded, pending, failed)
        payment_intent_id: Original PaymentIntent ID
    """

    id: str
    amount_cents: int
    currency: str
    status: str
    payment_intent_id: str
    metadata: dict[str, str] = field(default_factory=dict)
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class CustomerResult:
    id: str
    email: str | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class CheckoutSessionResult:
    id: str
    url: str | None
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class PortalSessionResult:
    id: str
    url: str
    raw_response: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Idempotency Key Generator
# =============================================================================


class IdempotencyKeyGenerator:
    """
    Generate idempotency keys for Stripe API calls.

    Format: "{operation}:{entity_id}:{attempt}:{hash}"

    The same inputs always produce the same key, so a retried request for
    the same subject, payer and attempt is collapsed by Stripe into one
    PaymentIntent. Bumping ``attempt`` (after an earlier attempt failed or
    was refunded) produces a fresh key.

    Example:
        key = IdempotencyKeyGenerator.generate(
            operation="refund",
            entity_id=payment_record.id,
        )
        # "refund:550e8400-e29b-41d4-a716-446655440000:1:a1b2c3d4"
    """

    @staticmethod
    def generate(
        operation: str,
        entity_id: uuid.UUID | str,
        attempt: int = 1,
    ) -> str:
        entity_str = str(entity_id)
        hash_input = f"{operation}:{entity_str}:{attempt}:{settings.SECRET_KEY}"
        short_hash = hashlib.sha256(hash_input.encode()).hexdigest()[:8]

        return f"{operation}:{entity_str}:{attempt}:{short_hash}"


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert a StripeObject (or plain mapping) into a plain dict."""
    if obj is None:
        return {}
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)


# =============================================================================
# Stripe Adapter
# =============================================================================


class StripeAdapter:
    """
    Adapter for Stripe API operations.

    All methods are classmethods - no instance state is maintained.
    Thread-safe for use from Celery workers.

    Services reach this class through ``get_stripe_adapter()`` so tests can
    swap in a fake without patching the SDK.
    """

    # =========================================================================
    # Configuration
    # =========================================================================

    @staticmethod
    def _configure_stripe() -> None:
        """Configure Stripe client with API key, timeout and retries."""
        stripe.api_key = settings.STRIPE_SECRET_KEY
        stripe.max_network_retries = getattr(settings, "STRIPE_MAX_RETRIES", 3)
        timeout = getattr(settings, "STRIPE_API_TIMEOUT_SECONDS", 10)
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout)

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    def _call(cls, operation: str, log_context: dict[str, Any], func, **kwargs):
        """
        Run one SDK call with timing logs and error translation.

        Args:
            operation: Name used in log records
            log_context: Extra logging fields (ids, amounts, keys)
            func: Stripe SDK callable
            **kwargs: Arguments for ``func``
        """
        cls._configure_stripe()
        logger = cls.get_logger()
        log_context = {"operation": operation, **log_context}

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            result = func(**kwargs)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Stripe operation completed",
            extra={
                **log_context,
                "stripe_object_id": getattr(result, "id", None),
                "duration_ms": duration_ms,
            },
        )
        return result

    # =========================================================================
    # PaymentIntents
    # =========================================================================

    @classmethod
    def create_payment_intent(
        cls,
        params: CreatePaymentIntentParams,
    ) -> PaymentIntentResult:
        """
        Create a Stripe PaymentIntent.

        Returns:
            PaymentIntentResult including the client_secret

        Raises:
            StripeInvalidRequestError: Invalid parameters
            StripeAPIUnavailableError: Stripe service unavailable
            StripeTimeoutError: Request timed out
        """
        kwargs: dict[str, Any] = {
            "amount": params.amount_cents,
            "currency": params.currency,
            "metadata": params.metadata,
            "automatic_payment_methods": {"enabled": True},
            "idempotency_key": params.idempotency_key,
        }
        if params.customer_id:
            kwargs["customer"] = params.customer_id
        if params.receipt_email:
            kwargs["receipt_email"] = params.receipt_email

        intent = cls._call(
            "create_payment_intent",
            {
                "amount_cents": params.amount_cents,
                "currency": params.currency,
                "idempotency_key": params.idempotency_key,
            },
            stripe.PaymentIntent.create,
            **kwargs,
        )
        return cls._to_payment_intent_result(intent)

    @classmethod
    def retrieve_payment_intent(cls, payment_intent_id: str) -> PaymentIntentResult:
        """
        Retrieve a PaymentIntent by ID.

        Raises:
            StripeInvalidRequestError: PaymentIntent not found
        """
        intent = cls._call(
            "retrieve_payment_intent",
            {"payment_intent_id": payment_intent_id},
            stripe.PaymentIntent.retrieve,
            id=payment_intent_id,
        )
        return cls._to_payment_intent_result(intent)

    @classmethod
    def cancel_payment_intent(
        cls,
        payment_intent_id: str,
        idempotency_key: str,
        cancellation_reason: str = "abandoned",
    ) -> PaymentIntentResult:
        """
        Cancel a PaymentIntent so its client secret can no longer be paid.

        Raises:
            StripeInvalidRequestError: Intent already succeeded or is
                otherwise not cancelable
        """
        intent = cls._call(
            "cancel_payment_intent",
            {
                "payment_intent_id": payment_intent_id,
                "idempotency_key": idempotency_key,
            },
            stripe.PaymentIntent.cancel,
            intent=payment_intent_id,
            cancellation_reason=cancellation_reason,
            idempotency_key=idempotency_key,
        )
        return cls._to_payment_intent_result(intent)

    @staticmethod
    def _to_payment_intent_result(intent) -> PaymentIntentResult:
        return PaymentIntentResult(
            id=intent.id,
            status=intent.status,
            amount_cents=intent.amount,
            currency=intent.currency,
            client_secret=getattr(intent, "client_secret", None),
            metadata=_to_dict(getattr(intent, "metadata", None)),
            raw_response=_to_dict(intent),
        )

    # =========================================================================
    # Refunds
    # =========================================================================

    @classmethod
    def create_refund(
        cls,
        payment_intent_id: str,
        idempotency_key: str,
        metadata: dict[str, str] | None = None,
        reason: str = "requested_by_customer",
    ) -> RefundResult:
        """
        Refund a PaymentIntent in full.

        Args:
            payment_intent_id: PaymentIntent to refund
            idempotency_key: Unique key for idempotent refund creation
            metadata: Context attached to the refund (watch party, reason)
            reason: Stripe refund reason code

        Raises:
            StripeInvalidRequestError: Already refunded or unknown intent
            StripeAPIUnavailableError: Stripe service unavailable
        """
        refund = cls._call(
            "create_refund",
            {
                "payment_intent_id": payment_intent_id,
                "idempotency_key": idempotency_key,
            },
            stripe.Refund.create,
            payment_intent=payment_intent_id,
            reason=reason,
            metadata=metadata or {},
            idempotency_key=idempotency_key,
        )
        return RefundResult(
            id=refund.id,
            amount_cents=refund.amount,
            currency=refund.currency,
            status=refund.status,
            payment_intent_id=payment_intent_id,
            metadata=_to_dict(getattr(refund, "metadata", None)),
            raw_response=_to_dict(refund),
        )

    # =========================================================================
    # Customers, Checkout & Billing Portal
    # =========================================================================

    @classmethod
    def create_customer(
        cls,
        email: str,
        idempotency_key: str,
        metadata: dict[str, str] | None = None,
    ) -> CustomerResult:
        customer = cls._call(
            "create_customer",
            {"idempotency_key": idempotency_key},
            stripe.Customer.create,
            email=email,
            metadata=metadata or {},
            idempotency_key=idempotency_key,
        )
        return CustomerResult(
            id=customer.id,
            email=getattr(customer, "email", None),
            raw_response=_to_dict(customer),
        )

    @classmethod
    def create_checkout_session(
        cls,
        params: CreateCheckoutSessionParams,
    ) -> CheckoutSessionResult:
        """
        Create a hosted Checkout Session for one price.

        The session metadata is echoed back in checkout.session.completed
        and is what the webhook reconciler uses to find the subject.
        """
        kwargs: dict[str, Any] = {
            "customer": params.customer_id,
            "mode": params.mode,
            "line_items": [{"price": params.price_id, "quantity": 1}],
            "success_url": params.success_url,
            "cancel_url": params.cancel_url,
            "metadata": params.metadata,
            "idempotency_key": params.idempotency_key,
        }
        if params.mode == "subscription":
            kwargs["subscription_data"] = {"metadata": params.metadata}

        session = cls._call(
            "create_checkout_session",
            {
                "price_id": params.price_id,
                "customer_id": params.customer_id,
                "mode": params.mode,
            },
            stripe.checkout.Session.create,
            **kwargs,
        )
        return CheckoutSessionResult(
            id=session.id,
            url=getattr(session, "url", None),
            raw_response=_to_dict(session),
        )

    @classmethod
    def create_billing_portal_session(
        cls,
        customer_id: str,
        return_url: str,
    ) -> PortalSessionResult:
        session = cls._call(
            "create_billing_portal_session",
            {"customer_id": customer_id},
            stripe.billing_portal.Session.create,
            customer=customer_id,
            return_url=return_url,
        )
        return PortalSessionResult(
            id=session.id,
            url=session.url,
            raw_response=_to_dict(session),
        )

    # =========================================================================
    # Webhooks
    # =========================================================================

    @classmethod
    def construct_webhook_event(
        cls,
        payload: bytes,
        signature: str,
    ) -> dict[str, Any]:
        """
        Verify and parse a Stripe webhook event.

        Args:
            payload: Raw request body, byte-for-byte as received
            signature: Stripe-Signature header value

        Returns:
            Parsed event as a plain dict

        Raises:
            WebhookConfigurationError: STRIPE_WEBHOOK_SECRET is empty
            WebhookSignatureError: Signature missing or invalid, or
                payload is not a valid event
        """
        secret = getattr(settings, "STRIPE_WEBHOOK_SECRET", "")
        if not secret:
            raise WebhookConfigurationError("Webhook secret not configured")
        if not signature:
            raise WebhookSignatureError("Missing signature")

        try:
            event = stripe.Webhook.construct_event(payload, signature, secret)
        except stripe.SignatureVerificationError as e:
            raise WebhookSignatureError("Invalid signature") from e
        except ValueError as e:
            raise WebhookSignatureError("Invalid payload") from e

        return _to_dict(event)

    # =========================================================================
    # Error Handling
    # =========================================================================

    @classmethod
    def _handle_stripe_error(
        cls,
        error: Exception,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate Stripe SDK exceptions to payments.exceptions.

        Raises:
            StripeCardDeclinedError: Card was declined
            StripeInvalidRequestError: Invalid request parameters
            StripeAuthenticationError: Bad API key
            StripeRateLimitError: Rate limited
            StripeTimeoutError: Request timed out
            StripeAPIUnavailableError: Network failure or Stripe 5xx
        """
        logger = cls.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(error, stripe.CardError):
            decline_code = getattr(error, "decline_code", None)
            logger.warning(
                "Card error from Stripe",
                extra={**log_context, "decline_code": decline_code},
            )
            raise StripeCardDeclinedError(
                str(error.user_message or error),
                stripe_code=error.code,
                decline_code=decline_code,
            ) from error

        elif isinstance(error, stripe.InvalidRequestError):
            logger.error(
                "Invalid request to Stripe",
                extra={**log_context, "stripe_code": error.code},
            )
            raise StripeInvalidRequestError(
                str(error),
                stripe_code=error.code,
            ) from error

        elif isinstance(error, stripe.AuthenticationError):
            logger.critical(
                "Stripe authentication failed - check API key",
                extra=log_context,
            )
            raise StripeAuthenticationError(
                "Stripe authentication failed",
                stripe_code="authentication_error",
            ) from error

        elif isinstance(error, stripe.RateLimitError):
            logger.warning("Rate limited by Stripe", extra=log_context)
            raise StripeRateLimitError(
                "Stripe rate limit exceeded. Please retry.",
                stripe_code="rate_limit",
            ) from error

        elif isinstance(error, stripe.APIConnectionError):
            if "timed out" in str(error).lower():
                logger.error("Stripe request timed out", extra=log_context)
                raise StripeTimeoutError(
                    "Stripe request timed out. Please retry.",
                    stripe_code="timeout",
                ) from error
            logger.error(
                "Connection error to Stripe",
                extra=log_context,
                exc_info=True,
            )
            raise StripeAPIUnavailableError(
                "Could not connect to Stripe. Please retry.",
                stripe_code="api_connection_error",
            ) from error

        elif isinstance(error, stripe.StripeError):
            logger.error("Stripe API error", extra=log_context, exc_info=True)
            raise StripeAPIUnavailableError(
                "Stripe service error. Please retry.",
                stripe_code="api_error",
            ) from error
