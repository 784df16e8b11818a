"""
Payment-specific exceptions.

Exception Hierarchy:
    ExternalServiceError (core, HTTP 500)
    └── StripeError - Base for all errors translated from the Stripe SDK
        ├── StripeCardDeclinedError - Card declined (permanent)
        ├── StripeInvalidRequestError - Invalid request params (permanent)
        ├── StripeAuthenticationError - Bad API key (permanent)
        ├── StripeRateLimitError - Rate limited (transient)
        ├── StripeAPIUnavailableError - Network or 5xx (transient)
        └── StripeTimeoutError - Request timeout (transient)

    WebhookSignatureError - Signature missing, invalid or payload malformed
    WebhookConfigurationError - Webhook signing secret not configured
    WebhookProcessingError - Handler reported failure, event left unrecorded

Stripe errors carry the SDK's message for logs. Services convert them into
an ExternalServiceError with a client-safe message before they reach a view:

    try:
        result = adapter.create_refund(...)
    except StripeError as e:
        logger.error("Refund failed", extra={"error": str(e)})
        raise ExternalServiceError("Failed to process refund") from e
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import ExternalServiceError

if TYPE_CHECKING:
    from typing import Any


class StripeError(ExternalServiceError):
    """
    Base exception for all Stripe-related errors.

    Attributes:
        stripe_code: Stripe's error code, when provided
        decline_code: Card decline code, when applicable
        is_retryable: True for transient failures where a retry with the
            same idempotency key is safe
    """

    default_error_code: str = "STRIPE_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        stripe_code: str | None = None,
        decline_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if stripe_code:
            details["stripe_code"] = stripe_code
        if decline_code:
            details["decline_code"] = decline_code
        super().__init__(message, error_code=error_code, details=details)
        self.stripe_code = stripe_code
        self.decline_code = decline_code


# -----------------------------------------------------------------------------
# Permanent Errors (do not retry)
# -----------------------------------------------------------------------------


class StripeCardDeclinedError(StripeError):
    """Card was declined by the issuing bank. See ``decline_code``."""

    default_error_code: str = "CARD_DECLINED"


class StripeInvalidRequestError(StripeError):
    """
    Invalid request parameters sent to Stripe.

    Possible causes:
    - Unknown PaymentIntent or customer ID
    - Refund of a charge that is already fully refunded
    - Price ID that does not exist in the Stripe account
    """

    default_error_code: str = "INVALID_STRIPE_REQUEST"


class StripeAuthenticationError(StripeError):
    """STRIPE_SECRET_KEY is missing, revoked or for the wrong mode."""

    default_error_code: str = "STRIPE_AUTHENTICATION_FAILED"


# -----------------------------------------------------------------------------
# Transient Errors (safe to retry with the same idempotency key)
# -----------------------------------------------------------------------------


class StripeRateLimitError(StripeError):
    default_error_code: str = "STRIPE_RATE_LIMITED"
    is_retryable: bool = True


class StripeAPIUnavailableError(StripeError):
    """Network failure or a 5xx from Stripe."""

    default_error_code: str = "STRIPE_UNAVAILABLE"
    is_retryable: bool = True


class StripeTimeoutError(StripeError):
    """
    Stripe API call timed out.

    IMPORTANT: The operation may have succeeded on Stripe's side. Retrying
    with the same idempotency key returns the original result if it did.
    """

    default_error_code: str = "STRIPE_TIMEOUT"
    is_retryable: bool = True


# =============================================================================
# Webhook Ingress
# =============================================================================


class WebhookSignatureError(Exception):
    """
    Raised when a webhook delivery cannot be authenticated or parsed.

    The ingress answers HTTP 400 and records nothing.
    """


class WebhookConfigurationError(Exception):
    """
    Raised when the webhook signing secret is not configured.

    The ingress answers HTTP 500 so Stripe keeps redelivering until the
    deployment is fixed.
    """


class WebhookProcessingError(Exception):
    """
    Raised when a webhook handler reports failure.

    The event is not recorded as processed, so the delivery is answered
    with HTTP 500 and Stripe retries it.
    """


__all__ = [
    "StripeAPIUnavailableError",
    "StripeAuthenticationError",
    "StripeCardDeclinedError",
    "StripeError",
    "StripeInvalidRequestError",
    "StripeRateLimitError",
    "StripeTimeoutError",
    "WebhookConfigurationError",
    "WebhookProcessingError",
    "WebhookSignatureError",
]
