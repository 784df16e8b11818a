"""
Webhook endpoint view for Stripe.

The view:
1. Verifies the webhook signature against the raw request body
2. Hands the event to WebhookProcessor, which dedups and applies it
3. Answers 200 on success or replay, 400 on a bad delivery, 500 otherwise

Usage:
    # In urls.py
    from payments.webhooks.views import stripe_webhook

    urlpatterns = [
        path("webhooks/stripe/", stripe_webhook, name="stripe_webhook"),
    ]
"""

from __future__ import annotations

import logging

from django.http import HttpRequest, HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from payments.adapters import StripeAdapter
from payments.exceptions import WebhookConfigurationError, WebhookSignatureError
from payments.webhooks.processor import WebhookProcessor

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def stripe_webhook(request: HttpRequest) -> HttpResponse:
    """
    Receive and apply Stripe webhook events.

    Processing is synchronous: the ledger row is only written when the
    handler's effects commit, so a 200 means the event is fully applied.

    Returns:
        HttpResponse with status:
        - 200: Event applied, or already processed
        - 400: Missing or invalid signature, or malformed event
        - 500: Secret not configured, or handler failed (Stripe retries)
    """
    payload = request.body
    signature = request.headers.get("Stripe-Signature", "")

    try:
        event = StripeAdapter.construct_webhook_event(payload, signature)
    except WebhookConfigurationError:
        logger.error("Stripe webhook secret is not configured")
        return HttpResponse("Webhook secret not configured", status=500)
    except WebhookSignatureError as e:
        logger.warning(
            "Webhook signature verification failed",
            extra={"error": str(e)},
        )
        return HttpResponse("Webhook signature verification failed", status=400)

    try:
        result = WebhookProcessor.process(event)
    except WebhookSignatureError:
        return HttpResponse("Invalid event", status=400)
    except Exception:
        # Logged by the processor; nothing was recorded
        return HttpResponse("Webhook handler failed", status=500)

    if result.duplicate:
        return HttpResponse("Already processed", status=200)

    return HttpResponse("Webhook handled successfully", status=200)
