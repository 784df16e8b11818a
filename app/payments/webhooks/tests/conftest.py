"""
Pytest fixtures for webhook tests.

Usage:
    def test_delivery(post_webhook):
        response = post_webhook(build_event("invoice.payment_failed", {...}))
"""

from __future__ import annotations

import json

import pytest
from django.test import Client
from django.urls import reverse

from payments.webhooks.tests.payloads import WEBHOOK_SECRET, sign_payload


@pytest.fixture
def webhook_secret(settings):
    settings.STRIPE_WEBHOOK_SECRET = WEBHOOK_SECRET
    return WEBHOOK_SECRET


@pytest.fixture
def post_webhook(db, webhook_secret):
    """
    POST a signed event to the webhook endpoint.

    Pass ``signature`` to override the computed header.
    """
    client = Client()
    url = reverse("payments:stripe_webhook")

    def _post(event: dict, signature: str | None = None):
        payload = json.dumps(event).encode()
        header = sign_payload(payload) if signature is None else signature
        return client.post(
            url,
            data=payload,
            content_type="application/json",
            HTTP_STRIPE_SIGNATURE=header,
        )

    return _post
