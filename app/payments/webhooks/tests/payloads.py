"""
Stripe event builders for webhook tests.
"""

from __future__ import annotations

import hashlib
import hmac
import time
import uuid

from payments.models import ProcessedWebhookEvent

WEBHOOK_SECRET = "whsec_test_secret"


def build_event(event_type: str, data_object: dict, event_id: str | None = None) -> dict:
    """Build a Stripe event payload."""
    return {
        "id": event_id or f"evt_test_{uuid.uuid4().hex[:16]}",
        "object": "event",
        "type": event_type,
        "created": int(time.time()),
        "livemode": False,
        "data": {"object": data_object},
    }


def sign_payload(
    payload: bytes,
    secret: str = WEBHOOK_SECRET,
    timestamp: int | None = None,
) -> str:
    """Build a Stripe-Signature header for ``payload``."""
    timestamp = timestamp or int(time.time())
    signed_payload = f"{timestamp}.{payload.decode()}".encode()
    signature = hmac.new(secret.encode(), signed_payload, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def ledger_event(event_type: str, data_object: dict) -> ProcessedWebhookEvent:
    """
    Unsaved ProcessedWebhookEvent for calling handlers directly.

    Handlers only read the payload, so tests do not need the ledger row.
    """
    event = build_event(event_type, data_object)
    return ProcessedWebhookEvent(
        event_id=event["id"],
        event_type=event_type,
        payload=event,
    )
