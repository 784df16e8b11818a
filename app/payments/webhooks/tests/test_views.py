"""
Tests for the Stripe webhook endpoint.

Deliveries are signed with a test secret and sent through the real
signature check, processor and handlers.
"""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest
from django.urls import reverse

from payments.models import PaymentRecord, ProcessedWebhookEvent
from payments.state_machines import PaymentRecordStatus
from payments.tests.factories import PaymentRecordFactory
from payments.webhooks.tests.payloads import build_event, sign_payload
from watch_parties.models import WatchParty
from watch_parties.tests.factories import WatchPartyFactory


@pytest.mark.django_db
class TestSignatureVerification:
    def test_missing_signature_returns_400(self, post_webhook):
        response = post_webhook(build_event("invoice.payment_failed", {}), signature="")

        assert response.status_code == 400
        assert response.content == b"Webhook signature verification failed"
        assert ProcessedWebhookEvent.objects.count() == 0

    def test_wrong_secret_returns_400(self, post_webhook):
        event = build_event("invoice.payment_failed", {})
        bad_signature = sign_payload(json.dumps(event).encode(), secret="whsec_wrong")

        response = post_webhook(event, signature=bad_signature)

        assert response.status_code == 400
        assert ProcessedWebhookEvent.objects.count() == 0

    def test_unconfigured_secret_returns_500(self, post_webhook, settings):
        settings.STRIPE_WEBHOOK_SECRET = ""

        response = post_webhook(build_event("invoice.payment_failed", {}))

        assert response.status_code == 500
        assert response.content == b"Webhook secret not configured"

    def test_get_not_allowed(self, client):
        response = client.get(reverse("payments:stripe_webhook"))

        assert response.status_code == 405


@pytest.mark.django_db
class TestDelivery:
    def test_valid_event_is_recorded(self, post_webhook):
        event = build_event("customer.subscription.updated", {"customer": "cus_none"})

        response = post_webhook(event)

        assert response.status_code == 200
        assert response.content == b"Webhook handled successfully"
        recorded = ProcessedWebhookEvent.objects.get(event_id=event["id"])
        assert recorded.event_type == "customer.subscription.updated"

    def test_replay_is_acknowledged_without_effects(self, post_webhook):
        """
        Given a payment_intent.succeeded event that was already applied
        When Stripe delivers it again
        Then the endpoint answers "Already processed" and the count stays 1
        """
        # Arrange
        party = WatchPartyFactory()
        record = PaymentRecordFactory(subject_id=str(party.id))
        event = build_event(
            "payment_intent.succeeded", {"id": record.gateway_payment_id}
        )
        post_webhook(event)

        # Act
        response = post_webhook(event)

        # Assert
        assert response.status_code == 200
        assert response.content == b"Already processed"
        assert WatchParty.objects.get(pk=party.pk).virtual_attendees_count == 1
        assert ProcessedWebhookEvent.objects.filter(event_id=event["id"]).count() == 1

    def test_unknown_event_type_is_acknowledged(self, post_webhook):
        event = build_event("charge.dispute.created", {"id": "dp_1"})

        response = post_webhook(event)

        assert response.status_code == 200
        assert ProcessedWebhookEvent.objects.filter(event_id=event["id"]).exists()

    def test_handler_failure_returns_500_and_records_nothing(self, post_webhook):
        """
        Given a handler that raises
        When the event is delivered
        Then the endpoint answers 500, nothing is recorded and a retry
        is processed normally
        """
        # Arrange
        record = PaymentRecordFactory()
        event = build_event(
            "payment_intent.succeeded", {"id": record.gateway_payment_id}
        )

        # Act
        with patch(
            "payments.webhooks.handlers.complete_payment",
            side_effect=RuntimeError("database went away"),
        ):
            failed = post_webhook(event)
        retried = post_webhook(event)

        # Assert
        assert failed.status_code == 500
        assert failed.content == b"Webhook handler failed"
        assert retried.status_code == 200
        assert retried.content == b"Webhook handled successfully"
        assert (
            PaymentRecord.objects.get(pk=record.pk).status
            == PaymentRecordStatus.COMPLETED
        )

    def test_event_without_id_returns_400(self, post_webhook):
        event = build_event("invoice.payment_failed", {})
        event.pop("id")

        response = post_webhook(event)

        assert response.status_code == 400
        assert response.content == b"Invalid event"
