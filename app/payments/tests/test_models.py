"""
Tests for payment models.

Covers the PaymentRecord state machine and its one-active-payment
constraint, and the BillableSubject plan helpers on venues and fans.
"""

from __future__ import annotations

import pytest
from django.db import IntegrityError, transaction
from django_fsm import TransitionNotAllowed

from fans.tests.factories import FanAccountFactory
from payments.models import PaymentRecord
from payments.state_machines import PaymentRecordStatus, Plan
from payments.tests.factories import (
    GatewayCustomerFactory,
    PaymentRecordFactory,
    ProcessedWebhookEventFactory,
)
from venues.tests.factories import VenueFactory


@pytest.mark.django_db
class TestPaymentRecordTransitions:
    """Tests for the pending -> completed -> refunded lifecycle."""

    def test_new_record_is_pending(self):
        record = PaymentRecordFactory()

        assert record.status == PaymentRecordStatus.PENDING
        assert record.completed_at is None

    def test_complete_sets_timestamp(self):
        record = PaymentRecordFactory()

        record.complete()
        record.save()

        record = PaymentRecord.objects.get(pk=record.pk)
        assert record.status == PaymentRecordStatus.COMPLETED
        assert record.completed_at is not None
        assert record.is_completed is True

    def test_refund_stores_refund_id_and_reason(self):
        record = PaymentRecordFactory(completed=True)

        record.refund(refund_id="re_123", reason="Watch party cancelled")
        record.save()

        record = PaymentRecord.objects.get(pk=record.pk)
        assert record.status == PaymentRecordStatus.REFUNDED
        assert record.refund_id == "re_123"
        assert record.refund_reason == "Watch party cancelled"
        assert record.refunded_at is not None

    def test_fail_stores_reason(self):
        record = PaymentRecordFactory()

        record.fail(reason="card_declined")
        record.save()

        record = PaymentRecord.objects.get(pk=record.pk)
        assert record.status == PaymentRecordStatus.FAILED
        assert record.failure_reason == "card_declined"

    def test_pending_record_cannot_be_refunded(self):
        record = PaymentRecordFactory()

        with pytest.raises(TransitionNotAllowed):
            record.refund(refund_id="re_123")

    def test_refunded_record_cannot_be_completed_again(self):
        record = PaymentRecordFactory(refunded=True)

        with pytest.raises(TransitionNotAllowed):
            record.complete()

    def test_status_cannot_be_assigned_directly(self):
        record = PaymentRecordFactory()

        with pytest.raises(AttributeError):
            record.status = PaymentRecordStatus.COMPLETED


@pytest.mark.django_db
class TestPaymentRecordConstraints:
    """Tests for database constraints on PaymentRecord."""

    def test_second_active_record_for_same_payer_and_subject_rejected(self):
        """
        Given a pending record for a payer and subject
        When a second pending record is inserted for the same pair
        Then the conditional unique constraint rejects it
        """
        # Arrange
        record = PaymentRecordFactory()

        # Act / Assert
        with pytest.raises(IntegrityError), transaction.atomic():
            PaymentRecordFactory(payer=record.payer, subject_id=record.subject_id)

    def test_new_record_allowed_after_failure(self):
        failed = PaymentRecordFactory(failed=True)

        retry = PaymentRecordFactory(payer=failed.payer, subject_id=failed.subject_id)

        assert retry.status == PaymentRecordStatus.PENDING

    def test_new_record_allowed_after_refund(self):
        refunded = PaymentRecordFactory(refunded=True)

        retry = PaymentRecordFactory(
            payer=refunded.payer, subject_id=refunded.subject_id
        )

        assert retry.status == PaymentRecordStatus.PENDING


@pytest.mark.django_db
class TestPaymentRecordQuerySet:
    def test_active_for_excludes_failed_and_refunded(self):
        pending = PaymentRecordFactory()
        PaymentRecordFactory(
            payer=pending.payer, subject_id=pending.subject_id, failed=True
        )
        PaymentRecordFactory(
            payer=pending.payer, subject_id=pending.subject_id, refunded=True
        )

        active = PaymentRecord.objects.active_for(
            pending.subject_type, pending.subject_id, pending.payer
        )

        assert list(active) == [pending]

    def test_completed_for_narrows_to_payer(self):
        first = PaymentRecordFactory(completed=True)
        PaymentRecordFactory(subject_id=first.subject_id, completed=True)

        all_completed = PaymentRecord.objects.completed_for(
            first.subject_type, first.subject_id
        )
        payer_completed = PaymentRecord.objects.completed_for(
            first.subject_type, first.subject_id, payer=first.payer
        )

        assert all_completed.count() == 2
        assert list(payer_completed) == [first]


@pytest.mark.django_db
class TestBillableSubject:
    """Tests for plan and feature helpers shared by venues and fans."""

    def test_new_venue_starts_on_free_plan_with_basic_features(self):
        venue = VenueFactory()

        assert venue.plan == Plan.FREE
        assert venue.features["basicProfile"] is True
        assert venue.features["liveStreaming"] is False

    def test_apply_plan_premium_unlocks_premium_features(self):
        venue = VenueFactory()

        venue.apply_plan(Plan.PREMIUM)
        venue.save()

        venue.refresh_from_db()
        assert venue.has_paid_plan is True
        assert venue.features["liveStreaming"] is True
        assert venue.features["basicProfile"] is True

    def test_downgrade_clears_every_premium_flag(self):
        fan = FanAccountFactory()
        fan.apply_plan(Plan.SUPERFAN_PASS)
        fan.save()

        fan.apply_plan(Plan.FREE)
        fan.save()

        fan.refresh_from_db()
        assert fan.features["adFree"] is False
        assert fan.features["aiMatchInsights"] is False
        assert fan.features["venueDiscovery"] is True

    def test_fan_pass_does_not_unlock_superfan_features(self):
        fan = FanAccountFactory()

        fan.apply_plan(Plan.FAN_PASS)
        fan.save()

        fan.refresh_from_db()
        assert fan.has_paid_plan is True
        assert fan.features["advancedStats"] is True
        assert fan.features["exclusiveContent"] is False

    def test_plan_from_another_subject_type_rejected(self):
        venue = VenueFactory()

        with pytest.raises(ValueError):
            venue.apply_plan(Plan.SUPERFAN_PASS)


@pytest.mark.django_db
class TestLedgerModels:
    def test_processed_event_id_is_primary_key(self):
        event = ProcessedWebhookEventFactory(event_id="evt_1")

        with pytest.raises(IntegrityError), transaction.atomic():
            ProcessedWebhookEventFactory(event_id=event.event_id)

    def test_get_object_id_reads_payload(self):
        event = ProcessedWebhookEventFactory(
            payload={"data": {"object": {"id": "pi_123"}}}
        )

        assert event.get_object_id() == "pi_123"

    def test_gateway_customer_is_one_per_user(self):
        mapping = GatewayCustomerFactory()

        with pytest.raises(IntegrityError), transaction.atomic():
            GatewayCustomerFactory(user=mapping.user)
