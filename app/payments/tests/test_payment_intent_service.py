"""
Tests for PaymentIntentService.

Covers server-side pricing, duplicate-purchase prevention, idempotency
keys per attempt, and gateway failure handling.
"""

from __future__ import annotations

import uuid
from unittest.mock import patch

import pytest

from core.exceptions import (
    ConflictError,
    ExternalServiceError,
    FailedPreconditionError,
    NotFoundError,
    ValidationError,
)
from payments.exceptions import StripeAPIUnavailableError
from payments.models import PaymentRecord
from payments.services import PaymentIntentService, fail_payment
from payments.state_machines import PaymentRecordStatus, PaymentSubjectType
from payments.tests.factories import PaymentRecordFactory
from watch_parties.tests.factories import WatchPartyFactory


@pytest.mark.django_db
class TestVirtualAttendanceIntent:
    """Tests for create_virtual_attendance_intent()."""

    def test_creates_pending_record_at_server_price(
        self, mock_stripe_adapter, payer, watch_party
    ):
        """
        Given a watch party priced at 999 cents
        When a payer requests a virtual attendance intent
        Then a pending record for 999 cents is stored with the intent id
        """
        # Act
        issued = PaymentIntentService.create_virtual_attendance_intent(
            user=payer, watch_party_id=watch_party.id
        )

        # Assert
        record = PaymentRecord.objects.get(gateway_payment_id=issued.payment_intent_id)
        assert record.status == PaymentRecordStatus.PENDING
        assert record.amount_cents == 999
        assert record.subject_type == PaymentSubjectType.WATCH_PARTY
        assert record.subject_id == str(watch_party.id)
        assert record.payer == payer
        assert issued.client_secret == f"{issued.payment_intent_id}_secret_test"

    def test_sends_subject_metadata_to_stripe(
        self, mock_stripe_adapter, payer, watch_party
    ):
        PaymentIntentService.create_virtual_attendance_intent(
            user=payer, watch_party_id=watch_party.id
        )

        params = mock_stripe_adapter.create_payment_intent.call_args.args[0]
        assert params.amount_cents == 999
        assert params.metadata["subjectId"] == str(watch_party.id)
        assert params.metadata["userId"] == str(payer.pk)
        assert params.metadata["type"] == "virtual_attendance"
        assert params.metadata["watchPartyName"] == watch_party.name

    def test_second_issue_while_pending_conflicts(
        self, mock_stripe_adapter, payer, watch_party
    ):
        """
        Given a payer with a pending payment for a watch party
        When they request another intent for the same party
        Then ConflictError is raised and Stripe is not called again
        """
        # Arrange
        PaymentIntentService.create_virtual_attendance_intent(
            user=payer, watch_party_id=watch_party.id
        )

        # Act / Assert
        with pytest.raises(ConflictError):
            PaymentIntentService.create_virtual_attendance_intent(
                user=payer, watch_party_id=watch_party.id
            )
        assert mock_stripe_adapter.create_payment_intent.call_count == 1

    def test_concurrent_issue_loses_on_unique_constraint(
        self, mock_stripe_adapter, payer, watch_party
    ):
        """
        Given two requests that both passed the pending-payment check
        When the second one stores its PaymentRecord
        Then the one-active-payment constraint turns it into ConflictError
        """
        # Arrange
        PaymentIntentService.create_virtual_attendance_intent(
            user=payer, watch_party_id=watch_party.id
        )

        # Act
        with patch.object(PaymentIntentService, "_ensure_no_active_payment"):
            with pytest.raises(ConflictError) as exc_info:
                PaymentIntentService.create_virtual_attendance_intent(
                    user=payer, watch_party_id=watch_party.id
                )

        # Assert
        assert exc_info.value.details == {"watch_party_id": str(watch_party.id)}
        assert mock_stripe_adapter.create_payment_intent.call_count == 2
        active = PaymentRecord.objects.active_for(
            PaymentSubjectType.WATCH_PARTY, str(watch_party.id), payer
        )
        assert active.count() == 1
        assert PaymentRecord.objects.filter(payer=payer).count() == 1

    def test_issue_after_completion_conflicts(
        self, mock_stripe_adapter, payer, watch_party
    ):
        PaymentRecordFactory(
            payer=payer, subject_id=str(watch_party.id), completed=True
        )

        with pytest.raises(ConflictError):
            PaymentIntentService.create_virtual_attendance_intent(
                user=payer, watch_party_id=watch_party.id
            )

    def test_issue_after_failure_uses_new_idempotency_key(
        self, mock_stripe_adapter, payer, watch_party
    ):
        """
        Given a payer whose first attempt failed
        When they request a new intent
        Then a new pending record is created with a fresh attempt number
        """
        # Arrange
        first = PaymentIntentService.create_virtual_attendance_intent(
            user=payer, watch_party_id=watch_party.id
        )
        fail_payment(first.payment_intent_id, reason="card_declined")

        # Act
        second = PaymentIntentService.create_virtual_attendance_intent(
            user=payer, watch_party_id=watch_party.id
        )

        # Assert
        keys = [
            call.args[0].idempotency_key
            for call in mock_stripe_adapter.create_payment_intent.call_args_list
        ]
        assert ":1:" in keys[0]
        assert ":2:" in keys[1]
        assert second.payment_intent_id != first.payment_intent_id

    def test_other_payers_are_not_blocked(
        self, mock_stripe_adapter, payer, watch_party
    ):
        from authentication.tests.factories import UserFactory

        PaymentIntentService.create_virtual_attendance_intent(
            user=payer, watch_party_id=watch_party.id
        )
        PaymentIntentService.create_virtual_attendance_intent(
            user=UserFactory(), watch_party_id=watch_party.id
        )

        assert PaymentRecord.objects.count() == 2

    def test_unknown_watch_party_not_found(self, mock_stripe_adapter, payer):
        with pytest.raises(NotFoundError, match="Watch party not found"):
            PaymentIntentService.create_virtual_attendance_intent(
                user=payer, watch_party_id=uuid.uuid4()
            )

    def test_malformed_watch_party_id_not_found(self, mock_stripe_adapter, payer):
        with pytest.raises(NotFoundError):
            PaymentIntentService.create_virtual_attendance_intent(
                user=payer, watch_party_id="not-a-uuid"
            )

    def test_virtual_attendance_disabled(self, mock_stripe_adapter, payer):
        party = WatchPartyFactory(allow_virtual_attendance=False)

        with pytest.raises(FailedPreconditionError):
            PaymentIntentService.create_virtual_attendance_intent(
                user=payer, watch_party_id=party.id
            )
        mock_stripe_adapter.create_payment_intent.assert_not_called()

    def test_unpriced_watch_party_rejected(self, mock_stripe_adapter, payer):
        party = WatchPartyFactory(virtual_attendance_price_cents=0)

        with pytest.raises(FailedPreconditionError, match="not configured"):
            PaymentIntentService.create_virtual_attendance_intent(
                user=payer, watch_party_id=party.id
            )

    def test_stripe_failure_writes_nothing(
        self, mock_stripe_adapter, payer, watch_party
    ):
        """
        Given Stripe is unavailable
        When a payer requests an intent
        Then ExternalServiceError is raised and no record is stored
        """
        # Arrange
        mock_stripe_adapter.create_payment_intent.side_effect = (
            StripeAPIUnavailableError("connection reset")
        )

        # Act / Assert
        with pytest.raises(ExternalServiceError, match="Unable to create payment"):
            PaymentIntentService.create_virtual_attendance_intent(
                user=payer, watch_party_id=watch_party.id
            )
        assert PaymentRecord.objects.count() == 0


@pytest.mark.django_db
class TestProductIntent:
    """Tests for create_product_intent()."""

    def test_uses_catalog_price(self, mock_stripe_adapter, payer, settings):
        settings.PAYMENT_PRODUCT_AMOUNTS = {"fan_pass": 1499}

        issued = PaymentIntentService.create_product_intent(
            user=payer, product_type="fan_pass"
        )

        assert issued.payment_record.amount_cents == 1499
        assert issued.payment_record.subject_type == PaymentSubjectType.PRODUCT
        assert issued.payment_record.subject_id == "fan_pass"
        params = mock_stripe_adapter.create_payment_intent.call_args.args[0]
        assert params.metadata["productType"] == "fan_pass"

    def test_unknown_product_rejected(self, mock_stripe_adapter, payer):
        with pytest.raises(ValidationError):
            PaymentIntentService.create_product_intent(
                user=payer, product_type="gold_bar"
            )
        mock_stripe_adapter.create_payment_intent.assert_not_called()

    def test_duplicate_product_purchase_conflicts(
        self, mock_stripe_adapter, payer, settings
    ):
        settings.PAYMENT_PRODUCT_AMOUNTS = {"fan_pass": 1499}
        PaymentIntentService.create_product_intent(user=payer, product_type="fan_pass")

        with pytest.raises(ConflictError):
            PaymentIntentService.create_product_intent(
                user=payer, product_type="fan_pass"
            )

    def test_concurrent_product_issue_conflicts(
        self, mock_stripe_adapter, payer, settings
    ):
        settings.PAYMENT_PRODUCT_AMOUNTS = {"fan_pass": 1499}
        PaymentIntentService.create_product_intent(user=payer, product_type="fan_pass")

        with patch.object(PaymentIntentService, "_ensure_no_active_payment"):
            with pytest.raises(ConflictError):
                PaymentIntentService.create_product_intent(
                    user=payer, product_type="fan_pass"
                )

        active = PaymentRecord.objects.active_for(
            PaymentSubjectType.PRODUCT, "fan_pass", payer
        )
        assert active.count() == 1
