"""
Tests for ConfirmationService and the shared completion path.
"""

from __future__ import annotations

import pytest

from core.exceptions import (
    ExternalServiceError,
    FailedPreconditionError,
    NotFoundError,
    PermissionDeniedError,
)
from payments.exceptions import StripeTimeoutError
from payments.models import PaymentRecord
from payments.services import ConfirmationService, complete_payment, fail_payment
from payments.state_machines import PaymentRecordStatus
from payments.tests.factories import PaymentRecordFactory, make_intent_result
from watch_parties.models import WatchParty, WatchPartyMember


@pytest.fixture
def pending_record(payer, watch_party):
    return PaymentRecordFactory(
        payer=payer,
        subject_id=str(watch_party.id),
        gateway_payment_id="pi_confirm_1",
    )


def _metadata(watch_party, user):
    return {"subjectId": str(watch_party.id), "userId": str(user.pk)}


@pytest.mark.django_db
class TestConfirmVirtualAttendance:
    def test_succeeded_intent_completes_payment(
        self, mock_stripe_adapter, payer, watch_party, pending_record
    ):
        """
        Given a pending record and a succeeded PaymentIntent
        When the payer confirms
        Then the record completes, the member is paid and the count is 1
        """
        # Arrange
        mock_stripe_adapter.retrieve_payment_intent.return_value = make_intent_result(
            "pi_confirm_1", metadata=_metadata(watch_party, payer)
        )

        # Act
        applied = ConfirmationService.confirm_virtual_attendance(
            user=payer,
            payment_intent_id="pi_confirm_1",
            watch_party_id=watch_party.id,
        )

        # Assert
        assert applied is True
        record = PaymentRecord.objects.get(pk=pending_record.pk)
        assert record.status == PaymentRecordStatus.COMPLETED
        member = WatchPartyMember.objects.get(watch_party=watch_party, user=payer)
        assert member.has_paid is True
        assert member.attendance_type == WatchPartyMember.AttendanceType.VIRTUAL
        assert member.payment_intent_id == "pi_confirm_1"
        assert WatchParty.objects.get(pk=watch_party.pk).virtual_attendees_count == 1

    def test_second_confirmation_is_a_no_op(
        self, mock_stripe_adapter, payer, watch_party, pending_record
    ):
        mock_stripe_adapter.retrieve_payment_intent.return_value = make_intent_result(
            "pi_confirm_1", metadata=_metadata(watch_party, payer)
        )
        ConfirmationService.confirm_virtual_attendance(
            user=payer, payment_intent_id="pi_confirm_1", watch_party_id=watch_party.id
        )

        applied = ConfirmationService.confirm_virtual_attendance(
            user=payer, payment_intent_id="pi_confirm_1", watch_party_id=watch_party.id
        )

        assert applied is False
        assert WatchParty.objects.get(pk=watch_party.pk).virtual_attendees_count == 1

    def test_legacy_watch_party_metadata_key_accepted(
        self, mock_stripe_adapter, payer, watch_party, pending_record
    ):
        mock_stripe_adapter.retrieve_payment_intent.return_value = make_intent_result(
            "pi_confirm_1",
            metadata={"watchPartyId": str(watch_party.id), "userId": str(payer.pk)},
        )

        assert ConfirmationService.confirm_virtual_attendance(
            user=payer, payment_intent_id="pi_confirm_1", watch_party_id=watch_party.id
        )

    def test_unsucceeded_intent_rejected(
        self, mock_stripe_adapter, payer, watch_party, pending_record
    ):
        mock_stripe_adapter.retrieve_payment_intent.return_value = make_intent_result(
            "pi_confirm_1",
            status="requires_payment_method",
            metadata=_metadata(watch_party, payer),
        )

        with pytest.raises(FailedPreconditionError, match="not been completed"):
            ConfirmationService.confirm_virtual_attendance(
                user=payer,
                payment_intent_id="pi_confirm_1",
                watch_party_id=watch_party.id,
            )
        assert (
            PaymentRecord.objects.get(pk=pending_record.pk).status
            == PaymentRecordStatus.PENDING
        )

    def test_intent_for_another_user_rejected(
        self, mock_stripe_adapter, payer, host, watch_party, pending_record
    ):
        mock_stripe_adapter.retrieve_payment_intent.return_value = make_intent_result(
            "pi_confirm_1", metadata=_metadata(watch_party, host)
        )

        with pytest.raises(PermissionDeniedError, match="Payment does not match"):
            ConfirmationService.confirm_virtual_attendance(
                user=payer,
                payment_intent_id="pi_confirm_1",
                watch_party_id=watch_party.id,
            )

    def test_intent_without_record_not_found(
        self, mock_stripe_adapter, payer, watch_party
    ):
        mock_stripe_adapter.retrieve_payment_intent.return_value = make_intent_result(
            "pi_unknown", metadata=_metadata(watch_party, payer)
        )

        with pytest.raises(NotFoundError, match="Payment record not found"):
            ConfirmationService.confirm_virtual_attendance(
                user=payer, payment_intent_id="pi_unknown", watch_party_id=watch_party.id
            )

    def test_stripe_failure_surfaces_as_external_error(
        self, mock_stripe_adapter, payer, watch_party, pending_record
    ):
        mock_stripe_adapter.retrieve_payment_intent.side_effect = StripeTimeoutError(
            "Request timed out"
        )

        with pytest.raises(ExternalServiceError, match="Unable to process payment"):
            ConfirmationService.confirm_virtual_attendance(
                user=payer,
                payment_intent_id="pi_confirm_1",
                watch_party_id=watch_party.id,
            )


@pytest.mark.django_db
class TestCompletionPath:
    """Tests for complete_payment() and fail_payment()."""

    def test_complete_updates_existing_in_person_member(self, payer, watch_party):
        from watch_parties.tests.factories import WatchPartyMemberFactory

        member = WatchPartyMemberFactory(
            watch_party=watch_party,
            user=payer,
            attendance_type=WatchPartyMember.AttendanceType.IN_PERSON,
        )
        PaymentRecordFactory(
            payer=payer, subject_id=str(watch_party.id), gateway_payment_id="pi_1"
        )

        complete_payment("pi_1")

        member = WatchPartyMember.objects.get(pk=member.pk)
        assert member.has_paid is True
        assert WatchPartyMember.objects.filter(watch_party=watch_party).count() == 1

    def test_complete_unknown_intent_raises(self, db):
        with pytest.raises(PaymentRecord.DoesNotExist):
            complete_payment("pi_missing")

    def test_complete_product_payment_touches_no_watch_party(self, payer):
        from payments.state_machines import PaymentSubjectType

        PaymentRecordFactory(
            payer=payer,
            subject_type=PaymentSubjectType.PRODUCT,
            subject_id="fan_pass",
            gateway_payment_id="pi_product",
        )

        assert complete_payment("pi_product") is True
        assert WatchPartyMember.objects.count() == 0

    def test_fail_only_moves_pending_records(self, payer):
        PaymentRecordFactory(payer=payer, gateway_payment_id="pi_done", completed=True)

        assert fail_payment("pi_done", reason="late failure") is False
        assert fail_payment("pi_missing") is False
        assert (
            PaymentRecord.objects.get(gateway_payment_id="pi_done").status
            == PaymentRecordStatus.COMPLETED
        )
