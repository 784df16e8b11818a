"""
End-to-end virtual attendance lifecycle through the service layer.

Issue, duplicate refusal, confirmation, host refund and a repeated refund,
checked against the record, member and attendee count at each step.
"""

from __future__ import annotations

import pytest

from core.exceptions import ConflictError, NotFoundError
from payments.models import PaymentRecord
from payments.services import ConfirmationService, PaymentIntentService, RefundService
from payments.state_machines import PaymentRecordStatus
from payments.tests.factories import make_intent_result
from payments.webhooks.processor import WebhookProcessor
from payments.webhooks.tests.payloads import build_event
from watch_parties.models import WatchParty, WatchPartyMember


@pytest.mark.django_db
class TestVirtualAttendanceLifecycle:
    def test_issue_confirm_refund(self, mock_stripe_adapter, payer, host, watch_party):
        """
        Given a watch party priced at 999 cents
        When a payer buys, confirms and is refunded by the host
        Then the record goes pending -> completed -> refunded, the attendee
        count goes 0 -> 1 -> 0, and a second refund finds nothing
        """
        # Issue
        issued = PaymentIntentService.create_virtual_attendance_intent(
            user=payer, watch_party_id=watch_party.id
        )
        record_id = issued.payment_record.pk
        assert issued.payment_record.status == PaymentRecordStatus.PENDING
        assert issued.payment_record.amount_cents == 999

        # Duplicate
        with pytest.raises(ConflictError):
            PaymentIntentService.create_virtual_attendance_intent(
                user=payer, watch_party_id=watch_party.id
            )

        # Confirm
        mock_stripe_adapter.retrieve_payment_intent.return_value = make_intent_result(
            issued.payment_intent_id,
            metadata={"subjectId": str(watch_party.id), "userId": str(payer.pk)},
        )
        ConfirmationService.confirm_virtual_attendance(
            user=payer,
            payment_intent_id=issued.payment_intent_id,
            watch_party_id=watch_party.id,
        )
        assert PaymentRecord.objects.get(pk=record_id).status == PaymentRecordStatus.COMPLETED
        assert WatchParty.objects.get(pk=watch_party.pk).virtual_attendees_count == 1
        assert WatchPartyMember.objects.get(watch_party=watch_party, user=payer).has_paid

        # Host refund
        RefundService.refund_attendee(
            caller=host, watch_party_id=watch_party.id, user_id=payer.pk
        )
        assert PaymentRecord.objects.get(pk=record_id).status == PaymentRecordStatus.REFUNDED
        assert WatchParty.objects.get(pk=watch_party.pk).virtual_attendees_count == 0
        assert not WatchPartyMember.objects.get(
            watch_party=watch_party, user=payer
        ).has_paid

        # Second refund
        with pytest.raises(NotFoundError):
            RefundService.refund_attendee(
                caller=host, watch_party_id=watch_party.id, user_id=payer.pk
            )
        assert mock_stripe_adapter.create_refund.call_count == 1

    def test_payer_may_buy_again_after_refund(
        self, mock_stripe_adapter, issue_and_complete, payer, host, watch_party
    ):
        issue_and_complete(payer, watch_party)
        RefundService.refund_attendee(
            caller=host, watch_party_id=watch_party.id, user_id=payer.pk
        )

        issued = PaymentIntentService.create_virtual_attendance_intent(
            user=payer, watch_party_id=watch_party.id
        )

        assert issued.payment_record.status == PaymentRecordStatus.PENDING
        assert PaymentRecord.objects.filter(payer=payer).count() == 2

    def test_declined_card_then_successful_retry(
        self, mock_stripe_adapter, payer, watch_party
    ):
        """
        Given an issued intent whose first card is declined
        When the payer pays the same intent with another card
        Then the succeeded webhook and the confirmation agree on one
        completed payment and the payer cannot start a second one
        """
        # Issue
        issued = PaymentIntentService.create_virtual_attendance_intent(
            user=payer, watch_party_id=watch_party.id
        )
        record_id = issued.payment_record.pk

        # Decline
        WebhookProcessor.process(
            build_event(
                "payment_intent.payment_failed",
                {
                    "id": issued.payment_intent_id,
                    "last_payment_error": {"code": "card_declined"},
                },
            )
        )
        assert PaymentRecord.objects.get(pk=record_id).status == PaymentRecordStatus.PENDING
        with pytest.raises(ConflictError):
            PaymentIntentService.create_virtual_attendance_intent(
                user=payer, watch_party_id=watch_party.id
            )

        # Successful retry on the same intent
        WebhookProcessor.process(
            build_event("payment_intent.succeeded", {"id": issued.payment_intent_id})
        )
        mock_stripe_adapter.retrieve_payment_intent.return_value = make_intent_result(
            issued.payment_intent_id,
            metadata={"subjectId": str(watch_party.id), "userId": str(payer.pk)},
        )
        applied = ConfirmationService.confirm_virtual_attendance(
            user=payer,
            payment_intent_id=issued.payment_intent_id,
            watch_party_id=watch_party.id,
        )

        assert applied is False
        assert PaymentRecord.objects.get(pk=record_id).status == PaymentRecordStatus.COMPLETED
        assert WatchParty.objects.get(pk=watch_party.pk).virtual_attendees_count == 1
        assert WatchPartyMember.objects.get(watch_party=watch_party, user=payer).has_paid
