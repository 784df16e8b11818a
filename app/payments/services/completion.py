"""
Completion of a pending payment.

The confirmation endpoint, the ``payment_intent.succeeded`` webhook and the
stale-payment sweep all finish a payment through ``complete_payment`` so
the three paths always agree. Whichever runs first applies the effects;
the others find the record completed and do nothing.

Usage:
    from payments.services.completion import complete_payment

    with transaction.atomic():
        applied = complete_payment(payment_intent_id)
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from payments.models import PaymentRecord
from payments.state_machines import PaymentRecordStatus, PaymentSubjectType
from watch_parties.models import WatchParty, WatchPartyMember

logger = logging.getLogger(__name__)


def complete_payment(payment_intent_id: str) -> bool:
    """
    Mark the pending record for ``payment_intent_id`` completed.

    For watch party payments the member is marked paid (created as a
    virtual member if missing) and the party's virtual attendee count is
    incremented. All writes happen in one transaction with the record row
    locked.

    Args:
        payment_intent_id: Stripe PaymentIntent ID

    Returns:
        True if the completion was applied, False if the record was
        already completed, refunded or failed (nothing written).

    Raises:
        PaymentRecord.DoesNotExist: No record for the PaymentIntent
    """
    with transaction.atomic():
        record = PaymentRecord.objects.select_for_update().get(
            gateway_payment_id=payment_intent_id
        )

        if record.status == PaymentRecordStatus.FAILED:
            # Failed records belong to canceled intents, which Stripe never
            # lets succeed afterwards
            logger.error(
                "Succeeded payment intent for a failed payment record",
                extra={
                    "payment_record_id": str(record.id),
                    "payment_intent_id": payment_intent_id,
                },
            )
            return False

        if record.status != PaymentRecordStatus.PENDING:
            logger.info(
                "Payment already settled, skipping completion",
                extra={
                    "payment_record_id": str(record.id),
                    "payment_intent_id": payment_intent_id,
                    "status": record.status,
                },
            )
            return False

        record.complete()
        record.save()

        if record.subject_type == PaymentSubjectType.WATCH_PARTY:
            _mark_attendee_paid(record)

    logger.info(
        "Payment completed",
        extra={
            "payment_record_id": str(record.id),
            "payment_intent_id": payment_intent_id,
            "subject_type": record.subject_type,
            "subject_id": record.subject_id,
        },
    )
    return True


def _mark_attendee_paid(record: PaymentRecord) -> None:
    watch_party = (
        WatchParty.objects.select_for_update().filter(pk=record.subject_id).first()
    )
    if watch_party is None:
        logger.warning(
            "Watch party for completed payment no longer exists",
            extra={"payment_record_id": str(record.id), "subject_id": record.subject_id},
        )
        return

    member, _ = WatchPartyMember.objects.get_or_create(
        watch_party=watch_party,
        user_id=record.payer_id,
        defaults={"attendance_type": WatchPartyMember.AttendanceType.VIRTUAL},
    )
    member.has_paid = True
    member.paid_at = record.completed_at or timezone.now()
    member.payment_intent_id = record.gateway_payment_id
    member.save(update_fields=["has_paid", "paid_at", "payment_intent_id", "updated_at"])

    WatchParty.objects.filter(pk=watch_party.pk).update(
        virtual_attendees_count=F("virtual_attendees_count") + 1,
        updated_at=timezone.now(),
    )


def record_payment_attempt_failure(payment_intent_id: str, reason: str) -> bool:
    """
    Note a declined attempt on the pending record without settling it.

    A declined PaymentIntent returns to requires_payment_method and the
    payer may still complete it with the same client secret, so the record
    stays pending and keeps blocking a second purchase.

    Returns:
        True if a pending record was updated.
    """
    updated = PaymentRecord.objects.filter(
        gateway_payment_id=payment_intent_id,
        status=PaymentRecordStatus.PENDING,
    ).update(failure_reason=reason, updated_at=timezone.now())

    logger.info(
        "Payment attempt declined, record left pending",
        extra={"payment_intent_id": payment_intent_id, "reason": reason},
    )
    return bool(updated)


def fail_payment(payment_intent_id: str, reason: str | None = None) -> bool:
    """
    Mark the pending record for ``payment_intent_id`` failed.

    Only call this once the PaymentIntent is canceled at Stripe. A failed
    record frees the payer to start a new payment.

    Returns:
        True if the record moved to failed, False if there was no pending
        record to fail.
    """
    with transaction.atomic():
        record = (
            PaymentRecord.objects.select_for_update()
            .filter(gateway_payment_id=payment_intent_id)
            .first()
        )
        if record is None or record.status != PaymentRecordStatus.PENDING:
            return False

        record.fail(reason=reason)
        record.save()

    logger.info(
        "Payment failed",
        extra={
            "payment_record_id": str(record.id),
            "payment_intent_id": payment_intent_id,
            "reason": reason,
        },
    )
    return True
