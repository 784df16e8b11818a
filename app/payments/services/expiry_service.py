"""
Sweep for pending payments that never settled.

A payment stays pending until a webhook or the confirmation endpoint
reports its outcome. When neither arrives (the client went away, the
webhook was lost) ExpiryService asks Stripe directly and settles the
record. Records Stripe cannot answer for are left for the next run.
"""

from __future__ import annotations

from dataclasses import dataclass

from django.conf import settings

from payments.adapters import IdempotencyKeyGenerator
from payments.exceptions import StripeError
from payments.models import PaymentRecord
from payments.services.base import GatewayService
from payments.services.completion import complete_payment, fail_payment

# PaymentIntent statuses still waiting on the payer. These are canceled at
# Stripe before the record is failed, so the old client secret is dead.
ABANDONED_INTENT_STATUSES = ("requires_payment_method", "requires_confirmation")

SWEEP_BATCH_SIZE = 200


@dataclass
class ExpirySummary:
    checked: int = 0
    completed: int = 0
    failed: int = 0
    skipped: int = 0
    errors: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "checked": self.checked,
            "completed": self.completed,
            "failed": self.failed,
            "skipped": self.skipped,
            "errors": self.errors,
        }


class ExpiryService(GatewayService):
    """Settle stale pending PaymentRecords from Stripe's view of them."""

    @classmethod
    def expire_stale_payments(cls, older_than_hours: int | None = None) -> ExpirySummary:
        """
        Check every pending record older than ``older_than_hours``.

        Succeeded intents are completed through the shared completion path.
        Canceled intents are marked failed so the payer can try again.
        Intents still waiting on the payer are canceled at Stripe first and
        only failed once Stripe confirms the cancellation. Anything else
        (processing, requires_action) is left alone.
        """
        logger = cls.get_logger()
        hours = older_than_hours or settings.PAYMENT_PENDING_EXPIRY_HOURS
        summary = ExpirySummary()

        stale = PaymentRecord.objects.stale_pending(hours).order_by("created_at")[
            :SWEEP_BATCH_SIZE
        ]

        for record in stale:
            summary.checked += 1
            try:
                intent = cls.get_stripe_adapter().retrieve_payment_intent(
                    record.gateway_payment_id
                )
            except StripeError as e:
                summary.errors += 1
                logger.warning(
                    "Could not check stale payment with Stripe",
                    extra={
                        "payment_record_id": str(record.id),
                        "payment_intent_id": record.gateway_payment_id,
                        "error": str(e),
                    },
                )
                continue

            if intent.status == "succeeded":
                if complete_payment(record.gateway_payment_id):
                    summary.completed += 1
                else:
                    summary.skipped += 1
            elif intent.status in ABANDONED_INTENT_STATUSES:
                try:
                    intent = cls._cancel_intent(record)
                except StripeError as e:
                    # Picked up again next run, completed if it succeeded meanwhile
                    summary.errors += 1
                    logger.warning(
                        "Could not cancel stale payment intent",
                        extra={
                            "payment_record_id": str(record.id),
                            "payment_intent_id": record.gateway_payment_id,
                            "error": str(e),
                        },
                    )
                    continue
                cls._fail_canceled(record, intent.status, hours, summary)
            elif intent.status == "canceled":
                cls._fail_canceled(record, intent.status, hours, summary)
            else:
                summary.skipped += 1

        logger.info("Stale payment sweep finished", extra=summary.to_dict())
        return summary

    @classmethod
    def _cancel_intent(cls, record: PaymentRecord):
        return cls.get_stripe_adapter().cancel_payment_intent(
            record.gateway_payment_id,
            idempotency_key=IdempotencyKeyGenerator.generate(
                operation="cancel_intent",
                entity_id=record.id,
            ),
        )

    @staticmethod
    def _fail_canceled(
        record: PaymentRecord,
        intent_status: str,
        hours: int,
        summary: ExpirySummary,
    ) -> None:
        if intent_status != "canceled":
            summary.skipped += 1
            return
        reason = f"Expired after {hours}h without payment"
        if fail_payment(record.gateway_payment_id, reason=reason):
            summary.failed += 1
        else:
            summary.skipped += 1
