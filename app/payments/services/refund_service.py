"""
Refunds for virtual attendance.

RefundService refunds one attendee (requested by the attendee or the host)
or every paid attendee of a watch party (host only). Stripe is called
first; the PaymentRecord, the member and the attendee count are then
updated together in one transaction. If Stripe fails nothing is written.

Refunding twice is safe. The second call finds no completed record and
raises NotFoundError, and the Stripe idempotency key is bound to the
PaymentRecord so a retried call cannot create a second refund.

Usage:
    from payments.services import RefundService

    outcome = RefundService.refund_attendee(
        caller=request.user,
        watch_party_id=watch_party.id,
    )
    outcome.refund_id  # "re_xxx"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import F
from django.utils import timezone

from core.exceptions import ExternalServiceError, NotFoundError, PermissionDeniedError

from payments.adapters import IdempotencyKeyGenerator
from payments.exceptions import StripeError
from payments.models import PaymentRecord
from payments.services.base import GatewayService
from payments.state_machines import PaymentRecordStatus, PaymentSubjectType
from watch_parties.models import WatchParty, WatchPartyMember

if TYPE_CHECKING:
    from authentication.models import User


DEFAULT_REFUND_REASON = "Watch party cancelled"
BULK_REFUND_REASON = "Watch party cancelled by host"


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class RefundOutcome:
    refund_id: str
    message: str = "Refund processed successfully"


@dataclass
class BulkRefundOutcome:
    """
    Result of refunding every paid attendee.

    Attributes:
        refunded_count: Refunds that went through
        errors: One message per attendee whose refund failed
        message: Summary for the caller
    """

    refunded_count: int
    errors: list[str] = field(default_factory=list)
    message: str = ""


# =============================================================================
# Refund Service
# =============================================================================


class RefundService(GatewayService):
    """
    Refund completed virtual attendance payments.

    Authorization:
        - refund_attendee: the host, or the attendee for themselves
        - refund_all_attendees: the host only
    """

    @classmethod
    def refund_attendee(
        cls,
        caller: User,
        watch_party_id,
        user_id=None,
        reason: str | None = None,
    ) -> RefundOutcome:
        """
        Refund one attendee's completed payment.

        Args:
            caller: Authenticated user making the request
            watch_party_id: Watch party the payment was for
            user_id: Attendee to refund (defaults to the caller)
            reason: Stored on the record and sent to Stripe

        Raises:
            NotFoundError: Watch party or completed payment not found
            PermissionDeniedError: Caller is neither the host nor the attendee
            ExternalServiceError: Stripe refund failed (nothing written)
        """
        logger = cls.get_logger()
        watch_party = cls._get_watch_party(watch_party_id)
        target_user_id = user_id if user_id is not None else caller.pk
        reason = reason or DEFAULT_REFUND_REASON

        is_self = str(target_user_id) == str(caller.pk)
        if not watch_party.is_host(caller) and not is_self:
            raise PermissionDeniedError("Not authorized to request refund")

        record = (
            PaymentRecord.objects.completed_for(
                PaymentSubjectType.WATCH_PARTY,
                str(watch_party.id),
                payer=target_user_id,
            )
            .order_by("-completed_at")
            .first()
        )
        if record is None:
            raise NotFoundError(
                "No completed payment found for refund",
                details={"watch_party_id": str(watch_party.id), "user_id": target_user_id},
            )

        try:
            refund = cls._create_gateway_refund(
                record,
                metadata={
                    "watchPartyId": str(watch_party.id),
                    "userId": str(target_user_id),
                    "requestedBy": str(caller.pk),
                    "reason": reason,
                },
            )
        except StripeError as e:
            logger.error(
                "Refund failed at Stripe",
                extra={"payment_record_id": str(record.id), "error": str(e)},
            )
            raise ExternalServiceError("Unable to process refund") from e

        cls._apply_refund(record.id, refund.id, reason, decrement_count=True)

        logger.info(
            "Virtual attendance refund processed",
            extra={
                "refund_id": refund.id,
                "payment_record_id": str(record.id),
                "watch_party_id": str(watch_party.id),
                "requested_by": caller.pk,
            },
        )
        return RefundOutcome(refund_id=refund.id)

    @classmethod
    def refund_all_attendees(cls, caller: User, watch_party_id) -> BulkRefundOutcome:
        """
        Refund every completed payment for a watch party.

        Refunds run one at a time. A failure for one attendee is recorded
        in ``errors`` and the loop moves on; that attendee's record stays
        completed. Once the loop ends the party's virtual attendee count is
        reset to zero.

        Raises:
            NotFoundError: Watch party not found
            PermissionDeniedError: Caller is not the host
        """
        logger = cls.get_logger()
        watch_party = cls._get_watch_party(watch_party_id)

        if not watch_party.is_host(caller):
            raise PermissionDeniedError("Only the host can process mass refunds")

        records = list(
            PaymentRecord.objects.completed_for(
                PaymentSubjectType.WATCH_PARTY, str(watch_party.id)
            ).order_by("created_at")
        )
        if not records:
            return BulkRefundOutcome(refunded_count=0, message="No payments to refund")

        refunded_count = 0
        errors: list[str] = []

        for record in records:
            try:
                refund = cls._create_gateway_refund(
                    record,
                    metadata={
                        "watchPartyId": str(watch_party.id),
                        "userId": str(record.payer_id),
                        "reason": BULK_REFUND_REASON,
                    },
                )
                if cls._apply_refund(
                    record.id, refund.id, BULK_REFUND_REASON, decrement_count=False
                ):
                    refunded_count += 1
            except Exception as e:
                errors.append(f"Failed to refund user {record.payer_id}: {e}")
                logger.error(
                    "Refund failed during mass refund",
                    extra={
                        "payment_record_id": str(record.id),
                        "watch_party_id": str(watch_party.id),
                        "user_id": record.payer_id,
                    },
                    exc_info=True,
                )

        WatchParty.objects.filter(pk=watch_party.pk).update(
            virtual_attendees_count=0,
            updated_at=timezone.now(),
        )

        logger.info(
            "Mass refund completed",
            extra={
                "watch_party_id": str(watch_party.id),
                "refunded_count": refunded_count,
                "error_count": len(errors),
            },
        )
        return BulkRefundOutcome(
            refunded_count=refunded_count,
            errors=errors,
            message=f"{refunded_count} refunds processed",
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _get_watch_party(watch_party_id) -> WatchParty:
        try:
            return WatchParty.objects.get(pk=watch_party_id)
        except (WatchParty.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFoundError(
                "Watch party not found",
                details={"watch_party_id": str(watch_party_id)},
            ) from None

    @classmethod
    def _create_gateway_refund(cls, record: PaymentRecord, metadata: dict[str, str]):
        idempotency_key = IdempotencyKeyGenerator.generate(
            operation="refund",
            entity_id=record.id,
        )
        return cls.get_stripe_adapter().create_refund(
            payment_intent_id=record.gateway_payment_id,
            idempotency_key=idempotency_key,
            metadata=metadata,
        )

    @classmethod
    def _apply_refund(
        cls,
        record_id,
        refund_id: str,
        reason: str,
        decrement_count: bool,
    ) -> bool:
        """
        Write the refund to the record, the member and the party.

        Returns:
            False if the record was no longer completed (a concurrent
            refund already applied), True otherwise.
        """
        now = timezone.now()
        with cls.atomic():
            record = PaymentRecord.objects.select_for_update().get(pk=record_id)
            if record.status != PaymentRecordStatus.COMPLETED:
                cls.get_logger().info(
                    "Payment no longer completed, skipping refund write",
                    extra={"payment_record_id": str(record_id), "status": record.status},
                )
                return False

            record.refund(refund_id=refund_id, reason=reason)
            record.save()

            WatchPartyMember.objects.filter(
                watch_party_id=record.subject_id,
                user_id=record.payer_id,
            ).update(has_paid=False, refunded_at=now, updated_at=now)

            if decrement_count:
                WatchParty.objects.filter(
                    pk=record.subject_id,
                    virtual_attendees_count__gt=0,
                ).update(
                    virtual_attendees_count=F("virtual_attendees_count") - 1,
                    updated_at=now,
                )
        return True
