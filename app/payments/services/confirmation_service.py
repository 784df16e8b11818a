"""
Client-driven confirmation of a virtual attendance payment.

After the client SDK confirms a PaymentIntent, the app calls the
confirmation endpoint. The service checks the PaymentIntent with Stripe
(never trusting the client) and completes the payment through the same
path as the ``payment_intent.succeeded`` webhook, so the two can arrive in
any order and the effects are applied exactly once.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import (
    ExternalServiceError,
    FailedPreconditionError,
    NotFoundError,
    PermissionDeniedError,
)

from payments.exceptions import StripeError
from payments.models import PaymentRecord
from payments.services.base import GatewayService
from payments.services.completion import complete_payment

if TYPE_CHECKING:
    from authentication.models import User


class ConfirmationService(GatewayService):
    """Confirm virtual attendance payments reported by the client."""

    @classmethod
    def confirm_virtual_attendance(
        cls,
        user: User,
        payment_intent_id: str,
        watch_party_id,
    ) -> bool:
        """
        Verify a PaymentIntent and complete its payment.

        Args:
            user: Authenticated caller, must be the payer
            payment_intent_id: Stripe PaymentIntent ID
            watch_party_id: Watch party the payment is for

        Returns:
            True if this call applied the completion, False if the payment
            was already completed (by the webhook or an earlier call).

        Raises:
            FailedPreconditionError: PaymentIntent has not succeeded
            PermissionDeniedError: PaymentIntent is for another party or payer
            NotFoundError: No PaymentRecord for the PaymentIntent
            ExternalServiceError: Stripe call failed
        """
        logger = cls.get_logger()
        log_context = {
            "payment_intent_id": payment_intent_id,
            "watch_party_id": str(watch_party_id),
            "user_id": user.pk,
        }

        try:
            intent = cls.get_stripe_adapter().retrieve_payment_intent(payment_intent_id)
        except StripeError as e:
            logger.error(
                "Failed to retrieve payment intent",
                extra={**log_context, "error": str(e)},
            )
            raise ExternalServiceError("Unable to process payment") from e

        if intent.status != "succeeded":
            raise FailedPreconditionError(
                "Payment has not been completed",
                details={"status": intent.status},
            )

        metadata = intent.metadata or {}
        intent_subject_id = metadata.get("subjectId") or metadata.get("watchPartyId")
        if intent_subject_id != str(watch_party_id) or metadata.get("userId") != str(
            user.pk
        ):
            logger.warning("Payment intent metadata mismatch", extra=log_context)
            raise PermissionDeniedError("Payment does not match")

        if not PaymentRecord.objects.for_gateway_payment(payment_intent_id).exists():
            raise NotFoundError(
                "Payment record not found",
                details={"payment_intent_id": payment_intent_id},
            )

        applied = complete_payment(payment_intent_id)

        logger.info(
            "Virtual attendance payment confirmed",
            extra={**log_context, "applied": applied},
        )
        return applied
