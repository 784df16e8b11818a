"""
Payment intent issuance.

PaymentIntentService creates a Stripe PaymentIntent for a subject and
records a pending PaymentRecord for it. Prices always come from the server:
the watch party row for virtual attendance, the product catalog for
products. Nothing a client sends can change the amount.

Duplicate purchases are refused. While a payer holds a pending or
completed record for a subject, a second issue for the same subject fails
with ConflictError. The check runs under a row lock on the watch party, and
the conditional unique constraint on PaymentRecord catches any race that
slips past it.

Usage:
    from payments.services import PaymentIntentService

    issued = PaymentIntentService.create_virtual_attendance_intent(
        user=request.user,
        watch_party_id=watch_party_id,
    )
    issued.client_secret  # handed to the client SDK
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError

from core.exceptions import (
    ConflictError,
    ExternalServiceError,
    FailedPreconditionError,
    NotFoundError,
)

from payments.adapters import CreatePaymentIntentParams, IdempotencyKeyGenerator
from payments.exceptions import StripeError
from payments.models import PaymentRecord
from payments.plans import product_amount_cents
from payments.services.base import GatewayService
from payments.state_machines import PaymentSubjectType
from watch_parties.models import WatchParty

if TYPE_CHECKING:
    from authentication.models import User


VIRTUAL_ATTENDANCE_INTENT_TYPE = "virtual_attendance"
PRODUCT_INTENT_TYPE = "product"


@dataclass
class IssuedIntent:
    """
    Result of issuing a payment intent.

    Attributes:
        client_secret: Secret the client uses to confirm the payment
        payment_intent_id: Stripe PaymentIntent ID
        payment_record: Pending PaymentRecord created for the intent
    """

    client_secret: str
    payment_intent_id: str
    payment_record: PaymentRecord


class PaymentIntentService(GatewayService):
    """
    Issue PaymentIntents with duplicate-purchase prevention.

    Gateway failures surface as ExternalServiceError and are not retried
    here. A retry by the client reuses the same idempotency key (same
    subject, payer and attempt number), so Stripe returns the original
    PaymentIntent instead of creating a second one.
    """

    @classmethod
    def create_virtual_attendance_intent(
        cls,
        user: User,
        watch_party_id,
    ) -> IssuedIntent:
        """
        Issue a PaymentIntent for virtual attendance of a watch party.

        Args:
            user: Authenticated payer
            watch_party_id: WatchParty primary key

        Raises:
            NotFoundError: Watch party does not exist
            FailedPreconditionError: Virtual attendance not allowed
            ConflictError: Payer already has a pending or completed payment
            ExternalServiceError: Stripe call failed
        """
        logger = cls.get_logger()
        subject_id = str(watch_party_id)

        try:
            with cls.atomic():
                watch_party = cls._get_watch_party(subject_id, for_update=True)

                if not watch_party.allow_virtual_attendance:
                    raise FailedPreconditionError(
                        "This watch party does not allow virtual attendance",
                        details={"watch_party_id": subject_id},
                    )

                cls._ensure_no_active_payment(
                    PaymentSubjectType.WATCH_PARTY,
                    subject_id,
                    user,
                    "You have already purchased or have a pending payment "
                    "for this watch party",
                )

                issued = cls._issue(
                    user=user,
                    subject_type=PaymentSubjectType.WATCH_PARTY,
                    subject_id=subject_id,
                    amount_cents=watch_party.virtual_attendance_price_cents,
                    currency=watch_party.currency,
                    intent_type=VIRTUAL_ATTENDANCE_INTENT_TYPE,
                    extra_metadata={"watchPartyName": watch_party.name},
                )
        except IntegrityError as e:
            logger.warning(
                "Concurrent payment issue lost the race",
                extra={"subject_id": subject_id, "user_id": user.pk},
            )
            raise ConflictError(
                "You have already purchased or have a pending payment "
                "for this watch party",
                details={"watch_party_id": subject_id},
            ) from e

        logger.info(
            "Virtual attendance payment intent created",
            extra={
                "payment_intent_id": issued.payment_intent_id,
                "watch_party_id": subject_id,
                "user_id": user.pk,
                "amount_cents": issued.payment_record.amount_cents,
            },
        )
        return issued

    @classmethod
    def create_product_intent(cls, user: User, product_type: str) -> IssuedIntent:
        """
        Issue a PaymentIntent for a fixed-price catalog product.

        Args:
            user: Authenticated payer
            product_type: Catalog key (e.g. "fan_pass")

        Raises:
            ValidationError: Unknown product
            ConflictError: Payer already has a pending or completed payment
            ExternalServiceError: Stripe call failed
        """
        amount_cents = product_amount_cents(product_type)
        message = "You already have a pending or completed payment for this product"

        try:
            with cls.atomic():
                cls._ensure_no_active_payment(
                    PaymentSubjectType.PRODUCT, product_type, user, message
                )
                issued = cls._issue(
                    user=user,
                    subject_type=PaymentSubjectType.PRODUCT,
                    subject_id=product_type,
                    amount_cents=amount_cents,
                    currency=settings.PAYMENT_DEFAULT_CURRENCY,
                    intent_type=PRODUCT_INTENT_TYPE,
                    extra_metadata={"productType": product_type},
                )
        except IntegrityError as e:
            raise ConflictError(message, details={"product_type": product_type}) from e

        cls.get_logger().info(
            "Product payment intent created",
            extra={
                "payment_intent_id": issued.payment_intent_id,
                "product_type": product_type,
                "user_id": user.pk,
                "amount_cents": amount_cents,
            },
        )
        return issued

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _get_watch_party(watch_party_id: str, for_update: bool = False) -> WatchParty:
        queryset = WatchParty.objects.all()
        if for_update:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(pk=watch_party_id)
        except (WatchParty.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFoundError(
                "Watch party not found",
                details={"watch_party_id": watch_party_id},
            ) from None

    @staticmethod
    def _ensure_no_active_payment(subject_type, subject_id, user, message) -> None:
        if PaymentRecord.objects.active_for(subject_type, subject_id, user).exists():
            raise ConflictError(message, details={"subject_id": subject_id})

    @classmethod
    def _issue(
        cls,
        user: User,
        subject_type: str,
        subject_id: str,
        amount_cents: int,
        currency: str,
        intent_type: str,
        extra_metadata: dict[str, str],
    ) -> IssuedIntent:
        """Create the Stripe PaymentIntent and its pending PaymentRecord."""
        if amount_cents <= 0:
            raise FailedPreconditionError(
                "Payment amount is not configured",
                details={"subject_id": subject_id},
            )

        # Earlier failed or refunded attempts get a fresh idempotency key
        previous_attempts = (
            PaymentRecord.objects.for_subject(subject_type, subject_id)
            .filter(payer=user)
            .count()
        )
        idempotency_key = IdempotencyKeyGenerator.generate(
            operation="create_intent",
            entity_id=f"{subject_type}:{subject_id}:{user.pk}",
            attempt=previous_attempts + 1,
        )

        metadata = {
            "type": intent_type,
            "subjectType": subject_type,
            "subjectId": subject_id,
            "userId": str(user.pk),
            "userEmail": user.email or "",
            **extra_metadata,
        }

        adapter = cls.get_stripe_adapter()
        try:
            intent = adapter.create_payment_intent(
                CreatePaymentIntentParams(
                    amount_cents=amount_cents,
                    currency=currency,
                    idempotency_key=idempotency_key,
                    metadata=metadata,
                    receipt_email=user.email or None,
                )
            )
        except StripeError as e:
            cls.get_logger().error(
                "Failed to create payment intent",
                extra={
                    "subject_type": subject_type,
                    "subject_id": subject_id,
                    "user_id": user.pk,
                    "error": str(e),
                },
            )
            raise ExternalServiceError("Unable to create payment") from e

        record = PaymentRecord.objects.create(
            subject_type=subject_type,
            subject_id=subject_id,
            payer=user,
            payer_email=user.email or "",
            amount_cents=amount_cents,
            currency=currency,
            gateway_payment_id=intent.id,
            metadata={"idempotency_key": idempotency_key},
        )

        return IssuedIntent(
            client_secret=intent.client_secret or "",
            payment_intent_id=intent.id,
            payment_record=record,
        )
