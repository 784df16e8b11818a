"""
Hosted checkout and billing portal sessions.

CheckoutService opens Stripe Checkout for a venue or fan plan and the
billing portal for managing it. Plan changes are not applied here: they
arrive through the checkout and subscription webhooks.

Usage:
    from payments.services import CheckoutService

    session = CheckoutService.create_checkout_session(
        user=request.user,
        subject_type=BillableSubjectType.VENUE,
        subject_id=venue.id,
        price_id=settings.STRIPE_PRICE_VENUE_PREMIUM,
    )
    session.url  # redirect target
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import IntegrityError

from core.exceptions import (
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

from payments.adapters import (
    CheckoutSessionResult,
    CreateCheckoutSessionParams,
    IdempotencyKeyGenerator,
    PortalSessionResult,
)
from payments.exceptions import StripeError
from payments.models import GatewayCustomer
from payments.plans import plan_for_price
from payments.services.base import GatewayService
from payments.state_machines import BillableSubjectType
from payments.subjects import billable_model, get_billable_subject

if TYPE_CHECKING:
    from authentication.models import User


CHECKOUT_MODES = ("subscription", "payment")


class CheckoutService(GatewayService):
    """Open Stripe Checkout and billing portal sessions for the caller."""

    @classmethod
    def create_checkout_session(
        cls,
        user: User,
        subject_type: str,
        subject_id,
        price_id: str,
        mode: str = "subscription",
    ) -> CheckoutSessionResult:
        """
        Create a Checkout Session for a plan on a venue or fan account.

        A fan may omit ``subject_id``; their own fan account is used (and
        created if it does not exist yet).

        Raises:
            ValidationError: Unknown subject type or mode, or a price that
                does not buy a plan for this kind of subject
            NotFoundError: Subject does not exist
            PermissionDeniedError: Subject belongs to someone else
            ExternalServiceError: Stripe call failed
        """
        logger = cls.get_logger()

        if mode not in CHECKOUT_MODES:
            raise ValidationError("Invalid checkout mode", details={"mode": mode})
        if billable_model(subject_type) is None:
            raise ValidationError(
                "Invalid subject type",
                details={"subject_type": subject_type},
            )
        plan = plan_for_price(subject_type, price_id)

        subject = cls._resolve_subject(user, subject_type, subject_id)

        try:
            customer_id = cls._get_or_create_customer(user)
            if subject.gateway_customer_id != customer_id:
                subject.gateway_customer_id = customer_id
                subject.save(update_fields=["gateway_customer_id", "updated_at"])

            metadata = {
                "subjectType": subject_type,
                "subjectId": str(subject.pk),
                "userId": str(user.pk),
                "plan": plan,
                "priceId": price_id,
            }
            session = cls.get_stripe_adapter().create_checkout_session(
                CreateCheckoutSessionParams(
                    price_id=price_id,
                    customer_id=customer_id,
                    mode=mode,
                    success_url=settings.CHECKOUT_SUCCESS_URL,
                    cancel_url=settings.CHECKOUT_CANCEL_URL,
                    metadata=metadata,
                    idempotency_key=IdempotencyKeyGenerator.generate(
                        operation="checkout",
                        entity_id=f"{subject_type}:{subject.pk}:{uuid.uuid4().hex}",
                    ),
                )
            )
        except StripeError as e:
            logger.error(
                "Failed to create checkout session",
                extra={
                    "subject_type": subject_type,
                    "subject_id": str(subject.pk),
                    "user_id": user.pk,
                    "error": str(e),
                },
            )
            raise ExternalServiceError("Unable to create checkout session") from e

        logger.info(
            "Checkout session created",
            extra={
                "session_id": session.id,
                "subject_type": subject_type,
                "subject_id": str(subject.pk),
                "price_id": price_id,
                "plan": plan,
            },
        )
        return session

    @classmethod
    def create_portal_session(
        cls,
        user: User,
        return_url: str | None = None,
    ) -> PortalSessionResult:
        """
        Open the billing portal for the caller's own Stripe customer.

        The customer is looked up from the caller's GatewayCustomer row and
        never taken from the request.

        Raises:
            NotFoundError: Caller has no Stripe customer
            ExternalServiceError: Stripe call failed
        """
        mapping = GatewayCustomer.objects.filter(user=user).first()
        if mapping is None:
            raise NotFoundError("No Stripe customer found for this user")

        try:
            session = cls.get_stripe_adapter().create_billing_portal_session(
                customer_id=mapping.customer_id,
                return_url=return_url or settings.BILLING_PORTAL_RETURN_URL,
            )
        except StripeError as e:
            cls.get_logger().error(
                "Failed to create portal session",
                extra={"user_id": user.pk, "error": str(e)},
            )
            raise ExternalServiceError("Unable to create portal session") from e

        return session

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _resolve_subject(user: User, subject_type: str, subject_id):
        model = billable_model(subject_type)

        if subject_type == BillableSubjectType.FAN and not subject_id:
            subject, _ = model.objects.get_or_create(user=user)
            return subject

        subject = get_billable_subject(subject_type, subject_id)
        if subject is None:
            raise NotFoundError(
                "Subject not found",
                details={"subject_type": subject_type, "subject_id": str(subject_id)},
            )

        owner_id = (
            subject.owner_id
            if subject_type == BillableSubjectType.VENUE
            else subject.user_id
        )
        if owner_id != user.pk:
            raise PermissionDeniedError("Not authorized to manage this subscription")
        return subject

    @classmethod
    def _get_or_create_customer(cls, user: User) -> str:
        """Return the caller's Stripe customer, creating it on first use."""
        mapping = GatewayCustomer.objects.filter(user=user).first()
        if mapping is not None:
            return mapping.customer_id

        customer = cls.get_stripe_adapter().create_customer(
            email=user.email,
            idempotency_key=IdempotencyKeyGenerator.generate(
                operation="create_customer",
                entity_id=user.pk,
            ),
            metadata={"userId": str(user.pk)},
        )
        try:
            with cls.atomic():
                GatewayCustomer.objects.create(
                    user=user,
                    customer_id=customer.id,
                    email=user.email or "",
                )
        except IntegrityError:
            # A concurrent request stored the mapping first
            return GatewayCustomer.objects.get(user=user).customer_id

        cls.get_logger().info(
            "Stripe customer created",
            extra={"user_id": user.pk, "customer_id": customer.id},
        )
        return customer.id
