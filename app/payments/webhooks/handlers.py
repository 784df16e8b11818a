"""
Webhook event handlers for Stripe events.

This module provides a handler registry and the reconcilers that bring
local state in line with what Stripe reports.

The handler registry allows:
- Clean separation between event routing and handling
- Exactly one handler per known event type
- Unknown event types acknowledged as no-ops

Every handler runs inside the transaction opened by WebhookProcessor, the
same one that records the event as processed. Handlers therefore must not
catch database errors: letting them propagate rolls the ledger row back
and Stripe redelivers the event.

Usage:
    from payments.webhooks.handlers import dispatch_webhook, register_handler

    @register_handler(GatewayEventType.INVOICE_PAYMENT_FAILED)
    def handle_invoice_payment_failed(webhook_event) -> ServiceResult:
        ...

    result = dispatch_webhook(webhook_event)
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone as dt_timezone
from typing import TYPE_CHECKING, Any, Callable

from django.contrib.auth import get_user_model
from django.db.models import Q
from django.utils import timezone

from core.services import ServiceResult

from payments.models import GatewayCustomer, PaymentRecord
from payments.plans import (
    plan_for_checkout,
    plan_for_subscription,
    subject_type_for_price,
)
from payments.services.completion import (
    complete_payment,
    fail_payment,
    record_payment_attempt_failure,
)
from payments.state_machines import PaymentStatus, Plan
from payments.subjects import find_by_customer, get_billable_subject, subject_from_metadata
from payments.webhooks.events import GatewayEventType

if TYPE_CHECKING:
    from payments.models import ProcessedWebhookEvent


logger = logging.getLogger(__name__)


# =============================================================================
# Handler Registry
# =============================================================================


# Maps event types to handler functions
WEBHOOK_HANDLERS: dict[GatewayEventType, Callable[[ProcessedWebhookEvent], ServiceResult]] = {}


def register_handler(event_type: GatewayEventType) -> Callable:
    """
    Decorator to register a webhook event handler.

    Raises:
        ValueError: If a handler is already registered for ``event_type``
    """

    def decorator(func: Callable[[ProcessedWebhookEvent], ServiceResult]) -> Callable:
        if event_type in WEBHOOK_HANDLERS:
            raise ValueError(f"Handler already registered for {event_type}")
        WEBHOOK_HANDLERS[event_type] = func
        return func

    return decorator


def dispatch_webhook(webhook_event: ProcessedWebhookEvent) -> ServiceResult:
    """
    Dispatch a webhook event to its handler.

    Unknown event types, and known types without a handler, succeed
    without doing anything.
    """
    event_type = GatewayEventType.from_raw(webhook_event.event_type)
    handler = WEBHOOK_HANDLERS.get(event_type)

    if not handler:
        logger.info(
            f"No handler registered for event type: {webhook_event.event_type}",
            extra={"stripe_event_id": webhook_event.event_id},
        )
        return ServiceResult.success(None)

    logger.info(
        f"Dispatching {webhook_event.event_type} to handler",
        extra={"stripe_event_id": webhook_event.event_id},
    )
    return handler(webhook_event)


# =============================================================================
# Helpers
# =============================================================================


def _event_object(webhook_event: ProcessedWebhookEvent) -> dict[str, Any]:
    return (webhook_event.payload or {}).get("data", {}).get("object", {}) or {}


def _from_timestamp(value) -> datetime | None:
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=dt_timezone.utc)


def _subscription_period_end(subscription: dict[str, Any]) -> datetime | None:
    # Newer API versions report the period on subscription items
    period_end = subscription.get("current_period_end")
    if not period_end:
        items = (subscription.get("items") or {}).get("data") or []
        if items:
            period_end = items[0].get("current_period_end")
    return _from_timestamp(period_end)


def _subscription_price_id(subscription: dict[str, Any]) -> str | None:
    items = (subscription.get("items") or {}).get("data") or []
    if not items:
        return None
    return (items[0].get("price") or {}).get("id")


def _subjects_for_customer(webhook_event: ProcessedWebhookEvent, customer_id: str):
    subjects = find_by_customer(customer_id)
    if not subjects:
        logger.info(
            f"{webhook_event.event_type}: no subject for customer",
            extra={
                "stripe_event_id": webhook_event.event_id,
                "customer_id": customer_id,
            },
        )
    return subjects


def _remember_customer(user_id, customer_id: str, email: str) -> None:
    """Store the user to customer mapping used by the billing portal."""
    if not user_id or not customer_id:
        return
    try:
        user = get_user_model().objects.filter(pk=user_id).first()
    except (TypeError, ValueError):
        return
    if user is None:
        return
    if GatewayCustomer.objects.filter(Q(user=user) | Q(customer_id=customer_id)).exists():
        return
    GatewayCustomer.objects.create(user=user, customer_id=customer_id, email=email or "")


# =============================================================================
# Checkout Handlers
# =============================================================================


@register_handler(GatewayEventType.CHECKOUT_SESSION_COMPLETED)
def handle_checkout_session_completed(webhook_event: ProcessedWebhookEvent) -> ServiceResult:
    """
    Activate the paid plan for the subject named in the session metadata.

    Sessions without usable metadata, or for a subject that no longer
    exists, are logged and acknowledged.
    """
    session = _event_object(webhook_event)
    metadata = session.get("metadata") or {}
    subject_type, subject_id = subject_from_metadata(metadata)

    subject = get_billable_subject(subject_type, subject_id)
    if subject is None:
        logger.warning(
            "checkout.session.completed: no subject for session metadata",
            extra={
                "stripe_event_id": webhook_event.event_id,
                "session_id": session.get("id"),
                "subject_type": subject_type,
                "subject_id": subject_id,
            },
        )
        return ServiceResult.success(None)

    customer_id = session.get("customer") or ""
    subject.billing_status = "active"
    subject.gateway_customer_id = customer_id or subject.gateway_customer_id
    subject.gateway_subscription_id = (
        session.get("subscription") or subject.gateway_subscription_id
    )
    subject.last_payment_at = timezone.now()
    plan = plan_for_checkout(subject_type, metadata)
    subject.apply_plan(plan)
    subject.save()

    customer_details = session.get("customer_details") or {}
    _remember_customer(metadata.get("userId"), customer_id, customer_details.get("email"))

    logger.info(
        "Checkout completed, plan activated",
        extra={
            "stripe_event_id": webhook_event.event_id,
            "subject_type": subject_type,
            "subject_id": str(subject.pk),
            "plan": plan,
        },
    )
    return ServiceResult.success(subject)


# =============================================================================
# Subscription Handlers
# =============================================================================


@register_handler(GatewayEventType.SUBSCRIPTION_CREATED)
def handle_subscription_created(webhook_event: ProcessedWebhookEvent) -> ServiceResult:
    return _apply_subscription_status(webhook_event)


@register_handler(GatewayEventType.SUBSCRIPTION_UPDATED)
def handle_subscription_updated(webhook_event: ProcessedWebhookEvent) -> ServiceResult:
    return _apply_subscription_status(webhook_event)


def _apply_subscription_status(webhook_event: ProcessedWebhookEvent) -> ServiceResult:
    """
    Set plan and features from the subscription status and price.

    Only "active" keeps a paid plan, chosen by the subscribed price for
    each subject. Every other status, including trialing and past_due,
    drops the subject to the free plan with all paid features cleared.
    A price sold to one kind of subject leaves the customer's other
    subjects untouched.
    """
    subscription = _event_object(webhook_event)
    status = subscription.get("status") or ""
    price_id = _subscription_price_id(subscription)
    period_end = _subscription_period_end(subscription)

    price_subject_type = subject_type_for_price(price_id)

    subjects = [
        subject
        for subject in _subjects_for_customer(webhook_event, subscription.get("customer"))
        if price_subject_type in (None, subject.billable_subject_type)
    ]
    for subject in subjects:
        plan = plan_for_subscription(
            subject.billable_subject_type,
            status,
            price_id=price_id,
            current_plan=subject.plan,
        )
        subject.apply_plan(plan)
        subject.billing_status = status
        subject.gateway_subscription_id = subscription.get("id") or ""
        if period_end is not None:
            subject.current_period_end = period_end
        subject.save()

        logger.info(
            "Subscription status applied",
            extra={
                "stripe_event_id": webhook_event.event_id,
                "subject_id": str(subject.pk),
                "status": status,
                "plan": plan,
            },
        )

    return ServiceResult.success(len(subjects))


@register_handler(GatewayEventType.SUBSCRIPTION_DELETED)
def handle_subscription_deleted(webhook_event: ProcessedWebhookEvent) -> ServiceResult:
    """Downgrade every subject of the customer to the free plan."""
    subscription = _event_object(webhook_event)
    now = timezone.now()

    subjects = _subjects_for_customer(webhook_event, subscription.get("customer"))
    for subject in subjects:
        subject.apply_plan(Plan.FREE)
        subject.billing_status = "canceled"
        subject.canceled_at = now
        subject.save()

        logger.info(
            "Subscription canceled, downgraded to free plan",
            extra={"stripe_event_id": webhook_event.event_id, "subject_id": str(subject.pk)},
        )

    return ServiceResult.success(len(subjects))


# =============================================================================
# Invoice Handlers
# =============================================================================


@register_handler(GatewayEventType.INVOICE_PAYMENT_SUCCEEDED)
def handle_invoice_payment_succeeded(webhook_event: ProcessedWebhookEvent) -> ServiceResult:
    """Record the payment. Plan and features are left to subscription events."""
    invoice = _event_object(webhook_event)
    now = timezone.now()

    subjects = _subjects_for_customer(webhook_event, invoice.get("customer"))
    for subject in subjects:
        subject.last_payment_at = now
        subject.last_payment_amount = invoice.get("amount_paid")
        subject.payment_status = PaymentStatus.SUCCEEDED
        subject.save(
            update_fields=[
                "last_payment_at",
                "last_payment_amount",
                "payment_status",
                "updated_at",
            ]
        )

    return ServiceResult.success(len(subjects))


@register_handler(GatewayEventType.INVOICE_PAYMENT_FAILED)
def handle_invoice_payment_failed(webhook_event: ProcessedWebhookEvent) -> ServiceResult:
    invoice = _event_object(webhook_event)
    now = timezone.now()

    subjects = _subjects_for_customer(webhook_event, invoice.get("customer"))
    for subject in subjects:
        subject.payment_status = PaymentStatus.FAILED
        subject.last_failed_payment_at = now
        subject.save(update_fields=["payment_status", "last_failed_payment_at", "updated_at"])

        logger.warning(
            "Invoice payment failed",
            extra={
                "stripe_event_id": webhook_event.event_id,
                "subject_id": str(subject.pk),
                "invoice_id": invoice.get("id"),
            },
        )

    return ServiceResult.success(len(subjects))


# =============================================================================
# Payment Intent Handlers
# =============================================================================


@register_handler(GatewayEventType.PAYMENT_INTENT_SUCCEEDED)
def handle_payment_intent_succeeded(webhook_event: ProcessedWebhookEvent) -> ServiceResult:
    """
    Complete the payment for a succeeded PaymentIntent.

    Shares the completion path with the confirmation endpoint, so whichever
    arrives second finds the record completed and does nothing.
    """
    payment_intent_id = webhook_event.get_object_id()

    if not PaymentRecord.objects.for_gateway_payment(payment_intent_id or "").exists():
        logger.info(
            "payment_intent.succeeded: no payment record",
            extra={
                "stripe_event_id": webhook_event.event_id,
                "payment_intent_id": payment_intent_id,
            },
        )
        return ServiceResult.success(None)

    applied = complete_payment(payment_intent_id)
    return ServiceResult.success(applied)


@register_handler(GatewayEventType.PAYMENT_INTENT_FAILED)
def handle_payment_intent_failed(webhook_event: ProcessedWebhookEvent) -> ServiceResult:
    """
    Note the decline on the pending record.

    The intent goes back to requires_payment_method and can still be paid,
    so the record is not failed here. Only cancellation settles it.
    """
    intent = _event_object(webhook_event)
    error = intent.get("last_payment_error") or {}
    reason = error.get("message") or error.get("code") or "payment_failed"
    return ServiceResult.success(
        record_payment_attempt_failure(intent.get("id") or "", reason=reason)
    )


@register_handler(GatewayEventType.PAYMENT_INTENT_CANCELED)
def handle_payment_intent_canceled(webhook_event: ProcessedWebhookEvent) -> ServiceResult:
    intent = _event_object(webhook_event)
    reason = intent.get("cancellation_reason") or "canceled"
    return ServiceResult.success(fail_payment(intent.get("id") or "", reason=reason))
