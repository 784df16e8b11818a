"""
Billing fields shared by every subject that can hold a plan.

Venues and fan accounts inherit BillableSubject. Only the webhook
reconcilers write these fields. Admin shows them read-only.

Usage:
    class FanAccount(BillableSubject, BaseModel):
        billable_subject_type = BillableSubjectType.FAN
        ...

    fan.apply_plan(Plan.SUPERFAN_PASS)
    fan.save()
"""

from __future__ import annotations

from django.db import models

from payments.plans import features_for
from payments.state_machines import PaymentStatus, Plan

BILLING_FIELDS = (
    "plan",
    "features",
    "billing_status",
    "gateway_customer_id",
    "gateway_subscription_id",
    "current_period_end",
    "last_payment_at",
    "last_payment_amount",
    "payment_status",
    "last_failed_payment_at",
    "canceled_at",
)


class BillableSubject(models.Model):
    """
    Abstract model with plan, feature flags and billing state.

    Subclasses must set ``billable_subject_type`` to a BillableSubjectType
    value so the correct feature table is used.

    Fields:
        plan: Current plan (free or premium)
        features: Feature flag map derived from the plan
        billing_status: Last known subscription/checkout status
        gateway_customer_id: Stripe customer (cus_xxx) attached to the subject
        gateway_subscription_id: Stripe subscription (sub_xxx)
        current_period_end: End of the paid period, when known
        last_payment_at / last_payment_amount: Latest successful invoice
        payment_status: Outcome of the latest invoice
        last_failed_payment_at: Latest failed invoice
        canceled_at: When the subscription was deleted
    """

    billable_subject_type: str = ""

    plan = models.CharField(
        max_length=20,
        choices=Plan.choices,
        default=Plan.FREE,
        db_index=True,
        help_text="Current plan",
    )

    features = models.JSONField(
        default=dict,
        blank=True,
        help_text="Feature flags unlocked by the current plan",
    )

    billing_status = models.CharField(
        max_length=30,
        blank=True,
        default="",
        help_text="Last known subscription status (active, past_due, canceled, ...)",
    )

    gateway_customer_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        db_index=True,
        help_text="Stripe Customer ID (cus_xxx)",
    )

    gateway_subscription_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Stripe Subscription ID (sub_xxx)",
    )

    current_period_end = models.DateTimeField(
        null=True,
        blank=True,
        help_text="End of the current paid period",
    )

    last_payment_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the latest successful payment was recorded",
    )

    last_payment_amount = models.PositiveBigIntegerField(
        null=True,
        blank=True,
        help_text="Amount of the latest successful invoice in cents",
    )

    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        blank=True,
        default=PaymentStatus.NONE,
        help_text="Outcome of the latest invoice",
    )

    last_failed_payment_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the latest invoice payment failed",
    )

    canceled_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the subscription was canceled",
    )

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        # New subjects start with the full free-plan feature map
        if not self.features:
            self.features = features_for(self.billable_subject_type, self.plan)
        super().save(*args, **kwargs)

    def apply_plan(self, plan: str) -> None:
        """
        Set the plan and replace the feature map to match it.

        Note:
            This method does not save - caller must save after calling.
        """
        self.plan = plan
        self.features = features_for(self.billable_subject_type, plan)

    @property
    def has_paid_plan(self) -> bool:
        return self.plan != Plan.FREE
