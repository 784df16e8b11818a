"""
PaymentRecord model: one payer's attempt to pay for one subject.

A PaymentRecord is created pending when a PaymentIntent is issued and moves
to completed once the gateway reports success (via webhook, the
confirmation endpoint or the stale-payment sweep). Refunds move it to
refunded. Intents that fail or are canceled move it to failed, which frees
the payer to try again.

Usage:
    from payments.models import PaymentRecord

    record = PaymentRecord.objects.active_for(
        PaymentSubjectType.WATCH_PARTY, str(watch_party.id), user
    ).first()

    record.complete()
    record.save()
"""

from __future__ import annotations

from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone
from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from payments.state_machines import (
    ACTIVE_PAYMENT_STATUSES,
    PaymentRecordStatus,
    PaymentSubjectType,
)


class PaymentRecordQuerySet(models.QuerySet):
    """
    Lookups used by the payment services.

    Every method returns a queryset so callers can chain
    ``select_for_update()`` inside their own transaction.
    """

    def for_subject(self, subject_type: str, subject_id: str):
        return self.filter(subject_type=subject_type, subject_id=str(subject_id))

    def active_for(self, subject_type: str, subject_id: str, payer):
        """Pending or completed records blocking a new payment by ``payer``."""
        return self.for_subject(subject_type, subject_id).filter(
            payer=payer,
            status__in=ACTIVE_PAYMENT_STATUSES,
        )

    def completed_for(self, subject_type: str, subject_id: str, payer=None):
        """Completed records for a subject, optionally narrowed to one payer."""
        qs = self.for_subject(subject_type, subject_id).filter(
            status=PaymentRecordStatus.COMPLETED
        )
        if payer is not None:
            qs = qs.filter(payer=payer)
        return qs

    def for_gateway_payment(self, gateway_payment_id: str):
        return self.filter(gateway_payment_id=gateway_payment_id)

    def stale_pending(self, older_than_hours: int):
        """Pending records created more than ``older_than_hours`` ago."""
        cutoff = timezone.now() - timedelta(hours=older_than_hours)
        return self.filter(
            status=PaymentRecordStatus.PENDING,
            created_at__lt=cutoff,
        )


class PaymentRecord(UUIDPrimaryKeyMixin, BaseModel):
    """
    One payer's payment for one subject.

    State Flow:
        PENDING -> COMPLETED -> REFUNDED
        PENDING -> FAILED

    Fields:
        subject_type / subject_id: What is being paid for
        payer: User paying
        payer_email: Email at the time of payment
        amount_cents / currency: Server-side price at issuance
        status: Current FSM state
        gateway_payment_id: Stripe PaymentIntent ID (pi_xxx)
        refund_id: Stripe Refund ID (re_xxx) once refunded
        *_at timestamps: Transition times
        refund_reason / failure_reason: Free-text context
        metadata: Flexible JSON storage

    Note:
        At most one pending or completed record may exist per
        (subject_type, subject_id, payer). The conditional unique constraint
        backs up the check done by the issuing service.
    """

    # ==========================================================================
    # Subject & Payer
    # ==========================================================================

    subject_type = models.CharField(
        max_length=20,
        choices=PaymentSubjectType.choices,
        help_text="Kind of thing being paid for",
    )

    subject_id = models.CharField(
        max_length=64,
        help_text="Identifier of the watch party or catalog product",
    )

    payer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payment_records",
        help_text="User making the payment",
    )

    payer_email = models.EmailField(
        blank=True,
        default="",
        help_text="Payer email captured when the intent was issued",
    )

    # ==========================================================================
    # Amount & State
    # ==========================================================================

    amount_cents = models.PositiveBigIntegerField(
        help_text="Payment amount in smallest currency unit (e.g., cents)",
    )

    currency = models.CharField(
        max_length=3,
        default="usd",
        help_text="ISO 4217 currency code (lowercase)",
    )

    status = FSMField(
        default=PaymentRecordStatus.PENDING,
        choices=PaymentRecordStatus.choices,
        db_index=True,
        protected=True,
        help_text="Current state of the payment (managed by FSM)",
    )

    # ==========================================================================
    # Stripe Integration
    # ==========================================================================

    gateway_payment_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Stripe PaymentIntent ID (pi_xxx)",
    )

    refund_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Stripe Refund ID (re_xxx)",
    )

    # ==========================================================================
    # State Timestamps & Context
    # ==========================================================================

    completed_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)

    refund_reason = models.TextField(blank=True, default="")
    failure_reason = models.TextField(blank=True, default="")

    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Arbitrary JSON metadata for extensibility",
    )

    objects = PaymentRecordQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment Record"
        verbose_name_plural = "Payment Records"
        indexes = [
            models.Index(
                fields=["subject_type", "subject_id", "status"],
                name="payment_record_subject_idx",
            ),
            models.Index(fields=["payer", "status"], name="payment_record_payer_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount_cents__gt=0),
                name="payment_record_amount_positive",
            ),
            models.UniqueConstraint(
                fields=["subject_type", "subject_id", "payer"],
                condition=models.Q(status__in=ACTIVE_PAYMENT_STATUSES),
                name="payment_record_one_active_per_payer",
            ),
        ]

    def __str__(self) -> str:
        amount_display = f"{self.amount_cents / 100:.2f} {self.currency.upper()}"
        return f"PaymentRecord({self.id}, {self.status}, {amount_display})"

    @property
    def is_completed(self) -> bool:
        return self.status == PaymentRecordStatus.COMPLETED

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=PaymentRecordStatus.PENDING,
        target=PaymentRecordStatus.COMPLETED,
    )
    def complete(self):
        """
        Mark the payment as completed.

        Transition: PENDING -> COMPLETED

        Called once the gateway reports the PaymentIntent succeeded.
        """
        self.completed_at = timezone.now()

    @transition(
        field=status,
        source=PaymentRecordStatus.COMPLETED,
        target=PaymentRecordStatus.REFUNDED,
    )
    def refund(self, refund_id: str, reason: str = ""):
        """
        Mark the payment as refunded.

        Transition: COMPLETED -> REFUNDED

        Args:
            refund_id: Stripe Refund ID
            reason: Human-readable reason shown in admin
        """
        self.refund_id = refund_id
        self.refund_reason = reason
        self.refunded_at = timezone.now()

    @transition(
        field=status,
        source=PaymentRecordStatus.PENDING,
        target=PaymentRecordStatus.FAILED,
    )
    def fail(self, reason: str | None = None):
        """
        Mark the payment as failed.

        Transition: PENDING -> FAILED

        Frees the payer to start a new payment for the same subject.
        """
        self.failed_at = timezone.now()
        if reason:
            self.failure_reason = reason
