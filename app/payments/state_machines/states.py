"""
State enums for payment models.

These are Django TextChoices for database storage and admin integration.
PaymentRecordStatus is driven by django-fsm transitions on PaymentRecord.

State Machines Overview:

PaymentRecord:
    pending → completed → refunded
    pending → failed

Billing (on venues and fan accounts):
    plan: free ↔ premium (venues), free ↔ fan_pass ↔ superfan_pass (fans),
          decided by the purchased price and the latest subscription status
"""

from django.db import models


class PaymentRecordStatus(models.TextChoices):
    """
    Lifecycle of a single payment attempt.

    Terminal states: REFUNDED, FAILED

    PENDING and COMPLETED are the "active" states: while a record is in
    one of them the payer cannot start another payment for the same subject.
    """

    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
    REFUNDED = "refunded", "Refunded"
    FAILED = "failed", "Failed"


ACTIVE_PAYMENT_STATUSES = (
    PaymentRecordStatus.PENDING,
    PaymentRecordStatus.COMPLETED,
)


class PaymentSubjectType(models.TextChoices):
    """What a PaymentRecord pays for."""

    WATCH_PARTY = "watch_party", "Watch Party Virtual Attendance"
    PRODUCT = "product", "Catalog Product"


class BillableSubjectType(models.TextChoices):
    """Subjects that carry a plan and feature flags."""

    VENUE = "venue", "Venue"
    FAN = "fan", "Fan Account"


class Plan(models.TextChoices):
    """
    Plan held by a billable subject.

    Venues are free or premium. Fans are free, fan pass or superfan pass,
    each tier including the features of the one below it.
    """

    FREE = "free", "Free"
    PREMIUM = "premium", "Premium"
    FAN_PASS = "fan_pass", "Fan Pass"
    SUPERFAN_PASS = "superfan_pass", "Superfan Pass"


class PaymentStatus(models.TextChoices):
    """Outcome of the most recent invoice for a billable subject."""

    NONE = "", "None"
    SUCCEEDED = "succeeded", "Succeeded"
    FAILED = "failed", "Failed"


__all__ = [
    "ACTIVE_PAYMENT_STATUSES",
    "BillableSubjectType",
    "PaymentRecordStatus",
    "PaymentStatus",
    "PaymentSubjectType",
    "Plan",
]
