"""
State machine enums for payment models.
"""

from payments.state_machines.states import (
    ACTIVE_PAYMENT_STATUSES,
    BillableSubjectType,
    PaymentRecordStatus,
    PaymentStatus,
    PaymentSubjectType,
    Plan,
)

__all__ = [
    "ACTIVE_PAYMENT_STATUSES",
    "BillableSubjectType",
    "PaymentRecordStatus",
    "PaymentStatus",
    "PaymentSubjectType",
    "Plan",
]
