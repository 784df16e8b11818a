"""
FanAccount model.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from payments.models import BillableSubject
from payments.state_machines import BillableSubjectType


class FanAccount(UUIDPrimaryKeyMixin, BillableSubject, BaseModel):
    """
    Billing identity of a fan.

    Fields:
        user: The fan (one account per user)
        favorite_team: Team code used for notifications and recommendations
        (plus every BillableSubject field)
    """

    billable_subject_type = BillableSubjectType.FAN

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="fan_account",
    )

    favorite_team = models.CharField(max_length=10, blank=True, default="")

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Fan Account"
        verbose_name_plural = "Fan Accounts"

    def __str__(self) -> str:
        return f"FanAccount({self.user_id}, {self.plan})"
