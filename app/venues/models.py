"""
Venue model.

Related files:
    - payments/models/billing.py: Plan, features and billing fields
    - payments/webhooks/handlers.py: Subscription reconcilers that write them
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from payments.models import BillableSubject
from payments.state_machines import BillableSubjectType


class Venue(UUIDPrimaryKeyMixin, BillableSubject, BaseModel):
    """
    A venue listed on Pregame.

    Fields:
        owner: User who manages the venue and pays for its subscription
        name: Display name
        city: City shown in listings
        (plus every BillableSubject field)
    """

    billable_subject_type = BillableSubjectType.VENUE

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="venues",
        help_text="Venue owner",
    )

    name = models.CharField(max_length=200)

    city = models.CharField(max_length=100, blank=True, default="")

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Venue"
        verbose_name_plural = "Venues"

    def __str__(self) -> str:
        return f"Venue({self.name}, {self.plan})"
