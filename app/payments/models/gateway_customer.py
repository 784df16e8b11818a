"""
GatewayCustomer: maps a user to their Stripe customer.

Billing portal sessions are only ever opened for the customer recorded here,
never for a customer id supplied by a client.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.models import BaseModel


class GatewayCustomer(BaseModel):
    """
    One Stripe customer per user.

    Fields:
        user: Owner of the Stripe customer
        customer_id: Stripe Customer ID (cus_xxx)
        email: Email the customer was created with
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="gateway_customer",
    )

    customer_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Stripe Customer ID (cus_xxx)",
    )

    email = models.EmailField(blank=True, default="")

    class Meta:
        verbose_name = "Gateway Customer"
        verbose_name_plural = "Gateway Customers"

    def __str__(self) -> str:
        return f"GatewayCustomer({self.user_id}, {self.customer_id})"
