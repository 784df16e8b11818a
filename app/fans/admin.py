"""
Django admin configuration for fan accounts.
"""

from django.contrib import admin

from fans.models import FanAccount
from payments.models.billing import BILLING_FIELDS


@admin.register(FanAccount)
class FanAccountAdmin(admin.ModelAdmin):
    """Admin interface for FanAccount model."""

    list_display = ["user", "plan", "billing_status", "payment_status", "created_at"]
    list_filter = ["plan", "billing_status"]
    search_fields = ["user__email", "gateway_customer_id"]
    readonly_fields = ["id", "created_at", "updated_at", *BILLING_FIELDS]
    raw_id_fields = ["user"]
