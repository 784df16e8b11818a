"""
Django admin configuration for venues.

Billing fields are written by webhook reconcilers only, so they are
read-only here.
"""

from django.contrib import admin

from payments.models.billing import BILLING_FIELDS
from venues.models import Venue


@admin.register(Venue)
class VenueAdmin(admin.ModelAdmin):
    """Admin interface for Venue model."""

    list_display = ["name", "owner", "city", "plan", "billing_status", "created_at"]
    list_filter = ["plan", "billing_status", "payment_status"]
    search_fields = ["name", "owner__email", "gateway_customer_id"]
    readonly_fields = ["id", "created_at", "updated_at", *BILLING_FIELDS]
    raw_id_fields = ["owner"]

    fieldsets = (
        (None, {"fields": ("id", "name", "city", "owner")}),
        ("Billing", {"fields": BILLING_FIELDS}),
        ("Timestamps", {"fields": ("created_at", "updated_at"), "classes": ("collapse",)}),
    )
