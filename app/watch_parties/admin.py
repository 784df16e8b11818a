"""
Django admin configuration for watch parties.
"""

from django.contrib import admin

from watch_parties.models import WatchParty, WatchPartyMember


class WatchPartyMemberInline(admin.TabularInline):
    model = WatchPartyMember
    extra = 0
    raw_id_fields = ["user"]
    readonly_fields = ["has_paid", "payment_intent_id", "paid_at", "refunded_at"]


@admin.register(WatchParty)
class WatchPartyAdmin(admin.ModelAdmin):
    """Admin interface for WatchParty model."""

    list_display = [
        "name",
        "host",
        "starts_at",
        "allow_virtual_attendance",
        "virtual_attendance_price_cents",
        "virtual_attendees_count",
    ]
    list_filter = ["allow_virtual_attendance"]
    search_fields = ["name", "host__email"]
    readonly_fields = ["id", "virtual_attendees_count", "created_at", "updated_at"]
    raw_id_fields = ["host", "venue"]
    inlines = [WatchPartyMemberInline]
