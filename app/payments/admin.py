"""
Payment admin configuration.

Payment records change state only through the services and webhook
handlers, so every state field is read-only here. The webhook ledger is
append-only and cannot be edited or deleted from the admin.
"""

from django.contrib import admin

from payments.models import GatewayCustomer, PaymentRecord, ProcessedWebhookEvent


@admin.register(PaymentRecord)
class PaymentRecordAdmin(admin.ModelAdmin):
    """
    Admin configuration for PaymentRecord.

    Provides visibility into payments and their states.
    State changes should be made through the service layer, not admin.
    """

    list_display = [
        "id",
        "payer",
        "subject_type",
        "subject_id",
        "amount_display",
        "status",
        "created_at",
    ]
    list_filter = ["status", "subject_type", "currency", "created_at"]
    search_fields = ["id", "gateway_payment_id", "refund_id", "payer__email", "subject_id"]
    readonly_fields = [
        "id",
        "status",
        "gateway_payment_id",
        "refund_id",
        "completed_at",
        "refunded_at",
        "failed_at",
        "created_at",
        "updated_at",
    ]
    raw_id_fields = ["payer"]
    ordering = ["-created_at"]

    fieldsets = (
        (None, {"fields": ("id", "payer", "payer_email", "subject_type", "subject_id")}),
        ("Amount", {"fields": ("amount_cents", "currency")}),
        (
            "Status",
            {
                "fields": (
                    "status",
                    "completed_at",
                    "refunded_at",
                    "refund_reason",
                    "failed_at",
                    "failure_reason",
                ),
            },
        ),
        ("Stripe", {"fields": ("gateway_payment_id", "refund_id")}),
        ("Metadata", {"fields": ("metadata",), "classes": ("collapse",)}),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )

    @admin.display(description="Amount")
    def amount_display(self, obj):
        return f"{obj.amount_cents / 100:.2f} {obj.currency.upper()}"


@admin.register(ProcessedWebhookEvent)
class ProcessedWebhookEventAdmin(admin.ModelAdmin):
    list_display = ["event_id", "event_type", "processed_at"]
    list_filter = ["event_type", "processed_at"]
    search_fields = ["event_id"]
    readonly_fields = ["event_id", "event_type", "processed_at", "payload"]
    ordering = ["-processed_at"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(GatewayCustomer)
class GatewayCustomerAdmin(admin.ModelAdmin):
    list_display = ["user", "customer_id", "email", "created_at"]
    search_fields = ["customer_id", "email", "user__email"]
    readonly_fields = ["customer_id", "created_at", "updated_at"]
    raw_id_fields = ["user"]
