"""
URL configuration for the payments app.

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.
"""

from django.urls import path

from payments import views
from payments.webhooks.views import stripe_webhook

app_name = "payments"

urlpatterns = [
    # Payment intents
    path(
        "intents/virtual-attendance/",
        views.VirtualAttendanceIntentView.as_view(),
        name="virtual_attendance_intent",
    ),
    path("intents/product/", views.ProductIntentView.as_view(), name="product_intent"),
    path(
        "confirm/virtual-attendance/",
        views.ConfirmVirtualAttendanceView.as_view(),
        name="confirm_virtual_attendance",
    ),
    # Refunds
    path("refunds/", views.RefundAttendeeView.as_view(), name="refund_attendee"),
    path("refunds/bulk/", views.BulkRefundView.as_view(), name="refund_all_attendees"),
    # Billing
    path("checkout/", views.CheckoutSessionView.as_view(), name="checkout_session"),
    path("billing-portal/", views.BillingPortalView.as_view(), name="billing_portal"),
    # Plans
    path("fan-pass/", views.FanPassStatusView.as_view(), name="fan_pass_status"),
    path("fan-pass/access/", views.FanPassAccessView.as_view(), name="fan_pass_access"),
    path(
        "venues/<uuid:venue_id>/premium/",
        views.VenuePremiumStatusView.as_view(),
        name="venue_premium_status",
    ),
    path("pricing/", views.PricingView.as_view(), name="pricing"),
    # Webhook endpoints
    path("webhooks/stripe/", stripe_webhook, name="stripe_webhook"),
]
