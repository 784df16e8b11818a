"""
Root URL configuration for the Pregame payments service.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/                  - JWT endpoints
        token/                     - Obtain access/refresh pair
        token/refresh/             - Refresh access token
    /api/v1/payments/              - Payment endpoints
        intents/virtual-attendance/    - Pay for virtual attendance
        intents/product/               - Pay for a catalog product
        confirm/virtual-attendance/    - Confirm a paid intent
        refunds/                       - Refund one attendee
        refunds/bulk/                  - Refund every attendee (host)
        checkout/                      - Create a Checkout Session
        billing-portal/                - Open the billing portal
        webhooks/stripe/               - Stripe webhook endpoint (POST)
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    # Authentication (simplejwt)
    path("auth/", include("authentication.urls")),
    # Payments
    path("payments/", include("payments.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Pregame Payments Admin"
admin.site.site_title = "Pregame Payments"
admin.site.index_title = "Payments, subscriptions and watch parties"
