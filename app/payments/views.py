"""
DRF views for the payments API.

Endpoints:
    POST /api/v1/payments/intents/virtual-attendance/ - Pay for virtual attendance
    POST /api/v1/payments/intents/product/ - Pay for a catalog product
    POST /api/v1/payments/confirm/virtual-attendance/ - Confirm a paid intent
    POST /api/v1/payments/refunds/ - Refund one attendee
    POST /api/v1/payments/refunds/bulk/ - Refund every attendee (host only)
    POST /api/v1/payments/checkout/ - Create a Checkout Session
    POST /api/v1/payments/billing-portal/ - Open the billing portal
    GET  /api/v1/payments/fan-pass/ - Caller's fan pass status
    GET  /api/v1/payments/fan-pass/access/ - Check one fan pass feature
    GET  /api/v1/payments/venues/<venue_id>/premium/ - Venue plan status
    GET  /api/v1/payments/pricing/ - Display prices for every plan

Security:
    - Every endpoint here requires authentication (JWT or session), except
      the fan pass access check and pricing, which answer anonymous callers
    - The Stripe webhook lives in payments.webhooks.views

Errors raised by the services (core.exceptions) are rendered by
core.views.api_exception_handler, so views only deal with the happy path.
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from payments.serializers import (
    BulkRefundResponseSerializer,
    BulkRefundSerializer,
    CheckoutSessionResponseSerializer,
    ConfirmVirtualAttendanceSerializer,
    CreateCheckoutSessionSerializer,
    CreatePortalSessionSerializer,
    CreateProductIntentSerializer,
    CreateVirtualAttendanceIntentSerializer,
    FanPassAccessQuerySerializer,
    FanPassAccessResponseSerializer,
    FanPassStatusResponseSerializer,
    PaymentIntentResponseSerializer,
    PortalSessionResponseSerializer,
    PricingResponseSerializer,
    RefundAttendeeSerializer,
    RefundResponseSerializer,
    SuccessResponseSerializer,
    VenuePremiumStatusResponseSerializer,
)
from payments.services import (
    BillingService,
    CheckoutService,
    ConfirmationService,
    PaymentIntentService,
    RefundService,
)

logger = logging.getLogger(__name__)

COMMON_ERROR_RESPONSES = {
    401: OpenApiResponse(description="Authentication required"),
    500: OpenApiResponse(description="Payment provider error"),
}


# =============================================================================
# Payment Intents
# =============================================================================


class VirtualAttendanceIntentView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="create_virtual_attendance_intent",
        summary="Create virtual attendance payment",
        description=(
            "Create a PaymentIntent for virtual attendance of a watch party. "
            "The price comes from the watch party; a client-supplied amount "
            "is rejected."
        ),
        request=CreateVirtualAttendanceIntentSerializer,
        responses={
            201: PaymentIntentResponseSerializer,
            400: OpenApiResponse(description="Virtual attendance not allowed"),
            404: OpenApiResponse(description="Watch party not found"),
            409: OpenApiResponse(description="Already purchased or payment pending"),
            **COMMON_ERROR_RESPONSES,
        },
        tags=["Payments - Intents"],
    )
    def post(self, request):
        serializer = CreateVirtualAttendanceIntentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        issued = PaymentIntentService.create_virtual_attendance_intent(
            user=request.user,
            watch_party_id=serializer.validated_data["watch_party_id"],
        )
        return Response(
            {
                "clientSecret": issued.client_secret,
                "paymentIntentId": issued.payment_intent_id,
            },
            status=status.HTTP_201_CREATED,
        )


class ProductIntentView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="create_product_intent",
        summary="Create product payment",
        description="Create a PaymentIntent for a fixed-price catalog product.",
        request=CreateProductIntentSerializer,
        responses={
            201: PaymentIntentResponseSerializer,
            400: OpenApiResponse(description="Unknown product"),
            409: OpenApiResponse(description="Already purchased or payment pending"),
            **COMMON_ERROR_RESPONSES,
        },
        tags=["Payments - Intents"],
    )
    def post(self, request):
        serializer = CreateProductIntentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        issued = PaymentIntentService.create_product_intent(
            user=request.user,
            product_type=serializer.validated_data["product_type"],
        )
        return Response(
            {
                "clientSecret": issued.client_secret,
                "paymentIntentId": issued.payment_intent_id,
            },
            status=status.HTTP_201_CREATED,
        )


class ConfirmVirtualAttendanceView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="confirm_virtual_attendance",
        summary="Confirm virtual attendance payment",
        description=(
            "Verify a PaymentIntent with Stripe and mark the caller as a paid "
            "virtual attendee. Safe to call more than once."
        ),
        request=ConfirmVirtualAttendanceSerializer,
        responses={
            200: SuccessResponseSerializer,
            400: OpenApiResponse(description="Payment has not been completed"),
            403: OpenApiResponse(description="Payment does not match"),
            404: OpenApiResponse(description="Payment record not found"),
            **COMMON_ERROR_RESPONSES,
        },
        tags=["Payments - Intents"],
    )
    def post(self, request):
        serializer = ConfirmVirtualAttendanceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        ConfirmationService.confirm_virtual_attendance(
            user=request.user,
            payment_intent_id=serializer.validated_data["payment_intent_id"],
            watch_party_id=serializer.validated_data["watch_party_id"],
        )
        return Response({"success": True})


# =============================================================================
# Refunds
# =============================================================================


class RefundAttendeeView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="refund_attendee",
        summary="Refund one attendee",
        description=(
            "Refund a completed virtual attendance payment. The host may "
            "refund any attendee; attendees may refund themselves."
        ),
        request=RefundAttendeeSerializer,
        responses={
            200: RefundResponseSerializer,
            403: OpenApiResponse(description="Not authorized to request refund"),
            404: OpenApiResponse(description="Watch party or completed payment not found"),
            **COMMON_ERROR_RESPONSES,
        },
        tags=["Payments - Refunds"],
    )
    def post(self, request):
        serializer = RefundAttendeeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        outcome = RefundService.refund_attendee(
            caller=request.user,
            watch_party_id=data["watch_party_id"],
            user_id=data.get("user_id"),
            reason=data.get("reason") or None,
        )
        return Response(
            {
                "success": True,
                "refundId": outcome.refund_id,
                "message": outcome.message,
            }
        )


class BulkRefundView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="refund_all_attendees",
        summary="Refund every attendee",
        description=(
            "Refund every completed virtual attendance payment for a watch "
            "party. Host only. Individual failures are listed in `errors`."
        ),
        request=BulkRefundSerializer,
        responses={
            200: BulkRefundResponseSerializer,
            403: OpenApiResponse(description="Only the host can process mass refunds"),
            404: OpenApiResponse(description="Watch party not found"),
            **COMMON_ERROR_RESPONSES,
        },
        tags=["Payments - Refunds"],
    )
    def post(self, request):
        serializer = BulkRefundSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        outcome = RefundService.refund_all_attendees(
            caller=request.user,
            watch_party_id=serializer.validated_data["watch_party_id"],
        )

        body = {
            "success": True,
            "refundedCount": outcome.refunded_count,
            "message": outcome.message,
        }
        if outcome.errors:
            body["errors"] = outcome.errors
        return Response(body)


# =============================================================================
# Checkout & Billing Portal
# =============================================================================


class CheckoutSessionView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="create_checkout_session",
        summary="Create checkout session",
        description=(
            "Open Stripe Checkout for a venue or fan plan. The price must be "
            "a configured price for that kind of subject: the venue premium "
            "price for venues, the fan or superfan pass price for fans. The "
            "plan is applied when the checkout webhook arrives."
        ),
        request=CreateCheckoutSessionSerializer,
        responses={
            200: CheckoutSessionResponseSerializer,
            400: OpenApiResponse(description="Invalid price ID"),
            403: OpenApiResponse(description="Subject belongs to another user"),
            404: OpenApiResponse(description="Subject not found"),
            **COMMON_ERROR_RESPONSES,
        },
        tags=["Payments - Billing"],
    )
    def post(self, request):
        serializer = CreateCheckoutSessionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        session = CheckoutService.create_checkout_session(
            user=request.user,
            subject_type=data["subject_type"],
            subject_id=data.get("subject_id"),
            price_id=data["price_id"],
            mode=data["mode"],
        )
        return Response({"sessionId": session.id, "url": session.url})


class BillingPortalView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="create_billing_portal_session",
        summary="Open billing portal",
        description="Open the Stripe billing portal for the caller's own customer.",
        request=CreatePortalSessionSerializer,
        responses={
            200: PortalSessionResponseSerializer,
            404: OpenApiResponse(description="No Stripe customer found for this user"),
            **COMMON_ERROR_RESPONSES,
        },
        tags=["Payments - Billing"],
    )
    def post(self, request):
        serializer = CreatePortalSessionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        session = CheckoutService.create_portal_session(
            user=request.user,
            return_url=serializer.validated_data.get("return_url"),
        )
        return Response({"url": session.url})


# =============================================================================
# Plan Status & Pricing
# =============================================================================


class FanPassStatusView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_fan_pass_status",
        summary="Get fan pass status",
        description="Return the caller's pass tier and feature map.",
        responses={200: FanPassStatusResponseSerializer, **COMMON_ERROR_RESPONSES},
        tags=["Payments - Plans"],
    )
    def get(self, request):
        return Response(BillingService.fan_pass_status(request.user))


class FanPassAccessView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="check_fan_pass_access",
        summary="Check fan pass feature access",
        description=(
            "Check whether the caller's pass unlocks a feature. Anonymous "
            "callers get `hasAccess: false` on the free tier."
        ),
        parameters=[
            OpenApiParameter(
                name="feature",
                description="Feature flag name, e.g. advancedStats",
                required=False,
                type=str,
            ),
        ],
        responses={200: FanPassAccessResponseSerializer},
        tags=["Payments - Plans"],
    )
    def get(self, request):
        serializer = FanPassAccessQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)

        return Response(
            BillingService.check_fan_feature(
                request.user,
                serializer.validated_data.get("feature"),
            )
        )


class VenuePremiumStatusView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_venue_premium_status",
        summary="Get venue premium status",
        description="Return a venue's plan and feature map.",
        responses={
            200: VenuePremiumStatusResponseSerializer,
            404: OpenApiResponse(description="Venue not found"),
            **COMMON_ERROR_RESPONSES,
        },
        tags=["Payments - Plans"],
    )
    def get(self, request, venue_id):
        return Response(BillingService.venue_premium_status(venue_id))


class PricingView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="get_pricing",
        summary="Get plan prices",
        description="Display prices and checkout price IDs for every paid plan.",
        responses={200: PricingResponseSerializer},
        tags=["Payments - Plans"],
    )
    def get(self, request):
        return Response(BillingService.pricing())
