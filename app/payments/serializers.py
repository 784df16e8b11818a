"""
DRF serializers for the payments API.

Request serializers accept camelCase keys (the mobile and web clients send
them that way) and expose snake_case ``validated_data``. Response
serializers exist for the OpenAPI schema.

Prices are never accepted from clients. Every request serializer rejects
amount-like keys outright instead of silently ignoring them, so a client
that tries to set a price gets a 400 rather than a surprise charge.

Usage:
    serializer = CreateVirtualAttendanceIntentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    watch_party_id = serializer.validated_data["watch_party_id"]
"""

from __future__ import annotations

from rest_framework import serializers

from payments.state_machines import BillableSubjectType

FORBIDDEN_PRICE_FIELDS = ("amount", "amountCents", "amount_cents", "price", "priceCents")


class ServerPricedSerializer(serializers.Serializer):
    """Base for request serializers that must not carry a price."""

    def validate(self, attrs: dict) -> dict:
        supplied = [key for key in FORBIDDEN_PRICE_FIELDS if key in self.initial_data]
        if supplied:
            raise serializers.ValidationError(
                {key: "Amounts are set by the server." for key in supplied}
            )
        return attrs


# =============================================================================
# Payment Intents & Confirmation
# =============================================================================


class CreateVirtualAttendanceIntentSerializer(ServerPricedSerializer):
    watchPartyId = serializers.UUIDField(source="watch_party_id")


class CreateProductIntentSerializer(ServerPricedSerializer):
    productType = serializers.CharField(source="product_type", max_length=50)


class PaymentIntentResponseSerializer(serializers.Serializer):
    clientSecret = serializers.CharField()
    paymentIntentId = serializers.CharField()


class ConfirmVirtualAttendanceSerializer(ServerPricedSerializer):
    paymentIntentId = serializers.CharField(source="payment_intent_id", max_length=255)
    watchPartyId = serializers.UUIDField(source="watch_party_id")


class SuccessResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()


# =============================================================================
# Refunds
# =============================================================================


class RefundAttendeeSerializer(ServerPricedSerializer):
    """
    Refund request for one attendee.

    Fields:
        watchPartyId: Watch party the payment was for
        userId: Attendee to refund (defaults to the caller)
        reason: Free-text reason (defaults to "Watch party cancelled")
    """

    watchPartyId = serializers.UUIDField(source="watch_party_id")
    userId = serializers.IntegerField(source="user_id", required=False, min_value=1)
    reason = serializers.CharField(
        required=False,
        allow_blank=True,
        max_length=500,
    )


class RefundResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    refundId = serializers.CharField()
    message = serializers.CharField()


class BulkRefundSerializer(ServerPricedSerializer):
    watchPartyId = serializers.UUIDField(source="watch_party_id")


class BulkRefundResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    refundedCount = serializers.IntegerField()
    errors = serializers.ListField(child=serializers.CharField(), required=False)
    message = serializers.CharField()


# =============================================================================
# Checkout & Billing Portal
# =============================================================================


class CreateCheckoutSessionSerializer(ServerPricedSerializer):
    """
    Checkout request for a venue or fan plan.

    Fields:
        subjectType: "venue" or "fan"
        subjectId: Venue or fan account id (optional for fans)
        priceId: Configured Stripe Price ID sold to this kind of subject
        mode: "subscription" (default) or "payment"
    """

    subjectType = serializers.ChoiceField(
        source="subject_type",
        choices=BillableSubjectType.choices,
    )
    subjectId = serializers.UUIDField(source="subject_id", required=False, allow_null=True)
    priceId = serializers.CharField(source="price_id", max_length=255)
    mode = serializers.ChoiceField(
        choices=("subscription", "payment"),
        default="subscription",
    )

    def validate(self, attrs: dict) -> dict:
        attrs = super().validate(attrs)
        if attrs["subject_type"] == BillableSubjectType.VENUE and not attrs.get("subject_id"):
            raise serializers.ValidationError({"subjectId": "Venue ID is required"})
        return attrs


class CheckoutSessionResponseSerializer(serializers.Serializer):
    sessionId = serializers.CharField()
    url = serializers.CharField(allow_null=True)


class CreatePortalSessionSerializer(serializers.Serializer):
    returnUrl = serializers.URLField(source="return_url", required=False)


class PortalSessionResponseSerializer(serializers.Serializer):
    url = serializers.CharField()


# =============================================================================
# Plan Status & Pricing
# =============================================================================


class FanPassStatusResponseSerializer(serializers.Serializer):
    hasPass = serializers.BooleanField()
    passType = serializers.CharField()
    purchasedAt = serializers.DateTimeField(allow_null=True)
    features = serializers.DictField(child=serializers.BooleanField())


class FanPassAccessQuerySerializer(serializers.Serializer):
    feature = serializers.CharField(required=False, allow_blank=True, max_length=100)


class FanPassAccessResponseSerializer(serializers.Serializer):
    hasAccess = serializers.BooleanField()
    tier = serializers.CharField()


class VenuePremiumStatusResponseSerializer(serializers.Serializer):
    isPremium = serializers.BooleanField()
    tier = serializers.CharField()
    features = serializers.DictField(child=serializers.BooleanField())
    purchasedAt = serializers.DateTimeField(allow_null=True)


class PriceSerializer(serializers.Serializer):
    priceId = serializers.CharField(allow_blank=True)
    amount = serializers.IntegerField()
    displayPrice = serializers.CharField()
    name = serializers.CharField()
    description = serializers.CharField()


class PricingResponseSerializer(serializers.Serializer):
    fanPass = PriceSerializer()
    superfanPass = PriceSerializer()
    venuePremium = PriceSerializer()
