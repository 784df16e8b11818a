"""
Read side of plans: what a fan or venue currently has, and what it costs.

Plans only change through the checkout and subscription webhooks. This
service reads the reconciled billing fields and never calls Stripe.

Usage:
    from payments.services import BillingService

    BillingService.check_fan_feature(request.user, "advancedStats")
    # {"hasAccess": True, "tier": "fan_pass"}
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from core.exceptions import NotFoundError
from core.services import BaseService

from payments.plans import features_for, pricing
from payments.state_machines import BillableSubjectType, Plan
from payments.subjects import billable_model, get_billable_subject

if TYPE_CHECKING:
    from authentication.models import User


class BillingService(BaseService):
    """Plan status, feature checks and display prices."""

    @staticmethod
    def _fan_account(user: User):
        if user is None or not user.is_authenticated:
            return None
        return billable_model(BillableSubjectType.FAN).objects.filter(user=user).first()

    @classmethod
    def fan_pass_status(cls, user: User) -> dict[str, Any]:
        """
        Current pass of the caller.

        Fans without an account are reported on the free plan with the
        free feature map.
        """
        fan = cls._fan_account(user)
        if fan is None:
            return {
                "hasPass": False,
                "passType": Plan.FREE,
                "purchasedAt": None,
                "features": features_for(BillableSubjectType.FAN, Plan.FREE),
            }

        return {
            "hasPass": fan.has_paid_plan,
            "passType": fan.plan,
            "purchasedAt": fan.last_payment_at,
            "features": fan.features,
        }

    @classmethod
    def check_fan_feature(cls, user: User | None, feature: str | None) -> dict[str, Any]:
        """
        Whether the caller's pass unlocks ``feature``.

        Anonymous callers get no access on the free tier. An empty
        ``feature`` only asks for the tier and is always granted to
        signed-in callers. Unknown feature names are denied.
        """
        if user is None or not user.is_authenticated:
            return {"hasAccess": False, "tier": Plan.FREE}

        fan = cls._fan_account(user)
        if fan is None:
            tier = Plan.FREE
            features = features_for(BillableSubjectType.FAN, Plan.FREE)
        else:
            tier = fan.plan
            features = fan.features

        has_access = not feature or features.get(feature) is True
        return {"hasAccess": has_access, "tier": tier}

    @classmethod
    def venue_premium_status(cls, venue_id) -> dict[str, Any]:
        """
        Plan and features of a venue.

        Raises:
            NotFoundError: Venue does not exist
        """
        venue = get_billable_subject(BillableSubjectType.VENUE, venue_id)
        if venue is None:
            raise NotFoundError("Venue not found", details={"venue_id": str(venue_id)})

        return {
            "isPremium": venue.has_paid_plan,
            "tier": venue.plan,
            "features": venue.features,
            "purchasedAt": venue.last_payment_at,
        }

    @classmethod
    def pricing(cls) -> dict[str, dict]:
        return pricing()
