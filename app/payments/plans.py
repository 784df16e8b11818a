"""
Plan, feature and price tables.

Everything a client could be charged, and every feature a plan unlocks, is
decided here on the server. Clients only ever name a product, a checkout
price id, or a watch party. Amounts are never taken from requests.

Each checkout price buys exactly one plan for one kind of subject, so a
venue cannot be upgraded with a fan price (or the other way round).

Usage:
    from payments.plans import features_for, plan_for_price

    plan = plan_for_price(BillableSubjectType.FAN, settings.STRIPE_PRICE_SUPERFAN_PASS)
    features = features_for(BillableSubjectType.FAN, plan)
"""

from __future__ import annotations

from django.conf import settings

from core.exceptions import ValidationError
from payments.state_machines import BillableSubjectType, Plan

# =============================================================================
# Feature Tables
# =============================================================================

VENUE_BASIC_FEATURES = (
    "basicProfile",
    "customerMessaging",
    "basicAnalytics",
    "communityAccess",
    "gameNotifications",
)

VENUE_PREMIUM_FEATURES = (
    "advancedAnalytics",
    "liveStreaming",
    "prioritySupport",
    "featuredListings",
    "customPromotions",
    "socialIntegration",
)

FAN_BASIC_FEATURES = (
    "basicSchedules",
    "venueDiscovery",
    "matchNotifications",
    "basicTeamFollowing",
    "communityAccess",
)

FAN_PASS_FEATURES = (
    "adFree",
    "advancedStats",
    "customAlerts",
    "advancedSocialFeatures",
)

SUPERFAN_PASS_FEATURES = (
    "exclusiveContent",
    "priorityFeatures",
    "aiMatchInsights",
    "downloadableContent",
)

# Ordered from lowest to highest. A plan unlocks its own tier and every
# tier before it.
PLAN_TIERS = {
    BillableSubjectType.VENUE: (
        (Plan.FREE, VENUE_BASIC_FEATURES),
        (Plan.PREMIUM, VENUE_PREMIUM_FEATURES),
    ),
    BillableSubjectType.FAN: (
        (Plan.FREE, FAN_BASIC_FEATURES),
        (Plan.FAN_PASS, FAN_PASS_FEATURES),
        (Plan.SUPERFAN_PASS, SUPERFAN_PASS_FEATURES),
    ),
}


def paid_plans(subject_type: str) -> tuple[str, ...]:
    """Paid plans available to ``subject_type``, lowest first."""
    return tuple(plan for plan, _ in PLAN_TIERS[subject_type] if plan != Plan.FREE)


def features_for(subject_type: str, plan: str) -> dict[str, bool]:
    """
    Build the full feature map for a subject type on a plan.

    Every feature of the subject type is present. Features above the plan's
    tier are explicitly False so a downgrade clears every paid flag rather
    than leaving stale ones behind.

    Raises:
        ValueError: If ``plan`` is not a plan of ``subject_type``
    """
    tiers = PLAN_TIERS[subject_type]
    plans = [tier_plan for tier_plan, _ in tiers]
    if plan not in plans:
        raise ValueError(f"{plan!r} is not a {subject_type} plan")

    unlocked_up_to = plans.index(plan)
    features = {}
    for index, (_, names) in enumerate(tiers):
        features.update({name: index <= unlocked_up_to for name in names})
    return features


# =============================================================================
# Plan Resolution
# =============================================================================


def plan_for_price(subject_type: str, price_id: str) -> str:
    """
    Return the plan a checkout price buys for ``subject_type``.

    Raises:
        ValidationError: If the price is unknown or belongs to another
            kind of subject
    """
    subject_plan = settings.STRIPE_CHECKOUT_PRICES.get(price_id or "")
    if subject_plan is None or subject_plan[0] != subject_type:
        raise ValidationError(
            "Invalid price ID",
            details={"price_id": price_id, "subject_type": subject_type},
        )
    return subject_plan[1]


def subject_type_for_price(price_id: str | None) -> str | None:
    """Kind of subject a checkout price is sold to, or None if unknown."""
    subject_plan = settings.STRIPE_CHECKOUT_PRICES.get(price_id or "")
    return subject_plan[0] if subject_plan else None


def plan_for_checkout(subject_type: str, metadata: dict) -> str:
    """
    Paid plan to apply after a completed checkout.

    Reads the ``plan`` the session was opened for (or ``passType`` from
    older fan pass sessions). Sessions without a usable value get the
    lowest paid plan of the subject type.
    """
    metadata = metadata or {}
    available = paid_plans(subject_type)
    for key in ("plan", "passType"):
        if metadata.get(key) in available:
            return metadata[key]
    return available[0]


def plan_for_subscription(
    subject_type: str,
    status: str | None,
    price_id: str | None = None,
    current_plan: str | None = None,
) -> str:
    """
    Map a gateway subscription to a plan.

    Total over every input: only "active" grants a paid plan. Trialing,
    past_due, unpaid, canceled, incomplete, unknown or missing statuses all
    resolve to the free plan. An active subscription gets the plan of its
    price, else keeps the subject's current paid plan, else the lowest
    paid plan.
    """
    if status != "active":
        return Plan.FREE

    subject_plan = settings.STRIPE_CHECKOUT_PRICES.get(price_id or "")
    if subject_plan is not None and subject_plan[0] == subject_type:
        return subject_plan[1]

    available = paid_plans(subject_type)
    if current_plan in available:
        return current_plan
    return available[0]


# =============================================================================
# Prices
# =============================================================================


def product_amount_cents(product_type: str) -> int:
    """
    Return the server-side price of a catalog product.

    Raises:
        ValidationError: If the product is not in the catalog
    """
    catalog = settings.PAYMENT_PRODUCT_AMOUNTS
    if product_type not in catalog:
        raise ValidationError(
            "Invalid payment type",
            details={"product_type": product_type, "allowed": sorted(catalog)},
        )
    return catalog[product_type]


PRICING_ENTRIES = (
    (
        "fanPass",
        "fan_pass",
        "STRIPE_PRICE_FAN_PASS",
        "Fan Pass",
        "Ad-free experience, advanced stats, custom alerts, social features",
    ),
    (
        "superfanPass",
        "superfan_pass",
        "STRIPE_PRICE_SUPERFAN_PASS",
        "Superfan Pass",
        "Everything in Fan Pass + exclusive content, AI insights, priority features",
    ),
    (
        "venuePremium",
        "venue_premium",
        "STRIPE_PRICE_VENUE_PREMIUM",
        "Venue Premium",
        "Full portal access: analytics, live streaming, featured listing",
    ),
)


def pricing() -> dict[str, dict]:
    """Display prices for every paid plan, keyed for the clients."""
    catalog = settings.PAYMENT_PRODUCT_AMOUNTS
    entries = {}
    for key, product_type, price_setting, name, description in PRICING_ENTRIES:
        amount = catalog[product_type]
        entries[key] = {
            "priceId": getattr(settings, price_setting),
            "amount": amount,
            "displayPrice": f"${amount / 100:.2f}",
            "name": name,
            "description": description,
        }
    return entries
