"""
Shared base for services that talk to Stripe.

Services never import the Stripe SDK. They go through the adapter returned
by ``get_stripe_adapter()``, which tests replace with a fake:

    RefundService.set_stripe_adapter(FakeStripeAdapter)
    try:
        ...
    finally:
        RefundService.set_stripe_adapter(None)
"""

from __future__ import annotations

from core.services import BaseService

from payments.adapters import StripeAdapter


class GatewayService(BaseService):
    """BaseService with an injectable Stripe adapter."""

    # Stripe adapter - can be injected for testing
    _stripe_adapter: type | None = None

    @classmethod
    def get_stripe_adapter(cls) -> type:
        """Get the Stripe adapter class."""
        return cls._stripe_adapter or StripeAdapter

    @classmethod
    def set_stripe_adapter(cls, adapter: type | None) -> None:
        """Set the Stripe adapter class (for testing)."""
        cls._stripe_adapter = adapter
