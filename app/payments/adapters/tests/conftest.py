"""
Pytest fixtures for Stripe adapter tests.

The Stripe SDK resources are patched at the module attribute the adapter
reads, so no request leaves the process.

Sections:
    - Mock Stripe Objects
    - Mock Stripe Errors
    - Patched SDK Resources
"""

from dataclasses import dataclass
from typing import Any
from unittest.mock import patch

import pytest
import stripe


# =============================================================================
# Mock Stripe Objects
# =============================================================================


@dataclass
class MockStripeObject:
    """Mock Stripe API object with to_dict support."""

    data: dict[str, Any]

    def __getattr__(self, name: str) -> Any:
        if name == "data":
            return self.__dict__["data"]
        return self.data.get(name)

    def to_dict(self) -> dict[str, Any]:
        return self.data


@pytest.fixture
def stripe_object():
    """Build an arbitrary mock Stripe object from a dict."""
    return MockStripeObject


@pytest.fixture
def mock_payment_intent():
    """Build a mock PaymentIntent response."""

    def _create(
        id: str = "pi_test123456",
        status: str = "requires_payment_method",
        amount: int = 999,
        currency: str = "usd",
        client_secret: str = "pi_test123456_secret_abc123",
        metadata: dict | None = None,
    ) -> MockStripeObject:
        return MockStripeObject(
            {
                "id": id,
                "object": "payment_intent",
                "status": status,
                "amount": amount,
                "currency": currency,
                "client_secret": client_secret,
                "metadata": metadata or {},
            }
        )

    return _create


@pytest.fixture
def mock_refund():
    """Build a mock Refund response."""

    def _create(
        id: str = "re_test123456",
        amount: int = 999,
        status: str = "succeeded",
        metadata: dict | None = None,
    ) -> MockStripeObject:
        return MockStripeObject(
            {
                "id": id,
                "object": "refund",
                "amount": amount,
                "currency": "usd",
                "status": status,
                "payment_intent": "pi_test123456",
                "metadata": metadata or {},
            }
        )

    return _create


# =============================================================================
# Mock Stripe Errors
# =============================================================================


@pytest.fixture
def card_error():
    error = stripe.CardError(
        message="Your card was declined.",
        param=None,
        code="card_declined",
    )
    error.decline_code = "insufficient_funds"
    return error


@pytest.fixture
def invalid_request_error():
    return stripe.InvalidRequestError(
        message="No such payment_intent: 'pi_missing'",
        param="id",
        code="resource_missing",
    )


# =============================================================================
# Patched SDK Resources
# =============================================================================


@pytest.fixture
def mock_stripe_http_client():
    """Keep _configure_stripe from building a real HTTP client."""
    with patch("stripe.RequestsClient") as mock:
        yield mock


@pytest.fixture
def mock_stripe_payment_intent(mock_stripe_http_client, mock_payment_intent):
    with patch("stripe.PaymentIntent") as mock:
        mock.create.return_value = mock_payment_intent()
        mock.retrieve.return_value = mock_payment_intent(status="succeeded")
        mock.cancel.return_value = mock_payment_intent(status="canceled")
        yield mock


@pytest.fixture
def mock_stripe_refund(mock_stripe_http_client, mock_refund):
    with patch("stripe.Refund") as mock:
        mock.create.return_value = mock_refund()
        yield mock
