"""
Pytest fixtures for payment tests.

Services reach Stripe through ``GatewayService.get_stripe_adapter()``. The
``mock_stripe_adapter`` fixture installs a MagicMock there for every
payment service at once and removes it afterwards.

Usage:
    def test_issue(mock_stripe_adapter, payer, watch_party):
        issued = PaymentIntentService.create_virtual_attendance_intent(
            user=payer, watch_party_id=watch_party.id
        )
        mock_stripe_adapter.create_payment_intent.assert_called_once()
"""

from __future__ import annotations

import itertools
from unittest.mock import MagicMock

import pytest

from authentication.tests.factories import UserFactory
from payments.adapters import (
    CheckoutSessionResult,
    CustomerResult,
    PaymentIntentResult,
    PortalSessionResult,
    RefundResult,
)
from payments.models import PaymentRecord
from payments.services import PaymentIntentService, complete_payment
from payments.services.base import GatewayService
from watch_parties.tests.factories import WatchPartyFactory


# =============================================================================
# Stripe Adapter
# =============================================================================


@pytest.fixture
def mock_stripe_adapter():
    """
    MagicMock standing in for StripeAdapter.

    create_payment_intent and create_refund return fresh ids on every call
    so several payers can be issued and refunded within one test.
    """
    counter = itertools.count(1)
    adapter = MagicMock()

    def _create_payment_intent(params):
        intent_id = f"pi_test_{next(counter):04d}"
        return PaymentIntentResult(
            id=intent_id,
            status="requires_payment_method",
            amount_cents=params.amount_cents,
            currency=params.currency,
            client_secret=f"{intent_id}_secret_test",
            metadata=params.metadata,
            raw_response={},
        )

    def _create_refund(payment_intent_id, idempotency_key, metadata=None, **kwargs):
        return RefundResult(
            id=f"re_test_{next(counter):04d}",
            amount_cents=999,
            currency="usd",
            status="succeeded",
            payment_intent_id=payment_intent_id,
            metadata=metadata or {},
            raw_response={},
        )

    adapter.create_payment_intent.side_effect = _create_payment_intent
    adapter.create_refund.side_effect = _create_refund
    adapter.create_customer.return_value = CustomerResult(
        id="cus_test_new",
        email="payer@example.com",
        raw_response={},
    )
    adapter.create_checkout_session.return_value = CheckoutSessionResult(
        id="cs_test_123",
        url="https://checkout.stripe.com/c/pay/cs_test_123",
        raw_response={},
    )
    adapter.create_billing_portal_session.return_value = PortalSessionResult(
        id="bps_test_123",
        url="https://billing.stripe.com/p/session/bps_test_123",
        raw_response={},
    )

    GatewayService.set_stripe_adapter(adapter)
    yield adapter
    GatewayService.set_stripe_adapter(None)


# =============================================================================
# Users and Watch Parties
# =============================================================================


@pytest.fixture
def payer(db):
    """User buying virtual attendance."""
    return UserFactory(email="payer@example.com")


@pytest.fixture
def host(db):
    return UserFactory(email="host@example.com")


@pytest.fixture
def watch_party(db, host):
    """Watch party open to virtual attendance at 999 cents."""
    return WatchPartyFactory(host=host, virtual_attendance_price_cents=999)


@pytest.fixture
def issue_and_complete(mock_stripe_adapter):
    """
    Issue a virtual attendance intent for a payer and complete it.

    Returns the completed PaymentRecord.
    """
    def _issue_and_complete(user, party):
        issued = PaymentIntentService.create_virtual_attendance_intent(
            user=user, watch_party_id=party.id
        )
        complete_payment(issued.payment_intent_id)
        return PaymentRecord.objects.get(pk=issued.payment_record.pk)

    return _issue_and_complete
