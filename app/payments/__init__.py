"""
Payments app for Stripe integration.

This app handles:
- Payment intent issuance with duplicate-purchase prevention
- Client confirmation of virtual attendance payments
- Single and bulk refunds for watch parties
- Stripe webhook ingress, deduplication and reconciliation
- Checkout and billing portal sessions for venue and fan plans

Related apps:
    - watch_parties: Virtual attendance and membership
    - venues, fans: Billable subjects with plans and feature flags

Usage:
    from payments.services import PaymentIntentService

    issued = PaymentIntentService.create_virtual_attendance_intent(user, watch_party_id)
"""
