"""
Stripe webhook ingress.

- views.stripe_webhook: HTTP endpoint (signature check)
- processor.WebhookProcessor: dedup ledger and transaction boundary
- handlers: event type registry and state reconcilers
"""
