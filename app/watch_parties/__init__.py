"""
Watch parties application.

A watch party is hosted by a user, optionally at a venue. Members may attend
in person or, when the host allows it, virtually for a fee collected through
Stripe.
"""
