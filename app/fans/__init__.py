"""
Fans application.

A FanAccount holds a fan's plan and feature flags. Premium plans are sold
as subscriptions through Stripe Checkout.
"""
