"""
Authentication application.

Email-based User model and JWT token endpoints used by every API client.

Usage:
    from authentication.models import User
"""
