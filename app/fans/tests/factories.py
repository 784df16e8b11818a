"""
Factory Boy factories for fans.
"""

import factory
from factory.django import DjangoModelFactory

from fans.models import FanAccount


class FanAccountFactory(DjangoModelFactory):
    """Factory for FanAccount (free plan by default)."""

    class Meta:
        model = FanAccount

    user = factory.SubFactory("authentication.tests.factories.UserFactory")
    favorite_team = "USA"
