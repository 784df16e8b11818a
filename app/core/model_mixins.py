"""
Model mixins combined with core.models.BaseModel.

Available Mixins:
    UUIDPrimaryKeyMixin: Use a random UUID as primary key
"""

from __future__ import annotations

import uuid

from django.db import models


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use UUID as primary key instead of an auto-increment integer.

    Payment records and webhook audit rows are referenced from gateway
    metadata and support tickets, so their ids must not reveal volume or
    ordering.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True
