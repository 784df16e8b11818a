"""
WatchParty and WatchPartyMember models.

Payment state for virtual attendance lives in payments.PaymentRecord. The
fields here (``has_paid``, ``virtual_attendees_count``) are denormalized
views of it, kept in step by the confirmation, webhook and refund paths
inside the same transaction that changes the PaymentRecord.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class WatchParty(UUIDPrimaryKeyMixin, BaseModel):
    """
    A hosted viewing of a match.

    Fields:
        host: User running the party; the only caller allowed to refund others
        venue: Optional venue the party takes place at
        name: Display name
        starts_at: Kick-off time
        allow_virtual_attendance: Whether remote attendees may pay to join
        virtual_attendance_price_cents: Price charged per virtual attendee
        currency: ISO 4217 currency code (lowercase)
        virtual_attendees_count: Number of paid virtual attendees
    """

    host = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="hosted_watch_parties",
    )

    venue = models.ForeignKey(
        "venues.Venue",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="watch_parties",
    )

    name = models.CharField(max_length=200)

    starts_at = models.DateTimeField(null=True, blank=True)

    allow_virtual_attendance = models.BooleanField(default=False)

    virtual_attendance_price_cents = models.PositiveIntegerField(
        default=0,
        help_text="Price per virtual attendee in cents",
    )

    currency = models.CharField(max_length=3, default="usd")

    virtual_attendees_count = models.PositiveIntegerField(
        default=0,
        help_text="Paid virtual attendees (maintained by payment flows)",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Watch Party"
        verbose_name_plural = "Watch Parties"

    def __str__(self) -> str:
        return f"WatchParty({self.name})"

    def is_host(self, user) -> bool:
        return self.host_id == user.pk


class WatchPartyMember(BaseModel):
    """
    A user's membership in a watch party.

    Fields:
        watch_party: Party joined
        user: Member
        attendance_type: in_person or virtual
        has_paid: True while the member holds a completed virtual payment
        payment_intent_id: Stripe PaymentIntent that paid for attendance
        paid_at / refunded_at: Payment timestamps
    """

    class AttendanceType(models.TextChoices):
        IN_PERSON = "in_person", "In Person"
        VIRTUAL = "virtual", "Virtual"

    watch_party = models.ForeignKey(
        WatchParty,
        on_delete=models.CASCADE,
        related_name="members",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="watch_party_memberships",
    )

    attendance_type = models.CharField(
        max_length=20,
        choices=AttendanceType.choices,
        default=AttendanceType.IN_PERSON,
    )

    has_paid = models.BooleanField(default=False)

    payment_intent_id = models.CharField(max_length=255, blank=True, default="")

    paid_at = models.DateTimeField(null=True, blank=True)

    refunded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["created_at"]
        verbose_name = "Watch Party Member"
        verbose_name_plural = "Watch Party Members"
        constraints = [
            models.UniqueConstraint(
                fields=["watch_party", "user"],
                name="watch_party_member_unique",
            ),
        ]

    def __str__(self) -> str:
        return f"WatchPartyMember({self.watch_party_id}, {self.user_id})"
