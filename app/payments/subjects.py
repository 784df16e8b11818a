"""
Lookup of billable subject models by subject type.

Venues and fan accounts live in their own apps and depend on
payments.models for their billing fields, so payments resolves them
lazily through the app registry instead of importing them.
"""

from __future__ import annotations

from django.apps import apps
from django.core.exceptions import ValidationError as DjangoValidationError

from payments.state_machines import BillableSubjectType

BILLABLE_SUBJECT_MODELS = {
    BillableSubjectType.VENUE: "venues.Venue",
    BillableSubjectType.FAN: "fans.FanAccount",
}

# Metadata keys written by older checkout sessions
LEGACY_SUBJECT_KEYS = {
    "venueId": BillableSubjectType.VENUE,
    "fanId": BillableSubjectType.FAN,
}


def billable_model(subject_type: str):
    """Return the model class for ``subject_type``, or None if unknown."""
    label = BILLABLE_SUBJECT_MODELS.get(subject_type)
    return apps.get_model(label) if label else None


def get_billable_subject(subject_type: str, subject_id):
    """Return the subject row, or None if the type or row is unknown."""
    model = billable_model(subject_type)
    if model is None or not subject_id:
        return None
    try:
        return model.objects.filter(pk=subject_id).first()
    except (DjangoValidationError, ValueError):
        return None


def find_by_customer(customer_id: str) -> list:
    """Every billable subject attached to a Stripe customer."""
    if not customer_id:
        return []
    subjects = []
    for label in BILLABLE_SUBJECT_MODELS.values():
        model = apps.get_model(label)
        subjects.extend(model.objects.filter(gateway_customer_id=customer_id))
    return subjects


def subject_from_metadata(metadata: dict) -> tuple[str | None, str | None]:
    """
    Read ``(subject_type, subject_id)`` from gateway metadata.

    Accepts ``subjectType``/``subjectId`` and the older ``venueId`` or
    ``fanId`` keys.
    """
    metadata = metadata or {}
    if metadata.get("subjectType") and metadata.get("subjectId"):
        return metadata["subjectType"], metadata["subjectId"]
    for key, subject_type in LEGACY_SUBJECT_KEYS.items():
        if metadata.get(key):
            return subject_type, metadata[key]
    return None, None
