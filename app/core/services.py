"""
Base service layer patterns for business logic encapsulation.

This module provides foundational patterns for the service layer:
- ServiceResult: Standard result wrapper for handlers that report outcomes
- BaseService: Base class with logging and transaction helpers

Service Layer Philosophy:
    Services encapsulate business logic separate from views and models.
    Views handle HTTP concerns, models handle data, services handle logic.

Pattern Comparison:
    - Exceptions (core.exceptions): caller-facing failures such as
      NotFound or PermissionDenied, raised by services behind an API
    - ServiceResult: outcomes of internal dispatch (webhook handlers,
      background reconciliation) where "nothing to do" is a success

Usage:
    from core.services import BaseService

    class RefundService(BaseService):
        @classmethod
        def refund_attendee(cls, caller, watch_party_id):
            with cls.atomic():
                ...
            cls.get_logger().info("Refund issued", extra={...})
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code

    Usage:
        result = dispatch_webhook(event)
        if not result.success:
            logger.error(result.error)
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """Create a successful result carrying ``data``."""
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code
        """
        return cls(success=False, error=error, error_code=error_code)


class BaseService:
    """
    Base class for service layer classes.

    Design Notes:
        - Use @classmethod (no instance state)
        - Raise core.exceptions errors for caller-facing failures
        - Keep transaction boundaries explicit with cls.atomic()
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        The logger is named after the service class (for example
        ``payments.services.refund_service.RefundService``) so records
        can be filtered per service.
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        Thin wrapper around ``django.db.transaction.atomic`` that makes
        transaction boundaries explicit in service code. Any exception
        raised inside the block rolls every write back.
        """
        with transaction.atomic():
            yield
