"""
Tests for the domain exception hierarchy and ServiceResult.
"""

from __future__ import annotations

import pytest

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
    FailedPreconditionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from core.services import ServiceResult


class TestApplicationErrors:
    @pytest.mark.parametrize(
        ("error_class", "status_code", "error_code"),
        [
            (ValidationError, 400, "INVALID_ARGUMENT"),
            (FailedPreconditionError, 400, "FAILED_PRECONDITION"),
            (PermissionDeniedError, 403, "PERMISSION_DENIED"),
            (NotFoundError, 404, "NOT_FOUND"),
            (ConflictError, 409, "ALREADY_EXISTS"),
            (ExternalServiceError, 500, "INTERNAL"),
        ],
    )
    def test_status_and_code(self, error_class, status_code, error_code):
        error = error_class("Something happened")

        assert isinstance(error, BaseApplicationError)
        assert error.status_code == status_code
        assert error.error_code == error_code

    def test_to_dict_includes_details_only_when_present(self):
        bare = NotFoundError("Watch party not found")
        detailed = NotFoundError("Watch party not found", details={"watch_party_id": "wp-1"})

        assert bare.to_dict() == {"error": "Watch party not found", "error_code": "NOT_FOUND"}
        assert detailed.to_dict()["details"] == {"watch_party_id": "wp-1"}

    def test_custom_error_code(self):
        error = ConflictError("Duplicate", error_code="DUPLICATE_PURCHASE")

        assert str(error) == "[DUPLICATE_PURCHASE] Duplicate"


class TestServiceResult:
    def test_success(self):
        result = ServiceResult.success({"id": 1})

        assert result.success is True
        assert result.data == {"id": 1}
        assert result.error is None

    def test_failure(self):
        result = ServiceResult.failure("No subject", error_code="NOT_FOUND")

        assert result.success is False
        assert result.data is None
        assert result.error == "No subject"
        assert result.error_code == "NOT_FOUND"
