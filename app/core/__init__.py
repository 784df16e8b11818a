"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps. Nothing here knows about
payments, venues or watch parties.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (import from core.services):
    - BaseService: Base class for service layer (logger, atomic)
    - ServiceResult: Result wrapper for internal dispatch

Exceptions (import from core.exceptions):
    - BaseApplicationError and the status-mapped taxonomy
      (ValidationError, FailedPreconditionError, NotFoundError,
      PermissionDeniedError, ConflictError, ExternalServiceError)

Views (import from core.views):
    - health_check: Liveness/readiness endpoint
    - api_exception_handler: DRF EXCEPTION_HANDLER
"""
