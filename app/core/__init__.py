"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps (authentication, chat,
media). Nothing in here knows about channels or messages.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - SoftDeleteMixin: Soft delete support (is_deleted, deleted_at)

Managers (import from core.managers):
    - SoftDeleteManager: Filter deleted records by default
    - SoftDeleteQuerySet: QuerySet with soft delete operations

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - NotFoundError: Missing resource on the unexpected path
    - api_exception_handler: DRF exception handler hiding internal detail

Views (import from core.views):
    - health_check: Liveness/readiness endpoint
"""
