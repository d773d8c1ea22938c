"""
Core Application - Infrastructure & Base Classes

This app contains infrastructure code shared by the treasury, recipients
and payouts apps:

- Generic, reusable base classes (no ledger-specific logic)
- The API error contract (exceptions and the DRF exception handler)
- The health check and OpenAPI customizations

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ValidationError: Input validation failures
    - NotFoundError: Resource not found
    - PermissionDeniedError: Authorization failures
    - ConflictError: State conflicts (replays, invalid transitions)

Helpers (import from core.helpers):
    - hash_string: String hashing
    - clamp_limit: Page size bounding
    - normalize_email: Email identity normalization

Note:
    Django models and model mixins are NOT imported here to avoid
    AppRegistryNotReady errors. Import them directly from their modules.
"""

# Services (no Django model dependencies)
from .services import BaseService, ServiceResult

# Exceptions (no Django dependencies)
from .exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

# Helpers (no Django model dependencies)
from .helpers import clamp_limit, hash_string, normalize_email

__all__ = [
    # Services
    "BaseService",
    "ServiceResult",
    # Exceptions
    "BaseApplicationError",
    "ValidationError",
    "NotFoundError",
    "PermissionDeniedError",
    "ConflictError",
    # Helpers
    "clamp_limit",
    "hash_string",
    "normalize_email",
]
