"""
Services Package
Business logic layer for vidshare
"""

from .base_service import BaseService
from .pipeline_builder import FeedFilters, FeedKind, QueryPipelineBuilder
from .paginated_aggregator import PaginatedAggregator
from .reaction_service import ReactionService
from .cascade_service import CascadeManager
from .feed_service import FeedService
from .entity_service import EntityService
from .exceptions import (
    # Base
    ServiceError,

    # Validation Errors
    ValidationError,
    InvalidIdentifierError,

    # Resource Errors
    ResourceNotFoundError,
    ResourceConflictError,

    # Permission Errors
    PermissionDeniedError,

    # Consistency Errors
    ConsistencyViolationError,

    # Upstream Errors
    UpstreamTimeoutError,
    UpstreamUnavailableError,
    DatabaseError,

    # Utility Functions
    error_to_http_status,
    is_retryable_error,
)

__all__ = [
    # Base Classes
    "BaseService",

    # Services
    "QueryPipelineBuilder",
    "FeedKind",
    "FeedFilters",
    "PaginatedAggregator",
    "ReactionService",
    "CascadeManager",
    "FeedService",
    "EntityService",

    # Exceptions
    "ServiceError",
    "ValidationError",
    "InvalidIdentifierError",
    "ResourceNotFoundError",
    "ResourceConflictError",
    "PermissionDeniedError",
    "ConsistencyViolationError",
    "UpstreamTimeoutError",
    "UpstreamUnavailableError",
    "DatabaseError",

    # Utility Functions
    "error_to_http_status",
    "is_retryable_error",
]
