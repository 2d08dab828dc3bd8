"""
Core API surface: request schemas, response envelope and the CoreAPI facade
"""

from .facade import CoreAPI
from .schemas import (
    ApiResponse,
    DeleteEntityRequest,
    FeedQueryRequest,
    PaginatedData,
    ToggleReactionRequest,
    ToggleSubscriptionRequest,
    UpdateEntityRequest,
)

__all__ = [
    "CoreAPI",
    "ApiResponse",
    "DeleteEntityRequest",
    "FeedQueryRequest",
    "PaginatedData",
    "ToggleReactionRequest",
    "ToggleSubscriptionRequest",
    "UpdateEntityRequest",
]
