"""
Domain layer: value objects, pipeline descriptors and repository interfaces.

Nothing here touches storage. ORM classes live in vidshare.app.models,
repositories in vidshare.infrastructure.repositories.
"""
from .interfaces import (
    IOwnedRepository,
    ICommentRepository,
    ILikeRepository,
    ISubscriptionRepository,
)
from .models import (
    LikeTarget,
    ToggleResult,
    SubscriptionToggleResult,
    CascadeReport,
    PaginatedResult,
    TargetType,
)

__all__ = [
    "IOwnedRepository",
    "ICommentRepository",
    "ILikeRepository",
    "ISubscriptionRepository",
    "LikeTarget",
    "ToggleResult",
    "SubscriptionToggleResult",
    "CascadeReport",
    "PaginatedResult",
    "TargetType",
]
