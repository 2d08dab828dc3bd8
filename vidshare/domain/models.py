# vidshare/domain/models.py
"""
Domain value objects returned by services.

ORM entities are re-exported from vidshare.app.models so callers can keep
importing everything domain-facing from one place.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from vidshare.app.models import (
    Comment,
    Like,
    Subscription,
    TargetType,
    Tweet,
    User,
    Video,
    is_valid_id,
)


@dataclass(frozen=True)
class LikeTarget:
    """
    The one entity a Like points at.

    A tagged variant: kind says which collection, target_id which document.
    Construction fails unless both halves are valid, so a half-built target
    can never reach storage.
    """

    kind: TargetType
    target_id: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", TargetType(self.kind))
        if not is_valid_id(self.target_id):
            raise ValueError(f"Malformed target id: {self.target_id!r}")

    @classmethod
    def video(cls, video_id: str) -> "LikeTarget":
        return cls(TargetType.VIDEO, video_id)

    @classmethod
    def comment(cls, comment_id: str) -> "LikeTarget":
        return cls(TargetType.COMMENT, comment_id)

    @classmethod
    def tweet(cls, tweet_id: str) -> "LikeTarget":
        return cls(TargetType.TWEET, tweet_id)


@dataclass(frozen=True)
class ToggleResult:
    liked: bool
    target: LikeTarget

    def to_dict(self) -> Dict[str, Any]:
        return {
            "liked": self.liked,
            "target_type": self.target.kind.value,
            "target_id": self.target.target_id,
        }


@dataclass(frozen=True)
class SubscriptionToggleResult:
    subscribed: bool
    channel_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"subscribed": self.subscribed, "channel_id": self.channel_id}


@dataclass
class CascadeReport:
    """
    Outcome of one cascade delete.

    warnings is non-empty when cleanup after the parent was removed did not
    finish; the delete itself still counts as successful.
    """

    parent_type: TargetType
    parent_id: str
    likes_deleted: int = 0
    comments_deleted: int = 0
    parent_deleted: bool = False
    warnings: List[str] = field(default_factory=list)

    @property
    def consistent(self) -> bool:
        return not self.warnings

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parent_type": self.parent_type.value,
            "parent_id": self.parent_id,
            "likes_deleted": self.likes_deleted,
            "comments_deleted": self.comments_deleted,
            "parent_deleted": self.parent_deleted,
            "warnings": list(self.warnings),
        }


@dataclass
class PaginatedResult:
    """One page of a feed plus its position in the full result set"""

    items: List[Dict[str, Any]]
    page: int
    limit: int
    total_items: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(
        cls, items: List[Dict[str, Any]], page: int, limit: int, total_items: int
    ) -> "PaginatedResult":
        total_pages = max(1, math.ceil(total_items / limit))
        return cls(
            items=items,
            page=page,
            limit=limit,
            total_items=total_items,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )

    @property
    def next_page(self) -> Optional[int]:
        return self.page + 1 if self.has_next_page else None

    @property
    def prev_page(self) -> Optional[int]:
        return self.page - 1 if self.has_prev_page else None


__all__ = [
    "Comment",
    "Like",
    "Subscription",
    "TargetType",
    "Tweet",
    "User",
    "Video",
    "LikeTarget",
    "ToggleResult",
    "SubscriptionToggleResult",
    "CascadeReport",
    "PaginatedResult",
]
