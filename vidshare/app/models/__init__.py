"""
ORM models
One table per collection; tables reference each other only by id columns
"""

from .base import Base, new_id, is_valid_id, utcnow
from .user import User, WatchHistoryEntry
from .video import Video
from .comment import Comment
from .tweet import Tweet
from .like import Like, TargetType
from .subscription import Subscription

__all__ = [
    "Base",
    "new_id",
    "is_valid_id",
    "utcnow",
    "User",
    "WatchHistoryEntry",
    "Video",
    "Comment",
    "Tweet",
    "Like",
    "TargetType",
    "Subscription",
]
