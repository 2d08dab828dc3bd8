# vidshare/infrastructure/repositories/__init__.py
"""
Repository Layer
Data access patterns for all entities
"""

from .base import BaseRepository, OwnedEntityRepository
from .video_repository import VideoRepository
from .comment_repository import CommentRepository
from .tweet_repository import TweetRepository
from .like_repository import LikeRepository
from .subscription_repository import SubscriptionRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "OwnedEntityRepository",
    "VideoRepository",
    "CommentRepository",
    "TweetRepository",
    "LikeRepository",
    "SubscriptionRepository",
    "UserRepository",
]
