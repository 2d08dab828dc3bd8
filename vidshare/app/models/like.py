# vidshare/app/models/like.py
"""
Like Model
A reaction by one user on exactly one video, comment or tweet
"""

import enum

from sqlalchemy import Column, String, DateTime, UniqueConstraint, Enum as SQLEnum

from .base import Base, new_id, utcnow


class TargetType(str, enum.Enum):
    """Kinds of entity a Like can point at"""

    VIDEO = "video"
    COMMENT = "comment"
    TWEET = "tweet"


class Like(Base):
    """
    Like entity

    The target is stored as (target_type, target_id) so a row always points at
    exactly one entity. At most one row may exist per (liked_by, target): the
    unique constraint below is what closes the concurrent-toggle race.
    """

    __tablename__ = "likes"
    __table_args__ = (
        UniqueConstraint(
            "liked_by", "target_type", "target_id", name="uq_likes_owner_target"
        ),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    liked_by = Column(String(36), nullable=False, index=True, comment="Liking user")
    target_type = Column(
        SQLEnum(
            TargetType,
            name="like_target_type",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )
    target_id = Column(String(36), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    def __repr__(self):
        return (
            f"<Like(liked_by={self.liked_by}, "
            f"{self.target_type.value if self.target_type else None}={self.target_id})>"
        )
