# vidshare/app/models/video.py
"""
Video Model
Represents an uploaded video with its publish state and view counter
"""

from sqlalchemy import (
    Column,
    String,
    Integer,
    Float,
    DateTime,
    Text,
    Boolean,
)

from .base import Base, new_id, utcnow


class Video(Base):
    """
    Video entity

    owner_id is a plain id reference; ownership is enforced by the services,
    not by the database.
    """

    __tablename__ = "videos"

    id = Column(String(36), primary_key=True, default=new_id)

    # Basic Info
    title = Column(String(500), nullable=False, index=True, comment="Video title")
    description = Column(Text, nullable=False, default="", comment="Video description")

    # Media references (object storage lives elsewhere)
    video_url = Column(String(500), nullable=False, comment="Media file URL")
    thumbnail_url = Column(String(500), nullable=False, comment="Thumbnail URL")
    duration = Column(Float, nullable=False, default=0.0, comment="Length in seconds")

    # Engagement
    views = Column(Integer, nullable=False, default=0, index=True, comment="View count")

    # State
    is_published = Column(Boolean, nullable=False, default=False, index=True)
    pending_deletion = Column(
        Boolean,
        nullable=False,
        default=False,
        comment="Set while a cascade delete is in progress",
    )

    owner_id = Column(String(36), nullable=False, index=True, comment="Owning user")

    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Video(id={self.id}, title={(self.title or '')[:30]}...)>"

    def to_dict(self) -> dict:
        """Convert model to dictionary"""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "video_url": self.video_url,
            "thumbnail_url": self.thumbnail_url,
            "duration": self.duration,
            "views": self.views,
            "is_published": self.is_published,
            "owner_id": self.owner_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
