# vidshare/app/models/comment.py
"""
Comment Model
A viewer comment on a video
"""

from sqlalchemy import Column, String, DateTime, Text, Boolean

from .base import Base, new_id, utcnow


class Comment(Base):
    """Comment on a video"""

    __tablename__ = "comments"

    id = Column(String(36), primary_key=True, default=new_id)
    content = Column(Text, nullable=False, comment="Comment text")

    video_id = Column(String(36), nullable=False, index=True, comment="Parent video")
    owner_id = Column(String(36), nullable=False, index=True, comment="Author")

    pending_deletion = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Comment(id={self.id}, video_id={self.video_id})>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "content": self.content,
            "video_id": self.video_id,
            "owner_id": self.owner_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
