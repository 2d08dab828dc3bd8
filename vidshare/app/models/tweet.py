# vidshare/app/models/tweet.py
"""
Tweet Model
Short text post on a user's channel
"""

from sqlalchemy import Column, String, DateTime, Text, Boolean

from .base import Base, new_id, utcnow


class Tweet(Base):
    """Short text post"""

    __tablename__ = "tweets"

    id = Column(String(36), primary_key=True, default=new_id)
    content = Column(Text, nullable=False)
    owner_id = Column(String(36), nullable=False, index=True)

    pending_deletion = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Tweet(id={self.id}, owner_id={self.owner_id})>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "content": self.content,
            "owner_id": self.owner_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
