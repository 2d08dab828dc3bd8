# vidshare/app/models/user.py
"""
User Model
Minimal channel/user record; owned by the account service
"""

from sqlalchemy import Column, String, DateTime, UniqueConstraint

from .base import Base, new_id, utcnow


class User(Base):
    """
    Platform user (a channel others can subscribe to)

    password and refresh_token are credentials: no feed projection lists them.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    username = Column(String(100), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True)
    full_name = Column(String(200), nullable=False, default="")
    avatar_url = Column(String(500), comment="Avatar image URL")
    cover_image_url = Column(String(500), comment="Cover image URL")

    # Credentials (never projected)
    password = Column(String(255), nullable=False, comment="Password hash")
    refresh_token = Column(String(500), comment="Current refresh token")

    created_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username})>"


class WatchHistoryEntry(Base):
    """
    One video in a user's watch history

    The (user_id, video_id) pair is unique, so history behaves as a set;
    added_at keeps display order.
    """

    __tablename__ = "watch_history"
    __table_args__ = (
        UniqueConstraint("user_id", "video_id", name="uq_watch_history_user_video"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    video_id = Column(String(36), nullable=False, index=True)
    added_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f"<WatchHistoryEntry(user_id={self.user_id}, video_id={self.video_id})>"
