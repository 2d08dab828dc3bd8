# vidshare/app/models/subscription.py
"""
Subscription Model
subscriber_id follows the channel owned by channel_id
"""

from sqlalchemy import Column, String, DateTime, UniqueConstraint

from .base import Base, new_id, utcnow


class Subscription(Base):
    """Subscriber -> channel edge, unique per pair"""

    __tablename__ = "subscriptions"
    __table_args__ = (
        UniqueConstraint(
            "subscriber_id", "channel_id", name="uq_subscriptions_subscriber_channel"
        ),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    subscriber_id = Column(String(36), nullable=False, index=True)
    channel_id = Column(String(36), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return (
            f"<Subscription(subscriber_id={self.subscriber_id}, "
            f"channel_id={self.channel_id})>"
        )
