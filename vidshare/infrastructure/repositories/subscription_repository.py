# vidshare/infrastructure/repositories/subscription_repository.py
"""
Subscription Repository
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from .base import BaseRepository
from vidshare.app.models import Subscription


class SubscriptionRepository(BaseRepository[Subscription]):
    """Repository for subscriber -> channel edges"""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Subscription)

    async def find_pair(
        self, subscriber_id: str, channel_id: str
    ) -> Optional[Subscription]:
        return await self.find_one_by(subscriber_id=subscriber_id, channel_id=channel_id)

    async def create_pair(self, subscriber_id: str, channel_id: str) -> Subscription:
        """
        Insert a subscription

        Raises:
            IntegrityError: the pair already exists
        """
        return await self.create(subscriber_id=subscriber_id, channel_id=channel_id)
