# vidshare/infrastructure/repositories/tweet_repository.py
"""
Tweet Repository
"""

from sqlalchemy.ext.asyncio import AsyncSession

from .base import OwnedEntityRepository
from vidshare.app.models import Tweet


class TweetRepository(OwnedEntityRepository[Tweet]):
    """Repository for Tweet operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Tweet)
