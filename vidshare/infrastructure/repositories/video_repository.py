# vidshare/infrastructure/repositories/video_repository.py
"""
Video Repository
Handles video-specific writes the services need beyond plain CRUD
"""

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from .base import OwnedEntityRepository
from vidshare.app.models import Video

logger = logging.getLogger(__name__)


class VideoRepository(OwnedEntityRepository[Video]):
    """Repository for Video operations"""

    def __init__(self, session: AsyncSession):
        """Initialize video repository"""
        super().__init__(session, Video)

    async def increment_views(self, video_id: str, amount: int = 1) -> bool:
        """
        Atomically bump the view counter

        The increment happens in SQL (views = views + n), so concurrent viewers
        never lose each other's updates.
        """
        try:
            result = await self.session.execute(
                update(Video)
                .where(Video.id == video_id)
                .values(views=Video.views + amount)
                .execution_options(synchronize_session=False)
            )
            await self.session.commit()
            return result.rowcount > 0
        except Exception as e:
            await self.session.rollback()
            logger.error(f"❌ Failed to increment views for {video_id}: {e}")
            raise
