# vidshare/infrastructure/repositories/comment_repository.py
"""
Comment Repository
Handles comment queries used by cascades
"""

from typing import List
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from .base import OwnedEntityRepository
from vidshare.app.models import Comment, utcnow

logger = logging.getLogger(__name__)


class CommentRepository(OwnedEntityRepository[Comment]):
    """Repository for Comment operations"""

    def __init__(self, session: AsyncSession):
        """Initialize comment repository"""
        super().__init__(session, Comment)

    async def ids_for_video(self, video_id: str) -> List[str]:
        """
        IDs of every comment on a video

        Args:
            video_id: Parent video ID

        Returns:
            List of comment IDs (pending ones included)
        """
        try:
            result = await self.session.execute(
                select(Comment.id).where(Comment.video_id == video_id)
            )
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"❌ Failed to list comments for video {video_id}: {e}")
            raise

    async def delete_for_video(self, video_id: str) -> int:
        """Delete every comment on a video; returns how many went"""
        return await self.delete_where(Comment.video_id == video_id)

    async def mark_pending_for_video(self, video_id: str) -> int:
        """Flag every comment on a video pending_deletion; returns how many"""
        try:
            result = await self.session.execute(
                update(Comment)
                .where(Comment.video_id == video_id)
                .values(pending_deletion=True, updated_at=utcnow())
            )
            await self.session.commit()
            return result.rowcount
        except Exception as e:
            await self.session.rollback()
            logger.error(f"❌ Failed to flag comments for video {video_id}: {e}")
            raise
