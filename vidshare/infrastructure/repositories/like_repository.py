# vidshare/infrastructure/repositories/like_repository.py
"""
Like Repository
Lookups and bulk deletes over the polymorphic likes table
"""

from typing import Optional, Sequence
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from .base import BaseRepository
from vidshare.app.models import Like, TargetType
from vidshare.domain.models import LikeTarget

logger = logging.getLogger(__name__)


class LikeRepository(BaseRepository[Like]):
    """Repository for Like operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Like)

    async def find_for(self, owner_id: str, target: LikeTarget) -> Optional[Like]:
        """
        The Like a user left on a target, if any

        Args:
            owner_id: Liking user
            target: What was liked

        Returns:
            Like or None
        """
        try:
            result = await self.session.execute(
                select(Like).where(
                    Like.liked_by == owner_id,
                    Like.target_type == target.kind,
                    Like.target_id == target.target_id,
                )
            )
            return result.scalars().first()
        except Exception as e:
            logger.error(f"❌ Failed to look up like: {e}")
            raise

    async def create_for(self, owner_id: str, target: LikeTarget) -> Like:
        """
        Insert a Like

        Raises:
            IntegrityError: the (owner, target) pair already exists; the
                session has been rolled back and stays usable
        """
        return await self.create(
            liked_by=owner_id,
            target_type=target.kind,
            target_id=target.target_id,
        )

    async def delete_for_targets(
        self, target_type: TargetType, target_ids: Sequence[str]
    ) -> int:
        """
        Delete every Like on any of the given targets

        Args:
            target_type: Collection the targets belong to
            target_ids: Target IDs (empty means nothing to do)

        Returns:
            Number of likes deleted
        """
        if not target_ids:
            return 0
        return await self.delete_where(
            Like.target_type == target_type,
            Like.target_id.in_(list(target_ids)),
        )

    async def count_for_target(self, target: LikeTarget) -> int:
        """How many likes a target has"""
        try:
            result = await self.session.execute(
                select(func.count())
                .select_from(Like)
                .where(
                    Like.target_type == target.kind,
                    Like.target_id == target.target_id,
                )
            )
            return int(result.scalar_one())
        except Exception as e:
            logger.error(f"❌ Failed to count likes: {e}")
            raise
