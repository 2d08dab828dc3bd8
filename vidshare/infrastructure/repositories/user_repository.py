# vidshare/infrastructure/repositories/user_repository.py
"""
User Repository
Read access to users plus the watch-history set
"""

from typing import List
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from .base import BaseRepository
from vidshare.app.models import User, WatchHistoryEntry

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for User operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(session, User)

    async def add_to_watch_history(self, user_id: str, video_id: str) -> bool:
        """
        Add a video to a user's watch history if it is not there yet

        Returns:
            True if a new entry was written, False if it was already present
        """
        try:
            self.session.add(WatchHistoryEntry(user_id=user_id, video_id=video_id))
            await self.session.commit()
            return True
        except IntegrityError:
            # (user_id, video_id) is unique; already watched
            await self.session.rollback()
            return False
        except Exception as e:
            await self.session.rollback()
            logger.error(f"❌ Failed to record watch history for {user_id}: {e}")
            raise

    async def watch_history(self, user_id: str) -> List[str]:
        """Watched video IDs, most recent first"""
        try:
            result = await self.session.execute(
                select(WatchHistoryEntry.video_id)
                .where(WatchHistoryEntry.user_id == user_id)
                .order_by(WatchHistoryEntry.added_at.desc(), WatchHistoryEntry.id.desc())
            )
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"❌ Failed to read watch history for {user_id}: {e}")
            raise
