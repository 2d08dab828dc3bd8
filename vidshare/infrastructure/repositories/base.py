# vidshare/infrastructure/repositories/base.py
"""
Base Repository Pattern
Provides generic CRUD operations for all entities

Every write commits on its own. There is no unit of work spanning several
calls, which is exactly the storage model the cascade logic assumes.
"""

from typing import Generic, TypeVar, Type, List, Optional, Any, cast
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func
from sqlalchemy.orm import InstrumentedAttribute
import logging

from vidshare.app.models import utcnow

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType")


class BaseRepository(Generic[ModelType]):
    """
    Repository with generic CRUD operations

    Usage:
        class VideoRepository(OwnedEntityRepository[Video]):
            def __init__(self, session: AsyncSession):
                super().__init__(session, Video)
    """

    def __init__(self, session: AsyncSession, model: Type[ModelType]):
        """
        Initialize repository

        Args:
            session: Database session
            model: SQLAlchemy model class
        """
        self.session = session
        self.model = model

    def _id_col(self) -> InstrumentedAttribute:
        return cast(InstrumentedAttribute, getattr(self.model, "id"))

    def _where(self, query, filters: dict):
        for key, value in filters.items():
            if not hasattr(self.model, key):
                raise AttributeError(f"{self.model.__name__} has no column '{key}'")
            column = getattr(self.model, key)
            query = query.where(column.is_(None) if value is None else column == value)
        return query

    # ========================================================================
    # CREATE Operations
    # ========================================================================

    async def create(self, **kwargs) -> ModelType:
        """
        Create new entity

        Args:
            **kwargs: Model attributes

        Returns:
            Created model instance
        """
        try:
            instance: ModelType = cast(Any, self.model)(**kwargs)
            self.session.add(instance)
            await self.session.commit()
            await self.session.refresh(instance)
            logger.info(
                f"✅ Created {self.model.__name__}: {getattr(instance, 'id', 'N/A')}"
            )
            return instance
        except Exception as e:
            await self.session.rollback()
            logger.error(f"❌ Failed to create {self.model.__name__}: {e}")
            raise

    # ========================================================================
    # READ Operations
    # ========================================================================

    async def get_by_id(self, id: str) -> Optional[ModelType]:
        """
        Get entity by ID

        Args:
            id: Entity ID

        Returns:
            Model instance or None
        """
        try:
            result = await self.session.execute(
                select(self.model).where(self._id_col() == id)
            )
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"❌ Failed to get {self.model.__name__} by ID: {e}")
            raise

    async def count(self, **filters) -> int:
        """
        Count entities matching filters

        Args:
            **filters: Filter conditions

        Returns:
            Count of matching records
        """
        try:
            query = self._where(select(func.count()).select_from(self.model), filters)
            result = await self.session.execute(query)
            return int(result.scalar_one_or_none() or 0)
        except Exception as e:
            logger.error(f"❌ Failed to count {self.model.__name__}: {e}")
            raise

    async def exists(self, id: str) -> bool:
        """Check if entity exists"""
        try:
            stmt = select(func.count()).select_from(self.model).where(self._id_col() == id)
            result = await self.session.execute(stmt)
            return int(result.scalar_one_or_none() or 0) > 0
        except Exception as e:
            logger.error(f"❌ Failed to check existence: {e}")
            raise

    async def find_by(self, **filters) -> List[ModelType]:
        """
        Find entities by filters

        Args:
            **filters: Field-value pairs to filter by

        Returns:
            List of matching model instances
        """
        try:
            result = await self.session.execute(self._where(select(self.model), filters))
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"❌ Failed to find {self.model.__name__}: {e}")
            raise

    async def find_one_by(self, **filters) -> Optional[ModelType]:
        """Find single entity by filters"""
        try:
            result = await self.session.execute(
                self._where(select(self.model), filters).limit(1)
            )
            return result.scalars().first()
        except Exception as e:
            logger.error(f"❌ Failed to find one {self.model.__name__}: {e}")
            raise

    # ========================================================================
    # UPDATE Operations
    # ========================================================================

    async def update(self, id: str, **kwargs) -> Optional[ModelType]:
        """
        Update entity by ID

        Args:
            id: Entity ID
            **kwargs: Fields to update

        Returns:
            Updated model instance or None
        """
        try:
            stmt = update(self.model).where(self._id_col() == id).values(**kwargs)
            result = await self.session.execute(stmt)
            await self.session.commit()
            if not result.rowcount:
                return None
            updated = await self.get_by_id(id)
            if updated is not None:
                await self.session.refresh(updated)
            logger.info(f"✅ Updated {self.model.__name__}: {id}")
            return updated
        except Exception as e:
            await self.session.rollback()
            logger.error(f"❌ Failed to update {self.model.__name__}: {e}")
            raise

    # ========================================================================
    # DELETE Operations
    # ========================================================================

    async def delete(self, id: str) -> bool:
        """
        Delete entity by ID

        Args:
            id: Entity ID

        Returns:
            True if deleted, False if not found
        """
        try:
            result = await self.session.execute(
                delete(self.model).where(self._id_col() == id)
            )
            await self.session.commit()

            deleted = result.rowcount > 0
            if deleted:
                logger.info(f"✅ Deleted {self.model.__name__}: {id}")
            else:
                logger.warning(f"⚠️ {self.model.__name__} not found for deletion: {id}")

            return deleted
        except Exception as e:
            await self.session.rollback()
            logger.error(f"❌ Failed to delete {self.model.__name__}: {e}")
            raise

    async def delete_where(self, *conditions) -> int:
        """
        Delete every row matching the given SQL conditions

        Safe to repeat: a second run over an already-empty set deletes 0 rows.
        """
        try:
            result = await self.session.execute(delete(self.model).where(*conditions))
            await self.session.commit()
            deleted_count = int(result.rowcount or 0)
            logger.info(f"✅ Deleted {deleted_count} {self.model.__name__} records")
            return deleted_count
        except Exception as e:
            await self.session.rollback()
            logger.error(f"❌ Failed to delete many {self.model.__name__}: {e}")
            raise


class OwnedEntityRepository(BaseRepository[ModelType]):
    """
    Repository for user-owned entities that take part in cascades
    (Video, Comment, Tweet)
    """

    async def get_active(self, id: str) -> Optional[ModelType]:
        """Entity by ID, unless a cascade delete has already claimed it"""
        entity = await self.get_by_id(id)
        if entity is None or getattr(entity, "pending_deletion", False):
            return None
        return entity

    async def mark_pending_deletion(self, id: str) -> bool:
        """Flag the entity so an interrupted cascade can be resumed"""
        try:
            result = await self.session.execute(
                update(self.model)
                .where(self._id_col() == id)
                .values(pending_deletion=True, updated_at=utcnow())
            )
            await self.session.commit()
            marked = result.rowcount > 0
            if marked:
                logger.info(f"🏷️ Marked {self.model.__name__} {id} pending deletion")
            return marked
        except Exception as e:
            await self.session.rollback()
            logger.error(f"❌ Failed to mark {self.model.__name__} {id}: {e}")
            raise

    async def list_pending_deletion(self) -> List[ModelType]:
        """Entities left behind by interrupted cascades"""
        return await self.find_by(pending_deletion=True)


