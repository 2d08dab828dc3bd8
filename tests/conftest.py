# tests/conftest.py
"""
Shared fixtures: in-memory database, config, services and a row factory
"""

from datetime import datetime, timedelta
from typing import Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from vidshare.app.config import CascadeConfig, Config, DatabaseConfig
from vidshare.app.dependencies import build_services
from vidshare.app.models import (
    Base,
    Comment,
    Like,
    Subscription,
    TargetType,
    Tweet,
    User,
    Video,
)

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


# ============================================================================
# Configuration
# ============================================================================


@pytest.fixture
def app_config(tmp_path):
    """Default settings pointed at an in-memory database"""
    config = Config(config_path=str(tmp_path / "app.yaml"))
    config.database = DatabaseConfig(url="sqlite+aiosqlite:///:memory:")
    config.cascade = CascadeConfig(sweep_after_delete=True)
    return config


# ============================================================================
# Database
# ============================================================================


@pytest_asyncio.fixture
async def async_engine():
    """Create async engine for testing"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,  # Required for in-memory SQLite
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(async_engine):
    """Create async database session for testing"""
    async_session = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def services(db_session, app_config):
    """Full service graph over the test session"""
    return build_services(db_session, app_config)


# ============================================================================
# Row factory
# ============================================================================


class Factory:
    """Inserts rows directly, bypassing the services under test"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self._users = 0

    async def _add(self, instance):
        self.session.add(instance)
        await self.session.commit()
        await self.session.refresh(instance)
        return instance

    async def user(self, username: Optional[str] = None) -> User:
        self._users += 1
        username = username or f"user{self._users}"
        return await self._add(
            User(
                username=username,
                email=f"{username}@example.com",
                full_name=username.title(),
                avatar_url=f"https://cdn.example.com/{username}.png",
                password="$2b$10$hashedsecret",
                refresh_token="refresh-token-secret",
            )
        )

    async def video(
        self,
        owner: User,
        title: str = "A video",
        minutes: int = 0,
        created_at: Optional[datetime] = None,
        **kwargs,
    ) -> Video:
        values = dict(
            title=title,
            description=kwargs.pop("description", f"About {title}"),
            video_url="https://cdn.example.com/v.mp4",
            thumbnail_url="https://cdn.example.com/t.png",
            duration=kwargs.pop("duration", 60.0),
            is_published=kwargs.pop("is_published", True),
            owner_id=owner.id,
            created_at=created_at or BASE_TIME + timedelta(minutes=minutes),
        )
        values.update(kwargs)
        return await self._add(Video(**values))

    async def comment(
        self, video: Video, owner: User, content: str = "Nice!", **kwargs
    ) -> Comment:
        return await self._add(
            Comment(video_id=video.id, owner_id=owner.id, content=content, **kwargs)
        )

    async def tweet(
        self, owner: User, content: str = "Hello", minutes: int = 0, **kwargs
    ) -> Tweet:
        return await self._add(
            Tweet(
                owner_id=owner.id,
                content=content,
                created_at=BASE_TIME + timedelta(minutes=minutes),
                **kwargs,
            )
        )

    async def like(self, user: User, target_type: TargetType, target_id: str) -> Like:
        return await self._add(
            Like(liked_by=user.id, target_type=target_type, target_id=target_id)
        )

    async def subscription(self, subscriber: User, channel: User) -> Subscription:
        return await self._add(
            Subscription(subscriber_id=subscriber.id, channel_id=channel.id)
        )


@pytest.fixture
def factory(db_session):
    return Factory(db_session)
