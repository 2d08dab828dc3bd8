# vidshare/app/dependencies.py
"""
Service Dependency Wiring
Builds repositories and services around one request-scoped session
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.app.config import Config, get_config
from vidshare.domain.models import TargetType
from vidshare.infrastructure.pipeline import PipelineCompiler, TextSearchBackend
from vidshare.infrastructure.repositories import (
    CommentRepository,
    LikeRepository,
    SubscriptionRepository,
    TweetRepository,
    UserRepository,
    VideoRepository,
)
from vidshare.services import (
    CascadeManager,
    EntityService,
    FeedService,
    PaginatedAggregator,
    QueryPipelineBuilder,
    ReactionService,
)


@dataclass
class Services:
    """Everything one request needs, sharing a single session"""

    builder: QueryPipelineBuilder
    aggregator: PaginatedAggregator
    feed: FeedService
    reactions: ReactionService
    cascade: CascadeManager
    entities: EntityService


def build_services(
    session: AsyncSession,
    config: Optional[Config] = None,
    search_backend: Optional[TextSearchBackend] = None,
) -> Services:
    """
    Wire the service graph for one session

    Usage:
        async with db.session() as session:
            services = build_services(session, config)
            page = await services.feed.query(FeedKind.VIDEO_FEED)

    Args:
        session: Request-scoped session; every repository shares it
        config: Settings (defaults to the process-wide config)
        search_backend: Text search implementation for SearchText stages
    """
    config = config or get_config()

    # Repositories
    video_repo = VideoRepository(session)
    comment_repo = CommentRepository(session)
    tweet_repo = TweetRepository(session)
    like_repo = LikeRepository(session)
    subscription_repo = SubscriptionRepository(session)
    user_repo = UserRepository(session)

    owned_repos = {
        TargetType.VIDEO: video_repo,
        TargetType.COMMENT: comment_repo,
        TargetType.TWEET: tweet_repo,
    }

    # Services
    builder = QueryPipelineBuilder(config=config)
    aggregator = PaginatedAggregator(
        session, config=config, compiler=PipelineCompiler(search_backend)
    )
    cascade = CascadeManager(owned_repos, comment_repo, like_repo, config=config)

    return Services(
        builder=builder,
        aggregator=aggregator,
        feed=FeedService(builder, aggregator, video_repo, user_repo, config=config),
        reactions=ReactionService(
            like_repo, owned_repos, subscription_repo, user_repo, config=config
        ),
        cascade=cascade,
        entities=EntityService(
            video_repo, comment_repo, tweet_repo, user_repo, cascade, config=config
        ),
    )
