# vidshare/services/feed_service.py
"""
Feed Service
Read side: paginated feeds and the video detail view
"""

from typing import Any, Dict, Optional

from vidshare.app.config import Config
from vidshare.domain.models import PaginatedResult
from vidshare.infrastructure.repositories import UserRepository, VideoRepository
from vidshare.services.base_service import BaseService
from vidshare.services.exceptions import ResourceNotFoundError
from vidshare.services.paginated_aggregator import PaginatedAggregator
from vidshare.services.pipeline_builder import FeedFilters, FeedKind, QueryPipelineBuilder


class FeedService(BaseService):
    """
    Feed queries

    Handles:
    - videoFeed / userTweets / videoComments / likedVideos pages
    - Video detail with view counting and watch history
    """

    def __init__(
        self,
        builder: QueryPipelineBuilder,
        aggregator: PaginatedAggregator,
        video_repo: VideoRepository,
        user_repo: UserRepository,
        config: Optional[Config] = None,
    ):
        super().__init__(config=config)
        self.builder = builder
        self.aggregator = aggregator
        self.video_repo = video_repo
        self.user_repo = user_repo

    def get_service_name(self) -> str:
        return "feed"

    async def query(
        self,
        kind: FeedKind,
        filters: Optional[FeedFilters] = None,
        viewer_id: Optional[str] = None,
        page: Optional[int] = 1,
        limit: Optional[int] = None,
    ) -> PaginatedResult:
        """
        One page of a feed

        Raises:
            InvalidIdentifierError: malformed viewer/owner/video id
            ValidationError: bad sort field or missing filter
            ResourceNotFoundError: the tweet owner or commented video is gone
            UpstreamTimeoutError / UpstreamUnavailableError: store trouble
        """
        filters = filters or FeedFilters()
        pipeline = self.builder.build(kind, filters, viewer_id)
        kind = FeedKind(kind)
        self.log_info(f"📺 {kind.value} page={page} limit={limit} viewer={viewer_id}")

        try:
            if kind == FeedKind.USER_TWEETS:
                if await self.user_repo.get_by_id(filters.owner_id) is None:
                    raise ResourceNotFoundError("User", filters.owner_id)
            elif kind == FeedKind.VIDEO_COMMENTS:
                if await self.video_repo.get_active(filters.video_id) is None:
                    raise ResourceNotFoundError("Video", filters.video_id)
        except Exception as e:
            raise self.handle_error(e, f"{kind.value} query")

        return await self.aggregator.execute(pipeline, page, limit)

    async def get_video_detail(
        self, video_id: str, viewer_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Video with owner, subscriber and like data, as the viewer sees it

        Views are incremented and the video is added to the viewer's watch
        history after the read. Neither write is coordinated with the read,
        so the returned view count is the one before this request.

        Raises:
            InvalidIdentifierError: malformed ids
            ResourceNotFoundError: video missing, pending deletion, or an
                unpublished video of someone else
        """
        pipeline = self.builder.build(
            FeedKind.VIDEO_DETAIL, FeedFilters(video_id=video_id), viewer_id
        )
        video = await self.aggregator.fetch_one(pipeline)
        if video is None:
            raise ResourceNotFoundError("Video", video_id)

        try:
            await self.video_repo.increment_views(video_id)
            if viewer_id is not None:
                await self.user_repo.add_to_watch_history(viewer_id, video_id)
        except Exception as e:
            raise self.handle_error(e, "record_view", {"video_id": video_id})

        return video
