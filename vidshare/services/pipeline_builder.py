# vidshare/services/pipeline_builder.py
"""
Query Pipeline Builder
Turns a feed kind plus filters into an ordered, validated Pipeline

The builder never touches storage; its output can be inspected stage by
stage in tests and handed to the PaginatedAggregator for execution.
"""

import enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from vidshare.app.config import Config
from vidshare.app.models import TargetType
from vidshare.domain.pipeline import (
    AddComputedField,
    AllOf,
    AnyOf,
    Contains,
    Eq,
    Lookup,
    Match,
    Pipeline,
    Predicate,
    Project,
    SearchText,
    Size,
    Sort,
    SortDirection,
    SortKey,
    Stage,
    Unwind,
    validate_stage_order,
)
from vidshare.services.base_service import BaseService
from vidshare.services.exceptions import ValidationError


class FeedKind(str, enum.Enum):
    VIDEO_FEED = "videoFeed"
    USER_TWEETS = "userTweets"
    VIDEO_COMMENTS = "videoComments"
    VIDEO_DETAIL = "videoDetail"
    LIKED_VIDEOS = "likedVideos"


class FeedFilters(BaseModel):
    """Optional narrowing applied by a feed; unused fields are ignored per kind"""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    search_term: Optional[str] = Field(default=None, max_length=200)
    owner_id: Optional[str] = None
    video_id: Optional[str] = None
    sort_by: Optional[str] = None
    sort_direction: SortDirection = SortDirection.DESC


# Public owner profile; password and refresh_token are never listed
OWNER_FIELDS: Tuple[str, ...] = ("id", "username", "full_name", "avatar_url")

VIDEO_FIELDS: Tuple[str, ...] = (
    "id",
    "title",
    "description",
    "video_url",
    "thumbnail_url",
    "duration",
    "views",
    "is_published",
    "created_at",
    "updated_at",
)

SORTABLE_FIELDS: Dict[FeedKind, FrozenSet[str]] = {
    FeedKind.VIDEO_FEED: frozenset({"created_at", "views", "duration", "title", "likes_count"}),
    FeedKind.USER_TWEETS: frozenset({"created_at", "likes_count"}),
    FeedKind.VIDEO_COMMENTS: frozenset({"created_at", "likes_count"}),
    FeedKind.VIDEO_DETAIL: frozenset({"created_at"}),
    FeedKind.LIKED_VIDEOS: frozenset({"created_at"}),
}

DEFAULT_SORT_FIELD = "created_at"


class QueryPipelineBuilder(BaseService):
    """
    Builds feed pipelines

    Usage:
        builder = QueryPipelineBuilder(config)
        pipeline = builder.build(FeedKind.VIDEO_FEED, FeedFilters(), viewer_id=None)
    """

    def __init__(self, config: Optional[Config] = None):
        super().__init__(config=config)

    def get_service_name(self) -> str:
        return "pipeline_builder"

    # ========================================================================
    # Public API
    # ========================================================================

    def build(
        self,
        kind: FeedKind,
        filters: Optional[FeedFilters] = None,
        viewer_id: Optional[str] = None,
    ) -> Pipeline:
        """
        Build the pipeline for a feed kind

        Raises:
            InvalidIdentifierError: viewer_id / owner_id / video_id malformed
            ValidationError: unknown kind, unknown sort field, missing filter
        """
        filters = filters or FeedFilters()
        try:
            kind = FeedKind(kind)
        except ValueError:
            raise ValidationError(f"Unknown feed kind: {kind}", field="kind") from None

        viewer_id = self.validate_optional_object_id(viewer_id, "viewer_id")
        owner_id = self.validate_optional_object_id(filters.owner_id, "owner_id")
        video_id = self.validate_optional_object_id(filters.video_id, "video_id")
        sort = self._sort_stage(kind, filters)

        if kind == FeedKind.VIDEO_FEED:
            pipeline = self._video_feed(filters.search_term, owner_id, viewer_id, sort)
        elif kind == FeedKind.USER_TWEETS:
            self.validate_required(owner_id, "owner_id")
            pipeline = self._user_tweets(owner_id, viewer_id, sort)
        elif kind == FeedKind.VIDEO_COMMENTS:
            self.validate_required(video_id, "video_id")
            pipeline = self._video_comments(video_id, viewer_id, sort)
        elif kind == FeedKind.VIDEO_DETAIL:
            self.validate_required(video_id, "video_id")
            pipeline = self._video_detail(video_id, viewer_id)
        else:
            self.validate_required(viewer_id, "viewer_id")
            pipeline = self._liked_videos(viewer_id, sort)

        # A violation here is a bug in this module, not bad input
        validate_stage_order(pipeline.stages)
        self.log_debug(f"Built {kind.value} pipeline with {len(pipeline)} stages")
        return pipeline

    # ========================================================================
    # Shared fragments
    # ========================================================================

    def _sort_stage(self, kind: FeedKind, filters: FeedFilters) -> Sort:
        sort_by = filters.sort_by or DEFAULT_SORT_FIELD
        if sort_by not in SORTABLE_FIELDS[kind]:
            raise ValidationError(
                f"Cannot sort {kind.value} by '{sort_by}'",
                field="sort_by",
                details={"allowed": sorted(SORTABLE_FIELDS[kind])},
            )
        # id breaks created_at ties so pages never overlap
        return Sort(
            keys=(
                SortKey(sort_by, SortDirection(filters.sort_direction)),
                SortKey("id", SortDirection.DESC),
            )
        )

    @staticmethod
    def _visible_video(viewer_id: Optional[str]) -> Predicate:
        """Not pending, and published unless the viewer owns it"""
        published = Eq("is_published", True)
        if viewer_id is not None:
            published = AnyOf((published, Eq("owner_id", viewer_id)))
        return AllOf((Eq("pending_deletion", False), published))

    @staticmethod
    def _owner_stages(
        with_subscriptions: bool = False, viewer_id: Optional[str] = None
    ) -> List[Stage]:
        """
        Lookup + Unwind of the owning user as "owner"

        with_subscriptions adds subscribers_count and is_subscribed (relative
        to viewer_id) to the owner document.
        """
        sub_pipeline: List[Stage] = []
        fields = OWNER_FIELDS
        if with_subscriptions:
            sub_pipeline += [
                Lookup("subscriptions", "id", "channel_id", "subscribers"),
                AddComputedField("subscribers_count", Size("subscribers")),
                AddComputedField(
                    "is_subscribed", Contains("subscribers.subscriber_id", viewer_id)
                ),
            ]
            fields = OWNER_FIELDS + ("subscribers_count", "is_subscribed")
        sub_pipeline.append(Project(fields))
        return [
            Lookup("users", "owner_id", "id", "owner", tuple(sub_pipeline)),
            Unwind("owner"),
        ]

    @staticmethod
    def _like_stages(target_type: TargetType, viewer_id: Optional[str]) -> List[Stage]:
        return [
            Lookup(
                "likes",
                "id",
                "target_id",
                "likes",
                (Match(Eq("target_type", target_type)),),
            ),
            AddComputedField("likes_count", Size("likes")),
            AddComputedField("is_liked", Contains("likes.liked_by", viewer_id)),
        ]

    # ========================================================================
    # Feeds
    # ========================================================================

    def _video_feed(
        self,
        search_term: Optional[str],
        owner_id: Optional[str],
        viewer_id: Optional[str],
        sort: Sort,
    ) -> Pipeline:
        stages: List[Stage] = []
        if search_term and search_term.strip():
            stages.append(
                SearchText(
                    ("title", "description"),
                    search_term.strip(),
                    self.config.query.search_index,
                )
            )
        stages.append(Match(self._visible_video(viewer_id)))
        if owner_id is not None:
            stages.append(Match(Eq("owner_id", owner_id)))
        stages += self._owner_stages()
        stages += self._like_stages(TargetType.VIDEO, viewer_id)
        stages.append(sort)
        stages.append(Project(VIDEO_FIELDS + ("owner", "likes_count", "is_liked")))
        return Pipeline("videos", tuple(stages))

    def _user_tweets(
        self, owner_id: str, viewer_id: Optional[str], sort: Sort
    ) -> Pipeline:
        stages: List[Stage] = [
            Match(AllOf((Eq("owner_id", owner_id), Eq("pending_deletion", False)))),
            *self._owner_stages(),
            *self._like_stages(TargetType.TWEET, viewer_id),
            sort,
            Project(
                ("id", "content", "created_at", "updated_at", "owner", "likes_count", "is_liked")
            ),
        ]
        return Pipeline("tweets", tuple(stages))

    def _video_comments(
        self, video_id: str, viewer_id: Optional[str], sort: Sort
    ) -> Pipeline:
        stages: List[Stage] = [
            Match(AllOf((Eq("video_id", video_id), Eq("pending_deletion", False)))),
            *self._owner_stages(),
            *self._like_stages(TargetType.COMMENT, viewer_id),
            sort,
            Project(
                (
                    "id",
                    "content",
                    "video_id",
                    "created_at",
                    "updated_at",
                    "owner",
                    "likes_count",
                    "is_liked",
                )
            ),
        ]
        return Pipeline("comments", tuple(stages))

    def _video_detail(self, video_id: str, viewer_id: Optional[str]) -> Pipeline:
        stages: List[Stage] = [
            Match(AllOf((Eq("id", video_id), self._visible_video(viewer_id)))),
            *self._owner_stages(with_subscriptions=True, viewer_id=viewer_id),
            *self._like_stages(TargetType.VIDEO, viewer_id),
            Project(VIDEO_FIELDS + ("owner", "likes_count", "is_liked")),
        ]
        return Pipeline("videos", tuple(stages))

    def _liked_videos(self, viewer_id: str, sort: Sort) -> Pipeline:
        video_stages: Tuple[Stage, ...] = (
            Match(self._visible_video(viewer_id)),
            *self._owner_stages(),
            Project(VIDEO_FIELDS + ("owner",)),
        )
        stages: List[Stage] = [
            Match(
                AllOf((Eq("liked_by", viewer_id), Eq("target_type", TargetType.VIDEO)))
            ),
            Lookup("videos", "target_id", "id", "video", video_stages),
            Unwind("video"),
            sort,
            Project(("id", "created_at", "video")),
        ]
        return Pipeline("likes", tuple(stages))
