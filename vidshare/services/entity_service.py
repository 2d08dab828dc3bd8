# vidshare/services/entity_service.py
"""
Entity Service
Owner-checked writes on videos, comments and tweets

Every mutation validates its input and checks ownership before the first
write, so a rejected request leaves storage untouched.
"""

from typing import Any, Dict, Optional

from vidshare.app.config import Config
from vidshare.app.models import utcnow
from vidshare.domain.models import CascadeReport, TargetType
from vidshare.infrastructure.repositories import (
    CommentRepository,
    TweetRepository,
    UserRepository,
    VideoRepository,
)
from vidshare.services.base_service import BaseService
from vidshare.services.cascade_service import CascadeManager
from vidshare.services.exceptions import (
    PermissionDeniedError,
    ResourceNotFoundError,
    ValidationError,
)

UPDATABLE_FIELDS: Dict[TargetType, tuple] = {
    TargetType.VIDEO: ("title", "description", "thumbnail_url"),
    TargetType.COMMENT: ("content",),
    TargetType.TWEET: ("content",),
}


class EntityService(BaseService):
    """
    Create / update / delete for user-owned entities

    Deletes go through the CascadeManager once ownership is confirmed.
    """

    def __init__(
        self,
        video_repo: VideoRepository,
        comment_repo: CommentRepository,
        tweet_repo: TweetRepository,
        user_repo: UserRepository,
        cascade: CascadeManager,
        config: Optional[Config] = None,
    ):
        super().__init__(config=config)
        self.video_repo = video_repo
        self.comment_repo = comment_repo
        self.tweet_repo = tweet_repo
        self.user_repo = user_repo
        self.cascade = cascade
        self.repos = {
            TargetType.VIDEO: video_repo,
            TargetType.COMMENT: comment_repo,
            TargetType.TWEET: tweet_repo,
        }

    def get_service_name(self) -> str:
        return "entity"

    # ========================================================================
    # Helper Methods
    # ========================================================================

    def _entity_type(self, entity_type: str) -> TargetType:
        try:
            return TargetType(entity_type)
        except ValueError:
            raise ValidationError(
                f"Unknown entity type: {entity_type}", field="entity_type"
            ) from None

    async def _owned(
        self,
        kind: TargetType,
        entity_id: str,
        user_id: str,
        action: str,
        include_pending: bool = False,
    ):
        """Load an entity and make sure user_id owns it"""
        repo = self.repos[kind]
        if include_pending:
            entity = await repo.get_by_id(entity_id)
        else:
            entity = await repo.get_active(entity_id)
        if entity is None:
            raise ResourceNotFoundError(kind.value.capitalize(), entity_id)
        if entity.owner_id != user_id:
            self.log_warning(f"{user_id} tried to {action} {kind.value} {entity_id}")
            raise PermissionDeniedError(action, kind.value, entity_id)
        return entity

    # ========================================================================
    # Delete
    # ========================================================================

    async def delete(
        self, entity_type: str, entity_id: str, requesting_user_id: str
    ) -> CascadeReport:
        """
        Delete an entity the requester owns, with all of its dependents

        An entity already pending deletion can be deleted again by its owner,
        which resumes the interrupted cascade.

        Raises:
            InvalidIdentifierError: malformed ids
            ResourceNotFoundError: no such entity
            PermissionDeniedError: requester is not the owner
        """
        self.validate_object_id(entity_id, "entity_id")
        self.validate_object_id(requesting_user_id, "requesting_user_id")
        kind = self._entity_type(entity_type)

        try:
            await self._owned(
                kind, entity_id, requesting_user_id, "delete", include_pending=True
            )
        except Exception as e:
            raise self.handle_error(e, "delete", {"entity_id": entity_id})

        return await self.cascade.on_delete_parent(kind.value, entity_id)

    # ========================================================================
    # Update
    # ========================================================================

    async def update(
        self,
        entity_type: str,
        entity_id: str,
        requesting_user_id: str,
        changes: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Apply field changes to an owned entity

        Only title/description/thumbnail_url (videos) and content (comments,
        tweets) can change; None values are ignored.

        Raises:
            ValidationError: nothing to change, or a field that cannot change
            ResourceNotFoundError / PermissionDeniedError
        """
        self.validate_object_id(entity_id, "entity_id")
        self.validate_object_id(requesting_user_id, "requesting_user_id")
        kind = self._entity_type(entity_type)

        values = {k: v for k, v in (changes or {}).items() if v is not None}
        unknown = set(values) - set(UPDATABLE_FIELDS[kind])
        if unknown:
            raise ValidationError(
                f"Cannot update {', '.join(sorted(unknown))} on {kind.value}",
                details={"allowed": list(UPDATABLE_FIELDS[kind])},
            )
        if not values:
            raise ValidationError(f"No changes given for {kind.value}")
        for field_name, value in values.items():
            self.validate_required(value, field_name)

        try:
            await self._owned(kind, entity_id, requesting_user_id, "update")
            updated = await self.repos[kind].update(
                entity_id, **values, updated_at=utcnow()
            )
            if updated is None:
                raise ResourceNotFoundError(kind.value.capitalize(), entity_id)
        except Exception as e:
            raise self.handle_error(e, "update", {"entity_id": entity_id})

        self.log_info(f"✏️ Updated {kind.value} {entity_id}: {', '.join(values)}")
        return updated.to_dict()

    async def set_publish_status(
        self,
        video_id: str,
        requesting_user_id: str,
        is_published: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """Set, or flip when is_published is None, a video's published flag"""
        self.validate_object_id(video_id, "video_id")
        self.validate_object_id(requesting_user_id, "requesting_user_id")

        try:
            video = await self._owned(
                TargetType.VIDEO, video_id, requesting_user_id, "publish"
            )
            target = (not video.is_published) if is_published is None else is_published
            updated = await self.video_repo.update(
                video_id, is_published=target, updated_at=utcnow()
            )
            if updated is None:
                raise ResourceNotFoundError("Video", video_id)
        except Exception as e:
            raise self.handle_error(e, "set_publish_status", {"video_id": video_id})

        self.log_info(f"📣 Video {video_id} published={updated.is_published}")
        return updated.to_dict()

    # ========================================================================
    # Create
    # ========================================================================

    async def publish_video(
        self,
        owner_id: str,
        title: str,
        description: str,
        video_url: str,
        thumbnail_url: str,
        duration: float = 0.0,
        is_published: bool = True,
    ) -> Dict[str, Any]:
        """
        Record a video whose media is already stored

        Uploading the file itself happens elsewhere; this only needs its URL.
        """
        self.validate_object_id(owner_id, "owner_id")
        self.validate_required(title, "title")
        self.validate_required(description, "description")
        self.validate_required(video_url, "video_url")
        self.validate_required(thumbnail_url, "thumbnail_url")
        if duration is None or duration < 0:
            raise ValidationError("duration must not be negative", field="duration")

        try:
            if await self.user_repo.get_by_id(owner_id) is None:
                raise ResourceNotFoundError("User", owner_id)
            video = await self.video_repo.create(
                owner_id=owner_id,
                title=title.strip(),
                description=description.strip(),
                video_url=video_url,
                thumbnail_url=thumbnail_url,
                duration=duration,
                is_published=is_published,
            )
        except Exception as e:
            raise self.handle_error(e, "publish_video", {"owner_id": owner_id})

        return video.to_dict()

    async def create_comment(
        self, video_id: str, owner_id: str, content: str
    ) -> Dict[str, Any]:
        """Comment on a video that exists and is not being deleted"""
        self.validate_object_id(video_id, "video_id")
        self.validate_object_id(owner_id, "owner_id")
        self.validate_required(content, "content")

        try:
            if await self.video_repo.get_active(video_id) is None:
                raise ResourceNotFoundError("Video", video_id)
            comment = await self.comment_repo.create(
                video_id=video_id, owner_id=owner_id, content=content.strip()
            )
        except Exception as e:
            raise self.handle_error(e, "create_comment", {"video_id": video_id})

        return comment.to_dict()

    async def create_tweet(self, owner_id: str, content: str) -> Dict[str, Any]:
        self.validate_object_id(owner_id, "owner_id")
        self.validate_required(content, "content")

        try:
            if await self.user_repo.get_by_id(owner_id) is None:
                raise ResourceNotFoundError("User", owner_id)
            tweet = await self.tweet_repo.create(owner_id=owner_id, content=content.strip())
        except Exception as e:
            raise self.handle_error(e, "create_tweet", {"owner_id": owner_id})

        return tweet.to_dict()
