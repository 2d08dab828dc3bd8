# vidshare/services/reaction_service.py
"""
Reaction Service
Like/unlike toggling over videos, comments and tweets, plus channel
subscription toggling
"""

from typing import Dict, Optional

from sqlalchemy.exc import IntegrityError

from vidshare.app.config import Config
from vidshare.domain.interfaces import (
    ILikeRepository,
    IOwnedRepository,
    ISubscriptionRepository,
)
from vidshare.domain.models import (
    LikeTarget,
    SubscriptionToggleResult,
    TargetType,
    ToggleResult,
)
from vidshare.infrastructure.repositories import UserRepository
from vidshare.services.base_service import BaseService
from vidshare.services.exceptions import ResourceNotFoundError, ValidationError


class ReactionService(BaseService):
    """
    Reaction toggling

    Check-then-act is not atomic. The likes and subscriptions tables carry a
    unique constraint, so when two toggles race to create the same row the
    loser hits IntegrityError, which is reported as success: the row exists
    either way.
    """

    def __init__(
        self,
        like_repo: ILikeRepository,
        target_repos: Dict[TargetType, IOwnedRepository],
        subscription_repo: ISubscriptionRepository,
        user_repo: UserRepository,
        config: Optional[Config] = None,
    ):
        super().__init__(config=config)
        self.like_repo = like_repo
        self.target_repos = target_repos
        self.subscription_repo = subscription_repo
        self.user_repo = user_repo

    def get_service_name(self) -> str:
        return "reaction"

    # ========================================================================
    # Likes
    # ========================================================================

    async def toggle(self, user_id: str, target_type: str, target_id: str) -> ToggleResult:
        """
        Flip the user's like on a target

        Args:
            user_id: Reacting user
            target_type: "video", "comment" or "tweet"
            target_id: Target ID

        Returns:
            ToggleResult(liked=True) if a like now exists, False if removed

        Raises:
            InvalidIdentifierError: user_id or target_id malformed
            ValidationError: unknown target_type
            ResourceNotFoundError: target missing or being deleted
        """
        self.validate_object_id(user_id, "user_id")
        self.validate_object_id(target_id, "target_id")
        try:
            kind = TargetType(target_type)
        except ValueError:
            raise ValidationError(
                f"Unknown target type: {target_type}", field="target_type"
            ) from None
        target = LikeTarget(kind, target_id)

        try:
            if not await self._accepts_reactions(kind, target_id):
                raise ResourceNotFoundError(kind.value.capitalize(), target_id)

            existing = await self.like_repo.find_for(user_id, target)
            if existing is not None:
                await self.like_repo.delete(existing.id)
                self.log_info(f"💔 {user_id} unliked {kind.value} {target_id}")
                return ToggleResult(liked=False, target=target)

            try:
                await self.like_repo.create_for(user_id, target)
            except IntegrityError:
                # a concurrent toggle created it first
                self.log_info(
                    f"🔁 Like by {user_id} on {kind.value} {target_id} already exists"
                )
            else:
                self.log_info(f"❤️ {user_id} liked {kind.value} {target_id}")
            return ToggleResult(liked=True, target=target)

        except Exception as e:
            raise self.handle_error(
                e, "toggle_like", {"target_type": kind.value, "target_id": target_id}
            )

    async def _accepts_reactions(self, kind: TargetType, target_id: str) -> bool:
        """Target exists and no cascade has claimed it or, for a comment, its video"""
        target = await self.target_repos[kind].get_active(target_id)
        if target is None:
            return False
        if kind == TargetType.COMMENT:
            video = await self.target_repos[TargetType.VIDEO].get_active(target.video_id)
            return video is not None
        return True

    # ========================================================================
    # Subscriptions
    # ========================================================================

    async def toggle_subscription(
        self, subscriber_id: str, channel_id: str
    ) -> SubscriptionToggleResult:
        """
        Subscribe to a channel, or unsubscribe if already subscribed

        Raises:
            InvalidIdentifierError: malformed IDs
            ValidationError: subscribing to yourself
            ResourceNotFoundError: channel user does not exist
        """
        self.validate_object_id(subscriber_id, "subscriber_id")
        self.validate_object_id(channel_id, "channel_id")
        if subscriber_id == channel_id:
            raise ValidationError("Cannot subscribe to your own channel", field="channel_id")

        try:
            if await self.user_repo.get_by_id(channel_id) is None:
                raise ResourceNotFoundError("Channel", channel_id)

            existing = await self.subscription_repo.find_pair(subscriber_id, channel_id)
            if existing is not None:
                await self.subscription_repo.delete(existing.id)
                self.log_info(f"👋 {subscriber_id} unsubscribed from {channel_id}")
                return SubscriptionToggleResult(subscribed=False, channel_id=channel_id)

            try:
                await self.subscription_repo.create_pair(subscriber_id, channel_id)
            except IntegrityError:
                self.log_info(
                    f"🔁 Subscription {subscriber_id} -> {channel_id} already exists"
                )
            else:
                self.log_info(f"🔔 {subscriber_id} subscribed to {channel_id}")
            return SubscriptionToggleResult(subscribed=True, channel_id=channel_id)

        except Exception as e:
            raise self.handle_error(e, "toggle_subscription", {"channel_id": channel_id})
