# tests/unit/test_reaction_service.py
"""
Unit Tests for ReactionService
Like toggling (idempotence, uniqueness under races) and subscriptions
"""

import uuid
from unittest.mock import AsyncMock, Mock

import pytest
from sqlalchemy.exc import OperationalError

from vidshare.app.models import TargetType
from vidshare.domain.models import LikeTarget
from vidshare.services.exceptions import (
    InvalidIdentifierError,
    ResourceNotFoundError,
    UpstreamUnavailableError,
    ValidationError,
)
from vidshare.services.reaction_service import ReactionService


@pytest.fixture
def reactions(services):
    return services.reactions


@pytest.fixture
def like_repo(reactions):
    return reactions.like_repo


@pytest.fixture
def mock_repos(app_config):
    """ReactionService over mocks, for checks that must not touch storage"""
    like_repo = Mock()
    like_repo.find_for = AsyncMock(return_value=None)
    like_repo.create_for = AsyncMock()
    like_repo.delete = AsyncMock()
    target_repo = Mock()
    target_repo.get_active = AsyncMock(return_value=Mock())
    subscription_repo = Mock()
    subscription_repo.find_pair = AsyncMock(return_value=None)
    user_repo = Mock()
    user_repo.get_by_id = AsyncMock(return_value=Mock())

    service = ReactionService(
        like_repo,
        {kind: target_repo for kind in TargetType},
        subscription_repo,
        user_repo,
        config=app_config,
    )
    return service, like_repo, target_repo


class TestToggleLike:
    @pytest.mark.asyncio
    async def test_like_then_unlike(self, reactions, like_repo, factory):
        user = await factory.user("u1")
        owner = await factory.user()
        video = await factory.video(owner)
        target = LikeTarget.video(video.id)

        first = await reactions.toggle(user.id, "video", video.id)
        assert first.liked is True
        assert await like_repo.count_for_target(target) == 1

        second = await reactions.toggle(user.id, "video", video.id)
        assert second.liked is False
        assert await like_repo.count_for_target(target) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("toggles", [1, 2, 3, 4, 5])
    async def test_parity_after_n_toggles(self, reactions, like_repo, factory, toggles):
        user = await factory.user()
        tweet = await factory.tweet(await factory.user())

        for _ in range(toggles):
            result = await reactions.toggle(user.id, TargetType.TWEET, tweet.id)

        assert result.liked is (toggles % 2 == 1)
        assert await like_repo.count_for_target(LikeTarget.tweet(tweet.id)) == toggles % 2

    @pytest.mark.asyncio
    async def test_comment_like(self, reactions, factory):
        owner = await factory.user()
        video = await factory.video(owner)
        comment = await factory.comment(video, owner)

        result = await reactions.toggle(owner.id, "comment", comment.id)

        assert result.liked is True
        assert result.to_dict() == {
            "liked": True,
            "target_type": "comment",
            "target_id": comment.id,
        }

    @pytest.mark.asyncio
    async def test_likes_are_per_user(self, reactions, like_repo, factory):
        owner = await factory.user()
        video = await factory.video(owner)
        a, b = await factory.user(), await factory.user()

        await reactions.toggle(a.id, "video", video.id)
        await reactions.toggle(b.id, "video", video.id)
        await reactions.toggle(a.id, "video", video.id)

        assert await like_repo.count_for_target(LikeTarget.video(video.id)) == 1
        assert await like_repo.find_for(b.id, LikeTarget.video(video.id)) is not None

    @pytest.mark.asyncio
    async def test_lost_race_counts_as_liked(self, reactions, like_repo, factory, monkeypatch):
        user = await factory.user()
        video = await factory.video(await factory.user())
        user_id, video_id = user.id, video.id
        await reactions.toggle(user_id, "video", video_id)

        # the check misses the row a concurrent request just wrote
        monkeypatch.setattr(like_repo, "find_for", AsyncMock(return_value=None))
        result = await reactions.toggle(user_id, "video", video_id)

        assert result.liked is True
        assert await like_repo.count_for_target(LikeTarget.video(video_id)) == 1

    @pytest.mark.asyncio
    async def test_missing_target(self, reactions, factory):
        user = await factory.user()

        with pytest.raises(ResourceNotFoundError) as exc_info:
            await reactions.toggle(user.id, "video", str(uuid.uuid4()))
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_target_pending_deletion(self, reactions, factory):
        owner = await factory.user()
        video = await factory.video(owner, pending_deletion=True)

        with pytest.raises(ResourceNotFoundError):
            await reactions.toggle(owner.id, "video", video.id)

    @pytest.mark.asyncio
    async def test_comment_on_video_pending_deletion(self, reactions, like_repo, factory):
        owner, fan = await factory.user(), await factory.user()
        video = await factory.video(owner)
        comment = await factory.comment(video, owner)
        video_id, comment_id, fan_id = video.id, comment.id, fan.id

        await reactions.target_repos[TargetType.VIDEO].mark_pending_deletion(video_id)

        with pytest.raises(ResourceNotFoundError):
            await reactions.toggle(fan_id, "comment", comment_id)
        assert await like_repo.count_for_target(LikeTarget.comment(comment_id)) == 0

    @pytest.mark.asyncio
    async def test_wrong_type_for_id(self, reactions, factory):
        owner = await factory.user()
        video = await factory.video(owner)

        with pytest.raises(ResourceNotFoundError):
            await reactions.toggle(owner.id, "tweet", video.id)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "user_id,target_id",
        [
            ("bad", str(uuid.uuid4())),
            (str(uuid.uuid4()), "bad"),
            (str(uuid.uuid4()), ""),
            (None, str(uuid.uuid4())),
        ],
    )
    async def test_invalid_ids_never_reach_storage(self, mock_repos, user_id, target_id):
        service, like_repo, target_repo = mock_repos

        with pytest.raises(InvalidIdentifierError):
            await service.toggle(user_id, "video", target_id)

        target_repo.get_active.assert_not_called()
        like_repo.find_for.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_target_type(self, mock_repos):
        service, like_repo, _ = mock_repos

        with pytest.raises(ValidationError):
            await service.toggle(str(uuid.uuid4()), "playlist", str(uuid.uuid4()))
        like_repo.find_for.assert_not_called()

    @pytest.mark.asyncio
    async def test_store_failure_is_translated(self, mock_repos):
        service, like_repo, _ = mock_repos
        like_repo.find_for.side_effect = OperationalError("SELECT", {}, Exception("gone"))

        with pytest.raises(UpstreamUnavailableError):
            await service.toggle(str(uuid.uuid4()), "video", str(uuid.uuid4()))


class TestToggleSubscription:
    @pytest.mark.asyncio
    async def test_subscribe_then_unsubscribe(self, reactions, factory):
        fan, channel = await factory.user(), await factory.user()

        first = await reactions.toggle_subscription(fan.id, channel.id)
        second = await reactions.toggle_subscription(fan.id, channel.id)

        assert first.subscribed is True
        assert second.subscribed is False
        assert await reactions.subscription_repo.find_pair(fan.id, channel.id) is None

    @pytest.mark.asyncio
    async def test_lost_race_counts_as_subscribed(self, reactions, factory, monkeypatch):
        fan, channel = await factory.user(), await factory.user()
        fan_id, channel_id = fan.id, channel.id
        await reactions.toggle_subscription(fan_id, channel_id)

        monkeypatch.setattr(
            reactions.subscription_repo, "find_pair", AsyncMock(return_value=None)
        )
        result = await reactions.toggle_subscription(fan_id, channel_id)

        assert result.subscribed is True
        assert await reactions.subscription_repo.count(channel_id=channel_id) == 1

    @pytest.mark.asyncio
    async def test_cannot_subscribe_to_self(self, reactions, factory):
        user = await factory.user()
        with pytest.raises(ValidationError):
            await reactions.toggle_subscription(user.id, user.id)

    @pytest.mark.asyncio
    async def test_unknown_channel(self, reactions, factory):
        user = await factory.user()
        with pytest.raises(ResourceNotFoundError):
            await reactions.toggle_subscription(user.id, str(uuid.uuid4()))
