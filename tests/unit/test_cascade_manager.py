# tests/unit/test_cascade_manager.py
"""
Unit Tests for CascadeManager
Dependents removed with their parent, step ordering and partial failures
"""

import uuid
from unittest.mock import AsyncMock, Mock

import pytest
from sqlalchemy.exc import OperationalError

from vidshare.app.config import CascadeConfig
from vidshare.app.models import Like, TargetType
from vidshare.services.cascade_service import CascadeManager
from vidshare.services.exceptions import (
    InvalidIdentifierError,
    ResourceNotFoundError,
    UpstreamUnavailableError,
    ValidationError,
)


def store_down():
    return OperationalError("DELETE", {}, Exception("connection refused"))


@pytest.fixture
def cascade(services):
    return services.cascade


@pytest.fixture
def like_repo(cascade):
    return cascade.like_repo


@pytest.fixture
def comment_repo(cascade):
    return cascade.comment_repo


@pytest.fixture
def video_repo(cascade):
    return cascade.parent_repos[TargetType.VIDEO]


async def video_with_dependents(factory, likes=3, comments=2):
    owner = await factory.user()
    video = await factory.video(owner)
    for _ in range(likes):
        await factory.like(await factory.user(), TargetType.VIDEO, video.id)
    for _ in range(comments):
        comment = await factory.comment(video, owner)
        await factory.like(owner, TargetType.COMMENT, comment.id)
    return owner, video


class TestVideoCascade:
    @pytest.mark.asyncio
    async def test_removes_likes_and_comments(
        self, cascade, like_repo, comment_repo, video_repo, factory
    ):
        _, video = await video_with_dependents(factory)
        video_id = video.id

        report = await cascade.on_delete_parent("video", video_id)

        assert report.parent_deleted is True
        assert report.likes_deleted == 5
        assert report.comments_deleted == 2
        assert report.consistent
        assert await video_repo.get_by_id(video_id) is None
        assert await comment_repo.count(video_id=video_id) == 0
        assert await like_repo.count() == 0

    @pytest.mark.asyncio
    async def test_other_videos_untouched(self, cascade, like_repo, comment_repo, factory):
        _, doomed = await video_with_dependents(factory)
        _, kept = await video_with_dependents(factory, likes=2, comments=1)
        doomed_id, kept_id = doomed.id, kept.id

        await cascade.on_delete_parent("video", doomed_id)

        assert await comment_repo.count(video_id=kept_id) == 1
        assert await like_repo.count(target_type=TargetType.VIDEO, target_id=kept_id) == 2
        assert await like_repo.count(target_type=TargetType.COMMENT) == 1

    @pytest.mark.asyncio
    async def test_video_without_dependents(self, cascade, factory):
        video = await factory.video(await factory.user())

        report = await cascade.on_delete_parent(TargetType.VIDEO, video.id)

        assert report.to_dict()["likes_deleted"] == 0
        assert report.parent_deleted is True

    @pytest.mark.asyncio
    async def test_missing_parent_is_a_no_op(self, cascade):
        report = await cascade.on_delete_parent("video", str(uuid.uuid4()))

        assert report.parent_deleted is False
        assert report.likes_deleted == 0


class TestOtherParents:
    @pytest.mark.asyncio
    async def test_comment_cascade(self, cascade, like_repo, comment_repo, factory):
        owner = await factory.user()
        video = await factory.video(owner)
        comment = await factory.comment(video, owner)
        comment_id, video_id = comment.id, video.id
        await factory.like(owner, TargetType.COMMENT, comment_id)
        await factory.like(await factory.user(), TargetType.COMMENT, comment_id)
        await factory.like(owner, TargetType.VIDEO, video_id)

        report = await cascade.on_delete_parent("comment", comment_id)

        assert report.likes_deleted == 2
        assert report.comments_deleted == 0
        assert await comment_repo.get_by_id(comment_id) is None
        assert await like_repo.count(target_type=TargetType.VIDEO) == 1

    @pytest.mark.asyncio
    async def test_tweet_cascade(self, cascade, like_repo, factory):
        owner = await factory.user()
        tweet = await factory.tweet(owner)
        tweet_id = tweet.id
        await factory.like(owner, TargetType.TWEET, tweet_id)

        report = await cascade.on_delete_parent("tweet", tweet_id)

        assert report.likes_deleted == 1
        assert await like_repo.count(target_id=tweet_id) == 0
        assert await cascade.parent_repos[TargetType.TWEET].get_by_id(tweet_id) is None

    @pytest.mark.asyncio
    async def test_bad_arguments(self, cascade):
        with pytest.raises(InvalidIdentifierError):
            await cascade.on_delete_parent("video", "nope")
        with pytest.raises(ValidationError):
            await cascade.on_delete_parent("playlist", str(uuid.uuid4()))


class TestStepOrdering:
    """Steps run in a fixed order against mocked repositories"""

    @pytest.fixture
    def recorded(self, app_config):
        calls = []

        def step(name, result):
            async def run(*args, **kwargs):
                calls.append(name)
                return result

            return AsyncMock(side_effect=run)

        parent_repo = Mock()
        parent_repo.mark_pending_deletion = step("mark", True)
        parent_repo.delete = step("delete_parent", True)

        comment_repo = Mock()
        comment_repo.mark_pending_for_video = step("mark_comments", 1)
        comment_repo.ids_for_video = step("comment_ids", [str(uuid.uuid4())])
        comment_repo.delete_for_video = step("delete_comments", 1)

        like_repo = Mock()
        like_repo.delete_for_targets = step("delete_likes", 1)

        app_config.cascade = CascadeConfig(sweep_after_delete=False)
        manager = CascadeManager(
            {kind: parent_repo for kind in TargetType},
            comment_repo,
            like_repo,
            config=app_config,
        )
        return manager, calls, parent_repo, like_repo

    @pytest.mark.asyncio
    async def test_dependents_before_parent(self, recorded):
        manager, calls, _, _ = recorded

        await manager.on_delete_parent("video", str(uuid.uuid4()))

        assert calls == [
            "mark",
            "mark_comments",
            "comment_ids",
            "delete_likes",
            "delete_comments",
            "delete_likes",
            "delete_parent",
        ]

    @pytest.mark.asyncio
    async def test_failure_stops_before_parent_delete(self, recorded):
        manager, calls, parent_repo, like_repo = recorded
        like_repo.delete_for_targets.side_effect = store_down()

        with pytest.raises(UpstreamUnavailableError):
            await manager.on_delete_parent("tweet", str(uuid.uuid4()))

        assert calls == ["mark"]
        parent_repo.delete.assert_not_called()


class TestPartialFailure:
    @pytest.mark.asyncio
    async def test_dependent_failure_leaves_parent_pending(
        self, cascade, like_repo, video_repo, factory, monkeypatch
    ):
        _, video = await video_with_dependents(factory, likes=1, comments=0)
        video_id = video.id
        monkeypatch.setattr(
            like_repo, "delete_for_targets", AsyncMock(side_effect=store_down())
        )

        with pytest.raises(UpstreamUnavailableError) as exc_info:
            await cascade.on_delete_parent("video", video_id)

        assert exc_info.value.status_code == 503
        parent = await video_repo.get_by_id(video_id)
        assert parent is not None
        assert parent.pending_deletion is True
        assert await video_repo.get_active(video_id) is None

    @pytest.mark.asyncio
    async def test_retry_pending_finishes_the_job(
        self, cascade, like_repo, video_repo, factory, monkeypatch
    ):
        _, video = await video_with_dependents(factory, likes=2, comments=1)
        video_id = video.id
        monkeypatch.setattr(
            like_repo, "delete_for_targets", AsyncMock(side_effect=store_down())
        )
        with pytest.raises(UpstreamUnavailableError):
            await cascade.on_delete_parent("video", video_id)
        monkeypatch.undo()

        reports = await cascade.retry_pending("video")

        assert [r.parent_id for r in reports] == [video_id]
        assert reports[0].likes_deleted == 3
        assert await video_repo.get_by_id(video_id) is None
        assert await like_repo.count() == 0
        assert await cascade.retry_pending("video") == []

    @pytest.mark.asyncio
    async def test_retry_skips_parents_that_fail_again(
        self, cascade, like_repo, factory, monkeypatch
    ):
        owner = await factory.user()
        await factory.tweet(owner, pending_deletion=True)
        await factory.tweet(owner, pending_deletion=True)
        monkeypatch.setattr(
            like_repo,
            "delete_for_targets",
            AsyncMock(side_effect=[store_down(), 0, 0]),
        )

        reports = await cascade.retry_pending("tweet")

        assert len(reports) == 1
        remaining = await cascade.parent_repos[TargetType.TWEET].list_pending_deletion()
        assert len(remaining) == 1

    @pytest.mark.asyncio
    async def test_sweep_failure_is_reported_not_raised(
        self, cascade, like_repo, factory, monkeypatch
    ):
        tweet = await factory.tweet(await factory.user())
        tweet_id = tweet.id
        monkeypatch.setattr(
            like_repo, "delete_for_targets", AsyncMock(side_effect=[0, store_down()])
        )

        report = await cascade.on_delete_parent("tweet", tweet_id)

        assert report.parent_deleted is True
        assert report.consistent is False
        assert "tweet" in report.warnings[0]
        assert tweet_id in report.warnings[0]

    @pytest.mark.asyncio
    async def test_sweep_can_be_disabled(
        self, cascade, like_repo, app_config, factory, monkeypatch
    ):
        app_config.cascade = CascadeConfig(sweep_after_delete=False)
        tweet = await factory.tweet(await factory.user())
        spy = AsyncMock(wraps=like_repo.delete_for_targets)
        monkeypatch.setattr(like_repo, "delete_for_targets", spy)

        report = await cascade.on_delete_parent("tweet", tweet.id)

        assert report.parent_deleted is True
        assert spy.await_count == 1

    @pytest.mark.asyncio
    async def test_sweep_catches_late_likes(self, cascade, like_repo, factory, monkeypatch):
        owner = await factory.user()
        tweet = await factory.tweet(owner)
        tweet_id, owner_id = tweet.id, owner.id
        original_delete = like_repo.delete_for_targets
        session = like_repo.session

        async def delete_then_race(target_type, target_ids):
            deleted = await original_delete(target_type, target_ids)
            if spy.await_count == 1:
                # a like lands between the dependent delete and the sweep
                session.add(
                    Like(liked_by=owner_id, target_type=TargetType.TWEET, target_id=tweet_id)
                )
                await session.commit()
            return deleted

        spy = AsyncMock(side_effect=delete_then_race)
        monkeypatch.setattr(like_repo, "delete_for_targets", spy)

        report = await cascade.on_delete_parent("tweet", tweet_id)

        assert report.likes_deleted == 1
        assert report.consistent
        assert await like_repo.count(target_id=tweet_id) == 0

    @pytest.mark.asyncio
    async def test_sweep_catches_late_comment_likes(
        self, cascade, like_repo, comment_repo, factory, monkeypatch
    ):
        owner, fan = await factory.user(), await factory.user()
        video = await factory.video(owner)
        comment = await factory.comment(video, owner)
        video_id, comment_id, fan_id = video.id, comment.id, fan.id
        original_delete = comment_repo.delete_for_video
        session = comment_repo.session

        async def race_then_delete(parent_id):
            if spy.await_count == 1:
                # a like whose target check passed before the comment was flagged
                session.add(
                    Like(liked_by=fan_id, target_type=TargetType.COMMENT, target_id=comment_id)
                )
                await session.commit()
            return await original_delete(parent_id)

        spy = AsyncMock(side_effect=race_then_delete)
        monkeypatch.setattr(comment_repo, "delete_for_video", spy)

        report = await cascade.on_delete_parent("video", video_id)

        assert report.comments_deleted == 1
        assert report.likes_deleted == 1
        assert await like_repo.count(target_type=TargetType.COMMENT) == 0

    @pytest.mark.asyncio
    async def test_comments_refuse_likes_during_cascade(
        self, cascade, services, like_repo, comment_repo, factory, monkeypatch
    ):
        owner, fan = await factory.user(), await factory.user()
        video = await factory.video(owner)
        comment = await factory.comment(video, owner)
        video_id, comment_id, fan_id = video.id, comment.id, fan.id
        original_delete = comment_repo.delete_for_video
        refused = []

        async def toggle_then_delete(parent_id):
            if spy.await_count == 1:
                try:
                    await services.reactions.toggle(fan_id, "comment", comment_id)
                except ResourceNotFoundError as e:
                    refused.append(e)
            return await original_delete(parent_id)

        spy = AsyncMock(side_effect=toggle_then_delete)
        monkeypatch.setattr(comment_repo, "delete_for_video", spy)

        await cascade.on_delete_parent("video", video_id)

        assert len(refused) == 1
        assert await like_repo.count() == 0
