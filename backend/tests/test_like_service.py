"""
VidTube Backend — Like Service Tests
=====================================

Runs against the in-memory database from conftest.

What we test:
    ✅ Toggle flips liked → unliked and leaves no row behind
    ✅ Unknown or malformed subjects are rejected without writing
    ✅ A duplicate insert lost to a concurrent request reports liked once
    ✅ A like removed by a concurrent request still reports unliked
    ✅ Liked-videos listing: order, visibility, dangling likes
"""

import logging
from datetime import datetime, timedelta, timezone
from unittest.mock import patch
from uuid import uuid4

import pytest
from sqlalchemy import delete, func, select

from vidtube.exceptions import NotFoundError, ValidationError
from vidtube.models import Like, LikeSubject
from vidtube.services.like_service import LikeService, toggle_message

BASE_TIME = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


async def _like_count(db) -> int:
    return await db.scalar(select(func.count(Like.id)))


class TestToggleLike:

    def setup_method(self):
        self.service = LikeService()

    @pytest.mark.asyncio
    async def test_toggle_twice_returns_to_unliked(self, db_session, make_user, make_video):
        user = await make_user()
        video = await make_video(owner=user)

        first = await self.service.toggle_like(db_session, LikeSubject.VIDEO, str(video.id), user)
        assert first.liked is True
        assert await _like_count(db_session) == 1

        second = await self.service.toggle_like(db_session, LikeSubject.VIDEO, str(video.id), user)
        assert second.liked is False
        assert await _like_count(db_session) == 0

    @pytest.mark.asyncio
    async def test_tweet_and_comment_subjects(self, db_session, make_user, make_video, make_tweet, make_comment):
        user = await make_user()
        video = await make_video(owner=user)
        tweet = await make_tweet(owner=user)
        comment = await make_comment(video=video, owner=user)

        assert (await self.service.toggle_like(db_session, LikeSubject.TWEET, str(tweet.id), user)).liked
        assert (await self.service.toggle_like(db_session, LikeSubject.COMMENT, str(comment.id), user)).liked

        kinds = (await db_session.scalars(select(Like.subject_type))).all()
        assert sorted(k.value for k in kinds) == ["comment", "tweet"]

    @pytest.mark.asyncio
    async def test_likes_are_per_user(self, db_session, make_user, make_video):
        alice = await make_user("alice")
        bob = await make_user("bob")
        video = await make_video(owner=alice)

        await self.service.toggle_like(db_session, LikeSubject.VIDEO, str(video.id), alice)
        result = await self.service.toggle_like(db_session, LikeSubject.VIDEO, str(video.id), bob)

        assert result.liked is True
        assert await _like_count(db_session) == 2

    @pytest.mark.asyncio
    async def test_unknown_subject_is_not_found(self, db_session, make_user):
        user = await make_user()

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.toggle_like(db_session, LikeSubject.VIDEO, str(uuid4()), user)

        assert exc_info.value.message == "Video not found"
        assert await _like_count(db_session) == 0

    @pytest.mark.asyncio
    async def test_malformed_id_is_rejected(self, db_session, make_user):
        user = await make_user()

        with pytest.raises(ValidationError) as exc_info:
            await self.service.toggle_like(db_session, LikeSubject.TWEET, "not-an-id", user)

        assert exc_info.value.message == "Invalid tweet ID"
        assert exc_info.value.field == "tweetId"

    @pytest.mark.asyncio
    async def test_lost_insert_race_reports_liked(self, db_session, make_user, make_video):
        """The lookup misses a row another request just inserted."""
        user = await make_user()
        video = await make_video(owner=user)
        db_session.add(Like(liked_by_id=user.id, subject_type=LikeSubject.VIDEO, subject_id=video.id))
        await db_session.flush()

        real_scalar = db_session.scalar
        calls = []

        async def stale_scalar(statement, *args, **kwargs):
            calls.append(statement)
            if len(calls) == 2:
                return None
            return await real_scalar(statement, *args, **kwargs)

        with patch.object(db_session, "scalar", new=stale_scalar):
            result = await self.service.toggle_like(db_session, LikeSubject.VIDEO, str(video.id), user)

        assert result.liked is True
        assert await _like_count(db_session) == 1

    @pytest.mark.asyncio
    async def test_unlike_already_removed_reports_unliked(self, db_session, make_user, make_video, caplog):
        """Another request deletes the like between the lookup and the delete."""
        user = await make_user()
        video = await make_video(owner=user)
        db_session.add(Like(liked_by_id=user.id, subject_type=LikeSubject.VIDEO, subject_id=video.id))
        await db_session.flush()

        real_scalar = db_session.scalar
        calls = []

        async def scalar_then_remove(statement, *args, **kwargs):
            calls.append(statement)
            value = await real_scalar(statement, *args, **kwargs)
            if len(calls) == 2:
                await db_session.execute(delete(Like))
            return value

        caplog.set_level(logging.INFO, logger="vidtube.services.like_service")
        with patch.object(db_session, "scalar", new=scalar_then_remove):
            result = await self.service.toggle_like(db_session, LikeSubject.VIDEO, str(video.id), user)

        assert result.liked is False
        assert await _like_count(db_session) == 0
        assert "already removed" in caplog.text


class TestToggleMessage:

    def test_messages(self):
        assert toggle_message(LikeSubject.VIDEO, True) == "Video liked successfully"
        assert toggle_message(LikeSubject.COMMENT, False) == "Comment like removed"
        assert toggle_message(LikeSubject.TWEET, True) == "Tweet liked successfully"


class TestLikedVideos:

    def setup_method(self):
        self.service = LikeService()

    @pytest.mark.asyncio
    async def test_listing_order_and_visibility(self, db_session, make_user, make_video):
        viewer = await make_user("viewer")
        other = await make_user("other")

        older = await make_video(owner=other, title="Older like")
        newer = await make_video(owner=other, title="Newer like")
        hidden = await make_video(owner=other, title="Unpublished", is_published=False)
        own_draft = await make_video(owner=viewer, title="Own draft", is_published=False)

        liked = [older, newer, hidden, own_draft]
        for minutes, video in enumerate(liked):
            db_session.add(
                Like(
                    liked_by_id=viewer.id,
                    subject_type=LikeSubject.VIDEO,
                    subject_id=video.id,
                    created_at=BASE_TIME + timedelta(days=1, minutes=minutes),
                )
            )
        # Dangling like: its video no longer exists
        db_session.add(Like(liked_by_id=viewer.id, subject_type=LikeSubject.VIDEO, subject_id=uuid4()))
        await db_session.flush()

        page = await self.service.list_liked_videos(db_session, viewer)

        assert [doc.title for doc in page.docs] == ["Own draft", "Newer like", "Older like"]
        assert page.total_docs == 3
        assert page.docs[1].owner.username == "other"

    @pytest.mark.asyncio
    async def test_listing_is_paginated(self, db_session, make_user, make_video):
        viewer = await make_user()
        for i in range(3):
            video = await make_video(owner=viewer, title=f"v{i}")
            db_session.add(
                Like(
                    liked_by_id=viewer.id,
                    subject_type=LikeSubject.VIDEO,
                    subject_id=video.id,
                    created_at=BASE_TIME + timedelta(days=1, minutes=i),
                )
            )
        await db_session.flush()

        page = await self.service.list_liked_videos(db_session, viewer, page="2", limit="2")

        assert [doc.title for doc in page.docs] == ["v0"]
        assert (page.page, page.limit, page.total_pages) == (2, 2, 2)
        assert page.has_prev_page is True
