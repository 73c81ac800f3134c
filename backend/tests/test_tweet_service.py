"""
VidTube Backend — Tweet Service Tests
======================================

What we test:
    ✅ Content is trimmed; blank content is rejected before any write
    ✅ A user's tweets come back newest first, paginated
    ✅ Only the owner may update or delete
    ✅ The conditional write reports 404 when the tweet vanished mid-request
    ✅ Deleting a tweet removes its likes
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy import delete, func, select

from vidtube.exceptions import DatabaseError, NotFoundError, PermissionDeniedError, ValidationError
from vidtube.models import Like, LikeSubject, Tweet
from vidtube.services.tweet_service import TweetService


class TestCreateTweet:

    def setup_method(self):
        self.service = TweetService()

    @pytest.mark.asyncio
    async def test_content_is_trimmed(self, db_session, make_user):
        user = await make_user("writer", full_name="Writer One")

        result = await self.service.create_tweet(db_session, user, "  hello  ")

        assert result.content == "hello"
        assert result.owner.full_name == "Writer One"
        stored = await db_session.scalar(select(Tweet.content).where(Tweet.id == result.id))
        assert stored == "hello"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["   ", "", None])
    async def test_blank_content_is_rejected(self, db_session, make_user, content):
        user = await make_user()

        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_tweet(db_session, user, content)

        assert exc_info.value.message == "Tweet content is required"
        assert await db_session.scalar(select(func.count(Tweet.id))) == 0

    @pytest.mark.asyncio
    async def test_store_failure_is_wrapped(self, mock_db_session):
        mock_db_session.flush.side_effect = RuntimeError("connection reset")
        user = MagicMock(id=uuid4())

        with pytest.raises(DatabaseError):
            await self.service.create_tweet(mock_db_session, user, "hi")


class TestListUserTweets:

    def setup_method(self):
        self.service = TweetService()

    @pytest.mark.asyncio
    async def test_newest_first(self, db_session, make_user, make_tweet):
        author = await make_user()
        other = await make_user()
        for text in ("first", "second", "third"):
            await make_tweet(owner=author, content=text)
        await make_tweet(owner=other, content="not mine")

        page = await self.service.list_user_tweets(db_session, str(author.id))

        assert [t.content for t in page.docs] == ["third", "second", "first"]
        assert page.total_docs == 3
        assert all(t.owner.id == author.id for t in page.docs)

    @pytest.mark.asyncio
    async def test_pagination(self, db_session, make_user, make_tweet):
        author = await make_user()
        for i in range(5):
            await make_tweet(owner=author, content=f"t{i}")

        page = await self.service.list_user_tweets(db_session, str(author.id), page="2", limit="2")

        assert [t.content for t in page.docs] == ["t2", "t1"]
        assert (page.total_pages, page.next_page, page.prev_page) == (3, 3, 1)

    @pytest.mark.asyncio
    async def test_malformed_user_id(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.list_user_tweets(db_session, "123")
        assert exc_info.value.message == "Invalid user ID"

    @pytest.mark.asyncio
    async def test_unknown_user(self, db_session):
        with pytest.raises(NotFoundError) as exc_info:
            await self.service.list_user_tweets(db_session, str(uuid4()))
        assert exc_info.value.message == "User not found"


class TestUpdateTweet:

    def setup_method(self):
        self.service = TweetService()

    @pytest.mark.asyncio
    async def test_owner_can_update(self, db_session, make_user, make_tweet):
        owner = await make_user()
        tweet = await make_tweet(owner=owner, content="draft")
        created_at = tweet.updated_at

        result = await self.service.update_tweet(db_session, str(tweet.id), owner, " final ")

        assert result.content == "final"
        assert result.owner.id == owner.id
        assert result.updated_at != created_at

    @pytest.mark.asyncio
    async def test_non_owner_is_denied(self, db_session, make_user, make_tweet):
        owner = await make_user()
        intruder = await make_user()
        tweet = await make_tweet(owner=owner, content="mine")

        with pytest.raises(PermissionDeniedError) as exc_info:
            await self.service.update_tweet(db_session, str(tweet.id), intruder, "yours now")

        assert exc_info.value.message == "You don't have permission to update this tweet"
        stored = await db_session.scalar(select(Tweet.content).where(Tweet.id == tweet.id))
        assert stored == "mine"

    @pytest.mark.asyncio
    async def test_unknown_tweet(self, db_session, make_user):
        user = await make_user()
        with pytest.raises(NotFoundError) as exc_info:
            await self.service.update_tweet(db_session, str(uuid4()), user, "text")
        assert exc_info.value.message == "Tweet not found"

    @pytest.mark.asyncio
    async def test_blank_content_checked_before_lookup(self, db_session, make_user):
        user = await make_user()
        # The id does not exist: validation must win over the 404
        with pytest.raises(ValidationError):
            await self.service.update_tweet(db_session, str(uuid4()), user, "   ")

    @pytest.mark.asyncio
    async def test_tweet_vanished_between_read_and_write(self, db_session, make_user, make_tweet):
        owner = await make_user()
        tweet = await make_tweet(owner=owner)
        await db_session.execute(delete(Tweet).where(Tweet.id == tweet.id))

        with patch.object(self.service, "_load_owned", AsyncMock(return_value=tweet)):
            with pytest.raises(NotFoundError):
                await self.service.update_tweet(db_session, str(tweet.id), owner, "late edit")


class TestDeleteTweet:

    def setup_method(self):
        self.service = TweetService()

    @pytest.mark.asyncio
    async def test_delete_removes_tweet_and_its_likes(self, db_session, make_user, make_tweet):
        owner = await make_user()
        fan = await make_user()
        tweet = await make_tweet(owner=owner)
        keep = await make_tweet(owner=owner)
        for subject in (tweet, keep):
            db_session.add(Like(liked_by_id=fan.id, subject_type=LikeSubject.TWEET, subject_id=subject.id))
        await db_session.flush()

        result = await self.service.delete_tweet(db_session, str(tweet.id), owner)

        assert result == {}
        assert await db_session.scalar(select(func.count(Tweet.id))) == 1
        remaining = (await db_session.scalars(select(Like.subject_id))).all()
        assert remaining == [keep.id]

    @pytest.mark.asyncio
    async def test_non_owner_cannot_delete(self, db_session, make_user, make_tweet):
        owner = await make_user()
        intruder = await make_user()
        tweet = await make_tweet(owner=owner)

        with pytest.raises(PermissionDeniedError) as exc_info:
            await self.service.delete_tweet(db_session, str(tweet.id), intruder)

        assert exc_info.value.message == "You don't have permission to delete this tweet"
        assert await db_session.scalar(select(func.count(Tweet.id))) == 1

    @pytest.mark.asyncio
    async def test_malformed_id(self, db_session, make_user):
        user = await make_user()
        with pytest.raises(ValidationError) as exc_info:
            await self.service.delete_tweet(db_session, "nope", user)
        assert exc_info.value.message == "Invalid tweet ID"
