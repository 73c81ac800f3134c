"""
VidTube Backend — Tweet Service
================================

What:  Create, list, update and delete tweets.
How:   Every mutation is ownership-gated: the tweet is loaded, its owner is
       compared to the acting user, and the write itself repeats the check
       (UPDATE/DELETE ... WHERE id = :id AND owner_id = :user). A write that
       matches zero rows means the tweet vanished in between → 404.
Who:   Called by the /tweets route handlers.

Retention:
    Deleting a tweet deletes the likes on it in the same transaction.
"""

import logging
import uuid
from typing import Any, Dict, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.exceptions import DatabaseError, NotFoundError, PermissionDeniedError, VidTubeError
from vidtube.models import Like, LikeSubject, Tweet, User
from vidtube.models.base import utcnow
from vidtube.schemas import Page, TweetResponse
from vidtube.services.query_builder import build_user_tweets, paginate, parse_page_params
from vidtube.services.validators import parse_entity_id, require_text

logger = logging.getLogger(__name__)

CONTENT_REQUIRED = "Tweet content is required"


class TweetService:

    async def create_tweet(self, db: AsyncSession, user: User, content: Optional[str]) -> TweetResponse:
        text = require_text(content, CONTENT_REQUIRED, "content")
        try:
            tweet = Tweet(content=text, owner_id=user.id)
            db.add(tweet)
            await db.flush()
            logger.info("Tweet %s created by user %s", tweet.id, user.id)
            return TweetResponse.from_row(tweet, user)
        except Exception as e:
            logger.error("Database error creating tweet: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the tweet. Please try again.",
                context={"user_id": str(user.id)},
            )

    async def list_user_tweets(
        self,
        db: AsyncSession,
        raw_user_id: Optional[str],
        page: Any = None,
        limit: Any = None,
    ) -> Page:
        """
        A user's tweets, newest first.

        Raises:
            ValidationError: malformed user id
            NotFoundError:   no such user
        """
        user_id = parse_entity_id(raw_user_id, "user")
        page_request = parse_page_params(page, limit)
        try:
            if await db.scalar(select(User.id).where(User.id == user_id)) is None:
                raise NotFoundError(resource="User", resource_id=str(user_id))

            return await paginate(
                db,
                build_user_tweets(user_id),
                page_request,
                lambda row: TweetResponse.from_row(*row),
                TweetResponse,
            )
        except VidTubeError:
            raise
        except Exception as e:
            logger.error("Database error listing tweets of %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve tweets. Please try again.",
                context={"user_id": str(user_id)},
            )

    async def _load_owned(self, db: AsyncSession, tweet_id: uuid.UUID, user: User, action: str) -> Tweet:
        tweet = await db.scalar(select(Tweet).where(Tweet.id == tweet_id))
        if tweet is None:
            raise NotFoundError(resource="Tweet", resource_id=str(tweet_id))
        if tweet.owner_id != user.id:
            raise PermissionDeniedError(
                message=f"You don't have permission to {action} this tweet",
                context={"tweet_id": str(tweet_id), "user_id": str(user.id)},
            )
        return tweet

    async def update_tweet(
        self,
        db: AsyncSession,
        raw_tweet_id: Optional[str],
        user: User,
        content: Optional[str],
    ) -> TweetResponse:
        """
        Replace a tweet's content.

        Raises:
            ValidationError:       malformed id or blank content
            NotFoundError:         no such tweet
            PermissionDeniedError: acting user is not the owner
        """
        tweet_id = parse_entity_id(raw_tweet_id, "tweet")
        text = require_text(content, CONTENT_REQUIRED, "content")

        try:
            tweet = await self._load_owned(db, tweet_id, user, "update")

            result = await db.execute(
                update(Tweet)
                .where(Tweet.id == tweet_id, Tweet.owner_id == user.id)
                .values(content=text, updated_at=utcnow())
            )
            if result.rowcount == 0:
                raise NotFoundError(resource="Tweet", resource_id=str(tweet_id))

            await db.refresh(tweet)
            logger.info("Tweet %s updated", tweet_id)
            return TweetResponse.from_row(tweet, user)
        except VidTubeError:
            raise
        except Exception as e:
            logger.error("Database error updating tweet %s: %s", tweet_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the tweet. Please try again.",
                context={"tweet_id": str(tweet_id)},
            )

    async def delete_tweet(self, db: AsyncSession, raw_tweet_id: Optional[str], user: User) -> Dict[str, Any]:
        """Delete a tweet and the likes on it. Returns an empty payload."""
        tweet_id = parse_entity_id(raw_tweet_id, "tweet")

        try:
            await self._load_owned(db, tweet_id, user, "delete")

            result = await db.execute(
                delete(Tweet).where(Tweet.id == tweet_id, Tweet.owner_id == user.id)
            )
            if result.rowcount == 0:
                raise NotFoundError(resource="Tweet", resource_id=str(tweet_id))

            await db.execute(
                delete(Like)
                .where(Like.subject_type == LikeSubject.TWEET, Like.subject_id == tweet_id)
                .execution_options(synchronize_session=False)
            )
            logger.info("Tweet %s deleted by user %s", tweet_id, user.id)
            return {}
        except VidTubeError:
            raise
        except Exception as e:
            logger.error("Database error deleting tweet %s: %s", tweet_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the tweet. Please try again.",
                context={"tweet_id": str(tweet_id)},
            )


# ── Singleton Instance ────────────────────────────────────────────────────
tweet_service = TweetService()
