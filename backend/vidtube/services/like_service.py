"""
VidTube Backend — Like Service
===============================

What:  Toggle-like over videos, comments and tweets, and the liked-videos
       listing.
How:   A Like is keyed by (liked_by, subject_type, subject_id). Toggling
       deletes an existing Like or inserts a new one.
Who:   Called by the /likes route handlers.

Concurrency:
    Two toggles from the same user can race between the lookup and the write.
    The insert runs inside a SAVEPOINT; if the unique constraint
    uq_likes_user_subject rejects it, the other request already inserted the
    row and the outcome is reported as liked. Deleting zero rows means the
    other request already removed it, and the outcome is reported as unliked.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.exceptions import DatabaseError, NotFoundError, VidTubeError
from vidtube.models import Comment, Like, LikeSubject, Tweet, User, Video
from vidtube.schemas import LikeStatus, Page, VideoResponse
from vidtube.services.query_builder import build_liked_videos, paginate, parse_page_params
from vidtube.services.validators import parse_entity_id

logger = logging.getLogger(__name__)

SUBJECT_MODELS: Dict[LikeSubject, Any] = {
    LikeSubject.VIDEO: Video,
    LikeSubject.COMMENT: Comment,
    LikeSubject.TWEET: Tweet,
}


def subject_label(subject_type: LikeSubject) -> str:
    return subject_type.value.capitalize()


def toggle_message(subject_type: LikeSubject, liked: bool) -> str:
    """e.g. "Video liked successfully" / "Video like removed"."""
    label = subject_label(subject_type)
    return f"{label} liked successfully" if liked else f"{label} like removed"


class LikeService:
    """
    Business logic for likes.

    No like counters are stored on the subjects; counts are derived from the
    likes table when needed.
    """

    async def toggle_like(
        self,
        db: AsyncSession,
        subject_type: LikeSubject,
        raw_subject_id: Optional[str],
        user: User,
    ) -> LikeStatus:
        """
        Flip the acting user's like on one subject.

        Raises:
            ValidationError: malformed subject id (→ 400)
            NotFoundError:   the subject does not exist (→ 404)
            DatabaseError:   unexpected store failure (→ 500)
        """
        subject_id = parse_entity_id(raw_subject_id, subject_type.value)
        model = SUBJECT_MODELS[subject_type]

        try:
            exists = await db.scalar(select(model.id).where(model.id == subject_id))
            if exists is None:
                raise NotFoundError(resource=subject_label(subject_type), resource_id=str(subject_id))

            existing_id = await db.scalar(
                select(Like.id).where(
                    Like.liked_by_id == user.id,
                    Like.subject_type == subject_type,
                    Like.subject_id == subject_id,
                )
            )

            if existing_id is not None:
                result = await db.execute(delete(Like).where(Like.id == existing_id))
                if result.rowcount == 0:
                    logger.info("Like %s already removed by a concurrent request", existing_id)
                return LikeStatus(liked=False)

            try:
                async with db.begin_nested():
                    db.add(Like(liked_by_id=user.id, subject_type=subject_type, subject_id=subject_id))
            except IntegrityError:
                logger.info(
                    "Concurrent like on %s %s by user %s; keeping existing row",
                    subject_type.value,
                    subject_id,
                    user.id,
                )
            return LikeStatus(liked=True)

        except VidTubeError:
            raise
        except Exception as e:
            logger.error("Database error toggling %s like: %s", subject_type.value, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the like. Please try again.",
                context={"subject_type": subject_type.value, "subject_id": str(subject_id)},
            )

    async def list_liked_videos(
        self,
        db: AsyncSession,
        user: User,
        page: Any = None,
        limit: Any = None,
    ) -> Page:
        """Videos the acting user liked, newest like first."""
        page_request = parse_page_params(page, limit)
        try:
            return await paginate(
                db,
                build_liked_videos(user.id),
                page_request,
                lambda row: VideoResponse.from_row(*row),
                VideoResponse,
            )
        except Exception as e:
            logger.error("Database error listing liked videos: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve liked videos. Please try again.",
                context={"user_id": str(user.id)},
            )


# ── Singleton Instance ────────────────────────────────────────────────────
like_service = LikeService()
