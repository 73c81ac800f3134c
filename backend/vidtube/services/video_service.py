"""
VidTube Backend — Video Service (Business Logic Orchestrator)
==============================================================

What:  Listing, publishing, fetching, editing and deleting videos.
How:   Composes UploadService (temp spooling), the configured media host and
       the database session handed in by the route.
Who:   Called by the /videos route handlers.

Publish Flow (POST /api/v1/videos):
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐    ┌──────────┐
    │  Form    │───▶│  Validate   │───▶│  Media host  │───▶│  Store   │
    │  (Route) │    │  & Spool    │    │  video, then │    │  (DB)    │
    └──────────┘    │  (Upload)   │    │  thumbnail   │    └──────────┘
                    └─────────────┘    └──────────────┘

    - temp files are removed whatever the outcome
    - a failed thumbnail upload deletes the already uploaded video asset
    - a failed commit deletes both uploaded assets

Transactions:
    Publish, update and delete commit the request session themselves. Assets
    replaced or orphaned by the write are removed from the media host only
    after that commit succeeds.

View Counting:
    get_video() answers with views + 1 straight away. The route schedules
    record_view() as a background task; it runs after the response in its own
    session, and a failure there is logged at WARNING and otherwise ignored.

Ownership:
    update, delete and publish toggles load the video, compare its owner to the
    acting user, and repeat the owner predicate in the write itself.
"""

import logging
import uuid
from typing import Any, Dict, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.database import async_session_factory
from vidtube.exceptions import (
    DatabaseError,
    MediaUploadError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    VidTubeError,
)
from vidtube.models import Comment, Like, LikeSubject, User, Video
from vidtube.models.base import utcnow
from vidtube.schemas import Page, PublishStatus, VideoResponse
from vidtube.services.media_base import UploadedMedia
from vidtube.services.media_service import media_host
from vidtube.services.query_builder import build_video_listing, paginate, parse_page_params
from vidtube.services.upload_service import MediaKind, upload_service
from vidtube.services.validators import clean_text, parse_entity_id, require_text

logger = logging.getLogger(__name__)


def _has_file(upload: Any) -> bool:
    return upload is not None and bool(getattr(upload, "filename", None))


class VideoService:
    """
    Business logic layer for video operations.

    Error Handling Strategy:
        Application exceptions propagate unchanged. Anything else raised while
        talking to the store is logged and wrapped in DatabaseError.
    """

    # ── Listing ──────────────────────────────────────────────────────────

    async def list_videos(
        self,
        db: AsyncSession,
        page: Any = None,
        limit: Any = None,
        query: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_type: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Page:
        """
        Published videos with optional free-text and owner filters.

        A blank userId is treated as absent. A supplied one must be a valid id
        of an existing user.
        """
        owner_id: Optional[uuid.UUID] = None
        if clean_text(user_id):
            owner_id = parse_entity_id(user_id, "user")
        page_request = parse_page_params(page, limit)

        try:
            if owner_id is not None:
                if await db.scalar(select(User.id).where(User.id == owner_id)) is None:
                    raise NotFoundError(resource="User", resource_id=str(owner_id))

            listing = build_video_listing(
                query=query,
                owner_id=owner_id,
                sort_by=sort_by,
                sort_type=sort_type,
            )
            return await paginate(
                db,
                listing,
                page_request,
                lambda row: VideoResponse.from_row(*row),
                VideoResponse,
            )
        except VidTubeError:
            raise
        except Exception as e:
            logger.error("Database error listing videos: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve videos. Please try again.",
                context={"error_type": type(e).__name__},
            )

    # ── Publish ──────────────────────────────────────────────────────────

    async def _upload(self, local_path: str, failure_message: str) -> UploadedMedia:
        try:
            return await media_host.upload(local_path)
        except MediaUploadError as e:
            raise MediaUploadError(message=failure_message, context=e.context)

    async def _discard(self, media: Optional[UploadedMedia]) -> None:
        if media is not None:
            await media_host.delete(media.public_id, media.resource_type)

    async def publish_video(
        self,
        db: AsyncSession,
        user: User,
        title: Optional[str],
        description: Optional[str],
        video_file: Any,
        thumbnail: Any,
    ) -> VideoResponse:
        """
        Upload a video and its thumbnail, then create the Video row.

        Args:
            video_file / thumbnail: starlette UploadFile objects, or None when
                the form field was not sent

        Raises:
            ValidationError:  missing text or file, bad type or size (→ 400)
            MediaUploadError: the media host failed (→ 500)
            DatabaseError:    the row could not be written (→ 500)
        """
        title_text = clean_text(title)
        description_text = clean_text(description)
        if not title_text or not description_text:
            raise ValidationError(
                message="Title and description are required",
                field="title" if not title_text else "description",
            )
        if not _has_file(video_file):
            raise ValidationError(message="Video file is required", field="videoFile")
        if not _has_file(thumbnail):
            raise ValidationError(message="Thumbnail file is required", field="thumbnail")

        video_path: Optional[str] = None
        thumbnail_path: Optional[str] = None
        uploaded_video: Optional[UploadedMedia] = None
        uploaded_thumbnail: Optional[UploadedMedia] = None

        try:
            video_path = await upload_service.spool(video_file, MediaKind.VIDEO, "videoFile")
            thumbnail_path = await upload_service.spool(thumbnail, MediaKind.IMAGE, "thumbnail")

            uploaded_video = await self._upload(video_path, "Failed to upload video")
            uploaded_thumbnail = await self._upload(thumbnail_path, "Failed to upload thumbnail")

            video = Video(
                title=title_text,
                description=description_text,
                video_file=uploaded_video.url,
                thumbnail=uploaded_thumbnail.url,
                video_file_public_id=uploaded_video.public_id,
                thumbnail_public_id=uploaded_thumbnail.public_id,
                duration=uploaded_video.duration,
                owner_id=user.id,
            )
            db.add(video)
            await db.flush()
            # Committed here so a failed write still discards the uploads
            await db.commit()

            logger.info("Video %s published by user %s", video.id, user.id)
            return VideoResponse.from_row(video, user)

        except VidTubeError:
            await self._discard(uploaded_video)
            await self._discard(uploaded_thumbnail)
            raise
        except Exception as e:
            await self._discard(uploaded_video)
            await self._discard(uploaded_thumbnail)
            logger.error("Unexpected error publishing video: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not publish the video. Please try again.",
                context={"original_error": type(e).__name__},
            )
        finally:
            await upload_service.cleanup_file(video_path)
            await upload_service.cleanup_file(thumbnail_path)

    # ── Fetch & View Counting ────────────────────────────────────────────

    async def get_video(
        self,
        db: AsyncSession,
        raw_video_id: Optional[str],
        user: Optional[User] = None,
    ) -> VideoResponse:
        """
        One video with its owner; `views` already counts this fetch.

        Unpublished videos are only visible to their owner.

        Raises:
            ValidationError:       malformed id
            NotFoundError:         no such video
            PermissionDeniedError: unpublished and the caller is not the owner
        """
        video_id = parse_entity_id(raw_video_id, "video")

        try:
            row = (
                await db.execute(
                    select(Video, User)
                    .outerjoin(User, User.id == Video.owner_id)
                    .where(Video.id == video_id)
                )
            ).first()
        except Exception as e:
            logger.error("Database error fetching video %s: %s", video_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the video. Please try again.",
                context={"video_id": str(video_id)},
            )

        if row is None:
            raise NotFoundError(resource="Video", resource_id=str(video_id))

        video, owner = row
        if not video.is_published and (user is None or user.id != video.owner_id):
            raise PermissionDeniedError(
                message="You don't have access to this video",
                context={"video_id": str(video_id)},
            )

        response = VideoResponse.from_row(video, owner)
        return response.model_copy(update={"views": response.views + 1})

    async def record_view(self, video_id: uuid.UUID, session_factory: Any = None) -> None:
        """
        Atomically add one view. Runs as a background task in its own session.

        Failures are logged and dropped: a lost view is not worth an error.
        """
        factory = session_factory or async_session_factory
        try:
            async with factory() as session:
                await session.execute(
                    update(Video)
                    .where(Video.id == video_id)
                    .values(views=Video.views + 1, updated_at=Video.updated_at)
                    .execution_options(synchronize_session=False)
                )
                await session.commit()
        except Exception as e:
            logger.warning("Failed to record view for video %s: %s", video_id, str(e))

    # ── Owner-only Mutations ─────────────────────────────────────────────

    async def _load_owned(self, db: AsyncSession, video_id: uuid.UUID, user: User, action: str) -> Video:
        video = await db.scalar(select(Video).where(Video.id == video_id))
        if video is None:
            raise NotFoundError(resource="Video", resource_id=str(video_id))
        if video.owner_id != user.id:
            raise PermissionDeniedError(
                message=f"You don't have permission to {action} this video",
                context={"video_id": str(video_id), "user_id": str(user.id)},
            )
        return video

    async def _apply_owned_update(
        self,
        db: AsyncSession,
        video: Video,
        user: User,
        values: Dict[str, Any],
    ) -> None:
        result = await db.execute(
            update(Video)
            .where(Video.id == video.id, Video.owner_id == user.id)
            .values(**values, updated_at=utcnow())
        )
        if result.rowcount == 0:
            raise NotFoundError(resource="Video", resource_id=str(video.id))
        await db.refresh(video)

    async def update_video(
        self,
        db: AsyncSession,
        raw_video_id: Optional[str],
        user: User,
        title: Optional[str] = None,
        description: Optional[str] = None,
        thumbnail: Any = None,
    ) -> VideoResponse:
        """
        Edit title, description and/or thumbnail. At least one is required;
        text fields that are sent must not be blank.

        The previous thumbnail asset is removed from the media host once the
        row points at the new one.
        """
        video_id = parse_entity_id(raw_video_id, "video")

        values: Dict[str, Any] = {}
        if title is not None:
            values["title"] = require_text(title, "Title cannot be empty", "title")
        if description is not None:
            values["description"] = require_text(description, "Description cannot be empty", "description")
        replace_thumbnail = _has_file(thumbnail)
        if not values and not replace_thumbnail:
            raise ValidationError(message="Title, description or thumbnail is required")

        thumbnail_path: Optional[str] = None
        uploaded_thumbnail: Optional[UploadedMedia] = None

        try:
            video = await self._load_owned(db, video_id, user, "update")
            previous_thumbnail_id = video.thumbnail_public_id

            if replace_thumbnail:
                thumbnail_path = await upload_service.spool(thumbnail, MediaKind.IMAGE, "thumbnail")
                uploaded_thumbnail = await self._upload(thumbnail_path, "Failed to upload thumbnail")
                values["thumbnail"] = uploaded_thumbnail.url
                values["thumbnail_public_id"] = uploaded_thumbnail.public_id

            await self._apply_owned_update(db, video, user, values)
            await db.commit()

            if uploaded_thumbnail is not None and previous_thumbnail_id:
                await media_host.delete(previous_thumbnail_id, "image")

            logger.info("Video %s updated: %s", video_id, sorted(values))
            return VideoResponse.from_row(video, user)

        except VidTubeError:
            await self._discard(uploaded_thumbnail)
            raise
        except Exception as e:
            await self._discard(uploaded_thumbnail)
            logger.error("Database error updating video %s: %s", video_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the video. Please try again.",
                context={"video_id": str(video_id)},
            )
        finally:
            await upload_service.cleanup_file(thumbnail_path)

    async def delete_video(self, db: AsyncSession, raw_video_id: Optional[str], user: User) -> Dict[str, Any]:
        """
        Delete a video together with its comments, the likes on those comments
        and the likes on the video. Media assets are removed afterwards on a
        best-effort basis.
        """
        video_id = parse_entity_id(raw_video_id, "video")

        try:
            video = await self._load_owned(db, video_id, user, "delete")
            assets = [
                (video.video_file_public_id, "video"),
                (video.thumbnail_public_id, "image"),
            ]

            comment_ids = select(Comment.id).where(Comment.video_id == video_id)
            await db.execute(
                delete(Like)
                .where(Like.subject_type == LikeSubject.COMMENT, Like.subject_id.in_(comment_ids))
                .execution_options(synchronize_session=False)
            )
            await db.execute(
                delete(Comment)
                .where(Comment.video_id == video_id)
                .execution_options(synchronize_session=False)
            )
            await db.execute(
                delete(Like)
                .where(Like.subject_type == LikeSubject.VIDEO, Like.subject_id == video_id)
                .execution_options(synchronize_session=False)
            )

            result = await db.execute(
                delete(Video).where(Video.id == video_id, Video.owner_id == user.id)
            )
            if result.rowcount == 0:
                raise NotFoundError(resource="Video", resource_id=str(video_id))
            # Assets go only once the row is gone for good
            await db.commit()

        except VidTubeError:
            raise
        except Exception as e:
            logger.error("Database error deleting video %s: %s", video_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the video. Please try again.",
                context={"video_id": str(video_id)},
            )

        for public_id, resource_type in assets:
            if public_id:
                await media_host.delete(public_id, resource_type)

        logger.info("Video %s deleted by user %s", video_id, user.id)
        return {}

    async def toggle_publish(self, db: AsyncSession, raw_video_id: Optional[str], user: User) -> PublishStatus:
        video_id = parse_entity_id(raw_video_id, "video")

        try:
            video = await self._load_owned(db, video_id, user, "update")
            await self._apply_owned_update(db, video, user, {"is_published": not video.is_published})
            logger.info("Video %s is_published=%s", video_id, video.is_published)
            return PublishStatus(is_published=video.is_published)
        except VidTubeError:
            raise
        except Exception as e:
            logger.error("Database error toggling publish on %s: %s", video_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the video. Please try again.",
                context={"video_id": str(video_id)},
            )


# ── Singleton Instance ────────────────────────────────────────────────────
video_service = VideoService()
