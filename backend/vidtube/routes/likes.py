"""
VidTube Backend — Like Route Handlers
======================================

Toggle endpoints share one shape: validate the subject id, flip the acting
user's like, answer {liked} with a message naming the subject kind.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.database import get_db_session
from vidtube.dependencies import get_current_user
from vidtube.models import LikeSubject, User
from vidtube.schemas import ApiResponse, ErrorResponse, LikeStatus, Page, VideoResponse
from vidtube.services.like_service import like_service, toggle_message

router = APIRouter(prefix="/api/v1/likes", tags=["Likes"])

ERROR_RESPONSES = {
    400: {"description": "Malformed id", "model": ErrorResponse},
    401: {"description": "No acting user", "model": ErrorResponse},
    404: {"description": "Subject not found", "model": ErrorResponse},
}


async def _toggle(
    db: AsyncSession,
    subject_type: LikeSubject,
    subject_id: str,
    user: User,
) -> ApiResponse[LikeStatus]:
    status = await like_service.toggle_like(db, subject_type, subject_id, user)
    return ApiResponse[LikeStatus](data=status, message=toggle_message(subject_type, status.liked))


@router.post(
    "/toggle/v/{video_id}",
    response_model=ApiResponse[LikeStatus],
    responses=ERROR_RESPONSES,
    summary="Like or unlike a video",
)
async def toggle_video_like(
    video_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[LikeStatus]:
    return await _toggle(db, LikeSubject.VIDEO, video_id, user)


@router.post(
    "/toggle/c/{comment_id}",
    response_model=ApiResponse[LikeStatus],
    responses=ERROR_RESPONSES,
    summary="Like or unlike a comment",
)
async def toggle_comment_like(
    comment_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[LikeStatus]:
    return await _toggle(db, LikeSubject.COMMENT, comment_id, user)


@router.post(
    "/toggle/t/{tweet_id}",
    response_model=ApiResponse[LikeStatus],
    responses=ERROR_RESPONSES,
    summary="Like or unlike a tweet",
)
async def toggle_tweet_like(
    tweet_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[LikeStatus]:
    return await _toggle(db, LikeSubject.TWEET, tweet_id, user)


@router.get(
    "/videos",
    response_model=ApiResponse[Page[VideoResponse]],
    responses={401: {"description": "No acting user", "model": ErrorResponse}},
    summary="Videos liked by the acting user",
    description="Newest like first. Likes whose video was deleted are skipped.",
)
async def get_liked_videos(
    page: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[Page[VideoResponse]]:
    result = await like_service.list_liked_videos(db, user, page=page, limit=limit)
    return ApiResponse[Page[VideoResponse]](data=result, message="Liked videos fetched successfully")
