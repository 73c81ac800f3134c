"""
VidTube Backend — Video Route Handlers
=======================================

What:  Listing/search, publishing (multipart), fetching, owner edits.
How:   Thin handlers over VideoService. Publish and update read multipart
       forms; the files are handed to the service unread.

View counting:
    GET /videos/{id} answers with views + 1 and schedules the store increment
    as a BackgroundTask, which Starlette runs after the response is sent.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.database import get_db_session
from vidtube.dependencies import get_current_user, get_optional_user
from vidtube.models import User
from vidtube.schemas import ApiResponse, ErrorResponse, Page, PublishStatus, VideoResponse
from vidtube.services.video_service import video_service

router = APIRouter(prefix="/api/v1/videos", tags=["Videos"])

MUTATION_ERRORS = {
    400: {"description": "Malformed id or invalid fields", "model": ErrorResponse},
    401: {"description": "No acting user", "model": ErrorResponse},
    403: {"description": "Not the owner", "model": ErrorResponse},
    404: {"description": "Video not found", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=ApiResponse[Page[VideoResponse]],
    responses={
        400: {"description": "Malformed userId", "model": ErrorResponse},
        404: {"description": "userId names no user", "model": ErrorResponse},
    },
    summary="List and search published videos",
    description=(
        "query matches title or description case-insensitively. sortBy is one of "
        "createdAt, updatedAt, views, duration, title (default createdAt); "
        "sortType 'asc' sorts ascending, anything else descending."
    ),
)
async def get_all_videos(
    page: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
    query: Optional[str] = Query(default=None),
    sort_by: Optional[str] = Query(default=None, alias="sortBy"),
    sort_type: Optional[str] = Query(default=None, alias="sortType"),
    user_id: Optional[str] = Query(default=None, alias="userId"),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[Page[VideoResponse]]:
    result = await video_service.list_videos(
        db,
        page=page,
        limit=limit,
        query=query,
        sort_by=sort_by,
        sort_type=sort_type,
        user_id=user_id,
    )
    return ApiResponse[Page[VideoResponse]](data=result, message="Videos fetched successfully")


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[VideoResponse],
    responses={
        400: {"description": "Missing fields or files, bad file type/size", "model": ErrorResponse},
        401: {"description": "No acting user", "model": ErrorResponse},
        500: {"description": "Media host failure", "model": ErrorResponse},
    },
    summary="Publish a video",
)
async def publish_video(
    title: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    video_file: Optional[UploadFile] = File(default=None, alias="videoFile"),
    thumbnail: Optional[UploadFile] = File(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[VideoResponse]:
    video = await video_service.publish_video(
        db,
        user,
        title=title,
        description=description,
        video_file=video_file,
        thumbnail=thumbnail,
    )
    return ApiResponse[VideoResponse](
        status_code=status.HTTP_201_CREATED,
        data=video,
        message="Video published successfully",
    )


@router.get(
    "/{video_id}",
    response_model=ApiResponse[VideoResponse],
    responses={
        400: {"description": "Malformed id", "model": ErrorResponse},
        403: {"description": "Unpublished and not the owner", "model": ErrorResponse},
        404: {"description": "Video not found", "model": ErrorResponse},
    },
    summary="Fetch one video and count the view",
)
async def get_video_by_id(
    video_id: str,
    background_tasks: BackgroundTasks,
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[VideoResponse]:
    video = await video_service.get_video(db, video_id, user)
    background_tasks.add_task(video_service.record_view, video.id)
    return ApiResponse[VideoResponse](data=video, message="Video fetched successfully")


@router.patch(
    "/toggle/publish/{video_id}",
    response_model=ApiResponse[PublishStatus],
    responses=MUTATION_ERRORS,
    summary="Publish or unpublish a video (owner only)",
)
async def toggle_publish_status(
    video_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[PublishStatus]:
    result = await video_service.toggle_publish(db, video_id, user)
    return ApiResponse[PublishStatus](data=result, message="Publish status toggled successfully")


@router.patch(
    "/{video_id}",
    response_model=ApiResponse[VideoResponse],
    responses=MUTATION_ERRORS,
    summary="Edit title, description or thumbnail (owner only)",
)
async def update_video(
    video_id: str,
    title: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    thumbnail: Optional[UploadFile] = File(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[VideoResponse]:
    video = await video_service.update_video(
        db,
        video_id,
        user,
        title=title,
        description=description,
        thumbnail=thumbnail,
    )
    return ApiResponse[VideoResponse](data=video, message="Video updated successfully")


@router.delete(
    "/{video_id}",
    response_model=ApiResponse[Dict[str, Any]],
    responses=MUTATION_ERRORS,
    summary="Delete a video (owner only)",
    description="Comments on the video and all related likes are deleted with it.",
)
async def delete_video(
    video_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[Dict[str, Any]]:
    result = await video_service.delete_video(db, video_id, user)
    return ApiResponse[Dict[str, Any]](data=result, message="Video deleted successfully")
