"""
VidTube Backend — Tweet Route Handlers
=======================================
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.database import get_db_session
from vidtube.dependencies import get_current_user
from vidtube.models import User
from vidtube.schemas import ApiResponse, ErrorResponse, Page, TweetContent, TweetResponse
from vidtube.services.tweet_service import tweet_service

router = APIRouter(prefix="/api/v1/tweets", tags=["Tweets"])

MUTATION_ERRORS = {
    400: {"description": "Malformed id or blank content", "model": ErrorResponse},
    401: {"description": "No acting user", "model": ErrorResponse},
    403: {"description": "Not the owner", "model": ErrorResponse},
    404: {"description": "Tweet not found", "model": ErrorResponse},
}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[TweetResponse],
    responses={
        400: {"description": "Blank content", "model": ErrorResponse},
        401: {"description": "No acting user", "model": ErrorResponse},
    },
    summary="Create a tweet",
)
async def create_tweet(
    body: Optional[TweetContent] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[TweetResponse]:
    content = body.content if body is not None else None
    tweet = await tweet_service.create_tweet(db, user, content)
    return ApiResponse[TweetResponse](
        status_code=status.HTTP_201_CREATED,
        data=tweet,
        message="Tweet created successfully",
    )


@router.get(
    "/user/{user_id}",
    response_model=ApiResponse[Page[TweetResponse]],
    responses={
        400: {"description": "Malformed user id", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="A user's tweets, newest first",
)
async def get_user_tweets(
    user_id: str,
    page: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[Page[TweetResponse]]:
    result = await tweet_service.list_user_tweets(db, user_id, page=page, limit=limit)
    return ApiResponse[Page[TweetResponse]](data=result, message="User tweets fetched successfully")


@router.patch(
    "/{tweet_id}",
    response_model=ApiResponse[TweetResponse],
    responses=MUTATION_ERRORS,
    summary="Edit a tweet (owner only)",
)
async def update_tweet(
    tweet_id: str,
    body: Optional[TweetContent] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[TweetResponse]:
    content = body.content if body is not None else None
    tweet = await tweet_service.update_tweet(db, tweet_id, user, content)
    return ApiResponse[TweetResponse](data=tweet, message="Tweet updated successfully")


@router.delete(
    "/{tweet_id}",
    response_model=ApiResponse[Dict[str, Any]],
    responses=MUTATION_ERRORS,
    summary="Delete a tweet (owner only)",
    description="Likes on the tweet are deleted with it.",
)
async def delete_tweet(
    tweet_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[Dict[str, Any]]:
    result = await tweet_service.delete_tweet(db, tweet_id, user)
    return ApiResponse[Dict[str, Any]](data=result, message="Tweet deleted successfully")
