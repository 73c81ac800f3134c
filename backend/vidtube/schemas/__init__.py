from vidtube.schemas.common import (
    ApiResponse,
    ErrorResponse,
    HealthResponse,
    OwnerSummary,
    Page,
)
from vidtube.schemas.like import LikeStatus
from vidtube.schemas.tweet import TweetContent, TweetResponse
from vidtube.schemas.video import PublishStatus, VideoResponse

__all__ = [
    "ApiResponse",
    "ErrorResponse",
    "HealthResponse",
    "LikeStatus",
    "OwnerSummary",
    "Page",
    "PublishStatus",
    "TweetContent",
    "TweetResponse",
    "VideoResponse",
]
