import uuid
from datetime import datetime
from typing import Optional

from vidtube.models import User, Video
from vidtube.schemas.common import CamelModel, OwnerSummary


class VideoResponse(CamelModel):
    """A video with its owner summary; owner is null when the user is gone."""

    id: uuid.UUID
    title: str
    description: str
    video_file: str
    thumbnail: str
    duration: float
    views: int
    is_published: bool
    owner: Optional[OwnerSummary] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, video: Video, owner: Optional[User]) -> "VideoResponse":
        return cls(
            id=video.id,
            title=video.title,
            description=video.description,
            video_file=video.video_file,
            thumbnail=video.thumbnail,
            duration=video.duration,
            views=video.views,
            is_published=video.is_published,
            owner=OwnerSummary.model_validate(owner) if owner is not None else None,
            created_at=video.created_at,
            updated_at=video.updated_at,
        )


class PublishStatus(CamelModel):
    is_published: bool
