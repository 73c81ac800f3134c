"""
VidTube Backend — Video Model
=============================

Lifecycle:
    1. Created by POST /videos after both media uploads succeed
    2. `views` incremented in the background on every authorized fetch
    3. title / description / thumbnail / is_published edited by the owner only
    4. Deleted by the owner; comments and likes go with it (see VideoService)

Query Patterns:
    - Public listing: WHERE is_published ORDER BY created_at DESC
      → idx_videos_published_created
    - Channel listing: WHERE owner_id = :user → owner_id index
"""

import uuid

from sqlalchemy import Boolean, Float, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from vidtube.database import Base
from vidtube.models.base import TimestampMixin, UUIDPrimaryKeyMixin


class Video(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "videos"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    # Public URLs handed back by the media host
    video_file: Mapped[str] = mapped_column(String(1024), nullable=False)
    thumbnail: Mapped[str] = mapped_column(String(1024), nullable=False)

    # Media host asset ids, needed to delete the assets later. Never serialized.
    video_file_public_id: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    thumbnail_public_id: Mapped[str] = mapped_column(String(512), nullable=False, default="")

    duration: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # No ON DELETE: users are never deleted by this backend
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    __table_args__ = (
        Index("idx_videos_published_created", "is_published", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Video(id={self.id}, title='{self.title}', published={self.is_published})>"
