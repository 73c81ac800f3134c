import uuid

from sqlalchemy import ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from vidtube.database import Base
from vidtube.models.base import TimestampMixin, UUIDPrimaryKeyMixin


class Comment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A comment on a video. Only used here as a like subject."""

    __tablename__ = "comments"

    content: Mapped[str] = mapped_column(Text, nullable=False)
    video_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("videos.id"),
        nullable=False,
        index=True,
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, video_id={self.video_id})>"
