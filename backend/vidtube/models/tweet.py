import uuid

from sqlalchemy import ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from vidtube.database import Base
from vidtube.models.base import TimestampMixin, UUIDPrimaryKeyMixin


class Tweet(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Short text post. `content` is stored trimmed and is never blank."""

    __tablename__ = "tweets"

    content: Mapped[str] = mapped_column(Text, nullable=False)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Tweet(id={self.id}, owner_id={self.owner_id})>"
