"""
VidTube Backend — Like Model
============================

A Like points at exactly one subject: a video, a comment or a tweet. The
subject is stored as a tagged union (subject_type + subject_id) so "exactly
one subject" holds by construction.

Invariant:
    At most one Like per (liked_by, subject_type, subject_id). The unique
    constraint uq_likes_user_subject enforces it in the store, so two
    concurrent toggles from the same user cannot both insert.

subject_id has no foreign key because it targets three tables; the services
remove likes together with their subject instead.
"""

import enum
import uuid

from sqlalchemy import Enum, ForeignKey, Index, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from vidtube.database import Base
from vidtube.models.base import TimestampMixin, UUIDPrimaryKeyMixin


class LikeSubject(str, enum.Enum):
    VIDEO = "video"
    COMMENT = "comment"
    TWEET = "tweet"


class Like(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "likes"

    liked_by_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
    )
    subject_type: Mapped[LikeSubject] = mapped_column(
        Enum(
            LikeSubject,
            name="like_subject",
            values_callable=lambda kinds: [k.value for k in kinds],
            native_enum=False,
            length=16,
        ),
        nullable=False,
    )
    subject_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("liked_by_id", "subject_type", "subject_id", name="uq_likes_user_subject"),
        Index("idx_likes_subject", "subject_type", "subject_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Like(liked_by={self.liked_by_id}, "
            f"{self.subject_type.value}={self.subject_id})>"
        )
