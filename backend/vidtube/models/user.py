"""
VidTube Backend — User Model
============================

Users are created by the account service in front of this backend. Here they
are only read: as the acting user of a request and as the owner summary
(fullName, username, avatar) joined onto videos and tweets.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from vidtube.database import Base
from vidtube.models.base import TimestampMixin, UUIDPrimaryKeyMixin


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    full_name: Mapped[str] = mapped_column(String(128), nullable=False)
    avatar: Mapped[str] = mapped_column(String(512), nullable=False, default="")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
