import uuid
from datetime import datetime
from typing import Optional

from vidtube.models import Tweet, User
from vidtube.schemas.common import CamelModel, OwnerSummary


class TweetContent(CamelModel):
    """
    Request body for create and update.

    content is optional at the schema level so that a missing field and a
    blank one produce the same 400 from the service.
    """

    content: Optional[str] = None


class TweetResponse(CamelModel):
    id: uuid.UUID
    content: str
    owner: Optional[OwnerSummary] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, tweet: Tweet, owner: Optional[User]) -> "TweetResponse":
        return cls(
            id=tweet.id,
            content=tweet.content,
            owner=OwnerSummary.model_validate(owner) if owner is not None else None,
            created_at=tweet.created_at,
            updated_at=tweet.updated_at,
        )
