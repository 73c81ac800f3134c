"""
VidTube Backend — Request Dependencies
=======================================

What:  Resolves the acting user of a request.
How:   The authenticating gateway in front of this service forwards the
       verified user id in the header named by settings.user_header
       (X-User-ID). The id is looked up in the users table with the request's
       own session (FastAPI caches get_db_session per request).

    get_optional_user → User or None when the header is absent
    get_current_user  → User, or UnauthenticatedError (401)

A header that is present but malformed or names an unknown user is always
rejected, also on endpoints where the user is optional.
"""

import logging
import uuid
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.config import settings
from vidtube.database import get_db_session
from vidtube.exceptions import UnauthenticatedError
from vidtube.models import User

logger = logging.getLogger(__name__)


async def get_optional_user(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Optional[User]:
    raw = (request.headers.get(settings.user_header) or "").strip()
    if not raw:
        return None

    try:
        user_id = uuid.UUID(raw)
    except ValueError:
        logger.warning("Rejected malformed %s header", settings.user_header)
        raise UnauthenticatedError(context={"reason": "malformed user id"})

    user = await db.scalar(select(User).where(User.id == user_id))
    if user is None:
        raise UnauthenticatedError(context={"reason": "unknown user", "user_id": str(user_id)})
    return user


async def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise UnauthenticatedError(context={"reason": "missing user header"})
    return user
