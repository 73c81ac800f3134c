"""
VidTube Backend — Listing Query Builder
========================================

What:  Builds and runs the filter → owner join → sort → paginate queries
       behind every listing endpoint (videos, a user's tweets, liked videos).
How:   Builders return a ListingQuery: the ordered row statement plus a
       matching COUNT statement sharing the same FROM/WHERE. paginate()
       executes both and wraps the rows in a Page.

Pagination rules:
    page / limit arrive as raw query strings. Their leading base-10 digits are
    read ("2.5" is 2, "5abc" is 5). No digits, or a value below 1, falls back
    to page=1 / limit=default_page_size. limit is capped at max_page_size, and
    page is capped so the row offset stays inside a signed 64-bit integer;
    such pages are simply empty.

Sorting rules:
    sortBy is looked up in the listing's whitelist of sortable columns;
    unknown or blank values fall back to the default column. sortType "asc"
    (any case) sorts ascending, anything else descending. The primary key is
    appended in the same direction so equal sort keys still page stably.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Type

from sqlalchemy import Select, and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from vidtube.config import settings
from vidtube.models import Like, LikeSubject, Tweet, User, Video
from vidtube.schemas.common import Page

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_SORT_FIELD = "createdAt"

# Largest OFFSET the store accepts (BIGINT)
MAX_OFFSET = 2**63 - 1

_LEADING_INT = re.compile(r"\s*([+-]?)(\d+)")

# Wire name → column. Only these may be used in ORDER BY.
VIDEO_SORT_FIELDS: Mapping[str, Any] = {
    "createdAt": Video.created_at,
    "updatedAt": Video.updated_at,
    "views": Video.views,
    "duration": Video.duration,
    "title": Video.title,
}


@dataclass(frozen=True)
class PageRequest:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class ListingQuery:
    statement: Select
    count_statement: Select


def _positive_int(raw: Any, default: int) -> int:
    if raw is None:
        return default
    match = _LEADING_INT.match(str(raw))
    if match is None:
        return default
    sign, digits = match.groups()
    digits = digits.lstrip("0")
    if sign == "-" or not digits:
        return default
    # Longer than any 64-bit value; also avoids int()'s digit limit
    if len(digits) > 19:
        return MAX_OFFSET
    return int(digits)


def parse_page_params(page: Any = None, limit: Any = None) -> PageRequest:
    """Clamp raw page/limit query values to a usable PageRequest."""
    size = min(_positive_int(limit, settings.default_page_size), settings.max_page_size)
    return PageRequest(
        page=min(_positive_int(page, DEFAULT_PAGE), MAX_OFFSET // size),
        limit=size,
    )


def resolve_sort(
    sort_by: Optional[str],
    sort_type: Optional[str],
    fields: Mapping[str, Any],
    tie_breaker: Any,
    default_field: str = DEFAULT_SORT_FIELD,
) -> List[ColumnElement]:
    """ORDER BY clauses for a whitelisted sort field and direction."""
    key = sort_by.strip() if isinstance(sort_by, str) else ""
    column = fields.get(key) if key else None
    if column is None:
        column = fields[default_field]

    ascending = str(sort_type or "").strip().lower() == "asc"
    if ascending:
        return [column.asc(), tie_breaker.asc()]
    return [column.desc(), tie_breaker.desc()]


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so user text is matched literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def contains_ci(column: Any, text: str) -> ColumnElement:
    """Case-insensitive substring predicate."""
    return column.ilike(f"%{escape_like(text)}%", escape="\\")


# ══════════════════════════════════════════════════════════════════════════
# Builders
# ══════════════════════════════════════════════════════════════════════════

def build_video_listing(
    query: Optional[str] = None,
    owner_id: Any = None,
    sort_by: Optional[str] = None,
    sort_type: Optional[str] = None,
) -> ListingQuery:
    """
    Published videos, optionally narrowed by free text over title/description
    and by owner. Rows are (Video, User | None).
    """
    criteria: List[ColumnElement] = [Video.is_published.is_(True)]

    text = (query or "").strip()
    if text:
        criteria.append(or_(contains_ci(Video.title, text), contains_ci(Video.description, text)))

    if owner_id is not None:
        criteria.append(Video.owner_id == owner_id)

    statement = (
        select(Video, User)
        .outerjoin(User, User.id == Video.owner_id)
        .where(*criteria)
        .order_by(*resolve_sort(sort_by, sort_type, VIDEO_SORT_FIELDS, Video.id))
    )
    count_statement = select(func.count(Video.id)).where(*criteria)
    return ListingQuery(statement=statement, count_statement=count_statement)


def build_user_tweets(owner_id: Any) -> ListingQuery:
    """A user's tweets, newest first. Rows are (Tweet, User | None)."""
    statement = (
        select(Tweet, User)
        .outerjoin(User, User.id == Tweet.owner_id)
        .where(Tweet.owner_id == owner_id)
        .order_by(Tweet.created_at.desc(), Tweet.id.desc())
    )
    count_statement = select(func.count(Tweet.id)).where(Tweet.owner_id == owner_id)
    return ListingQuery(statement=statement, count_statement=count_statement)


def build_liked_videos(user_id: Any) -> ListingQuery:
    """
    Videos the user liked, newest like first. Rows are (Video, User | None).

    The INNER JOIN on videos drops likes whose video no longer exists; only
    published videos and the user's own videos are listed.
    """
    join_on = and_(Video.id == Like.subject_id, Like.subject_type == LikeSubject.VIDEO)
    criteria = [
        Like.liked_by_id == user_id,
        or_(Video.is_published.is_(True), Video.owner_id == user_id),
    ]
    statement = (
        select(Video, User)
        .select_from(Like)
        .join(Video, join_on)
        .outerjoin(User, User.id == Video.owner_id)
        .where(*criteria)
        .order_by(Like.created_at.desc(), Like.id.desc())
    )
    count_statement = (
        select(func.count(Like.id))
        .select_from(Like)
        .join(Video, join_on)
        .where(*criteria)
    )
    return ListingQuery(statement=statement, count_statement=count_statement)


# ══════════════════════════════════════════════════════════════════════════
# Execution
# ══════════════════════════════════════════════════════════════════════════

async def paginate(
    db: AsyncSession,
    listing: ListingQuery,
    page_request: PageRequest,
    to_doc: Callable[[Any], Any],
    doc_model: Type[Any],
) -> Page:
    """
    Run a ListingQuery for one page.

    Args:
        to_doc:    maps one result row to its response model
        doc_model: the response model class, used to parametrize Page
    """
    total_docs = (await db.execute(listing.count_statement)).scalar() or 0

    result = await db.execute(
        listing.statement.offset(page_request.offset).limit(page_request.limit)
    )
    docs = [to_doc(row) for row in result.all()]

    logger.debug(
        "Paginated listing: page=%d limit=%d returned=%d total=%d",
        page_request.page,
        page_request.limit,
        len(docs),
        total_docs,
    )
    return Page[doc_model].build(docs=docs, total_docs=total_docs, page=page_request.page, limit=page_request.limit)
