"""
VidTube Backend — Shared Wire Schemas
======================================

What:  The response envelope, the page container and the owner summary that
       every resource schema builds on.
How:   Python attributes are snake_case; CamelModel's alias generator turns
       them into the camelCase keys clients see (statusCode, totalDocs,
       fullName...). FastAPI serializes response models by alias.

Envelope:
    success: {"statusCode": 200, "data": ..., "message": "...", "success": true}
    error:   {"statusCode": 404, "message": "...", "success": false,
              "errors": [...], "requestId": "a1b2c3d4"}
"""

import math
import uuid
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class OwnerSummary(CamelModel):
    """Public projection of a User joined onto videos and tweets."""

    id: uuid.UUID
    full_name: str
    username: str
    avatar: str


class ApiResponse(CamelModel, Generic[T]):
    status_code: int = Field(default=200, description="HTTP status mirrored in the body")
    data: T
    message: str = Field(default="Success")
    success: bool = Field(default=True)


class ErrorResponse(CamelModel):
    status_code: int
    message: str
    success: bool = False
    errors: List[Any] = Field(default_factory=list)
    request_id: Optional[str] = Field(default=None, description="Correlation id for server logs")


class Page(CamelModel, Generic[T]):
    """
    One page of a paginated listing.

    pagingCounter is the 1-based position of the first doc on this page;
    totalPages is at least 1 so an empty listing still reports page 1 of 1.
    """

    docs: List[T]
    total_docs: int
    limit: int
    page: int
    total_pages: int
    paging_counter: int
    has_prev_page: bool
    has_next_page: bool
    prev_page: Optional[int] = None
    next_page: Optional[int] = None

    @classmethod
    def build(cls, docs: List[Any], total_docs: int, page: int, limit: int) -> "Page":
        total_pages = max(math.ceil(total_docs / limit), 1)
        has_prev = page > 1
        has_next = page < total_pages
        return cls(
            docs=docs,
            total_docs=total_docs,
            limit=limit,
            page=page,
            total_pages=total_pages,
            paging_counter=(page - 1) * limit + 1,
            has_prev_page=has_prev,
            has_next_page=has_next,
            prev_page=page - 1 if has_prev else None,
            next_page=page + 1 if has_next else None,
        )


class HealthResponse(CamelModel):
    status: str = Field(description="healthy, degraded or unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    media_host: str = Field(description="available or unavailable")
    uptime_seconds: float
