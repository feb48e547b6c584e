from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ApiResponse(BaseModel):
    """Uniform response envelope returned by every blog API endpoint."""

    success: bool
    # Some endpoints omit it; ApiClient falls back to the HTTP status
    code: int | None = None
    message: str = ""
    data: Any = None
    path: str | None = None
    stack: str | None = None


class Pagination(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int
    page_size: int = Field(alias="pageSize")
    total: int
    total_pages: int = Field(alias="totalPages")


class Post(BaseModel):
    id: int
    title: str
    content: str
    summary: str | None = None
    status: Literal["draft", "published"] = "draft"
    category: str | None = None
    tags: list[str] = []
    cover_image: str | None = None
    view_count: int | None = 0
    # Absent from the create response, which echoes the request body
    created_at: str | None = None
    updated_at: str | None = None
    published_at: str | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def _decode_tags(cls, value: Any) -> Any:
        """Rows store tags as a JSON-encoded TEXT column, possibly NULL."""
        if value is None or value == "":
            return []
        if isinstance(value, str):
            return json.loads(value)
        return value


class Message(BaseModel):
    """A guest-book comment."""

    id: int
    visitor_id: str
    content: str
    image_url: str | None = None
    created_at: str | None = None


class PaginatedMessages(BaseModel):
    data: list[Message]
    pagination: Pagination


class SearchPostItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    title: str
    summary: str | None = None
    cover_image: str | None = None
    status: str | None = None
    tag_ids: list[int] = Field(default=[], alias="tagIds")
    tag_names: list[str] = Field(default=[], alias="tagNames")


class SearchResponse(BaseModel):
    data: list[SearchPostItem]
    pagination: Pagination


class UploadResponse(BaseModel):
    url: str
