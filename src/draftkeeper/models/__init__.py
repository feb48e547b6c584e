from __future__ import annotations

from draftkeeper.models.api import (
    ApiResponse,
    Message,
    PaginatedMessages,
    Pagination,
    Post,
    SearchPostItem,
    SearchResponse,
    UploadResponse,
)
from draftkeeper.models.draft import DraftRecord

__all__ = [
    # drafts
    "DraftRecord",
    # api
    "ApiResponse",
    "Pagination",
    "Post",
    "Message",
    "PaginatedMessages",
    "SearchPostItem",
    "SearchResponse",
    "UploadResponse",
]
