"""Typed calls for the blog API endpoints, built on ApiClient."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, TypeAdapter

from draftkeeper.models.api import (
    Message,
    PaginatedMessages,
    Post,
    SearchResponse,
    UploadResponse,
)

if TYPE_CHECKING:
    from draftkeeper.client import ApiClient

PostStatus = Literal["draft", "published"]

_POST_LIST = TypeAdapter(list[Post])


class PostInput(BaseModel):
    """Payload for creating or updating a post. Unset fields are not sent."""

    title: str | None = None
    content: str | None = None
    summary: str | None = None
    status: PostStatus | None = None
    category: str | None = None
    tags: list[str] | None = None
    cover_image: str | None = None

    def payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class PostsApi:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def get_list(
        self,
        *,
        status: PostStatus | None = None,
        category: str | None = None,
        page: int | None = None,
        limit: int | None = None,
        show_toast: bool = False,
    ) -> list[Post]:
        data = await self._client.request(
            "/api/posts",
            params={"status": status, "category": category, "page": page, "limit": limit},
            show_toast=show_toast,
        )
        return _POST_LIST.validate_python(data)

    async def get(self, post_id: int) -> Post:
        return Post.model_validate(await self._client.request(f"/api/posts/{post_id}"))

    async def create(self, post: PostInput, *, show_toast: bool = True) -> Post:
        data = await self._client.request(
            "/api/posts", method="POST", body=post.payload(), show_toast=show_toast
        )
        return Post.model_validate(data)

    async def update(self, post_id: int, post: PostInput) -> None:
        # The server acknowledges updates without echoing the post
        await self._client.request(
            f"/api/posts/{post_id}", method="PUT", body=post.payload(), show_toast=True
        )

    async def delete(self, post_id: int) -> None:
        await self._client.request(f"/api/posts/{post_id}", method="DELETE", show_toast=True)

    async def publish(self, post_id: int) -> None:
        await self._set_published(post_id, "publish")

    async def unpublish(self, post_id: int) -> None:
        await self._set_published(post_id, "unpublish")

    async def _set_published(self, post_id: int, action: str) -> None:
        await self._client.request(
            f"/api/posts/{post_id}/publish",
            method="POST",
            body={"action": action},
            show_toast=True,
        )


class MessagesApi:
    """Guest-book messages."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def create(self, content: str, image_url: str | None = None) -> Message:
        body: dict[str, Any] = {"content": content}
        if image_url is not None:
            body["image_url"] = image_url
        data = await self._client.request(
            "/api/messages", method="POST", body=body, show_toast=True
        )
        return Message.model_validate(data)

    async def get_list(self, page: int, page_size: int | None = None) -> PaginatedMessages:
        data = await self._client.request(
            "/api/messages", params={"page": page, "pageSize": page_size}
        )
        return PaginatedMessages.model_validate(data)


async def search_posts(
    client: ApiClient, query: str, *, page: int = 1, page_size: int = 10
) -> SearchResponse:
    data = await client.request(
        "/api/search/posts",
        params={"q": query, "page": page, "pageSize": page_size},
    )
    return SearchResponse.model_validate(data)


async def upload_image(
    client: ApiClient, filename: str, content: bytes, content_type: str = "image/png"
) -> UploadResponse:
    """Upload an image as multipart form data and return its public URL."""
    data = await client.request(
        "/api/upload/image",
        method="POST",
        files={"file": (filename, content, content_type)},
    )
    return UploadResponse.model_validate(data)
