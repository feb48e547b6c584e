"""Unit tests for draftkeeper.client."""

from __future__ import annotations

import json

import httpx
import pytest
import respx
from structlog.testing import capture_logs

from draftkeeper.client import (
    NETWORK_MESSAGE,
    TIMEOUT_MESSAGE,
    ApiClient,
    LogNotifier,
    build_http_client,
)
from draftkeeper.config import ApiSettings
from draftkeeper.errors import ApiError, ErrorCode

BASE_URL = "https://blog.test"


class RecordingNotifier:
    def __init__(self) -> None:
        self.notifications: list[tuple[str, str]] = []

    def add(self, title: str, color: str) -> None:
        self.notifications.append((title, color))


def _envelope(data=None, *, success: bool = True, code: int = 200, message: str = "") -> dict:
    return {"success": success, "code": code, "message": message, "data": data}


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
async def api(notifier: RecordingNotifier):
    async with httpx.AsyncClient(base_url=BASE_URL) as client:
        yield ApiClient(client, notifier)


# ---------------------------------------------------------------------------
# build_http_client
# ---------------------------------------------------------------------------


class TestBuildHttpClient:
    async def test_client_configuration(self) -> None:
        client = build_http_client(ApiSettings(base_url=BASE_URL, timeout_seconds=3.0))
        try:
            assert isinstance(client, httpx.AsyncClient)
            assert client.base_url.host == "blog.test"
            assert client.timeout.read == 3.0
            assert client.headers["accept"] == "application/json"
            assert client.headers["user-agent"].startswith("draftkeeper/")
        finally:
            await client.aclose()


# ---------------------------------------------------------------------------
# Successful envelopes
# ---------------------------------------------------------------------------


class TestSuccess:
    async def test_returns_data(self, api: ApiClient, notifier: RecordingNotifier) -> None:
        with respx.mock:
            respx.get(f"{BASE_URL}/api/posts/1").mock(
                return_value=httpx.Response(200, json=_envelope({"id": 1}))
            )
            assert await api.request("/api/posts/1") == {"id": 1}
        assert notifier.notifications == []

    async def test_success_notification(
        self, api: ApiClient, notifier: RecordingNotifier
    ) -> None:
        with respx.mock:
            respx.delete(f"{BASE_URL}/api/posts/1").mock(
                return_value=httpx.Response(200, json=_envelope(message="Deleted"))
            )
            await api.request("/api/posts/1", method="DELETE", show_toast=True)
        assert notifier.notifications == [("Deleted", "success")]

    async def test_default_success_message(
        self, api: ApiClient, notifier: RecordingNotifier
    ) -> None:
        with respx.mock:
            respx.get(f"{BASE_URL}/api/ping").mock(
                return_value=httpx.Response(200, json=_envelope("pong"))
            )
            await api.request("/api/ping", show_toast=True)
        assert notifier.notifications == [("Operation succeeded", "success")]

    async def test_none_params_are_dropped(self, api: ApiClient) -> None:
        with respx.mock:
            route = respx.route(method="GET", host="blog.test", path="/api/posts").mock(
                return_value=httpx.Response(200, json=_envelope([]))
            )
            await api.request("/api/posts", params={"status": "draft", "page": 2, "category": None})

        request = route.calls.last.request
        assert dict(request.url.params) == {"status": "draft", "page": "2"}

    async def test_get_never_sends_body(self, api: ApiClient) -> None:
        with respx.mock:
            route = respx.get(f"{BASE_URL}/api/posts").mock(
                return_value=httpx.Response(200, json=_envelope([]))
            )
            await api.request("/api/posts", body={"ignored": True})

        assert route.calls.last.request.content == b""

    async def test_post_sends_json_body(self, api: ApiClient) -> None:
        with respx.mock:
            route = respx.post(f"{BASE_URL}/api/messages").mock(
                return_value=httpx.Response(200, json=_envelope({"id": 7}))
            )
            await api.request("/api/messages", method="post", body={"content": "hi"})

        request = route.calls.last.request
        assert request.method == "POST"
        assert request.headers["content-type"] == "application/json"
        assert json.loads(request.content) == {"content": "hi"}


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:
    async def test_business_failure_raises(
        self, api: ApiClient, notifier: RecordingNotifier
    ) -> None:
        with respx.mock:
            respx.post(f"{BASE_URL}/api/posts").mock(
                return_value=httpx.Response(
                    200,
                    json=_envelope({"field": "title"}, success=False, code=400, message="Bad title"),
                )
            )
            with pytest.raises(ApiError) as exc_info:
                await api.request("/api/posts", method="POST", body={}, show_toast=True)

        assert exc_info.value.status == 400
        assert exc_info.value.message == "Bad title"
        assert exc_info.value.data == {"field": "title"}
        assert exc_info.value.code == ErrorCode.API_FAILURE
        assert notifier.notifications == [("Bad title", "error")]

    async def test_http_error_with_envelope(self, api: ApiClient) -> None:
        with respx.mock:
            respx.get(f"{BASE_URL}/api/posts/99").mock(
                return_value=httpx.Response(
                    404, json=_envelope(success=False, code=404, message="Post not found")
                )
            )
            with pytest.raises(ApiError) as exc_info:
                await api.request("/api/posts/99")

        assert exc_info.value.status == 404
        assert exc_info.value.message == "Post not found"
        assert exc_info.value.code == ErrorCode.HTTP_ERROR

    async def test_http_error_without_envelope(
        self, api: ApiClient, notifier: RecordingNotifier
    ) -> None:
        with respx.mock:
            respx.get(f"{BASE_URL}/api/posts").mock(
                return_value=httpx.Response(502, text="<html>Bad gateway</html>")
            )
            with pytest.raises(ApiError) as exc_info:
                await api.request("/api/posts", show_toast=True)

        assert exc_info.value.status == 502
        assert exc_info.value.code == ErrorCode.HTTP_ERROR
        assert notifier.notifications == [("HTTP 502", "error")]

    async def test_malformed_success_body(self, api: ApiClient) -> None:
        with respx.mock:
            respx.get(f"{BASE_URL}/api/posts").mock(
                return_value=httpx.Response(200, text="not json")
            )
            with pytest.raises(ApiError) as exc_info:
                await api.request("/api/posts")

        assert exc_info.value.code == ErrorCode.INVALID_RESPONSE

    async def test_timeout(self, api: ApiClient, notifier: RecordingNotifier) -> None:
        with respx.mock:
            respx.get(f"{BASE_URL}/api/posts").mock(side_effect=httpx.ReadTimeout("slow"))
            with pytest.raises(ApiError) as exc_info:
                await api.request("/api/posts", timeout=0.5, show_toast=True)

        assert exc_info.value.status == 0
        assert exc_info.value.message == TIMEOUT_MESSAGE
        assert exc_info.value.code == ErrorCode.REQUEST_TIMEOUT
        assert notifier.notifications == [(TIMEOUT_MESSAGE, "info")]

    async def test_network_error(self, api: ApiClient, notifier: RecordingNotifier) -> None:
        with respx.mock:
            respx.get(f"{BASE_URL}/api/posts").mock(
                side_effect=httpx.ConnectError("Connection refused")
            )
            with pytest.raises(ApiError) as exc_info:
                await api.request("/api/posts", show_toast=True)

        assert exc_info.value.code == ErrorCode.NETWORK_ERROR
        assert exc_info.value.message == NETWORK_MESSAGE
        assert notifier.notifications == [(NETWORK_MESSAGE, "error")]

    async def test_failures_are_silent_without_toast(
        self, api: ApiClient, notifier: RecordingNotifier
    ) -> None:
        with respx.mock:
            respx.get(f"{BASE_URL}/api/posts").mock(
                side_effect=httpx.ConnectError("Connection refused")
            )
            with pytest.raises(ApiError):
                await api.request("/api/posts")
        assert notifier.notifications == []

    async def test_envelope_without_code_uses_http_status(self, api: ApiClient) -> None:
        with respx.mock:
            respx.post(f"{BASE_URL}/api/messages").mock(
                return_value=httpx.Response(
                    400, json={"success": False, "message": "Content required"}
                )
            )
            with pytest.raises(ApiError) as exc_info:
                await api.request("/api/messages", method="POST", body={})

        assert exc_info.value.status == 400
        assert exc_info.value.message == "Content required"
        assert exc_info.value.code == ErrorCode.HTTP_ERROR

    async def test_success_without_code(self, api: ApiClient) -> None:
        with respx.mock:
            respx.post(f"{BASE_URL}/api/posts").mock(
                return_value=httpx.Response(200, json={"success": True, "data": {"id": 7}})
            )
            assert await api.request("/api/posts", method="POST", body={}) == {"id": 7}


class TestLogNotifier:
    async def test_default_notifier_logs(self) -> None:
        async with httpx.AsyncClient(base_url=BASE_URL) as client:
            api = ApiClient(client)
            with respx.mock, capture_logs() as logs:
                respx.get(f"{BASE_URL}/api/ping").mock(
                    return_value=httpx.Response(200, json=_envelope(message="ok"))
                )
                await api.request("/api/ping", show_toast=True)

        assert isinstance(api._notifier, LogNotifier)
        assert {"event": "notification", "title": "ok", "color": "success", "log_level": "info"} in logs
