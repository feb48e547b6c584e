"""HTTP request wrapper for the blog API.

Every endpoint answers with the same envelope::

    {"success": true, "code": 200, "message": "...", "data": ...}

ApiClient unwraps it: a successful envelope returns ``data``, anything else
raises ApiError. ``code`` is optional in the envelope; when it is missing
the HTTP status is used instead. Timeouts and transport failures are
converted to ApiError as well, so callers only ever handle one exception
type. When a call asks for ``show_toast`` the outcome is also reported
through a notifier.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
import structlog
from pydantic import ValidationError

from draftkeeper import __version__
from draftkeeper.errors import ApiError, ErrorCode
from draftkeeper.models.api import ApiResponse

if TYPE_CHECKING:
    from draftkeeper.config import ApiSettings
    from draftkeeper.protocols import NotificationColor, NotifierProtocol

log = structlog.get_logger()

DEFAULT_SUCCESS_MESSAGE = "Operation succeeded"
DEFAULT_FAILURE_MESSAGE = "Operation failed"
TIMEOUT_MESSAGE = "Request timed out"
NETWORK_MESSAGE = "Network request failed, please check your connection"


def build_http_client(settings: ApiSettings) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    return httpx.AsyncClient(
        base_url=settings.base_url,
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={
            "User-Agent": f"draftkeeper/{__version__}",
            "Accept": "application/json",
        },
    )


def _clean_params(params: dict[str, Any] | None) -> dict[str, str] | None:
    """Drop ``None`` values; everything else is sent as its string form."""
    if not params:
        return None
    return {key: str(value) for key, value in params.items() if value is not None}


class LogNotifier:
    """Notifier that records notifications in the log instead of a UI toast."""

    def add(self, title: str, color: NotificationColor) -> None:
        log.info("notification", title=title, color=color)


class ApiClient:
    """Envelope-aware wrapper around a shared httpx.AsyncClient."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        notifier: NotifierProtocol | None = None,
    ) -> None:
        self._client = client
        self._notifier = notifier if notifier is not None else LogNotifier()

    async def request(
        self,
        path: str,
        *,
        method: str = "GET",
        params: dict[str, Any] | None = None,
        body: Any = None,
        files: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        show_toast: bool = False,
    ) -> Any:
        """Send a request and return the envelope's ``data``.

        ``body`` is JSON-encoded for every method except GET. ``timeout`` in
        seconds overrides the client default for this call only. Raises
        ApiError on business failures, non-2xx responses, timeouts and
        network errors.
        """
        method = method.upper()
        try:
            response = await self._client.request(
                method,
                path,
                params=_clean_params(params),
                json=body if method != "GET" and body is not None else None,
                files=files,
                headers=headers,
                timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.TimeoutException as exc:
            log.warning("api_request_timeout", method=method, path=path, timeout=timeout)
            self._notify(show_toast, TIMEOUT_MESSAGE, "info")
            raise ApiError(0, TIMEOUT_MESSAGE, code=ErrorCode.REQUEST_TIMEOUT) from exc
        except httpx.HTTPError as exc:
            log.warning("api_request_network_error", method=method, path=path, exc_info=True)
            self._notify(show_toast, NETWORK_MESSAGE, "error")
            raise ApiError(0, NETWORK_MESSAGE, code=ErrorCode.NETWORK_ERROR) from exc

        try:
            envelope = ApiResponse.model_validate_json(response.content)
        except ValidationError as exc:
            if response.is_success:
                error = ApiError(
                    response.status_code,
                    f"Malformed response from {method} {path}",
                    code=ErrorCode.INVALID_RESPONSE,
                )
            else:
                error = ApiError(
                    response.status_code,
                    f"HTTP {response.status_code}",
                    code=ErrorCode.HTTP_ERROR,
                )
            self._fail(show_toast, method, path, error)
            raise error from exc

        if response.is_success and envelope.success:
            log.debug(
                "api_request_complete", method=method, path=path, status=response.status_code
            )
            self._notify(show_toast, envelope.message or DEFAULT_SUCCESS_MESSAGE, "success")
            return envelope.data

        error = ApiError(
            envelope.code if envelope.code is not None else response.status_code,
            envelope.message or DEFAULT_FAILURE_MESSAGE,
            envelope.data,
            code=ErrorCode.API_FAILURE if response.is_success else ErrorCode.HTTP_ERROR,
        )
        self._fail(show_toast, method, path, error)
        raise error

    def _notify(self, show_toast: bool, title: str, color: NotificationColor) -> None:
        if show_toast:
            self._notifier.add(title, color)

    def _fail(self, show_toast: bool, method: str, path: str, error: ApiError) -> None:
        log.warning(
            "api_request_failed",
            method=method,
            path=path,
            status=error.status,
            code=error.code,
            message=error.message,
        )
        self._notify(show_toast, error.message, "error")
