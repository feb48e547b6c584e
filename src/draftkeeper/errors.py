from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    API_FAILURE = "API_FAILURE"
    HTTP_ERROR = "HTTP_ERROR"
    REQUEST_TIMEOUT = "REQUEST_TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"


class ApiError(Exception):
    """Raised by ApiClient for every failed request.

    ``status`` mirrors the ``code`` field of the server's response envelope,
    or the HTTP status when the envelope has none (0 when no response was
    received). ``code`` classifies the failure.
    """

    def __init__(
        self,
        status: int,
        message: str,
        data: Any = None,
        *,
        code: ErrorCode = ErrorCode.API_FAILURE,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.message = message
        self.data = data
        self.code = code

