"""Typed errors raised by the query engines.

Every failure surfaces as an ``OpenGovError`` subclass carrying a JSON-RPC
error code, so the tool layer can render it into the protocol's error
envelope without inspecting messages.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Optional


class ErrorCode(IntEnum):
    """JSON-RPC error codes used in tool error payloads."""

    REMOTE_FETCH_FAILED = -32000
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603


class OpenGovError(Exception):
    """Base class for all errors surfaced to tool callers."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, data: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.data = data

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        payload: dict[str, Any] = {
            "error": self.message,
            "code": int(self.code),
            "type": type(self).__name__,
        }
        if self.data is not None:
            payload["data"] = self.data
        return payload


class InvalidParams(OpenGovError):
    """Caller-supplied request violates a precondition."""

    code = ErrorCode.INVALID_PARAMS


class InternalError(OpenGovError):
    """Unexpected local failure."""

    code = ErrorCode.INTERNAL_ERROR


class RemoteFetchFailed(OpenGovError):
    """The upstream data provider returned an error or was unreachable."""

    code = ErrorCode.REMOTE_FETCH_FAILED


class RemoteApiError(RemoteFetchFailed):
    """Provider answered with a non-2xx status."""

    def __init__(self, status_code: int, status_text: str, body: Any):
        self.status_code = status_code
        self.status_text = status_text
        self.body = body
        super().__init__(
            f"API request failed: {status_code} - {status_text}\n{body}",
            data={"status_code": status_code, "status_text": status_text},
        )


class RemoteApiUnreachable(RemoteFetchFailed):
    """No response was received (network failure or timeout)."""

    def __init__(self, message: str):
        super().__init__(f"API unreachable: {message}")


class RemoteApiRequestError(RemoteFetchFailed):
    """The request could not be constructed."""

    def __init__(self, message: str):
        super().__init__(f"Invalid API request: {message}")
