"""Error taxonomy for API calls.

Failures are classified after the fact, from the HTTP status or the
transport exception.  The kind decides whether a call is retried, what is
logged, and which message the user sees.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

import httpx

if TYPE_CHECKING:
    from client.connectivity import ConnectionStatus


class ErrorKind(str, Enum):
    TIMEOUT = "timeout"
    NETWORK = "network"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    AUTH_REQUIRED = "auth_required"
    NOT_FOUND = "not_found"
    CLIENT_ERROR = "client_error"
    OFFLINE = "offline"
    CANCELLED = "cancelled"
    INVALID_RESPONSE = "invalid_response"


USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.TIMEOUT: "Request timed out. Please try again.",
    ErrorKind.NETWORK: "Network error. Please check your connection.",
    ErrorKind.RATE_LIMITED: "Too many requests. Please wait a moment and try again.",
    ErrorKind.SERVER_ERROR: "Server error. Please try again later.",
    ErrorKind.AUTH_REQUIRED: "Authentication required. Please sign in again.",
    ErrorKind.NOT_FOUND: "That item no longer exists.",
    ErrorKind.CLIENT_ERROR: "The request was rejected. Please check your input.",
    ErrorKind.OFFLINE: "Cannot reach the server. Please check your connection.",
    ErrorKind.CANCELLED: "Request was cancelled.",
    ErrorKind.INVALID_RESPONSE: "Unexpected response from the server.",
}


class ApiError(Exception):
    """A failed API call, classified by :class:`ErrorKind`."""

    def __init__(
        self,
        kind: ErrorKind,
        message: Optional[str] = None,
        *,
        status: Optional[int] = None,
        request_id: Optional[str] = None,
        detail: Any = None,
    ) -> None:
        super().__init__(message or USER_MESSAGES[kind])
        self.kind = kind
        self.status = status
        self.request_id = request_id
        self.detail = detail

    @property
    def user_message(self) -> str:
        return str(self)

    @classmethod
    def from_response(cls, response: httpx.Response) -> ApiError:
        """Build an error from a non-2xx response and its ``{"error": ...}`` body."""
        kind = classify_status(response.status_code) or ErrorKind.CLIENT_ERROR
        try:
            body = response.json()
        except ValueError:
            body = None

        message = None
        if kind is ErrorKind.CLIENT_ERROR and isinstance(body, dict):
            message = _validation_message(body)
        return cls(
            kind,
            message,
            status=response.status_code,
            request_id=response.request.headers.get("X-Request-ID"),
            detail=body,
        )


class ConnectivityError(ApiError):
    """Retries were abandoned because the client is offline or the server unreachable."""

    def __init__(self, status: ConnectionStatus, *, cause: Optional[ApiError] = None) -> None:
        super().__init__(ErrorKind.OFFLINE)
        self.connection = status
        self.cause = cause


def classify_status(status: int) -> Optional[ErrorKind]:
    """Map an HTTP status to an error kind; None for success statuses."""
    if status < 400:
        return None
    if status in (401, 403):
        return ErrorKind.AUTH_REQUIRED
    if status == 404:
        return ErrorKind.NOT_FOUND
    if status == 429:
        return ErrorKind.RATE_LIMITED
    if status >= 500:
        return ErrorKind.SERVER_ERROR
    return ErrorKind.CLIENT_ERROR


def classify_exception(exc: BaseException) -> ErrorKind:
    """Map a transport-level exception to an error kind."""
    if isinstance(exc, ApiError):
        return exc.kind
    if isinstance(exc, asyncio.CancelledError):
        return ErrorKind.CANCELLED
    if isinstance(exc, httpx.TimeoutException):
        return ErrorKind.TIMEOUT
    if isinstance(exc, httpx.HTTPStatusError):
        return classify_status(exc.response.status_code) or ErrorKind.CLIENT_ERROR
    return ErrorKind.NETWORK


def _validation_message(body: dict[str, Any]) -> Optional[str]:
    """Readable message from the API's 400 validation body, when present."""
    error = body.get("error")
    if not isinstance(error, str):
        return None
    details = body.get("details")
    if not isinstance(details, list) or not details:
        return error
    fields = [
        f"{d.get('field')}: {d.get('message')}" for d in details if isinstance(d, dict)
    ]
    return f"{error}: " + "; ".join(fields)
