"""Normalized client-side API errors."""

from typing import Any, Optional

import httpx


class ApiError(Exception):
    """Single error shape for every client call.

    Attributes:
        message: Server-provided message when available, else transport text
        status: HTTP status code (None for transport failures)
        details: Parsed response body, if any
    """

    def __init__(
        self, message: str, status: Optional[int] = None, details: Any = None
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.details = details

    def to_dict(self) -> dict:
        return {"message": self.message, "status": self.status, "details": self.details}


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


def error_from_response(response: httpx.Response) -> ApiError:
    """Build an ApiError from a non-2xx response."""
    body = _response_body(response)
    message = None
    if isinstance(body, dict):
        message = body.get("message") or body.get("detail")
        if not isinstance(message, str):
            message = None
    return ApiError(
        message=message or f"Request failed with status code {response.status_code}",
        status=response.status_code,
        details=body,
    )


def error_from_exception(exc: Exception) -> ApiError:
    """Build an ApiError from a transport or decoding failure."""
    return ApiError(message=str(exc) or "An unknown error occurred")
