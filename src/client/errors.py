"""
API error parsing for the Markfy client.

Turns HTTP error responses from the links API into a `MarkfyApiError` with a semantic
category, the server's human-readable message and any field-level validation details.
"""
from typing import Any, Literal

import httpx

ErrorCategory = Literal[
    "validation",  # 400/422 - Invalid input
    "not_found",   # 404 - Bookmark doesn't exist
    "conflict",    # 409 - URL already saved
    "internal",    # 5xx, transport failures, or unexpected errors
]


class MarkfyApiError(Exception):
    """Raised by the API client for any non-success response."""

    def __init__(
        self,
        category: ErrorCategory,
        message: str,
        status_code: int | None = None,
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        self.category = category
        self.message = message
        self.status_code = status_code
        self.details = details or []
        super().__init__(message)


def parse_http_error(e: httpx.HTTPStatusError) -> MarkfyApiError:
    """
    Parse an HTTP error into a semantic category.

    Args:
        e: The HTTP status error from httpx.

    Returns:
        MarkfyApiError with category, message, status code and validation details.
    """
    status = e.response.status_code
    body = _safe_get_body(e)
    message = body.get("error") if isinstance(body.get("error"), str) else None

    if status == 404:
        return MarkfyApiError("not_found", message or "Bookmark not found", status)

    if status == 409:
        return MarkfyApiError(
            "conflict", message or "A bookmark with this URL already exists", status,
        )

    if status in (400, 422):
        details = body.get("details")
        return MarkfyApiError(
            "validation",
            message or "Validation error",
            status,
            details=details if isinstance(details, list) else None,
        )

    # Generic error for other status codes; never surface server internals
    return MarkfyApiError("internal", "Something went wrong. Please try again.", status)


def _safe_get_body(e: httpx.HTTPStatusError) -> dict[str, Any]:
    """Safely extract the JSON error body."""
    try:
        body = e.response.json()
    except ValueError:
        return {}
    # Non-dict JSON body (list, string, etc.) - return empty
    return body if isinstance(body, dict) else {}
