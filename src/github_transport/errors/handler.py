"""Error handling utilities for HTTP responses."""

import httpx

from github_transport.errors.exceptions import (
    APIError,
    ClientError,
    ForbiddenError,
    NotFoundError,
    RateLimitError,
    ServerError,
    UnauthorizedError,
)


def raise_for_status(response: httpx.Response) -> None:
    """Raise appropriate exception for HTTP error responses.

    GitHub reports errors as ``{"message": ..., "documentation_url": ...}``;
    when the body has that shape its message is used, otherwise the start of
    the response text.

    Args:
        response: HTTP response object

    Raises:
        APIError subclass based on status code
    """
    if response.is_success:
        return

    status_code = response.status_code

    exception_map = {
        401: UnauthorizedError,
        403: ForbiddenError,
        404: NotFoundError,
        429: RateLimitError,
    }

    # GitHub signals primary rate limits with 403 and an exhausted quota
    if status_code == 403 and response.headers.get("x-ratelimit-remaining") == "0":
        exc_class = RateLimitError
    elif status_code in exception_map:
        exc_class = exception_map[status_code]
    elif 400 <= status_code < 500:
        exc_class = ClientError
    elif 500 <= status_code < 600:
        exc_class = ServerError
    else:
        exc_class = APIError

    message, documentation_url = _parse_error_body(response)
    message = f"HTTP {status_code}: {message}" if message else f"HTTP {status_code}"

    if exc_class is RateLimitError:
        retry_after = None
        if "retry-after" in response.headers:
            try:
                retry_after = int(response.headers["retry-after"])
            except (ValueError, TypeError):
                retry_after = None
        raise exc_class(
            message=message,
            retry_after=retry_after,
            status_code=status_code,
            response=response,
            documentation_url=documentation_url,
        )

    raise exc_class(
        message=message,
        status_code=status_code,
        response=response,
        documentation_url=documentation_url,
    )


def _parse_error_body(response: httpx.Response) -> tuple[str, str | None]:
    """Extract ``(message, documentation_url)`` from an error response."""
    try:
        data = response.json()
    except (ValueError, TypeError, AttributeError):
        # JSON decode errors, type errors, or missing .json() method
        return response.text[:200], None

    if isinstance(data, dict) and "message" in data:
        return str(data["message"]), data.get("documentation_url")

    return response.text[:200], None
