"""Rate-limit pacing transport for the GitHub REST API.

GitHub reports the caller's quota on every response:

| Header | Meaning |
|--------|---------|
| ``X-RateLimit-Remaining`` | requests left in the current window |
| ``X-RateLimit-Reset`` | Unix time the window resets |
| ``Retry-After`` | seconds (or HTTP-date) to wait, sent with secondary limits on 403/429 |

When the quota is exhausted, ``RateLimitedTransport`` holds every later
request until the reset time. The response that reported the exhaustion is
returned as is; nothing is re-sent from here.

## Example

```python
from github_transport.transport.rate_limit import RateLimitedTransport
import httpx

transport = RateLimitedTransport(
    wrapped_transport=httpx.AsyncHTTPTransport(),
    max_wait=900,  # Never hold a request longer than 15 minutes
)
```
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from threading import Lock

import httpx


class RateLimitedTransport(httpx.AsyncBaseTransport):
    """Transport that waits out an exhausted GitHub rate limit before sending.

    The "blocked until" time is shared by all concurrent requests going
    through this transport and only ever moves forward.

    Args:
        wrapped_transport: The underlying transport to wrap
        max_wait: Maximum time to hold a single request, in seconds (default: 3600)
        logger: Logger for pacing messages (default: this module's logger)
        clock: Returns the current Unix time (default: ``time.time``)
        sleep: Coroutine used to wait (default: ``asyncio.sleep``)
    """

    # Responses that may carry Retry-After for secondary rate limits
    RETRY_AFTER_STATUS_CODES: frozenset[int] = frozenset([403, 429])

    def __init__(
        self,
        *,
        wrapped_transport: httpx.AsyncBaseTransport,
        max_wait: float = 3600.0,
        logger: logging.Logger | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._wrapped_transport = wrapped_transport
        self.max_wait = max_wait
        self.logger = logger or logging.getLogger(__name__)
        self._clock = clock
        self._sleep = sleep
        self._blocked_until = 0.0
        self._lock = Lock()

    @property
    def blocked_until(self) -> float:
        """Unix time before which no request is sent."""
        with self._lock:
            return self._blocked_until

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        """Wait for the rate limit window if needed, then send the request.

        Args:
            request: The HTTP request to send

        Returns:
            HTTP response from the wrapped transport
        """
        delay = self.blocked_until - self._clock()
        if delay > 0:
            delay = min(delay, self.max_wait)
            self.logger.info(
                f"Rate limit exceeded. Waiting {delay:.1f}s before sending {request.method} {request.url}"
            )
            await self._sleep(delay)

        response = await self._wrapped_transport.handle_async_request(request)

        reset_at = self._parse_blocked_until(response)
        if reset_at is not None:
            with self._lock:
                self._blocked_until = max(self._blocked_until, reset_at)
        return response

    def _parse_blocked_until(self, response: httpx.Response) -> float | None:
        """Work out until when requests must be held, if at all.

        Args:
            response: HTTP response with optional rate limit headers

        Returns:
            Unix time to wait for, or None if the quota is not exhausted or
            the headers are missing or invalid
        """
        if response.status_code in self.RETRY_AFTER_STATUS_CODES:
            delay = self._parse_retry_after(response)
            if delay is not None:
                return self._clock() + delay

        try:
            remaining = int(response.headers["X-RateLimit-Remaining"])
        except (KeyError, ValueError):
            return None
        if remaining > 0:
            return None

        try:
            return float(int(response.headers["X-RateLimit-Reset"]))
        except (KeyError, ValueError):
            return None

    def _parse_retry_after(self, response: httpx.Response) -> float | None:
        """Parse Retry-After header from response.

        Supports both formats:
        - Delay-seconds: "120" (integer seconds)
        - HTTP-date: "Wed, 21 Oct 2015 07:28:00 GMT"

        Args:
            response: HTTP response with optional Retry-After header

        Returns:
            Delay in seconds, or None if header is missing or invalid
        """
        retry_after = response.headers.get("Retry-After")
        if not retry_after:
            return None

        # Try parsing as integer (delay-seconds format)
        try:
            delay = int(retry_after)
            # Protect against negative values
            if delay < 0:
                return None
            return float(delay)
        except ValueError:
            pass

        # Try parsing as HTTP-date format
        try:
            retry_date = parsedate_to_datetime(retry_after)
            now = datetime.fromtimestamp(self._clock(), UTC)
            delay = (retry_date - now).total_seconds()

            # Protect against negative delays (clock skew)
            if delay < 0:
                return None

            return delay
        except (ValueError, TypeError):
            pass

        # Invalid format, return None
        return None

    async def aclose(self) -> None:
        """Close the wrapped transport."""
        await self._wrapped_transport.aclose()
