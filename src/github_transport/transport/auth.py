"""Authentication transport: attach a GitHub token to every request.

## Example

```python
from github_transport.auth.accessors import RoundRobinAccessor
from github_transport.transport.auth import AuthenticatingTransport
import httpx

transport = AuthenticatingTransport(
    wrapped_transport=httpx.AsyncHTTPTransport(),
    accessor=RoundRobinAccessor(("tok1", "tok2")),
)

async with httpx.AsyncClient(transport=transport) as client:
    await client.get("https://api.github.com/rate_limit")  # Bearer tok1
    await client.get("https://api.github.com/rate_limit")  # Bearer tok2
```
"""

import logging

import httpx

from github_transport.auth.accessors import TokenAccessor

logger = logging.getLogger(__name__)


class AuthenticatingTransport(httpx.AsyncBaseTransport):
    """Transport that sets ``Authorization`` from a token accessor.

    The response or exception of the wrapped transport is returned
    unchanged; this layer never retries. The request's extensions (timeout,
    trace hooks) are passed through as they are.

    Args:
        wrapped_transport: The underlying transport to wrap. This transport
            takes ownership of it and closes it on ``aclose()``.
        accessor: Supplies the token for each request.
        scheme: Authorization scheme prefix (default: ``Bearer``).
    """

    def __init__(
        self,
        *,
        wrapped_transport: httpx.AsyncBaseTransport,
        accessor: TokenAccessor,
        scheme: str = "Bearer",
    ) -> None:
        self._wrapped_transport = wrapped_transport
        self.accessor = accessor
        self.scheme = scheme

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        """Attach a token, send the request and hand its lease back.

        Args:
            request: The HTTP request to send

        Returns:
            HTTP response from the wrapped transport
        """
        lease_id, token = await self.accessor.acquire(request)
        request.headers["Authorization"] = f"{self.scheme} {token}"
        logger.debug(f"Authenticated {request.method} {request.url} (lease {lease_id})")
        try:
            return await self._wrapped_transport.handle_async_request(request)
        finally:
            await self.accessor.release(lease_id)

    async def aclose(self) -> None:
        """Close the accessor and the wrapped transport."""
        await self.accessor.aclose()
        await self._wrapped_transport.aclose()
