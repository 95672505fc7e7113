"""Testing utilities for code that uses the GitHub transport stack.

Example:
    ```python
    from github_transport.testing import RecordingTransport
    from github_transport.transport import create_transport_stack


    async def test_token_is_attached():
        network = RecordingTransport()
        transport = create_transport_stack(config, base_transport=network)
        async with httpx.AsyncClient(transport=transport) as client:
            await client.get("https://api.github.com/rate_limit")
        assert network.authorizations == ["Bearer tok1"]
    ```
"""

from collections.abc import Callable

import httpx


class RecordingTransport(httpx.MockTransport):
    """Mock network transport that remembers every request it receives.

    Args:
        handler: Builds the response for a request (default: empty 200).
    """

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response] | None = None):
        self.requests: list[httpx.Request] = []
        self._respond = handler or (lambda request: httpx.Response(200))
        super().__init__(self._record)

    def _record(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._respond(request)

    @property
    def authorizations(self) -> list[str | None]:
        """``Authorization`` header of each recorded request, in order."""
        return [request.headers.get("Authorization") for request in self.requests]


__all__ = ["RecordingTransport"]
