"""Client helper for GitHub API consumers."""

import httpx

from github_transport.config import TransportConfig
from github_transport.transport.factory import create_transport_stack


def create_client(config: TransportConfig | None = None, **kwargs) -> httpx.AsyncClient:
    """Return an ``httpx.AsyncClient`` that talks to GitHub through the transport stack.

    The client's base URL is the configured API root. Keyword arguments are
    passed to ``create_transport_stack``.

    Example:
        ```python
        async with create_client() as client:
            response = await client.get("/repos/octocat/hello-world")
        ```
    """
    if config is None:
        config = TransportConfig.from_env()
    transport = create_transport_stack(config, **kwargs)
    return httpx.AsyncClient(
        base_url=config.api_url,
        transport=transport,
        headers={"Accept": "application/vnd.github+json"},
    )
