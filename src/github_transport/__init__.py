"""GitHub Transport - authenticated, rate-limited httpx transports for the GitHub API.

This library resolves which credential a client uses and wraps the network
transport with the layers every GitHub API call needs:
- Credential strategy resolution (tokens, GitHub App, secret server)
- Token rotation across multiple personal access tokens
- Rate-limit pacing from GitHub's quota headers
- Prometheus request metrics

Example:
    ```python
    import httpx

    from github_transport.transport import create_transport_stack

    transport = create_transport_stack()

    async with httpx.AsyncClient(transport=transport, base_url="https://api.github.com") as client:
        response = await client.get("/rate_limit")
    ```
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
